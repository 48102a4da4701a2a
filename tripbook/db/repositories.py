"""Per-entity repositories over the whole-document stores."""

import json
import logging

from pydantic import ValidationError

from tripbook.db.kv import KeyValueStore
from tripbook.db.trip_store import TripStore
from tripbook.models.profile import Employee, UserProfile
from tripbook.models.trip import Trip

logger = logging.getLogger(__name__)

PROFILE_KEY = "@user_profile"
EMPLOYEE_KEY = "@employee_data"
SERVER_URL_KEY = "@server_url"


class TripRepository:
    """Trip access by id.

    Each operation loads the full collection, changes one trip and writes the
    full collection back.
    """

    def __init__(self, store: TripStore) -> None:
        self._store = store

    async def list_trips(self) -> list[Trip]:
        """List all trips in stored order."""
        return await self._store.load_trips()

    async def get_trip(self, trip_id: str) -> Trip | None:
        """Get trip by local id (string-compared).

        Args:
            trip_id: Local trip id

        Returns:
            Trip or None if not found
        """
        trips = await self._store.load_trips()
        return next((t for t in trips if t.id == str(trip_id)), None)

    async def upsert_trip(self, trip: Trip) -> Trip:
        """Replace the trip with the same id in place, or append it.

        Args:
            trip: Trip to store

        Returns:
            The stored trip
        """
        trips = await self._store.load_trips()
        for index, existing in enumerate(trips):
            if existing.id == trip.id:
                trips[index] = trip
                break
        else:
            trips.append(trip)
        await self._store.save_trips(trips)
        return trip

    async def delete_trip(self, trip_id: str) -> bool:
        """Delete trip by id.

        Returns:
            True if a trip was removed
        """
        trips = await self._store.load_trips()
        remaining = [t for t in trips if t.id != str(trip_id)]
        if len(remaining) == len(trips):
            return False
        await self._store.save_trips(remaining)
        return True

    async def replace_all(self, trips: list[Trip]) -> None:
        """Replace the whole collection in one write."""
        await self._store.save_trips(trips)

    async def clear(self) -> None:
        """Remove every trip."""
        await self._store.clear()


class ProfileStore:
    """User profile, linked employee and server URL."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def _load_json(self, key: str) -> object | None:
        try:
            raw = await self._kv.get_item(key)
            return None if raw is None else json.loads(raw)
        except Exception:
            logger.exception("Error loading %s", key)
            return None

    async def load_profile(self) -> UserProfile:
        """Load the profile, or defaults when absent or unreadable."""
        data = await self._load_json(PROFILE_KEY)
        if not isinstance(data, dict):
            return UserProfile()
        try:
            return UserProfile.model_validate(data)
        except ValidationError:
            logger.exception("Stored profile is corrupted, using defaults")
            return UserProfile()

    async def save_profile(self, profile: UserProfile) -> None:
        """Replace the stored profile."""
        await self._kv.set_item(PROFILE_KEY, profile.model_dump_json())

    async def load_employee(self) -> Employee | None:
        """Load the linked employee identity, if any."""
        data = await self._load_json(EMPLOYEE_KEY)
        if not isinstance(data, dict):
            return None
        try:
            return Employee.model_validate(data)
        except ValidationError:
            logger.exception("Stored employee link is corrupted, ignoring it")
            return None

    async def save_employee(self, employee: Employee | None) -> None:
        """Link an employee identity, or unlink with None."""
        if employee is None:
            await self._kv.remove_item(EMPLOYEE_KEY)
        else:
            await self._kv.set_item(EMPLOYEE_KEY, employee.model_dump_json())

    async def load_server_url(self) -> str | None:
        """Load the saved ERP server URL."""
        try:
            return await self._kv.get_item(SERVER_URL_KEY)
        except Exception:
            logger.exception("Error loading server URL")
            return None

    async def save_server_url(self, url: str | None) -> None:
        """Save (or clear with None/blank) the ERP server URL."""
        if url and url.strip():
            await self._kv.set_item(SERVER_URL_KEY, url.strip())
        else:
            await self._kv.remove_item(SERVER_URL_KEY)

    async def clear_all_data(self, trips: TripRepository) -> None:
        """Wipe trips, profile and employee link; the server URL is kept."""
        await trips.clear()
        await self._kv.remove_item(PROFILE_KEY)
        await self._kv.remove_item(EMPLOYEE_KEY)
        logger.warning("All local data wiped")
