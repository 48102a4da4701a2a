"""Trip Store - the ordered trip collection as one stored JSON document."""

import json
import logging

from pydantic import TypeAdapter, ValidationError

from tripbook.db.kv import KeyValueStore
from tripbook.models.trip import Trip

logger = logging.getLogger(__name__)

TRIPS_KEY = "@travel_routes"

_trip_list = TypeAdapter(list[Trip])


class TripStore:
    """Load/save/clear the whole trip collection.

    Reads never raise: a missing, unreadable or corrupted document yields an
    empty list. Writes replace the stored document whole.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    async def load_trips(self) -> list[Trip]:
        """Load every stored trip, in stored order."""
        try:
            raw = await self._kv.get_item(TRIPS_KEY)
        except Exception:
            logger.exception("Error loading trips")
            return []

        if raw is None:
            return []

        try:
            return _trip_list.validate_python(json.loads(raw))
        except (ValueError, ValidationError):
            logger.exception("Stored trips are corrupted, starting from an empty list")
            return []

    async def save_trips(self, trips: list[Trip]) -> None:
        """Replace the stored collection with trips."""
        raw = _trip_list.dump_json(trips).decode("utf-8")
        try:
            await self._kv.set_item(TRIPS_KEY, raw)
        except Exception:
            logger.exception("Error saving trips")
            raise

    async def clear(self) -> None:
        """Remove every stored trip."""
        await self._kv.remove_item(TRIPS_KEY)
