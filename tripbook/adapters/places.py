"""Place search adapter using a Nominatim-compatible geocoder (keyless)."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx
from pydantic import TypeAdapter

from tripbook.config import Settings, get_settings
from tripbook.models.remote import PlaceCandidate

logger = logging.getLogger(__name__)

_candidates = TypeAdapter(list[PlaceCandidate])


async def search_places(
    query: str,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[PlaceCandidate]:
    """Free-text place search.

    Args:
        query: User input; shorter than place_search_min_chars returns []
        settings: Application settings (defaults to get_settings())
        client: Optional httpx client (for testing with mocks)

    Returns:
        Up to place_search_limit candidates

    Raises:
        httpx.HTTPError: On network or HTTP errors
    """
    settings = settings or get_settings()
    query = query.strip()
    if len(query) < settings.place_search_min_chars:
        return []

    # Docs: https://nominatim.org/release-docs/latest/api/Search/
    params: dict[str, str | int] = {
        "q": query,
        "format": "json",
        "limit": settings.place_search_limit,
    }
    headers = {"User-Agent": settings.place_search_user_agent}

    close_client = False
    if client is None:
        client = httpx.AsyncClient()
        close_client = True

    try:
        response = await client.get(settings.place_search_url, params=params, headers=headers)
        response.raise_for_status()
        return _candidates.validate_python(response.json())[: settings.place_search_limit]
    finally:
        if close_client:
            await client.aclose()


class DebouncedPlaceSearch:
    """Runs a search only after input has been quiet for `delay_s`.

    Each new keystroke cancels the pending timer but never a request that is
    already in flight, so responses may arrive out of order.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[list[PlaceCandidate]]],
        on_results: Callable[[str, list[PlaceCandidate]], None],
        delay_s: float,
    ) -> None:
        self._search = search
        self._on_results = on_results
        self._delay_s = delay_s
        self._pending: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    def submit(self, query: str) -> None:
        """Register a keystroke (the full current input)."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.create_task(self._wait_then_search(query))

    async def _wait_then_search(self, query: str) -> None:
        await asyncio.sleep(self._delay_s)
        task = asyncio.create_task(self._run(query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self, query: str) -> None:
        try:
            results = await self._search(query)
        except httpx.HTTPError as e:
            logger.warning("Place search for %r failed: %s", query, e)
            results = []
        self._on_results(query, results)

    async def drain(self) -> None:
        """Wait for the pending timer and every in-flight request."""
        if self._pending is not None:
            await asyncio.wait({self._pending})
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
