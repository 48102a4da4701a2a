"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from tripbook.config import Settings
from tripbook.db.engine import create_schema, create_session_factory
from tripbook.db.kv import InMemoryKeyValueStore, SqlKeyValueStore
from tripbook.db.repositories import ProfileStore, TripRepository
from tripbook.db.trip_store import TripStore

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at fake ERP and geocoder hosts."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        erp_base_url="http://erp.test/api/",
        place_search_url="http://geo.test/search",
    )


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def trip_store(kv: InMemoryKeyValueStore) -> TripStore:
    """Trip store over the in-memory store."""
    return TripStore(kv)


@pytest.fixture
def trips(trip_store: TripStore) -> TripRepository:
    """Trip repository over the in-memory store."""
    return TripRepository(trip_store)


@pytest.fixture
def profiles(kv: InMemoryKeyValueStore) -> ProfileStore:
    """Profile store over the in-memory store."""
    return ProfileStore(kv)


@pytest.fixture
def mock_http() -> Callable[[Handler], httpx.AsyncClient]:
    """Build an httpx client whose requests are answered by handler."""

    def build(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the storage schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def sql_kv(sqlite_engine: AsyncEngine) -> SqlKeyValueStore:
    """SQL key-value store on in-memory SQLite."""
    return SqlKeyValueStore(create_session_factory(sqlite_engine))
