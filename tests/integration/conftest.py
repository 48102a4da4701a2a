"""Fixtures for API tests: in-memory storage and a scripted ERP."""

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from tripbook.api.deps import get_http_client, get_kv_store
from tripbook.config import Settings, get_settings
from tripbook.db.kv import InMemoryKeyValueStore
from tripbook.main import app

Route = Callable[[httpx.Request], httpx.Response]


class ScriptedErp:
    """Answers outbound requests by (method, path) and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response: Route | dict[str, Any] | list[Any]) -> None:
        """Register a handler or a JSON body (served with 200) for a route."""
        if callable(response):
            self.routes[(method, path)] = response
        else:
            self.routes[(method, path)] = lambda _request: httpx.Response(200, json=response)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "not found"})
        return route(request)


@pytest.fixture
def api_settings() -> Settings:
    """Settings for API tests."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        erp_base_url="http://erp.test",
        place_search_url="http://geo.test/search",
    )


@pytest.fixture
def api_kv() -> InMemoryKeyValueStore:
    """Store shared by every request of one test."""
    return InMemoryKeyValueStore()


@pytest.fixture
def erp() -> ScriptedErp:
    """Scripted outbound HTTP (ERP and geocoder)."""
    return ScriptedErp()


@pytest.fixture
def client(
    api_settings: Settings, api_kv: InMemoryKeyValueStore, erp: ScriptedErp
) -> Generator[TestClient, None, None]:
    """Test client with storage and outbound HTTP overridden."""
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_kv_store] = lambda: api_kv
    app.dependency_overrides[get_http_client] = lambda: httpx.AsyncClient(
        transport=httpx.MockTransport(erp)
    )

    yield TestClient(app)

    app.dependency_overrides.clear()
