"""FastAPI dependencies wiring storage and remote adapters."""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from tripbook.adapters.erp import ErpClient
from tripbook.config import Settings, get_settings
from tripbook.db.kv import KeyValueStore
from tripbook.db.repositories import ProfileStore, TripRepository
from tripbook.db.trip_store import TripStore


def get_kv_store(request: Request) -> KeyValueStore:
    """Key-value store created at application startup."""
    return request.app.state.kv_store


def get_trip_repository(kv: Annotated[KeyValueStore, Depends(get_kv_store)]) -> TripRepository:
    """Trip repository over the shared store."""
    return TripRepository(TripStore(kv))


def get_profile_store(kv: Annotated[KeyValueStore, Depends(get_kv_store)]) -> ProfileStore:
    """Profile store over the shared store."""
    return ProfileStore(kv)


def get_http_client() -> httpx.AsyncClient | None:
    """Shared outbound HTTP client; None lets adapters open their own."""
    return None


def get_erp_client(
    settings: Annotated[Settings, Depends(get_settings)],
    profiles: Annotated[ProfileStore, Depends(get_profile_store)],
    client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> ErpClient:
    """ERP client using the user-saved server URL."""
    return ErpClient(settings=settings, profiles=profiles, client=client)


SettingsDep = Annotated[Settings, Depends(get_settings)]
TripsDep = Annotated[TripRepository, Depends(get_trip_repository)]
ProfilesDep = Annotated[ProfileStore, Depends(get_profile_store)]
ErpDep = Annotated[ErpClient, Depends(get_erp_client)]
HttpClientDep = Annotated[httpx.AsyncClient | None, Depends(get_http_client)]
