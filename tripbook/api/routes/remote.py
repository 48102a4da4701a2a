"""ERP endpoints - import, refresh, sync, categories, place search."""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from tripbook.adapters.places import search_places
from tripbook.api.deps import ErpDep, HttpClientDep, ProfilesDep, SettingsDep, TripsDep
from tripbook.models.common import Category
from tripbook.models.remote import PlaceCandidate
from tripbook.models.trip import Trip
from tripbook.services.importer import import_trip, refresh_imported_trip
from tripbook.services.sync import TripSyncService

router = APIRouter(tags=["remote"])


class ConnectionCheckRequest(BaseModel):
    """Request body for POST /remote/check."""

    url: str | None = None


class ConnectionCheckResponse(BaseModel):
    """Response for POST /remote/check."""

    ok: bool


@router.post("/remote/import/{remote_id}", response_model=Trip)
async def import_remote_trip(
    remote_id: int, erp: ErpDep, trips: TripsDep, settings: SettingsDep
) -> Trip:
    """Import a remote trip as a read-only local trip, replacing older copies."""
    return await import_trip(erp, trips, str(remote_id), settings)


@router.post("/trips/{trip_id}/refresh", response_model=Trip)
async def refresh_trip(trip_id: str, erp: ErpDep, trips: TripsDep, settings: SettingsDep) -> Trip:
    """Re-pull an imported trip from the ERP, keeping its local id."""
    return await refresh_imported_trip(erp, trips, trip_id, settings)


@router.post("/trips/{trip_id}/sync", response_model=Trip)
async def sync_trip(
    trip_id: str,
    erp: ErpDep,
    trips: TripsDep,
    profiles: ProfilesDep,
    settings: SettingsDep,
) -> Trip:
    """Upload evidences and push the trip to the ERP."""
    return await TripSyncService(erp, trips, profiles, settings).sync(trip_id)


@router.get("/remote/categories", response_model=list[Category])
async def list_categories(erp: ErpDep) -> list[Category]:
    """Stop-category catalog (built-in defaults when the ERP has none)."""
    return await erp.list_categories()


@router.get("/remote/places", response_model=list[PlaceCandidate])
async def places(
    settings: SettingsDep,
    client: HttpClientDep,
    q: str = Query("", description="Free-text place query"),
) -> list[PlaceCandidate]:
    """Place search (empty for queries shorter than the minimum length)."""
    return await search_places(q, settings=settings, client=client)


@router.post("/remote/check", response_model=ConnectionCheckResponse)
async def check_connection(request: ConnectionCheckRequest, erp: ErpDep) -> ConnectionCheckResponse:
    """Probe the ERP's /health (a candidate URL, or the saved one)."""
    return ConnectionCheckResponse(ok=await erp.check_connection(request.url))
