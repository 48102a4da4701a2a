"""Trip endpoints - list, create, edit, delete and budget."""

from datetime import date

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from tripbook.api.deps import SettingsDep, TripsDep
from tripbook.errors import ConfirmationRequired, TripNotFoundError
from tripbook.models.editor import TripForm
from tripbook.models.trip import Trip
from tripbook.services.budget import BudgetSummary, summarize_budget
from tripbook.services.itinerary import clamp_duration, create_trip, update_trip_details

router = APIRouter(prefix="/trips", tags=["trips"])


class TripRequest(BaseModel):
    """Request body for creating or editing a trip."""

    titulo_viaje: str = Field(..., description="Trip title; blank is ignored")
    duration: int | None = Field(None, description="Number of days (clamped to >= 1)")
    color_acento: str | None = None
    presupuesto_total: float = Field(0, ge=0)
    fecha_inicio: date | None = None

    def to_form(self) -> TripForm:
        """Convert to the editor state record."""
        return TripForm(
            titulo_viaje=self.titulo_viaje,
            duration=self.duration,
            color_acento=self.color_acento,
            presupuesto_total=self.presupuesto_total,
            fecha_inicio=self.fecha_inicio,
        )


async def load_trip(trips: TripsDep, trip_id: str) -> Trip:
    """Get trip or raise TripNotFoundError."""
    trip = await trips.get_trip(trip_id)
    if trip is None:
        raise TripNotFoundError(trip_id)
    return trip


@router.get("", response_model=list[Trip])
async def list_trips(trips: TripsDep) -> list[Trip]:
    """List all local trips."""
    return await trips.list_trips()


@router.post("", response_model=Trip, status_code=status.HTTP_201_CREATED)
async def create(request: TripRequest, trips: TripsDep, settings: SettingsDep) -> Trip | Response:
    """Create a trip; a blank title creates nothing (204)."""
    trip = create_trip(request.to_form(), accent=settings.default_accent_color)
    if trip is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return await trips.upsert_trip(trip)


@router.get("/{trip_id}", response_model=Trip)
async def get_trip(trip_id: str, trips: TripsDep) -> Trip:
    """Get a single trip."""
    return await load_trip(trips, trip_id)


@router.put("/{trip_id}", response_model=Trip)
async def update_trip(
    trip_id: str,
    request: TripRequest,
    trips: TripsDep,
    confirm: bool = Query(False, description="Confirm dropping stops when shrinking"),
) -> Trip:
    """Edit trip details, resizing the itinerary.

    Shrinking drops the stops of removed days and requires confirm=true;
    without it nothing changes and 409 is returned.
    """
    trip = await load_trip(trips, trip_id)
    form = request.to_form()

    if form.duration is not None and clamp_duration(form.duration) < trip.duration and not confirm:
        raise ConfirmationRequired(
            f"Reducir a {clamp_duration(form.duration)} días elimina las paradas de los días "
            "restantes. Repite con confirm=true."
        )

    updated = update_trip_details(trip, form, confirm_shrink=lambda _old, _new: confirm)
    if updated is trip:
        return trip
    return await trips.upsert_trip(updated)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: str,
    trips: TripsDep,
    confirm: bool = Query(False, description="Confirm permanent deletion"),
) -> Response:
    """Delete a trip (requires confirm=true)."""
    await load_trip(trips, trip_id)
    if not confirm:
        raise ConfirmationRequired("Eliminar el viaje es permanente. Repite con confirm=true.")
    await trips.delete_trip(trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{trip_id}/budget", response_model=BudgetSummary)
async def get_budget(trip_id: str, trips: TripsDep) -> BudgetSummary:
    """Spend totals, per-day spend and over-budget indicators."""
    return summarize_budget(await load_trip(trips, trip_id))
