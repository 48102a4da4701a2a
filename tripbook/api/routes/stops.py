"""Stop and note endpoints of a trip."""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from tripbook.api.deps import TripsDep
from tripbook.api.routes.trips import load_trip
from tripbook.errors import ConfirmationRequired, TripbookError
from tripbook.models.common import DEFAULT_CATEGORY, Coords, NoteType
from tripbook.models.editor import NoteForm, StopForm
from tripbook.models.trip import TIME_PATTERN, Trip
from tripbook.services import itinerary

router = APIRouter(prefix="/trips/{trip_id}", tags=["stops"])


class StopRequest(BaseModel):
    """Request body for adding or editing a stop."""

    lugar: str
    hora: str = Field("10:00", pattern=TIME_PATTERN)
    descripcion: str = ""
    costo: float = Field(0, ge=0)
    categoria: str = DEFAULT_CATEGORY
    facturable: bool = False
    notas: str = ""
    coords: Coords | None = None
    fotos: list[str] = Field(default_factory=list)

    def to_form(self) -> StopForm:
        """Convert to the editor state record."""
        return StopForm(**self.model_dump(exclude={"coords"}), coords=self.coords)


class NoteRequest(BaseModel):
    """Request body for adding or editing an ERP note."""

    titulo: str
    contenido: str = ""
    tipo_nota: NoteType = NoteType.general

    def to_form(self) -> NoteForm:
        """Convert to the editor state record."""
        return NoteForm(titulo=self.titulo, contenido=self.contenido, tipo_nota=self.tipo_nota)


async def _save(trips: TripsDep, before: Trip, after: Trip) -> Trip:
    if after is before:
        return before
    return await trips.upsert_trip(after)


@router.post("/days/{dia}/stops", response_model=Trip, status_code=status.HTTP_201_CREATED)
async def add_stop(trip_id: str, dia: int, request: StopRequest, trips: TripsDep) -> Trip:
    """Add a stop to a day; blank place is ignored."""
    trip = await load_trip(trips, trip_id)
    if trip.find_day(dia) is None:
        raise TripbookError(f"El viaje no tiene día {dia}")
    return await _save(trips, trip, itinerary.add_stop(trip, dia, request.to_form()))


@router.put("/stops/{stop_id}", response_model=Trip)
async def update_stop(trip_id: str, stop_id: str, request: StopRequest, trips: TripsDep) -> Trip:
    """Edit a stop; blank place is ignored."""
    trip = await load_trip(trips, trip_id)
    return await _save(trips, trip, itinerary.update_stop(trip, stop_id, request.to_form()))


@router.delete("/stops/{stop_id}", response_model=Trip)
async def delete_stop(
    trip_id: str,
    stop_id: str,
    trips: TripsDep,
    confirm: bool = Query(False, description="Confirm permanent deletion"),
) -> Trip:
    """Delete a stop (requires confirm=true)."""
    trip = await load_trip(trips, trip_id)
    if not confirm:
        raise ConfirmationRequired("Eliminar la parada es permanente. Repite con confirm=true.")
    return await _save(trips, trip, itinerary.delete_stop(trip, stop_id))


@router.post("/stops/{stop_id}/toggle", response_model=Trip)
async def toggle_stop(trip_id: str, stop_id: str, trips: TripsDep) -> Trip:
    """Flip a stop's completed flag."""
    trip = await load_trip(trips, trip_id)
    return await _save(trips, trip, itinerary.toggle_stop(trip, stop_id))


@router.post("/notes", response_model=Trip, status_code=status.HTTP_201_CREATED)
async def add_note(trip_id: str, request: NoteRequest, trips: TripsDep) -> Trip:
    """Attach an ERP note (only before the trip is synchronized)."""
    trip = await load_trip(trips, trip_id)
    return await _save(trips, trip, itinerary.add_note(trip, request.to_form()))


@router.put("/notes/{note_id}", response_model=Trip)
async def update_note(trip_id: str, note_id: str, request: NoteRequest, trips: TripsDep) -> Trip:
    """Edit an ERP note."""
    trip = await load_trip(trips, trip_id)
    return await _save(trips, trip, itinerary.update_note(trip, note_id, request.to_form()))


@router.delete("/notes/{note_id}", response_model=Trip)
async def delete_note(trip_id: str, note_id: str, trips: TripsDep) -> Trip:
    """Delete an ERP note."""
    trip = await load_trip(trips, trip_id)
    return await _save(trips, trip, itinerary.delete_note(trip, note_id))
