"""Itinerary reconciliation and trip/stop/note editing.

All functions are pure: they return a new Trip (or the input unchanged for
no-op edits) and never touch storage.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from tripbook.errors import NotesLockedError, ReadOnlyTripError
from tripbook.ids import new_local_id
from tripbook.models.editor import NoteForm, StopForm, TripForm
from tripbook.models.trip import Day, Note, Stop, Trip

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIME = "10:00"


def clamp_duration(duration: int | None) -> int:
    """Clamp a user-entered duration to at least one day."""
    if duration is None or duration < 1:
        return 1
    return int(duration)


def resize_itinerary(
    new_duration: int, start_date: date, existing_days: Sequence[Day]
) -> list[Day]:
    """Build a day list of new_duration days starting at start_date.

    Days that still exist keep their stops; days past new_duration are
    dropped together with their stops. Callers must get user confirmation
    before shrinking.

    Args:
        new_duration: Number of days (>= 1, clamped by the caller)
        start_date: Date of day 1
        existing_days: Current itinerary

    Returns:
        New list of Day objects with sequential `dia` and contiguous `fecha`
    """
    days: list[Day] = []
    for i in range(new_duration):
        puntos = list(existing_days[i].puntos) if i < len(existing_days) else []
        days.append(Day(dia=i + 1, fecha=start_date + timedelta(days=i), puntos=puntos))
    return days


def sort_stops(stops: Sequence[Stop]) -> list[Stop]:
    """Sort stops by `hora` (fixed-width HH:MM, so string order is time order)."""
    return sorted(stops, key=lambda s: s.hora)


def ensure_editable(trip: Trip) -> None:
    """Raise if trip is an imported read-only mirror."""
    if trip.readonly:
        raise ReadOnlyTripError(trip.id)


def create_trip(form: TripForm, today: date | None = None, accent: str = "#1A4D4C") -> Trip | None:
    """Create a new local trip from the form.

    Returns:
        The new trip, or None when the title is blank
    """
    title = form.titulo_viaje.strip()
    if not title:
        return None

    start = form.fecha_inicio or today or date.today()
    return Trip(
        id=new_local_id(),
        titulo_viaje=title,
        color_acento=form.color_acento or accent,
        presupuesto_total=max(form.presupuesto_total or 0, 0),
        fecha_inicio=start,
        itinerario=resize_itinerary(clamp_duration(form.duration), start, []),
    )


def update_trip_details(
    trip: Trip,
    form: TripForm,
    confirm_shrink: Callable[[int, int], bool] | None = None,
) -> Trip:
    """Apply the edit-trip form.

    Shrinking the itinerary discards stops, so confirm_shrink(old, new) is
    asked first; a falsy answer or a missing callback cancels the whole edit.

    Returns:
        The updated trip, or trip unchanged when cancelled or title is blank
    """
    ensure_editable(trip)

    title = form.titulo_viaje.strip()
    if not title:
        return trip

    new_duration = clamp_duration(form.duration if form.duration is not None else trip.duration)
    if new_duration < trip.duration:
        if confirm_shrink is None or not confirm_shrink(trip.duration, new_duration):
            logger.info("Itinerary shrink cancelled for trip %s", trip.id)
            return trip
        dropped = sum(len(d.puntos) for d in trip.itinerario[new_duration:])
        logger.warning(
            "Shrinking trip %s from %d to %d days drops %d stops",
            trip.id,
            trip.duration,
            new_duration,
            dropped,
        )

    start = form.fecha_inicio or trip.fecha_inicio
    return trip.model_copy(
        update={
            "titulo_viaje": title,
            "color_acento": form.color_acento or trip.color_acento,
            "presupuesto_total": max(form.presupuesto_total or 0, 0),
            "fecha_inicio": start,
            "itinerario": resize_itinerary(new_duration, start, trip.itinerario),
        }
    )


def _stop_from_form(stop_id: str, form: StopForm, completado: bool = False) -> Stop:
    return Stop(
        id=stop_id,
        lugar=form.lugar.strip(),
        hora=form.hora or DEFAULT_STOP_TIME,
        descripcion=form.descripcion.strip(),
        costo=form.costo or 0,
        categoria=form.categoria,
        facturable=form.facturable,
        notas=form.notas,
        coords=form.coords,
        fotos=list(form.fotos),
        completado=completado,
    )


def _replace_day(trip: Trip, day: Day) -> Trip:
    itinerario = [day if d.dia == day.dia else d for d in trip.itinerario]
    return trip.model_copy(update={"itinerario": itinerario})


def add_stop(trip: Trip, dia: int, form: StopForm) -> Trip:
    """Add a stop to day `dia`, keeping the day sorted by hora.

    Returns:
        Updated trip, or trip unchanged when the place is blank or the day
        does not exist
    """
    ensure_editable(trip)
    if not form.lugar.strip():
        return trip

    day = trip.find_day(dia)
    if day is None:
        return trip

    stop = _stop_from_form(new_local_id(), form)
    return _replace_day(trip, day.model_copy(update={"puntos": sort_stops([*day.puntos, stop])}))


def update_stop(trip: Trip, stop_id: str, form: StopForm) -> Trip:
    """Edit the stop with stop_id wherever it lives, re-sorting its day."""
    ensure_editable(trip)
    if not form.lugar.strip():
        return trip

    for day in trip.itinerario:
        current = next((p for p in day.puntos if p.id == str(stop_id)), None)
        if current is None:
            continue
        edited = _stop_from_form(current.id, form, completado=current.completado)
        puntos = [edited if p.id == current.id else p for p in day.puntos]
        return _replace_day(trip, day.model_copy(update={"puntos": sort_stops(puntos)}))
    return trip


def delete_stop(trip: Trip, stop_id: str) -> Trip:
    """Remove the stop with stop_id from any day."""
    ensure_editable(trip)
    itinerario = [
        d.model_copy(update={"puntos": [p for p in d.puntos if p.id != str(stop_id)]})
        for d in trip.itinerario
    ]
    return trip.model_copy(update={"itinerario": itinerario})


def toggle_stop(trip: Trip, stop_id: str) -> Trip:
    """Flip `completado` of the stop with stop_id."""
    ensure_editable(trip)
    itinerario = [
        d.model_copy(
            update={
                "puntos": [
                    p.model_copy(update={"completado": not p.completado})
                    if p.id == str(stop_id)
                    else p
                    for p in d.puntos
                ]
            }
        )
        for d in trip.itinerario
    ]
    return trip.model_copy(update={"itinerario": itinerario})


def _ensure_notes_editable(trip: Trip) -> None:
    ensure_editable(trip)
    if trip.sincronizado:
        raise NotesLockedError(trip.id)


def add_note(trip: Trip, form: NoteForm) -> Trip:
    """Attach a new ERP note; blank title is a no-op."""
    _ensure_notes_editable(trip)
    if not form.titulo.strip():
        return trip
    note = Note(
        id=new_local_id(),
        titulo=form.titulo.strip(),
        contenido=form.contenido,
        tipo_nota=form.tipo_nota,
    )
    return trip.model_copy(update={"notas_erp": [*trip.notas_erp, note]})


def update_note(trip: Trip, note_id: str, form: NoteForm) -> Trip:
    """Edit an existing ERP note; blank title is a no-op."""
    _ensure_notes_editable(trip)
    if not form.titulo.strip():
        return trip
    notas = [
        n.model_copy(
            update={
                "titulo": form.titulo.strip(),
                "contenido": form.contenido,
                "tipo_nota": form.tipo_nota,
            }
        )
        if n.id == str(note_id)
        else n
        for n in trip.notas_erp
    ]
    return trip.model_copy(update={"notas_erp": notas})


def delete_note(trip: Trip, note_id: str) -> Trip:
    """Remove an ERP note."""
    _ensure_notes_editable(trip)
    return trip.model_copy(
        update={"notas_erp": [n for n in trip.notas_erp if n.id != str(note_id)]}
    )
