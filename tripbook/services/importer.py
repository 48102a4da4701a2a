"""Import of remote trips as read-only local mirrors."""

import logging
import re
import time
from collections.abc import Sequence
from datetime import date

from pydantic import ValidationError

from tripbook.adapters.erp import ErpClient
from tripbook.config import Settings, get_settings
from tripbook.db.repositories import TripRepository
from tripbook.errors import NotImportedTripError, RemoteTripNotFoundError, TripNotFoundError
from tripbook.ids import new_local_id
from tripbook.models.common import DEFAULT_CATEGORY, Coords, NoteType
from tripbook.models.remote import RemoteNote, RemoteStop, RemoteTrip
from tripbook.models.trip import Day, Note, Stop, Trip
from tripbook.services.itinerary import DEFAULT_STOP_TIME, sort_stops
from tripbook.utils.logging import StructuredOperationLogger
from tripbook.utils.metrics import PrometheusTripMetrics

logger = logging.getLogger(__name__)

_HORA = re.compile(r"^([01]\d|2[0-3]):[0-5]\d")

_op_logger = StructuredOperationLogger()
_metrics = PrometheusTripMetrics()


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _normalize_hora(value: str | None) -> str:
    # ERP times may carry seconds ("09:30:00")
    match = _HORA.match(value or "")
    return match.group(0) if match else DEFAULT_STOP_TIME


def _map_stop(parada: RemoteStop) -> Stop:
    coords = None
    if parada.lat is not None and parada.lng is not None:
        try:
            coords = Coords(latitude=parada.lat, longitude=parada.lng)
        except ValidationError:
            logger.warning("Dropping out-of-range coordinates on remote stop %s", parada.id)
    return Stop(
        id=parada.id or new_local_id(),
        lugar=parada.lugar,
        hora=_normalize_hora(parada.hora),
        costo=max(parada.monto or 0, 0),
        descripcion=parada.descripcion or "",
        completado=parada.completado,
        coords=coords,
        fotos=[e.url_archivo for e in parada.evidencias if e.url_archivo],
        categoria=parada.cve_catvj or DEFAULT_CATEGORY,
        facturable=parada.facturable,
        notas=parada.notas or "",
    )


def _map_note(nota: RemoteNote) -> Note:
    try:
        tipo = NoteType(nota.tipo_nota)
    except ValueError:
        tipo = NoteType.general
    return Note(
        id=nota.id or new_local_id(),
        titulo=nota.titulo,
        contenido=nota.contenido,
        tipo_nota=tipo,
    )


def group_stops_by_date(
    paradas: Sequence[RemoteStop],
    fecha_inicio: str | None,
    today: date | None = None,
) -> list[Day]:
    """Regroup the ERP's flat stop list into days.

    Stops without a date fall back to the trip start date, then to today.
    Each distinct date becomes one Day; days are ordered by date and numbered
    from 1.
    """
    fallback = _parse_date(fecha_inicio) or today or date.today()
    groups: dict[date, list[Stop]] = {}
    for parada in paradas:
        fecha = _parse_date(parada.fecha) or fallback
        groups.setdefault(fecha, []).append(_map_stop(parada))

    return [
        Day(dia=index + 1, fecha=fecha, puntos=sort_stops(groups[fecha]))
        for index, fecha in enumerate(sorted(groups))
    ]


def remote_to_local(
    remote: RemoteTrip,
    local_id: str,
    settings: Settings | None = None,
    today: date | None = None,
) -> Trip:
    """Map a remote trip to a read-only local trip with the given local id."""
    settings = settings or get_settings()
    itinerario = group_stops_by_date(remote.paradas, remote.fecha_inicio, today)
    fecha_inicio = (
        _parse_date(remote.fecha_inicio)
        or (itinerario[0].fecha if itinerario else None)
        or today
        or date.today()
    )
    return Trip(
        id=local_id,
        erp_id=remote.id,
        uuid_movil=remote.uuid_movil,
        readonly=True,
        sincronizado=True,
        titulo_viaje=remote.titulo or settings.imported_trip_title,
        presupuesto_total=max(remote.presupuesto or 0, 0),
        fecha_inicio=fecha_inicio,
        itinerario=itinerario,
        propietario=remote.nombre_usuario or settings.imported_trip_owner,
        color_acento=remote.color_acento or settings.default_accent_color,
        notas_erp=[_map_note(n) for n in remote.notas],
    )


def matches_remote(trip: Trip, remote: RemoteTrip) -> bool:
    """True when a local trip is a copy of remote.

    Any single key is enough: erp_id, uuid_movil (when both sides have one),
    or a local id equal to the remote id.
    """
    erp_match = trip.erp_id is not None and trip.erp_id == str(remote.id)
    uuid_match = (
        bool(trip.uuid_movil) and bool(remote.uuid_movil) and trip.uuid_movil == remote.uuid_movil
    )
    local_match = trip.id == str(remote.id)
    return erp_match or uuid_match or local_match


def merge_imported_trip(
    local_trips: Sequence[Trip],
    remote: RemoteTrip,
    settings: Settings | None = None,
    today: date | None = None,
) -> list[Trip]:
    """Replace any local copy of remote with a fresh read-only import.

    Returns:
        Local trips without duplicates of remote, followed by the imported trip
    """
    kept = [t for t in local_trips if not matches_remote(t, remote)]
    dropped = len(local_trips) - len(kept)
    if dropped:
        logger.info("Import of remote trip %s replaces %d local copies", remote.id, dropped)
    imported = remote_to_local(remote, new_local_id(), settings, today)
    return [*kept, imported]


async def import_trip(
    erp: ErpClient,
    trips: TripRepository,
    remote_id: str,
    settings: Settings | None = None,
) -> Trip:
    """Fetch a remote trip and store it as a read-only local trip.

    Raises:
        RemoteTripNotFoundError: If the ERP has no such trip (nothing is written)
    """
    started = time.perf_counter()
    remote = await erp.get_trip(remote_id)
    if remote is None:
        _metrics.record_import("import", "not_found")
        _op_logger.log_outcome(
            "import", None, "not_found", (time.perf_counter() - started) * 1000
        )
        raise RemoteTripNotFoundError(str(remote_id))

    merged = merge_imported_trip(await trips.list_trips(), remote, settings)
    await trips.replace_all(merged)

    imported = merged[-1]
    _metrics.record_import("import", "success")
    _op_logger.log_outcome("import", imported.id, "success", (time.perf_counter() - started) * 1000)
    return imported


async def refresh_imported_trip(
    erp: ErpClient,
    trips: TripRepository,
    trip_id: str,
    settings: Settings | None = None,
) -> Trip:
    """Re-pull a read-only trip and overwrite it, keeping its local id.

    Raises:
        TripNotFoundError: If there is no such local trip
        NotImportedTripError: If the trip is a local (editable) trip
        RemoteTripNotFoundError: If the ERP no longer has the trip
    """
    started = time.perf_counter()
    trip = await trips.get_trip(trip_id)
    if trip is None:
        raise TripNotFoundError(trip_id)
    if not trip.readonly or not trip.erp_id:
        raise NotImportedTripError(trip_id)

    remote = await erp.get_trip(trip.erp_id)
    if remote is None:
        _metrics.record_import("refresh", "not_found")
        _op_logger.log_outcome(
            "refresh", trip.id, "not_found", (time.perf_counter() - started) * 1000
        )
        raise RemoteTripNotFoundError(trip.erp_id)

    refreshed = remote_to_local(remote, trip.id, settings)
    await trips.upsert_trip(refreshed)
    _metrics.record_import("refresh", "success")
    _op_logger.log_outcome("refresh", trip.id, "success", (time.perf_counter() - started) * 1000)
    return refreshed
