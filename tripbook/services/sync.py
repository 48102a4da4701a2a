"""Sync of local trips to the ERP.

The day-structured itinerary is flattened into the ERP's stop list, local
photos are uploaded first and replaced by their remote URLs, and the trip is
marked synchronized only after the server accepted the payload. The mobile
uuid is stored before anything is sent, so a retry after a lost response
reuses it and the ERP can deduplicate; no other field changes on failure.
"""

import logging
import time
import uuid
from collections.abc import Sequence
from datetime import datetime

from tripbook.adapters.erp import ErpClient, is_local_uri
from tripbook.config import Settings, get_settings
from tripbook.db.repositories import ProfileStore, TripRepository
from tripbook.errors import (
    ConfigurationError,
    ReadOnlyTripError,
    RemoteServiceError,
    SyncError,
    SyncPhase,
    TripNotFoundError,
)
from tripbook.models.remote import Evidence, PayloadNote, PayloadStop, SyncPayload
from tripbook.models.trip import Trip
from tripbook.utils.logging import StructuredOperationLogger
from tripbook.utils.metrics import PrometheusTripMetrics

logger = logging.getLogger(__name__)

LAST_SYNC_FORMAT = "%d/%m/%Y %H:%M"

_op_logger = StructuredOperationLogger()
_metrics = PrometheusTripMetrics()


def partition_photos(fotos: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split photo URIs into (local, already_remote), keeping relative order."""
    local = [f for f in fotos if f and is_local_uri(f)]
    remote = [f for f in fotos if f and not is_local_uri(f)]
    return local, remote


def evidence_type(url: str) -> str:
    """`tipo_archivo` by extension: pdf or imagen."""
    return "pdf" if url.split("?", 1)[0].lower().endswith(".pdf") else "imagen"


def build_evidences(fotos: Sequence[str], source: str) -> list[Evidence]:
    """Map photo URLs to evidence entries, skipping empty ones."""
    return [
        Evidence(tipo_archivo=evidence_type(url), url_archivo=url, fuente=source)
        for url in fotos
        if url and url.strip()
    ]


def flatten_itinerary(trip: Trip, submitted_at: datetime, source: str) -> list[PayloadStop]:
    """Flatten days/stops into the ERP's stop list, in day then hora order."""
    hora_registro = submitted_at.isoformat(timespec="seconds")
    paradas: list[PayloadStop] = []
    for day in trip.itinerario:
        for stop in day.puntos:
            paradas.append(
                PayloadStop(
                    lugar=stop.lugar,
                    hora=stop.hora,
                    fecha=day.fecha,
                    monto=stop.costo or 0,
                    cve_catvj=stop.categoria or None,
                    facturable=stop.facturable,
                    lat=stop.coords.latitude if stop.coords else None,
                    lng=stop.coords.longitude if stop.coords else None,
                    descripcion=stop.descripcion,
                    evidencias=build_evidences(stop.fotos, source),
                    notas=stop.notas,
                    hora_registro=hora_registro,
                )
            )
    return paradas


def build_sync_payload(
    trip: Trip,
    cve_emple: str,
    uuid_movil: str,
    submitted_at: datetime,
    source: str = "app_movil",
) -> SyncPayload:
    """Build the POST /viajes body for trip."""
    return SyncPayload(
        cve_emple=cve_emple,
        uuid_movil=uuid_movil,
        titulo=trip.titulo_viaje,
        fecha_inicio=trip.fecha_inicio,
        presupuesto=trip.presupuesto_total,
        paradas=flatten_itinerary(trip, submitted_at, source),
        notas=[
            PayloadNote(titulo=n.titulo, contenido=n.contenido, tipo_nota=n.tipo_nota.value)
            for n in trip.notas_erp
        ],
    )


async def upload_trip_photos(erp: ErpClient, trip: Trip) -> tuple[Trip, int]:
    """Upload each stop's local photos (one batch per stop).

    Returns:
        Copy of trip whose photos are all remote URLs (already-remote first),
        and the number of uploaded files
    """
    uploaded = 0
    itinerario = []
    for day in trip.itinerario:
        puntos = []
        for stop in day.puntos:
            local, remote = partition_photos(stop.fotos)
            if local:
                urls = await erp.upload_evidence(local)
                uploaded += len(urls)
                stop = stop.model_copy(update={"fotos": [*remote, *urls]})
            puntos.append(stop)
        itinerario.append(day.model_copy(update={"puntos": puntos}))
    return trip.model_copy(update={"itinerario": itinerario}), uploaded


class TripSyncService:
    """Pushes one trip to the ERP and folds the result back locally."""

    def __init__(
        self,
        erp: ErpClient,
        trips: TripRepository,
        profiles: ProfileStore,
        settings: Settings | None = None,
    ) -> None:
        self._erp = erp
        self._trips = trips
        self._profiles = profiles
        self._settings = settings or get_settings()

    async def sync(self, trip_id: str, now: datetime | None = None) -> Trip:
        """Sync the trip with trip_id.

        Returns:
            The stored, synchronized trip

        Raises:
            TripNotFoundError: If there is no such local trip
            ReadOnlyTripError: If the trip is an imported mirror
            SyncError: If any phase fails; only a new uuid_movil is kept
        """
        trip = await self._trips.get_trip(trip_id)
        if trip is None:
            raise TripNotFoundError(trip_id)
        if trip.readonly:
            raise ReadOnlyTripError(trip_id)

        started = time.perf_counter()
        phase = SyncPhase.IDENTITY
        try:
            employee = await self._profiles.load_employee()
            if employee is None:
                raise SyncError(SyncPhase.IDENTITY, "No hay empleado vinculado")

            phase = SyncPhase.CONFIGURATION
            await self._erp.base_url()

            if trip.uuid_movil is None:
                trip = trip.model_copy(update={"uuid_movil": str(uuid.uuid4())})
                await self._trips.upsert_trip(trip)
            uuid_movil = trip.uuid_movil

            phase = SyncPhase.UPLOAD
            uploaded_trip, uploaded = await upload_trip_photos(self._erp, trip)

            phase = SyncPhase.SUBMIT
            submitted_at = now or datetime.now()
            payload = build_sync_payload(
                uploaded_trip,
                cve_emple=employee.cve_emple,
                uuid_movil=uuid_movil,
                submitted_at=submitted_at,
                source=self._settings.evidence_source,
            )
            receipt = await self._erp.submit_trip(payload)
            if not receipt.remote_id:
                raise SyncError(SyncPhase.SUBMIT, "El servidor no devolvió la clave del viaje")
        except SyncError as e:
            self._record_failure(trip.id, e.phase, str(e), started)
            raise
        except ConfigurationError as e:
            self._record_failure(trip.id, SyncPhase.CONFIGURATION, str(e), started)
            raise SyncError(SyncPhase.CONFIGURATION, str(e)) from e
        except RemoteServiceError as e:
            self._record_failure(trip.id, phase, str(e), started)
            raise SyncError(phase, str(e)) from e

        synced = uploaded_trip.model_copy(
            update={
                "uuid_movil": uuid_movil,
                "sincronizado": True,
                "erp_id": receipt.remote_id,
                "ultima_sincronizacion": submitted_at.strftime(LAST_SYNC_FORMAT),
            }
        )
        await self._trips.upsert_trip(synced)

        latency_ms = (time.perf_counter() - started) * 1000
        _metrics.inc_uploads(uploaded)
        _metrics.record_sync("success", "done", latency_ms)
        _op_logger.log_outcome("sync", trip.id, "success", latency_ms)
        return synced

    def _record_failure(self, trip_id: str, phase: SyncPhase, reason: str, started: float) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        _metrics.record_sync("error", phase.value, latency_ms)
        _op_logger.log_outcome(
            "sync", trip_id, "error", latency_ms, phase=phase.value, error_reason=reason
        )
