"""Tests for remote trip import and deduplication."""

from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
import pytest

from tripbook.adapters.erp import ErpClient
from tripbook.config import Settings
from tripbook.db.repositories import TripRepository
from tripbook.errors import NotImportedTripError, RemoteTripNotFoundError
from tripbook.models.remote import RemoteStop, RemoteTrip
from tripbook.models.trip import Trip
from tripbook.services.importer import (
    group_stops_by_date,
    import_trip,
    matches_remote,
    merge_imported_trip,
    refresh_imported_trip,
    remote_to_local,
)

TODAY = date(2025, 11, 1)


def remote_document(remote_id: int = 42, **overrides: Any) -> dict[str, Any]:
    """GET /viajes/{id} body."""
    document: dict[str, Any] = {
        "id": remote_id,
        "titulo": "Auditoría Monterrey",
        "fecha_inicio": "2025-10-20T00:00:00",
        "presupuesto": 5000,
        "uuid_movil": "u-1",
        "nombre_usuario": "Luis",
        "paradas": [
            {"id": 7, "fecha": "2025-10-21", "lugar": "Planta", "hora": "15:00:00", "monto": 300},
            {
                "id": 8,
                "fecha": "2025-10-20",
                "lugar": "Hotel",
                "hora": "21:00",
                "monto": None,
                "lat": 25.67,
                "lng": -100.31,
                "evidencias": [{"url_archivo": "https://cdn/x.jpg"}, {"url_archivo": None}],
            },
            {"id": 9, "fecha": "2025-10-20", "lugar": "Vuelo", "hora": "07:45", "monto": 2100},
        ],
        "notas": [{"id": 1, "titulo": "Casco", "contenido": "", "tipo_nota": "Checklist"}],
    }
    document.update(overrides)
    return document


def local_trip(trip_id: str, **overrides: Any) -> Trip:
    """Editable local trip."""
    return Trip.model_validate(
        {"id": trip_id, "titulo_viaje": f"Local {trip_id}", "fecha_inicio": "2025-10-01"}
        | overrides
    )


def erp_serving(
    mock_http: Callable[..., httpx.AsyncClient], settings: Settings, documents: dict[str, Any]
) -> ErpClient:
    """ERP client answering GET /viajes/{id} from documents."""

    def handler(request: httpx.Request) -> httpx.Response:
        remote_id = request.url.path.rsplit("/", 1)[-1]
        if remote_id in documents:
            return httpx.Response(200, json=documents[remote_id])
        return httpx.Response(404, json={"detail": "not found"})

    return ErpClient(settings=settings, client=mock_http(handler))


class TestGrouping:
    """Flat stop list to day structure."""

    def test_groups_by_date_and_sorts(self, settings: Settings) -> None:
        """Distinct dates become ordered days with hora-sorted stops."""
        remote = RemoteTrip.model_validate(remote_document())

        days = group_stops_by_date(remote.paradas, remote.fecha_inicio, TODAY)

        assert [(d.dia, d.fecha) for d in days] == [
            (1, date(2025, 10, 20)),
            (2, date(2025, 10, 21)),
        ]
        assert [s.lugar for s in days[0].puntos] == ["Vuelo", "Hotel"]
        assert days[1].puntos[0].hora == "15:00"

    def test_stop_fields_are_mapped(self) -> None:
        """monto, coordinates and evidence URLs map onto the stop."""
        remote = RemoteTrip.model_validate(remote_document())

        hotel = group_stops_by_date(remote.paradas, remote.fecha_inicio, TODAY)[0].puntos[1]

        assert hotel.id == "8"
        assert hotel.costo == 0
        assert hotel.coords is not None
        assert hotel.coords.latitude == pytest.approx(25.67)
        assert hotel.fotos == ["https://cdn/x.jpg"]
        assert hotel.categoria == "OTRO"

    def test_undated_stops_fall_back_to_start_then_today(self) -> None:
        """Stops without fecha use fecha_inicio, or today without one."""
        paradas = [RemoteStop(lugar="A"), RemoteStop(lugar="B", fecha="2025-10-25")]

        with_start = group_stops_by_date(paradas, "2025-10-24", TODAY)
        without_start = group_stops_by_date(paradas, None, TODAY)

        assert [d.fecha for d in with_start] == [date(2025, 10, 24), date(2025, 10, 25)]
        assert [d.fecha for d in without_start] == [date(2025, 10, 25), TODAY]
        assert without_start[0].puntos[0].hora == "10:00"


class TestRemoteToLocal:
    """Mapping a remote trip to a read-only local trip."""

    def test_imported_trip_is_read_only_and_synchronized(self, settings: Settings) -> None:
        """Imported trips carry erp_id and are flagged read-only."""
        trip = remote_to_local(RemoteTrip.model_validate(remote_document()), "L1", settings, TODAY)

        assert trip.id == "L1"
        assert trip.erp_id == "42"
        assert trip.uuid_movil == "u-1"
        assert trip.readonly is True
        assert trip.sincronizado is True
        assert trip.propietario == "Luis"
        assert trip.fecha_inicio == date(2025, 10, 20)
        assert trip.notas_erp[0].tipo_nota.value == "Checklist"

    def test_missing_fields_use_fallbacks(self, settings: Settings) -> None:
        """Title, owner, budget and color fall back to defaults."""
        remote = RemoteTrip.model_validate(
            {"id": 5, "titulo": None, "presupuesto": None, "paradas": None}
        )

        trip = remote_to_local(remote, "L2", settings, TODAY)

        assert trip.titulo_viaje == "Viaje Importado"
        assert trip.propietario == "Otro técnico"
        assert trip.presupuesto_total == 0
        assert trip.color_acento == "#1A4D4C"
        assert trip.itinerario == []
        assert trip.fecha_inicio == TODAY

    def test_blank_and_null_values_are_tolerated(self, settings: Settings) -> None:
        """Empty strings and nulls from the ERP map to missing values."""
        remote = RemoteTrip.model_validate(
            remote_document(
                presupuesto="",
                color_acento="",
                paradas=[
                    {
                        "id": 1,
                        "fecha": "2025-10-20",
                        "lugar": None,
                        "lat": "",
                        "lng": "",
                        "monto": "",
                        "descripcion": None,
                    },
                ],
                notas=[{"id": 3, "titulo": None, "contenido": None, "tipo_nota": None}],
            )
        )

        trip = remote_to_local(remote, "L3", settings, TODAY)

        stop = trip.itinerario[0].puntos[0]
        assert stop.coords is None
        assert stop.costo == 0
        assert stop.lugar == ""
        assert trip.presupuesto_total == 0
        assert trip.color_acento == "#1A4D4C"
        assert trip.notas_erp[0].titulo == ""
        assert trip.notas_erp[0].contenido == ""
        assert trip.notas_erp[0].tipo_nota.value == "General"

    def test_out_of_range_coordinates_are_dropped(self, settings: Settings) -> None:
        """Invalid coordinates do not fail the import; the stop keeps the rest."""
        remote = RemoteTrip.model_validate(
            remote_document(
                paradas=[{"id": 1, "fecha": "2025-10-20", "lugar": "Mina", "lat": 191, "lng": 10}]
            )
        )

        trip = remote_to_local(remote, "L4", settings, TODAY)

        stop = trip.itinerario[0].puntos[0]
        assert stop.lugar == "Mina"
        assert stop.coords is None


class TestMerge:
    """Deduplication against local trips."""

    def test_any_identifier_match_is_replaced(self, settings: Settings) -> None:
        """Copies matched by erp_id, uuid_movil or local id are all dropped."""
        remote = RemoteTrip.model_validate(remote_document())
        locals_ = [
            local_trip("100", erp_id=42),
            local_trip("101", uuid_movil="u-1"),
            local_trip("42"),
            local_trip("102"),
        ]

        merged = merge_imported_trip(locals_, remote, settings, TODAY)

        assert [t.id for t in merged[:-1]] == ["102"]
        assert merged[-1].erp_id == "42"
        assert merged[-1].readonly is True

    def test_missing_uuid_on_both_sides_is_not_a_match(self) -> None:
        """Absent uuid_movil never matches another absent one."""
        remote = RemoteTrip.model_validate(remote_document(uuid_movil=None))

        assert matches_remote(local_trip("1"), remote) is False

    def test_importing_twice_keeps_one_copy(self, settings: Settings) -> None:
        """Re-import replaces the earlier copy with the latest remote content."""
        first = merge_imported_trip(
            [local_trip("1")], RemoteTrip.model_validate(remote_document()), settings, TODAY
        )
        second = merge_imported_trip(
            first,
            RemoteTrip.model_validate(remote_document(titulo="Auditoría v2")),
            settings,
            TODAY,
        )

        copies = [t for t in second if t.erp_id == "42"]
        assert len(copies) == 1
        assert copies[0].titulo_viaje == "Auditoría v2"
        assert [t.id for t in second][0] == "1"


class TestImportTrip:
    """Import and refresh through the ERP client."""

    @pytest.mark.asyncio
    async def test_import_stores_read_only_copy(
        self, mock_http: Callable[..., httpx.AsyncClient], settings: Settings, trips: TripRepository
    ) -> None:
        """Import fetches and stores a single read-only copy."""
        erp = erp_serving(mock_http, settings, {"42": remote_document()})
        await trips.upsert_trip(local_trip("9"))

        await import_trip(erp, trips, "42", settings)
        imported = await import_trip(erp, trips, "0042", settings)

        stored = await trips.list_trips()
        assert [t.id for t in stored] == ["9", imported.id]
        assert stored[-1].readonly is True

    @pytest.mark.asyncio
    async def test_import_accepts_blank_stop_coordinates(
        self, mock_http: Callable[..., httpx.AsyncClient], settings: Settings, trips: TripRepository
    ) -> None:
        """A stop sent with empty lat/lng imports without coordinates."""
        document = remote_document(
            paradas=[{"id": 7, "fecha": "2025-10-21", "lugar": "Planta", "lat": "", "lng": ""}],
            notas=[{"id": 1, "titulo": None, "contenido": None}],
        )
        erp = erp_serving(mock_http, settings, {"42": document})

        imported = await import_trip(erp, trips, "42", settings)

        assert imported.itinerario[0].puntos[0].coords is None
        assert imported.notas_erp[0].titulo == ""
        assert await trips.get_trip(imported.id) == imported

    @pytest.mark.asyncio
    async def test_unknown_remote_trip_writes_nothing(
        self, mock_http: Callable[..., httpx.AsyncClient], settings: Settings, trips: TripRepository
    ) -> None:
        """A missing remote trip raises and leaves local trips untouched."""
        erp = erp_serving(mock_http, settings, {})
        await trips.upsert_trip(local_trip("9"))

        with pytest.raises(RemoteTripNotFoundError):
            await import_trip(erp, trips, "77", settings)

        assert [t.id for t in await trips.list_trips()] == ["9"]

    @pytest.mark.asyncio
    async def test_refresh_keeps_local_id(
        self, mock_http: Callable[..., httpx.AsyncClient], settings: Settings, trips: TripRepository
    ) -> None:
        """Refresh overwrites content but keeps the local id and position."""
        documents = {"42": remote_document()}
        erp = erp_serving(mock_http, settings, documents)
        imported = await import_trip(erp, trips, "42", settings)
        await trips.upsert_trip(local_trip("9"))

        documents["42"] = remote_document(titulo="Actualizado")
        refreshed = await refresh_imported_trip(erp, trips, imported.id, settings)

        stored = await trips.list_trips()
        assert refreshed.id == imported.id
        assert [t.id for t in stored] == [imported.id, "9"]
        assert stored[0].titulo_viaje == "Actualizado"

    @pytest.mark.asyncio
    async def test_refresh_rejects_local_trips(
        self, mock_http: Callable[..., httpx.AsyncClient], settings: Settings, trips: TripRepository
    ) -> None:
        """Only imported trips can be refreshed."""
        erp = erp_serving(mock_http, settings, {})
        await trips.upsert_trip(local_trip("9", erp_id=42))

        with pytest.raises(NotImportedTripError):
            await refresh_imported_trip(erp, trips, "9", settings)
