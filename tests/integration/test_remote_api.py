"""Integration tests for ERP-facing and profile endpoints."""

import json
from typing import Any

import httpx
from fastapi.testclient import TestClient

REMOTE_TRIP = {
    "id": 42,
    "titulo": "Auditoría Monterrey",
    "fecha_inicio": "2025-10-20",
    "presupuesto": 5000,
    "nombre_usuario": "Luis",
    "paradas": [
        {"id": 7, "fecha": "2025-10-21", "lugar": "Planta", "hora": "15:00", "monto": 300},
        {"id": 8, "fecha": "2025-10-20", "lugar": "Hotel", "hora": "21:00", "monto": 900},
    ],
    "notas": [],
}


def link_employee(client: TestClient, erp: Any) -> None:
    """Link employee 1024 through the API."""
    erp.on("GET", "/empleados/1024", {"cve_emple": 1024, "descri": "Ana"})
    assert client.post("/profile/employee/1024").status_code == 200


class TestImport:
    """Import and refresh of remote trips."""

    def test_import_twice_keeps_one_read_only_copy(self, client: TestClient, erp: Any) -> None:
        """Importing the same remote trip twice leaves one copy."""
        erp.on("GET", "/viajes/42", REMOTE_TRIP)

        first = client.post("/remote/import/42")
        second = client.post("/remote/import/42")

        assert first.status_code == 200
        assert second.status_code == 200
        trips = client.get("/trips").json()
        assert len(trips) == 1
        assert trips[0]["erp_id"] == "42"
        assert trips[0]["readonly"] is True
        assert [d["fecha"] for d in trips[0]["itinerario"]] == ["2025-10-20", "2025-10-21"]

    def test_unknown_remote_trip_is_404(self, client: TestClient, erp: Any) -> None:
        """The ERP answering 404 means nothing is imported."""
        response = client.post("/remote/import/99")

        assert response.status_code == 404
        assert client.get("/trips").json() == []

    def test_imported_trip_rejects_edits(self, client: TestClient, erp: Any) -> None:
        """Read-only trips refuse stop additions and sync."""
        erp.on("GET", "/viajes/42", REMOTE_TRIP)
        trip = client.post("/remote/import/42").json()

        added = client.post(f"/trips/{trip['id']}/days/1/stops", json={"lugar": "X"})
        synced = client.post(f"/trips/{trip['id']}/sync")

        assert added.status_code == 409
        assert synced.status_code == 409

    def test_refresh_overwrites_content(self, client: TestClient, erp: Any) -> None:
        """Refresh keeps the local id and takes the server's latest content."""
        erp.on("GET", "/viajes/42", REMOTE_TRIP)
        trip = client.post("/remote/import/42").json()
        erp.on("GET", "/viajes/42", {**REMOTE_TRIP, "titulo": "Auditoría v2"})

        refreshed = client.post(f"/trips/{trip['id']}/refresh").json()

        assert refreshed["id"] == trip["id"]
        assert refreshed["titulo_viaje"] == "Auditoría v2"

    def test_refresh_of_local_trip_is_409(self, client: TestClient) -> None:
        """Local trips cannot be refreshed."""
        trip = client.post("/trips", json={"titulo_viaje": "Local"}).json()

        assert client.post(f"/trips/{trip['id']}/refresh").status_code == 409


class TestSync:
    """Sync through the API."""

    def test_sync_marks_trip_synchronized(self, client: TestClient, erp: Any) -> None:
        """A successful sync stores erp_id and locks notes."""
        link_employee(client, erp)
        erp.on("POST", "/viajes", lambda _r: httpx.Response(201, json={"clave": 555}))
        trip = client.post("/trips", json={"titulo_viaje": "Ruta", "duration": 1}).json()
        client.post(
            f"/trips/{trip['id']}/days/1/stops",
            json={"lugar": "Cliente", "costo": 80, "fotos": ["https://cdn/a.jpg"]},
        )

        response = client.post(f"/trips/{trip['id']}/sync")

        assert response.status_code == 200
        body = response.json()
        assert body["sincronizado"] is True
        assert body["erp_id"] == "555"
        submitted = json.loads(erp.requests[-1].content)
        assert submitted["cve_emple"] == "1024"
        assert submitted["paradas"][0]["evidencias"][0]["url_archivo"] == "https://cdn/a.jpg"

        locked = client.post(f"/trips/{trip['id']}/notes", json={"titulo": "Tarde"})
        assert locked.status_code == 409

    def test_sync_without_employee_reports_phase(self, client: TestClient, erp: Any) -> None:
        """Missing identity is a 502 naming the identity phase."""
        trip = client.post("/trips", json={"titulo_viaje": "Ruta"}).json()

        response = client.post(f"/trips/{trip['id']}/sync")

        assert response.status_code == 502
        assert response.json()["phase"] == "identity"
        assert erp.requests == []
        assert client.get(f"/trips/{trip['id']}").json()["sincronizado"] is False

    def test_rejected_submit_leaves_trip_unsynchronized(self, client: TestClient, erp: Any) -> None:
        """A failed submit is reported; only the mobile uuid is kept for the retry."""
        link_employee(client, erp)
        erp.on("POST", "/viajes", lambda _r: httpx.Response(500, text="boom"))
        trip = client.post("/trips", json={"titulo_viaje": "Ruta"}).json()

        response = client.post(f"/trips/{trip['id']}/sync")

        assert response.status_code == 502
        assert response.json()["phase"] == "submit"
        stored = client.get(f"/trips/{trip['id']}").json()
        assert stored["sincronizado"] is False
        assert stored["uuid_movil"] is not None


class TestRemoteLookups:
    """Categories, place search and connection test."""

    def test_categories_fall_back_to_defaults(self, client: TestClient) -> None:
        """Unavailable catalogs return the built-in categories."""
        categories = client.get("/remote/categories").json()

        assert [c["cve_catvj"] for c in categories] == [
            "ACTIVIDAD",
            "VUELO",
            "ALOJAMIENTO",
            "TRANSPORTE",
            "COMIDA",
            "GASOLINA",
            "OTRO",
        ]

    def test_place_search(self, client: TestClient, erp: Any) -> None:
        """Place candidates come from the geocoder."""
        erp.on(
            "GET", "/search", [{"display_name": "Zócalo, CDMX", "lat": "19.43", "lon": "-99.13"}]
        )

        assert client.get("/remote/places", params={"q": "zo"}).json() == []
        [hit] = client.get("/remote/places", params={"q": "Zócalo"}).json()
        assert hit["display_name"] == "Zócalo, CDMX"
        assert hit["lat"] == 19.43

    def test_connection_check(self, client: TestClient, erp: Any) -> None:
        """Connection check probes /health of the candidate URL."""
        erp.on("GET", "/health", {"status": "ok"})

        assert client.post("/remote/check", json={"url": "http://erp.test/"}).json() == {"ok": True}
        assert str(erp.requests[-1].url) == "http://erp.test/health"


class TestProfile:
    """Profile, server URL, employee link and data wipe."""

    def test_profile_round_trip(self, client: TestClient) -> None:
        """Profile defaults and saves."""
        assert client.get("/profile").json()["currency"] == "USD"

        saved = client.put("/profile", json={"name": "Ana", "currency": "MXN"}).json()

        assert saved["settings"] == {"haptics": True, "notifications": True}
        assert client.get("/profile").json()["name"] == "Ana"

    def test_unknown_employee_unlinks(self, client: TestClient, erp: Any) -> None:
        """A key the ERP does not know is 404 and clears the link."""
        link_employee(client, erp)

        response = client.post("/profile/employee/7")

        assert response.status_code == 404
        assert client.get("/profile/employee").json() is None

    def test_saved_server_url_is_used(self, client: TestClient, erp: Any) -> None:
        """Requests go to the user-saved server URL."""
        client.put("/profile/server-url", json={"url": "http://10.0.0.5:8000/"})

        client.post("/profile/employee/1")

        assert str(erp.requests[-1].url) == "http://10.0.0.5:8000/empleados/1"

    def test_wipe_needs_double_confirmation(self, client: TestClient) -> None:
        """Data wipe requires both confirmations and keeps the server URL."""
        client.post("/trips", json={"titulo_viaje": "Uno"})
        client.put("/profile/server-url", json={"url": "http://erp.local"})

        assert client.delete("/data?confirm=true").status_code == 409
        assert len(client.get("/trips").json()) == 1

        assert client.delete("/data?confirm=true&confirm_again=true").status_code == 204
        assert client.get("/trips").json() == []
        assert client.get("/profile/server-url").json() == {"url": "http://erp.local"}
