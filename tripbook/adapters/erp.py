"""ERP backend adapter (employees, trips, evidence upload, categories)."""

import logging
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from pydantic import TypeAdapter, ValidationError

from tripbook.config import Settings, get_settings
from tripbook.db.repositories import ProfileStore
from tripbook.errors import ConfigurationError, RemoteServiceError
from tripbook.models.common import DEFAULT_CATEGORIES, Category
from tripbook.models.profile import Employee
from tripbook.models.remote import RemoteTrip, SyncPayload, SyncReceipt

logger = logging.getLogger(__name__)

_categories = TypeAdapter(list[Category])


def normalize_base_url(url: str) -> str:
    """Strip whitespace and a trailing slash."""
    url = url.strip()
    return url[:-1] if url.endswith("/") else url


_LOCAL_SCHEMES = ("", "file", "content")


def is_local_uri(uri: str) -> bool:
    """True for device-local file references.

    Covers file:// and content:// URIs, bare paths and Windows drive paths
    (which urlparse reports as a one-letter scheme).
    """
    scheme = urlparse(uri).scheme.lower()
    return scheme in _LOCAL_SCHEMES or len(scheme) == 1


def local_path(uri: str) -> Path:
    """Filesystem path of a local file URI."""
    parsed = urlparse(uri)
    if parsed.scheme.lower() in ("file", "content"):
        return Path(url2pathname(parsed.path))
    return Path(uri)


def evidence_mime_type(filename: str) -> str:
    """Upload content type: application/pdf for PDFs, image/<ext> otherwise."""
    if filename.lower().endswith(".pdf"):
        return "application/pdf"
    suffix = Path(filename).suffix.lstrip(".").lower()
    if not suffix:
        return "image/jpeg"
    return mimetypes.types_map.get(f".{suffix}", f"image/{suffix}")


class ErpClient:
    """HTTP client for the ERP backend.

    The base URL is the one saved by the user, falling back to settings. No
    call retries; a single attempt is made and failures surface immediately.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        profiles: ProfileStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (defaults to get_settings())
            profiles: Store holding the user-saved server URL
            client: Optional httpx client (for testing with mocks)
        """
        self._settings = settings or get_settings()
        self._profiles = profiles
        self._client = client

    async def base_url(self) -> str:
        """Resolve the server URL.

        Raises:
            ConfigurationError: If no server URL is configured
        """
        url = await self._profiles.load_server_url() if self._profiles else None
        url = url or self._settings.erp_base_url
        if not url or not url.strip():
            raise ConfigurationError("La dirección del servidor no está configurada.")
        return normalize_base_url(url)

    @asynccontextmanager
    async def _http(self, timeout: float | None = None) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        client = httpx.AsyncClient(timeout=timeout)
        try:
            yield client
        finally:
            await client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        url = f"{await self.base_url()}{endpoint}"
        async with self._http() as client:
            try:
                return await client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                logger.warning("ERP request %s %s failed: %s", method, endpoint, e)
                raise RemoteServiceError(f"No se pudo contactar al servidor: {e}") from e

    async def check_connection(self, url: str | None = None) -> bool:
        """Probe GET /health with a fixed timeout; True only on HTTP 200."""
        try:
            base = normalize_base_url(url) if url else await self.base_url()
        except ConfigurationError:
            return False

        timeout = self._settings.erp_health_timeout_s
        async with self._http(timeout=timeout) as client:
            try:
                response = await client.get(f"{base}/health", timeout=timeout)
            except httpx.HTTPError as e:
                logger.warning("Connection test failed: %s", e)
                return False
        return response.status_code == 200

    async def get_employee(self, clave: str) -> Employee | None:
        """Verify an employee key; None when the ERP does not know it."""
        response = await self._request("GET", f"/empleados/{clave}")
        if response.status_code != 200:
            return None
        try:
            return Employee.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteServiceError(f"Respuesta de empleado inválida: {e}") from e

    async def get_trip(self, remote_id: str | int) -> RemoteTrip | None:
        """Fetch a trip by numeric remote id; None when not found.

        Raises:
            ValueError: If remote_id is not numeric
        """
        numeric_id = int(str(remote_id).strip())
        response = await self._request("GET", f"/viajes/{numeric_id}")
        if response.status_code != 200:
            return None
        try:
            return RemoteTrip.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteServiceError(f"Respuesta de viaje inválida: {e}") from e

    async def upload_evidence(self, uris: list[str]) -> list[str]:
        """Upload local files in one multipart request.

        Returns:
            Remote URLs, in the same order as uris

        Raises:
            RemoteServiceError: On unreadable files or upload failure
        """
        if not uris:
            return []

        files = []
        for uri in uris:
            path = local_path(uri)
            try:
                content = path.read_bytes()
            except OSError as e:
                raise RemoteServiceError(f"No se pudo leer el archivo {path.name}: {e}") from e
            files.append(("files", (path.name, content, evidence_mime_type(path.name))))

        response = await self._request("POST", "/viajes/upload", files=files)
        if response.status_code not in (200, 201):
            raise RemoteServiceError(
                f"Fallo al subir archivos: {response.text}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteServiceError(f"Respuesta de subida inválida: {e}") from e

        urls = data.get("urls") if isinstance(data, dict) else data
        if not isinstance(urls, list):
            raise RemoteServiceError("La respuesta de subida no contiene una lista de URLs")
        if len(urls) != len(uris):
            raise RemoteServiceError(
                f"El servidor devolvió {len(urls)} URLs para {len(uris)} archivos"
            )
        return [str(u) for u in urls]

    async def submit_trip(self, payload: SyncPayload) -> SyncReceipt:
        """POST the sync payload and return the server's receipt."""
        response = await self._request("POST", "/viajes", json=payload.model_dump(mode="json"))
        if response.status_code not in (200, 201):
            raise RemoteServiceError(
                f"Error en sincronización: {response.text}", status_code=response.status_code
            )
        try:
            return SyncReceipt.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteServiceError(f"Respuesta de sincronización inválida: {e}") from e

    async def list_categories(self) -> list[Category]:
        """Stop-category catalog, or the built-in one when empty/unavailable."""
        try:
            response = await self._request("GET", "/viajes/categorias")
            if response.status_code == 200:
                categories = _categories.validate_python(response.json())
                if categories:
                    return categories
        except (ConfigurationError, RemoteServiceError, ValueError) as e:
            logger.warning("Error fetching categories, using defaults: %s", e)
        return list(DEFAULT_CATEGORIES)
