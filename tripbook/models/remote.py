"""Wire models for the ERP backend and the geocoding service.

Remote documents are mapped field by field into these models; unknown keys
are dropped so schema drift on the server never leaks into local trips.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tripbook.models.common import Coords


def _as_str(v: Any) -> str | None:
    return None if v is None or v == "" else str(v)


class RemoteEvidence(BaseModel):
    """File attached to a remote stop."""

    model_config = ConfigDict(extra="ignore")

    url_archivo: str | None = None
    tipo_archivo: str | None = None
    fuente: str | None = None


class RemoteNote(BaseModel):
    """Note attached to a remote trip."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    titulo: str = ""
    contenido: str = ""
    tipo_nota: str = "General"

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str | None:
        """Numeric ERP ids become strings."""
        return _as_str(v)

    @field_validator("titulo", "contenido", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> str:
        """Null text becomes empty."""
        return "" if v is None else str(v)

    @field_validator("tipo_nota", mode="before")
    @classmethod
    def validate_tipo_nota(cls, v: Any) -> str:
        """Missing note type is General."""
        return _as_str(v) or "General"


class RemoteStop(BaseModel):
    """Flat stop as served by GET /viajes/{id}."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    fecha: str | None = None
    lugar: str = ""
    hora: str | None = None
    monto: float | None = None
    cve_catvj: str | None = None
    facturable: bool = False
    lat: float | None = None
    lng: float | None = None
    descripcion: str | None = None
    notas: str | None = None
    completado: Any = False
    evidencias: list[RemoteEvidence] = Field(default_factory=list)

    @field_validator("id", "fecha", "cve_catvj", mode="before")
    @classmethod
    def validate_str_fields(cls, v: Any) -> str | None:
        """Numeric ERP keys become strings."""
        return _as_str(v)

    @field_validator("monto", "lat", "lng", mode="before")
    @classmethod
    def validate_numbers(cls, v: Any) -> Any:
        """Blank numbers are missing."""
        return None if isinstance(v, str) and not v.strip() else v

    @field_validator("lugar", mode="before")
    @classmethod
    def validate_lugar(cls, v: Any) -> str:
        """Null place becomes empty."""
        return "" if v is None else str(v)

    @field_validator("hora", "descripcion", "notas", mode="before")
    @classmethod
    def validate_optional_text(cls, v: Any) -> str | None:
        """Non-string text is stringified, null kept."""
        return None if v is None else str(v)

    @field_validator("evidencias", mode="before")
    @classmethod
    def validate_evidencias(cls, v: Any) -> Any:
        """Null evidence list becomes empty."""
        return v or []

    @field_validator("facturable", mode="before")
    @classmethod
    def validate_facturable(cls, v: Any) -> Any:
        """Null flag is false."""
        return bool(v)


class RemoteTrip(BaseModel):
    """Trip document as served by GET /viajes/{id}."""

    model_config = ConfigDict(extra="ignore")

    id: str
    titulo: str | None = None
    fecha_inicio: str | None = None
    presupuesto: float | None = None
    color_acento: str | None = None
    uuid_movil: str | None = None
    nombre_usuario: str | None = None
    paradas: list[RemoteStop] = Field(default_factory=list)
    notas: list[RemoteNote] = Field(default_factory=list)

    @field_validator("id", "fecha_inicio", "uuid_movil", mode="before")
    @classmethod
    def validate_str_fields(cls, v: Any) -> str | None:
        """Numeric ERP keys become strings."""
        return _as_str(v)

    @field_validator("titulo", "color_acento", "nombre_usuario", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> str | None:
        """Blank text falls back to the import defaults."""
        return _as_str(v)

    @field_validator("presupuesto", mode="before")
    @classmethod
    def validate_presupuesto(cls, v: Any) -> Any:
        """Blank budget is missing."""
        return None if isinstance(v, str) and not v.strip() else v

    @field_validator("paradas", "notas", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        """Null lists become empty."""
        return v or []


class Evidence(BaseModel):
    """Evidence entry of an outbound stop; never carries an empty URL."""

    tipo_archivo: str
    url_archivo: str = Field(..., min_length=1)
    fuente: str


class PayloadStop(BaseModel):
    """Flattened stop in the POST /viajes payload."""

    lugar: str
    hora: str
    fecha: date
    monto: float
    cve_catvj: str | None
    facturable: bool
    lat: float | None
    lng: float | None
    descripcion: str
    evidencias: list[Evidence]
    notas: str
    hora_registro: str


class PayloadNote(BaseModel):
    """Trip note in the POST /viajes payload."""

    titulo: str
    contenido: str
    tipo_nota: str


class SyncPayload(BaseModel):
    """Body of POST /viajes."""

    cve_emple: str
    uuid_movil: str
    titulo: str
    fecha_inicio: date
    presupuesto: float
    paradas: list[PayloadStop]
    notas: list[PayloadNote] = Field(default_factory=list)


class SyncReceipt(BaseModel):
    """Response of POST /viajes."""

    model_config = ConfigDict(extra="ignore")

    clave: str | None = None
    cve_viaje: str | None = None

    @field_validator("clave", "cve_viaje", mode="before")
    @classmethod
    def validate_ids(cls, v: Any) -> str | None:
        """Numeric ERP keys become strings."""
        return _as_str(v)

    @property
    def remote_id(self) -> str | None:
        """Assigned remote id, `clave` preferred over `cve_viaje`."""
        return self.clave or self.cve_viaje


class PlaceCandidate(BaseModel):
    """Geocoding search hit."""

    model_config = ConfigDict(extra="ignore")

    display_name: str
    lat: float
    lon: float

    def to_coords(self) -> Coords:
        """Convert to stop coordinates."""
        return Coords(latitude=self.lat, longitude=self.lon)
