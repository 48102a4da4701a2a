"""Trip, day, stop and note models - the locally stored document."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from tripbook.models.common import DEFAULT_CATEGORY, Coords, NoteType

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _blank_to_none(v: Any) -> Any:
    return None if v is None or v == "" else v


class Stop(BaseModel):
    """Single scheduled point of interest or expense within a day."""

    id: str
    lugar: str
    hora: str = Field("10:00", pattern=TIME_PATTERN)
    costo: float = Field(0, ge=0)
    descripcion: str = ""
    completado: bool = False
    coords: Coords | None = None
    fotos: list[str] = Field(default_factory=list)
    categoria: str = DEFAULT_CATEGORY
    facturable: bool = False
    notas: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        """Store ids as strings regardless of how they were serialized."""
        return str(v)

    @field_validator("costo", mode="before")
    @classmethod
    def validate_costo(cls, v: Any) -> Any:
        """Missing cost counts as zero."""
        return 0 if _blank_to_none(v) is None else v

    @field_validator("completado", mode="before")
    @classmethod
    def validate_completado(cls, v: Any) -> bool:
        """Normalize the flag; older builds stored it as the string "true"."""
        return v is True or str(v) == "true"

    @field_validator("descripcion", "notas", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> Any:
        """Null text fields become empty strings."""
        return "" if v is None else v

    @field_validator("fotos", mode="before")
    @classmethod
    def validate_fotos(cls, v: Any) -> Any:
        """Null photo list becomes empty."""
        return v or []


class Day(BaseModel):
    """One itinerary day; `puntos` is kept sorted by `hora`."""

    dia: int = Field(..., ge=1)
    fecha: date
    puntos: list[Stop] = Field(default_factory=list)


class Note(BaseModel):
    """ERP note owned by a trip."""

    id: str
    titulo: str
    contenido: str = ""
    tipo_nota: NoteType = NoteType.general

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        """Store ids as strings."""
        return str(v)


class Trip(BaseModel):
    """A user's travel plan with a dated, day-structured itinerary.

    `itinerario` always has one Day per day of the trip, contiguous from
    `fecha_inicio`. `erp_id` is set once the ERP has accepted the trip (or
    when the trip was imported from it).
    """

    id: str
    titulo_viaje: str
    color_acento: str = "#1A4D4C"
    presupuesto_total: float = 0
    fecha_inicio: date
    itinerario: list[Day] = Field(default_factory=list)
    erp_id: str | None = None
    uuid_movil: str | None = None
    sincronizado: bool = False
    readonly: bool = False
    propietario: str | None = None
    notas_erp: list[Note] = Field(default_factory=list)
    ultima_sincronizacion: str | None = None

    @model_validator(mode="before")
    @classmethod
    def validate_start_date(cls, data: Any) -> Any:
        """Trips written by early builds carry no fecha_inicio; use the first day."""
        if isinstance(data, dict) and not data.get("fecha_inicio"):
            days = data.get("itinerario") or []
            first = days[0] if days else None
            if isinstance(first, dict):
                fecha = first.get("fecha")
            else:
                fecha = getattr(first, "fecha", None)
            data = {**data, "fecha_inicio": fecha or date.today()}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        """Store ids as strings."""
        return str(v)

    @field_validator("erp_id", "uuid_movil", mode="before")
    @classmethod
    def validate_remote_ids(cls, v: Any) -> str | None:
        """Remote identifiers are compared as strings."""
        v = _blank_to_none(v)
        return None if v is None else str(v)

    @field_validator("presupuesto_total", mode="before")
    @classmethod
    def validate_presupuesto(cls, v: Any) -> Any:
        """Unset budget means no limit (0)."""
        return 0 if _blank_to_none(v) is None else v

    @field_validator("notas_erp", mode="before")
    @classmethod
    def validate_notas(cls, v: Any) -> Any:
        """Null note list becomes empty."""
        return v or []

    @property
    def duration(self) -> int:
        """Number of days in the itinerary."""
        return len(self.itinerario)

    def find_day(self, dia: int) -> Day | None:
        """Return the day with the given 1-based number, if any."""
        return next((day for day in self.itinerario if day.dia == dia), None)

    def find_stop(self, stop_id: str) -> Stop | None:
        """Return the stop with the given id from any day, if any."""
        for day in self.itinerario:
            for stop in day.puntos:
                if stop.id == str(stop_id):
                    return stop
        return None
