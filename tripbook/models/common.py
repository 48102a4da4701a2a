"""Common types and enums shared across all models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Coords(BaseModel):
    """Geographic coordinates (WGS84)."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class NoteType(str, Enum):
    """Kind of ERP note attached to a trip."""

    general = "General"
    incidencia = "Incidencia"
    checklist = "Checklist"


class SpendSeverity(str, Enum):
    """Severity band for budget consumption."""

    normal = "normal"
    warning = "warning"
    critical = "critical"


class Category(BaseModel):
    """Stop category as served by /viajes/categorias."""

    cve_catvj: str
    nombre: str
    icon: str | None = None

    @field_validator("cve_catvj", mode="before")
    @classmethod
    def validate_cve_catvj(cls, v: Any) -> str:
        """Catalog keys may be numeric on the ERP side."""
        return str(v)


DEFAULT_CATEGORY = "OTRO"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(cve_catvj="ACTIVIDAD", nombre="Actividad", icon="Camera"),
    Category(cve_catvj="VUELO", nombre="Vuelo", icon="Plane"),
    Category(cve_catvj="ALOJAMIENTO", nombre="Alojamiento", icon="Bed"),
    Category(cve_catvj="TRANSPORTE", nombre="Transporte", icon="Car"),
    Category(cve_catvj="COMIDA", nombre="Comida", icon="Utensils"),
    Category(cve_catvj="GASOLINA", nombre="Gasolina", icon="Fuel"),
    Category(cve_catvj=DEFAULT_CATEGORY, nombre="Otro", icon="MoreHorizontal"),
)
