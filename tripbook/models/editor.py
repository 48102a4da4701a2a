"""Editor state records.

One record per editing session; handlers build them from user input and pass
them to the itinerary services instead of mutating shared screen state.
"""

from dataclasses import dataclass, field
from datetime import date

from tripbook.models.common import DEFAULT_CATEGORY, Coords, NoteType


@dataclass
class TripForm:
    """Create/edit trip form."""

    titulo_viaje: str
    duration: int | None = 1
    color_acento: str | None = None
    presupuesto_total: float = 0
    fecha_inicio: date | None = None


@dataclass
class StopForm:
    """Add/edit stop form."""

    lugar: str
    hora: str = "10:00"
    descripcion: str = ""
    costo: float = 0
    categoria: str = DEFAULT_CATEGORY
    facturable: bool = False
    notas: str = ""
    coords: Coords | None = None
    fotos: list[str] = field(default_factory=list)


@dataclass
class NoteForm:
    """Add/edit ERP note form."""

    titulo: str
    contenido: str = ""
    tipo_nota: NoteType = NoteType.general
