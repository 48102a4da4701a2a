"""Exception taxonomy for storage, remote calls and editing rules."""

from enum import Enum


class TripbookError(Exception):
    """Base class for all tripbook errors."""


class ConfigurationError(TripbookError):
    """Server URL (or other required setting) is not configured."""


class RemoteServiceError(TripbookError):
    """The ERP backend failed or answered with an unexpected status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TripNotFoundError(TripbookError):
    """No local trip with the given id."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip {trip_id} not found")
        self.trip_id = trip_id


class RemoteTripNotFoundError(TripbookError):
    """The ERP has no trip with the given id."""

    def __init__(self, remote_id: str) -> None:
        super().__init__(f"Remote trip {remote_id} not found")
        self.remote_id = remote_id


class ReadOnlyTripError(TripbookError):
    """Mutation attempted on an imported, read-only trip."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip {trip_id} is read-only")
        self.trip_id = trip_id


class NotesLockedError(TripbookError):
    """Note edit attempted on a trip that was already synchronized."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Notes of trip {trip_id} are locked after sync")
        self.trip_id = trip_id


class ConfirmationRequired(TripbookError):
    """Destructive operation attempted without explicit confirmation."""


class SyncPhase(str, Enum):
    """Step of the sync sequence that failed."""

    CONFIGURATION = "configuration"
    IDENTITY = "identity"
    UPLOAD = "upload"
    SUBMIT = "submit"


_PHASE_MESSAGES = {
    SyncPhase.CONFIGURATION: "La dirección del servidor no está configurada.",
    SyncPhase.IDENTITY: "Vincula tu clave de empleado antes de sincronizar.",
    SyncPhase.UPLOAD: "Falló la subida de evidencias.",
    SyncPhase.SUBMIT: "Falló el envío del viaje al servidor.",
}


class SyncError(TripbookError):
    """Sync aborted; local trip state was left untouched."""

    def __init__(self, phase: SyncPhase, message: str) -> None:
        super().__init__(message)
        self.phase = phase

    @property
    def user_message(self) -> str:
        """Human-readable message naming the failed phase."""
        return f"{_PHASE_MESSAGES[self.phase]} ({self})"


class NotImportedTripError(TripbookError):
    """Refresh attempted on a trip that is not an imported mirror."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip {trip_id} was not imported from the server")
        self.trip_id = trip_id


class EmployeeNotFoundError(TripbookError):
    """The ERP does not know the given employee key."""

    def __init__(self, clave: str) -> None:
        super().__init__(f"No se encontró un empleado con la clave {clave}")
        self.clave = clave
