"""Models package - re-exports for convenience."""

from tripbook.models.common import (
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY,
    Category,
    Coords,
    NoteType,
    SpendSeverity,
)
from tripbook.models.editor import NoteForm, StopForm, TripForm
from tripbook.models.profile import Employee, ProfileSettings, UserProfile
from tripbook.models.remote import (
    Evidence,
    PayloadNote,
    PayloadStop,
    PlaceCandidate,
    RemoteEvidence,
    RemoteNote,
    RemoteStop,
    RemoteTrip,
    SyncPayload,
    SyncReceipt,
)
from tripbook.models.trip import Day, Note, Stop, Trip

__all__ = [
    # Common
    "Coords",
    "NoteType",
    "SpendSeverity",
    "Category",
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY",
    # Trip
    "Trip",
    "Day",
    "Stop",
    "Note",
    # Profile
    "UserProfile",
    "ProfileSettings",
    "Employee",
    # Editor
    "TripForm",
    "StopForm",
    "NoteForm",
    # Remote
    "RemoteTrip",
    "RemoteStop",
    "RemoteEvidence",
    "RemoteNote",
    "SyncPayload",
    "PayloadStop",
    "PayloadNote",
    "Evidence",
    "SyncReceipt",
    "PlaceCandidate",
]
