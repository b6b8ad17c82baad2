# calsync/core/constants.py
import enum


class EventType(str, enum.Enum):
    CUSTODY_TRANSFER = "custody_transfer"
    APPOINTMENT = "appointment"
    ACTIVITY = "activity"
    SCHOOL = "school"
    OTHER = "other"


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EventSource(str, enum.Enum):
    INTERNAL = "internal"
    GOOGLE = "google"


# Keys written to extendedProperties.private on every pushed event
class PrivateMarkerKey:
    EVENT_ID = "calsyncEventId"
    EVENT_TYPE = "calsyncEventType"
    MANAGED = "isCalsyncEvent"


# Google Calendar event palette: (color id, hex, name)
GOOGLE_EVENT_PALETTE = (
    ("1", "#a4bdfc", "Lavender"),
    ("2", "#7ae7bf", "Sage"),
    ("3", "#dbadff", "Grape"),
    ("4", "#ff887c", "Flamingo"),
    ("5", "#fbd75b", "Banana"),
    ("6", "#ffb878", "Tangerine"),
    ("7", "#46d6db", "Peacock"),
    ("8", "#e1e1e1", "Graphite"),
    ("9", "#5484ed", "Blueberry"),
    ("10", "#51b749", "Basil"),
    ("11", "#dc2127", "Tomato"),
)
DEFAULT_GOOGLE_COLOR_ID = "7"
DEFAULT_EVENT_COLOR = "#46d6db"


class SyncOutcome(str, enum.Enum):
    """
    Result of a single push/delete against the remote calendar.

    Tracks where the event's mapping ended up: a row was written (CREATED,
    RECREATED after the old remote event turned out to be gone), refreshed
    (UPDATED), removed (DELETED, ALREADY_ABSENT), or left exactly as it was.
    FOREIGN_MAPPING means another user already owns the event's mapping.
    """

    CREATED = "created"
    UPDATED = "updated"
    RECREATED = "recreated"
    DELETED = "deleted"
    ALREADY_ABSENT = "already_absent"
    NOTHING_TO_DO = "nothing_to_do"
    NOT_CONNECTED = "not_connected"
    SYNC_DISABLED = "sync_disabled"
    INVALID_EVENT = "invalid_event"
    FOREIGN_MAPPING = "foreign_mapping"
    FAILED = "failed"

    @property
    def succeeded(self) -> bool:
        return self in _SUCCESSFUL_OUTCOMES


_SUCCESSFUL_OUTCOMES = frozenset(
    {
        SyncOutcome.CREATED,
        SyncOutcome.UPDATED,
        SyncOutcome.RECREATED,
        SyncOutcome.DELETED,
        SyncOutcome.ALREADY_ABSENT,
        SyncOutcome.NOTHING_TO_DO,
    }
)
