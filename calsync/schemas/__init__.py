from calsync.schemas.token import TokenResponse
from calsync.schemas.event import DisplayEvent, EventDraft, InternalEvent
from calsync.schemas.google_calendar import (
    AllDayEventTime,
    AuthorizationUrl,
    CalendarSelectionIn,
    CalendarStatus,
    ExtendedProperties,
    ExternalEventPayload,
    PrivateMarker,
    RemoteCalendar,
    RemoteCalendarColors,
    SelectedCalendarsIn,
    SyncAllResult,
    TimedEventTime,
    ToggleSyncIn,
)
