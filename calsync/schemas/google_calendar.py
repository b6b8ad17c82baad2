# calsync/schemas/google_calendar.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_serializer,
)

from calsync.core.constants import PrivateMarkerKey


# Wire shapes for events sent to Google


class TimedEventTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_time: str = Field(alias="dateTime")
    time_zone: str = Field(alias="timeZone")


class AllDayEventTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str = Field(alias="date")  # YYYY-MM-DD


EventTime = Union[TimedEventTime, AllDayEventTime]


class PrivateMarker(BaseModel):
    """Stamped on every event we push so pull can recognise its own echoes."""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias=PrivateMarkerKey.EVENT_ID)
    event_type: str = Field(alias=PrivateMarkerKey.EVENT_TYPE)
    managed: bool = Field(default=True, alias=PrivateMarkerKey.MANAGED)

    @field_serializer("managed")
    def _serialize_managed(self, value: bool) -> str:
        # extendedProperties values are strings on the wire
        return "true" if value else "false"


class ExtendedProperties(BaseModel):
    private: PrivateMarker


class ExternalEventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    description: str = ""
    location: str = ""
    start: EventTime
    end: EventTime
    color_id: Optional[str] = Field(default=None, alias="colorId")
    extended_properties: ExtendedProperties = Field(alias="extendedProperties")

    def to_body(self) -> Dict[str, Any]:
        """Request body for events.insert / events.update."""
        return self.model_dump(by_alias=True, exclude_none=True)


# API request/response bodies


class CalendarSelectionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    external_calendar_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("external_calendar_id", "google_calendar_id", "id"),
    )
    name: str = Field(
        min_length=1, validation_alias=AliasChoices("name", "calendar_name", "summary")
    )
    color: Optional[str] = None
    display: bool = Field(
        default=True,
        validation_alias=AliasChoices("display", "include_in_merged_view"),
    )


class SelectedCalendarsIn(BaseModel):
    calendars: List[CalendarSelectionIn]


class ToggleSyncIn(BaseModel):
    enabled: StrictBool


class CalendarStatus(BaseModel):
    connected: bool
    sync_enabled: bool = False
    dedicated_calendar_id: Optional[str] = None
    selected_calendar_count: int = 0
    last_updated: Optional[datetime] = None


class RemoteCalendarColors(BaseModel):
    background: Optional[str] = None
    foreground: Optional[str] = None


class RemoteCalendar(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    selected: bool = False
    is_primary: bool = False
    access_role: Optional[str] = None
    colors: RemoteCalendarColors = RemoteCalendarColors()


class SyncAllResult(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0


class AuthorizationUrl(BaseModel):
    authorization_url: str
