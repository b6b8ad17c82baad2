# calsync/schemas/event.py
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from calsync.core.constants import EventSource, EventStatus, EventType
from calsync.utils.datetime_utils import ensure_utc


class InternalEvent(BaseModel):
    """
    The fields of an application event the sync engine reads.

    Validated before anything is sent to Google, so an incomplete event is
    rejected without a network round trip.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str = Field(min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    color: Optional[str] = None
    event_type: EventType = EventType.OTHER
    created_by_id: Optional[int] = None
    responsible_parent_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def _check_range(self) -> "InternalEvent":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class EventDraft(BaseModel):
    """
    An application-shaped view of a Google event.

    Drafts are never stored; they only appear in the merged calendar response.
    """

    title: str
    description: str = ""
    location: str = ""
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    color: Optional[str] = None
    event_type: EventType = EventType.OTHER
    status: EventStatus = EventStatus.APPROVED
    created_by_id: Optional[int] = None
    responsible_parent_id: Optional[int] = None


class DisplayEvent(EventDraft):
    id: Optional[int] = None
    source: EventSource
    read_only: bool = False
    external_event_id: Optional[str] = None
    calendar_id: Optional[str] = None
    calendar_name: Optional[str] = None
    calendar_color: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_internal(cls, event: Any) -> "DisplayEvent":
        """
        Display form of a stored event, a row or a dict.

        Only the times are required. Events that push would reject (no title,
        end before start) still show up in their owner's view.
        """

        def read(name: str) -> Any:
            if isinstance(event, dict):
                return event.get(name)
            return getattr(event, name, None)

        return cls(
            id=read("id"),
            title=read("title") or "",
            description=read("description") or "",
            location=read("location") or "",
            start_time=read("start_time"),
            end_time=read("end_time"),
            is_all_day=bool(read("is_all_day")),
            color=read("color"),
            event_type=read("event_type") or EventType.OTHER,
            created_by_id=read("created_by_id"),
            responsible_parent_id=read("responsible_parent_id"),
            source=EventSource.INTERNAL,
        )
