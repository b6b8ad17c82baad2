# calsync/integrations/google/formatter.py
from datetime import date, timedelta
from typing import Any, Dict, Optional

from calsync.core.config import settings
from calsync.core.constants import EventStatus, EventType, PrivateMarkerKey
from calsync.integrations.google import colors
from calsync.schemas.event import EventDraft, InternalEvent
from calsync.schemas.google_calendar import (
    AllDayEventTime,
    EventTime,
    ExtendedProperties,
    ExternalEventPayload,
    PrivateMarker,
    TimedEventTime,
)
from calsync.utils.datetime_utils import ensure_utc, parse_rfc3339, start_of_day

# Google treats an all-day event's end date as exclusive; ours is inclusive.
ALL_DAY_END_OFFSET = timedelta(days=1)


class EventFormatter:
    """Converts events between the application's shape and Google's."""

    def __init__(self, time_zone: Optional[str] = None):
        self.time_zone = time_zone or settings.DEFAULT_TIMEZONE

    def to_external(self, event: InternalEvent) -> ExternalEventPayload:
        if event.is_all_day:
            start: EventTime = AllDayEventTime(
                day=ensure_utc(event.start_time).date().isoformat()
            )
            end: EventTime = AllDayEventTime(
                day=(ensure_utc(event.end_time).date() + ALL_DAY_END_OFFSET).isoformat()
            )
        else:
            start = TimedEventTime(
                date_time=ensure_utc(event.start_time).isoformat(),
                time_zone=self.time_zone,
            )
            end = TimedEventTime(
                date_time=ensure_utc(event.end_time).isoformat(),
                time_zone=self.time_zone,
            )

        return ExternalEventPayload(
            summary=event.title,
            description=event.description or "",
            location=event.location or "",
            start=start,
            end=end,
            color_id=colors.to_external(event.color) if event.color else None,
            extended_properties=ExtendedProperties(
                private=PrivateMarker(
                    event_id=str(event.id),
                    event_type=EventType(event.event_type).value,
                    managed=True,
                )
            ),
        )

    def to_internal(self, external_event: Dict[str, Any], owner_user_id: int) -> EventDraft:
        start_raw = external_event.get("start") or {}
        end_raw = external_event.get("end") or start_raw
        is_all_day = "date" in start_raw

        if is_all_day:
            start_day = date.fromisoformat(start_raw["date"])
            end_day = date.fromisoformat(end_raw.get("date", start_raw["date"]))
            end_day = max(end_day - ALL_DAY_END_OFFSET, start_day)
            start_time, end_time = start_of_day(start_day), start_of_day(end_day)
        else:
            start_time = parse_rfc3339(start_raw["dateTime"])
            end_time = parse_rfc3339(end_raw.get("dateTime", start_raw["dateTime"]))

        return EventDraft(
            title=external_event.get("summary") or "(No title)",
            description=external_event.get("description") or "",
            location=external_event.get("location") or "",
            start_time=start_time,
            end_time=end_time,
            is_all_day=is_all_day,
            color=colors.to_internal(external_event.get("colorId")),
            event_type=EventType.OTHER,
            status=EventStatus.APPROVED,
            created_by_id=owner_user_id,
            responsible_parent_id=owner_user_id,
        )

    @staticmethod
    def is_managed(external_event: Dict[str, Any]) -> bool:
        """True for events this application pushed itself."""
        private = (external_event.get("extendedProperties") or {}).get("private") or {}
        return str(private.get(PrivateMarkerKey.MANAGED, "")).lower() == "true"
