from datetime import datetime, timezone

import pytest

from calsync.core.constants import EventStatus, EventType
from calsync.integrations.google.formatter import EventFormatter
from calsync.schemas.event import InternalEvent
from calsync.schemas.google_calendar import AllDayEventTime, TimedEventTime


@pytest.fixture
def formatter():
    return EventFormatter(time_zone="America/Los_Angeles")


def _event(**overrides):
    values = {
        "id": 12,
        "title": "Pickup",
        "start_time": datetime(2024, 3, 1, 17, 0),
        "end_time": datetime(2024, 3, 1, 18, 0),
        "event_type": EventType.CUSTODY_TRANSFER,
    }
    values.update(overrides)
    return InternalEvent(**values)


class TestToExternal:
    def test_single_day_all_day_event_gets_exclusive_end(self, formatter):
        event = _event(
            is_all_day=True,
            start_time=datetime(2024, 3, 1),
            end_time=datetime(2024, 3, 1),
        )

        payload = formatter.to_external(event)

        assert isinstance(payload.start, AllDayEventTime)
        body = payload.to_body()
        assert body["start"] == {"date": "2024-03-01"}
        assert body["end"] == {"date": "2024-03-02"}

    def test_timed_event_is_sent_in_utc_with_time_zone(self, formatter):
        payload = formatter.to_external(_event())

        assert isinstance(payload.start, TimedEventTime)
        body = payload.to_body()
        assert body["start"] == {
            "dateTime": "2024-03-01T17:00:00+00:00",
            "timeZone": "America/Los_Angeles",
        }
        assert body["end"]["dateTime"] == "2024-03-01T18:00:00+00:00"

    def test_aware_times_are_converted_to_utc(self, formatter):
        start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc).astimezone()
        payload = formatter.to_external(
            _event(start_time=start, end_time=datetime(2024, 3, 1, 10, 0))
        )

        assert payload.start.date_time == "2024-03-01T09:00:00+00:00"

    def test_private_marker_is_always_stamped(self, formatter):
        body = formatter.to_external(_event()).to_body()

        assert body["extendedProperties"]["private"] == {
            "calsyncEventId": "12",
            "calsyncEventType": "custody_transfer",
            "isCalsyncEvent": "true",
        }

    def test_optional_text_fields_default_to_empty(self, formatter):
        body = formatter.to_external(_event()).to_body()

        assert body["summary"] == "Pickup"
        assert body["description"] == ""
        assert body["location"] == ""

    def test_color_only_sent_when_present(self, formatter):
        assert "colorId" not in formatter.to_external(_event()).to_body()
        body = formatter.to_external(_event(color="#DC2127")).to_body()
        assert body["colorId"] == "11"


class TestToInternal:
    def test_all_day_event_end_date_becomes_inclusive(self, formatter):
        draft = formatter.to_internal(
            {
                "summary": "School holiday",
                "start": {"date": "2024-03-01"},
                "end": {"date": "2024-03-02"},
            },
            owner_user_id=3,
        )

        assert draft.is_all_day is True
        assert draft.start_time == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert draft.end_time == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_multi_day_all_day_event(self, formatter):
        draft = formatter.to_internal(
            {"start": {"date": "2024-03-01"}, "end": {"date": "2024-03-04"}},
            owner_user_id=3,
        )

        assert draft.end_time.date().isoformat() == "2024-03-03"

    def test_timed_event_and_draft_defaults(self, formatter):
        draft = formatter.to_internal(
            {
                "summary": "Dentist",
                "location": "Main St",
                "colorId": "4",
                "start": {"dateTime": "2024-03-01T08:00:00-08:00"},
                "end": {"dateTime": "2024-03-01T09:00:00Z"},
            },
            owner_user_id=3,
        )

        assert draft.is_all_day is False
        assert draft.start_time == datetime(2024, 3, 1, 16, 0, tzinfo=timezone.utc)
        assert draft.end_time == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        assert draft.color == "#ff887c"
        assert draft.event_type == EventType.OTHER
        assert draft.status == EventStatus.APPROVED
        assert draft.created_by_id == draft.responsible_parent_id == 3

    def test_untitled_event(self, formatter):
        draft = formatter.to_internal(
            {"start": {"dateTime": "2024-03-01T08:00:00Z"}, "end": {"dateTime": "2024-03-01T09:00:00Z"}},
            owner_user_id=1,
        )

        assert draft.title == "(No title)"
        assert draft.color == "#46d6db"


class TestManagedMarker:
    def test_round_trip_is_recognised_as_managed(self, formatter):
        body = formatter.to_external(_event()).to_body()
        assert EventFormatter.is_managed(body) is True

    @pytest.mark.parametrize(
        "event",
        [
            {},
            {"extendedProperties": {}},
            {"extendedProperties": {"private": {"isCalsyncEvent": "false"}}},
            {"extendedProperties": {"shared": {"isCalsyncEvent": "true"}}},
        ],
    )
    def test_foreign_events_are_not_managed(self, event):
        assert EventFormatter.is_managed(event) is False
