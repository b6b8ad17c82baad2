"""
Shared fixtures and configuration for all tests.
"""
import os
from collections import Counter
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Override environment settings for testing
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "testsecretkey"
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["BACKEND_CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["FRONTEND_URL"] = "http://frontend.test"

from calsync.main import app  # noqa: E402
from calsync.api.deps import get_current_user  # noqa: E402
from calsync.core.constants import EventType  # noqa: E402
from calsync.core.exceptions import RemoteNotFoundException  # noqa: E402
from calsync.db.base import Base, SessionLocal, engine  # noqa: E402
from calsync.db.session import get_db  # noqa: E402
from calsync.models.calendar_event import CalendarEvent  # noqa: E402
from calsync.models.google_calendar import GoogleCalendarCredential  # noqa: E402
from calsync.models.user import User  # noqa: E402
from calsync.services import register_services  # noqa: E402
from calsync.services.credential_service import CredentialService  # noqa: E402

register_services()


class FakeCalendarClient:
    """
    In-memory stand-in for GoogleCalendarClient.

    Keeps calendars and events in dicts, counts calls per method, and raises
    whatever exception is set in ``errors[method_name]``.
    """

    def __init__(self, token="access-token"):
        self.credentials = SimpleNamespace(token=token, expiry=None)
        self.calendars = []
        self.events = {}
        self.remote_events = {}
        self.errors = {}
        self.calls = Counter()
        self._ids = 0

    def _record(self, name):
        self.calls[name] += 1
        error = self.errors.get(name)
        if error is not None:
            raise error

    def _next_id(self, prefix):
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def list_calendars(self):
        self._record("list_calendars")
        return list(self.calendars)

    def get_calendar(self, calendar_id):
        self._record("get_calendar")
        for calendar in self.calendars:
            if calendar["id"] == calendar_id:
                return calendar
        raise RemoteNotFoundException(f"Calendar {calendar_id} not found")

    def create_calendar(self, summary, description="", time_zone=None):
        self._record("create_calendar")
        calendar = {
            "id": self._next_id("cal"),
            "summary": summary,
            "description": description,
            "timeZone": time_zone,
        }
        self.calendars.append(calendar)
        return calendar

    def list_events(self, calendar_id, time_min, time_max):
        self._record("list_events")
        items = self.remote_events.get(calendar_id, [])
        if isinstance(items, Exception):
            raise items
        return list(items)

    def insert_event(self, calendar_id, body):
        self._record("insert_event")
        event_id = self._next_id("evt")
        self.events.setdefault(calendar_id, {})[event_id] = body
        return {"id": event_id, **body}

    def update_event(self, calendar_id, event_id, body):
        self._record("update_event")
        calendar_events = self.events.get(calendar_id, {})
        if event_id not in calendar_events:
            raise RemoteNotFoundException(f"Event {event_id} not found")
        calendar_events[event_id] = body
        return {"id": event_id, **body}

    def delete_event(self, calendar_id, event_id):
        self._record("delete_event")
        calendar_events = self.events.get(calendar_id, {})
        if event_id not in calendar_events:
            raise RemoteNotFoundException(f"Event {event_id} not found")
        del calendar_events[event_id]

    def total_calls(self):
        return sum(self.calls.values())


# Test fixtures for the database
@pytest.fixture
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db):
    user = User(email="parent@example.com", username="parent", is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    user = User(email="other@example.com", username="other", is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def credential(db, user):
    """A connected account with sync on and no dedicated calendar cached yet."""
    credential = GoogleCalendarCredential(
        user_id=user.id,
        access_token="access-token",
        refresh_token="refresh-token",
        sync_enabled=True,
    )
    db.add(credential)
    db.commit()
    db.refresh(credential)
    return credential


@pytest.fixture
def make_event(db, user):
    """Factory for stored application events."""

    def _make_event(**overrides):
        values = {
            "title": "Soccer practice",
            "description": "Bring cleats",
            "location": "Field 3",
            "start_time": datetime(2024, 3, 1, 17, 0),
            "end_time": datetime(2024, 3, 1, 18, 30),
            "is_all_day": False,
            "color": "#51b749",
            "event_type": EventType.ACTIVITY,
            "created_by_id": user.id,
            "responsible_parent_id": user.id,
        }
        values.update(overrides)
        event = CalendarEvent(**values)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    return _make_event


@pytest.fixture
def make_google_client():
    """Factory for unpatched FakeCalendarClient instances."""
    return FakeCalendarClient


@pytest.fixture
def fake_google():
    """Route every Google client the services build to one FakeCalendarClient."""
    client = FakeCalendarClient()
    with patch.object(CredentialService, "build_client", return_value=client):
        yield client


# Test client with authentication
@pytest.fixture
def client(db):
    """Return a TestClient bound to the test database session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides = {}


@pytest.fixture
def authorized_client(client, user):
    """Return a TestClient that skips the authentication."""
    app.dependency_overrides[get_current_user] = lambda: user
    yield client
    app.dependency_overrides.pop(get_current_user, None)
