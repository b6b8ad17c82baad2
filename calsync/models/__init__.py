# calsync/models/__init__.py
from calsync.models.user import User
from calsync.models.calendar_event import CalendarEvent
from calsync.models.google_calendar import CalendarSelection, GoogleCalendarCredential
from calsync.models.sync_mapping import EventSyncMapping
