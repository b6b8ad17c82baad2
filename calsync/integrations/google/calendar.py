# calsync/integrations/google/calendar.py
import contextlib
import json
import logging
from typing import Any, Dict, Iterator, List, Optional

import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from calsync.core.config import settings
from calsync.core.exceptions import (
    CalendarAuthException,
    ExternalServiceException,
    RateLimitException,
    RemoteNotFoundException,
    ServiceTimeoutException,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded"}


def _error_reasons(error: HttpError) -> List[str]:
    try:
        body = json.loads(error.content.decode("utf-8"))
    except (ValueError, AttributeError):
        return []
    err = body.get("error")
    if isinstance(err, str):
        # token endpoint style: {"error": "invalid_grant"}
        return [err]
    if isinstance(err, dict):
        return [item.get("reason", "") for item in err.get("errors", [])]
    return []


def translate_http_error(error: HttpError, action: str) -> ExternalServiceException:
    """Map a Google API HttpError onto the sync error taxonomy."""
    status = int(error.resp.status)
    reasons = _error_reasons(error)
    details = {"status": status, "reasons": reasons}

    if status in (404, 410):
        return RemoteNotFoundException(f"{action}: not found on Google Calendar", details=details)
    if status == 429 or RATE_LIMIT_REASONS.intersection(reasons):
        return RateLimitException(f"{action}: rate limited by Google", details=details)
    if status in (401, 403) or "invalid_grant" in reasons:
        return CalendarAuthException(f"{action}: Google rejected the credentials", details=details)
    return ExternalServiceException(f"{action}: Google API error {status}", details=details)


@contextlib.contextmanager
def google_errors(action: str) -> Iterator[None]:
    """Re-raise transport and API failures as BusinessExceptions."""
    try:
        yield
    except HttpError as e:
        raise translate_http_error(e, action) from e
    except RefreshError as e:
        raise CalendarAuthException(f"{action}: token refresh failed ({e})") from e
    except TimeoutError as e:
        raise ServiceTimeoutException(f"{action}: timed out") from e
    except (httplib2.HttpLib2Error, OSError) as e:
        raise ExternalServiceException(f"{action}: {e}") from e


class GoogleCalendarClient:
    """
    Thin wrapper around the Calendar v3 API.

    Every method blocks on the network and raises the exceptions produced by
    ``google_errors``; callers decide what a failure means.
    """

    def __init__(self, credentials: Credentials, timeout: Optional[float] = None):
        """Initialize with Google OAuth credentials and a per-request socket timeout."""
        self.credentials = credentials
        http = AuthorizedHttp(
            credentials,
            http=httplib2.Http(timeout=timeout or settings.GOOGLE_API_TIMEOUT),
        )
        self.service = build("calendar", "v3", http=http, cache_discovery=False)

    def list_calendars(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page_token = None
        with google_errors("List calendars"):
            while True:
                result = (
                    self.service.calendarList()
                    .list(pageToken=page_token, maxResults=250)
                    .execute()
                )
                items.extend(result.get("items", []))
                page_token = result.get("nextPageToken")
                if not page_token:
                    return items

    def get_calendar(self, calendar_id: str) -> Dict[str, Any]:
        with google_errors(f"Get calendar {calendar_id}"):
            return self.service.calendars().get(calendarId=calendar_id).execute()

    def create_calendar(
        self, summary: str, description: str = "", time_zone: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {
            "summary": summary,
            "description": description,
            "timeZone": time_zone or settings.DEFAULT_TIMEZONE,
        }
        with google_errors(f"Create calendar {summary!r}"):
            created = self.service.calendars().insert(body=body).execute()
        logger.info(f"Created Google calendar {created.get('id')} ({summary})")
        return created

    def list_events(
        self, calendar_id: str, time_min: str, time_max: str
    ) -> List[Dict[str, Any]]:
        """Events overlapping [time_min, time_max), recurring events expanded."""
        items: List[Dict[str, Any]] = []
        page_token = None
        with google_errors(f"List events in {calendar_id}"):
            while True:
                result = (
                    self.service.events()
                    .list(
                        calendarId=calendar_id,
                        timeMin=time_min,
                        timeMax=time_max,
                        singleEvents=True,
                        orderBy="startTime",
                        pageToken=page_token,
                        maxResults=2500,
                    )
                    .execute()
                )
                items.extend(result.get("items", []))
                page_token = result.get("nextPageToken")
                if not page_token:
                    return items

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        with google_errors(f"Create event in {calendar_id}"):
            return self.service.events().insert(calendarId=calendar_id, body=body).execute()

    def update_event(
        self, calendar_id: str, event_id: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        with google_errors(f"Update event {event_id}"):
            return (
                self.service.events()
                .update(calendarId=calendar_id, eventId=event_id, body=body)
                .execute()
            )

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        with google_errors(f"Delete event {event_id}"):
            self.service.events().delete(calendarId=calendar_id, eventId=event_id).execute()
