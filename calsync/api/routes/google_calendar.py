# calsync/api/routes/google_calendar.py
import logging
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from calsync.api import deps
from calsync.core.config import settings
from calsync.core.exceptions import BusinessException
from calsync.models.user import User
from calsync.schemas.event import DisplayEvent
from calsync.schemas.google_calendar import (
    AuthorizationUrl,
    CalendarStatus,
    RemoteCalendar,
    SelectedCalendarsIn,
    SyncAllResult,
    ToggleSyncIn,
)
from calsync.services.google_calendar_service import GoogleCalendarService

router = APIRouter()
logger = logging.getLogger(__name__)


def _frontend_redirect(**params: str) -> RedirectResponse:
    url = f"{settings.FRONTEND_URL.rstrip('/')}/calendar-connect-callback?{urlencode(params)}"
    return RedirectResponse(url=url)


@router.get("/authorize", response_model=AuthorizationUrl)
def authorize_google(
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """Start the Google OAuth flow."""
    return calendar_service.start_oauth_flow(current_user.id)


@router.get("/callback")
async def google_auth_callback(
    state: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """
    Public OAuth callback endpoint - receives Google's redirect and sends the
    browser back to the frontend with the outcome.
    """
    if error:
        return _frontend_redirect(error=error)
    if not code or not state:
        return _frontend_redirect(error="missing_parameters")

    try:
        await calendar_service.complete_oauth_flow(state, code)
    except BusinessException as e:
        logger.error(f"Error completing Google OAuth: {e.message}")
        return _frontend_redirect(error=e.code)

    return _frontend_redirect(success="true")


@router.get("/status", response_model=CalendarStatus)
def get_google_calendar_status(
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """Check Google Calendar connection status."""
    return calendar_service.get_status(current_user.id)


@router.get("/calendars", response_model=List[RemoteCalendar])
async def list_google_calendars(
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """List the calendars on the user's Google account."""
    return await calendar_service.list_remote_calendars(current_user.id)


@router.post("/calendars", response_model=CalendarStatus)
def select_google_calendars(
    selection: SelectedCalendarsIn,
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """Replace the calendars shown in the merged view."""
    calendar_service.save_selected_calendars(current_user.id, selection.calendars)
    return calendar_service.get_status(current_user.id)


@router.post("/toggle-sync", response_model=CalendarStatus)
def toggle_google_sync(
    body: ToggleSyncIn,
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    return calendar_service.set_sync_enabled(current_user.id, body.enabled)


@router.delete("/disconnect")
def disconnect_google_calendar(
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
) -> Dict[str, bool]:
    """Disconnect Google Calendar and forget everything synced so far."""
    calendar_service.disconnect(current_user.id)
    return {"success": True}


@router.post("/sync-all", response_model=SyncAllResult)
async def sync_all_events(
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """Push every event the user created to their Google calendar."""
    return await calendar_service.sync_all_events(current_user.id)


@router.post("/events/{event_id}/sync")
async def sync_event(
    event_id: int,
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
) -> Dict[str, bool]:
    success = await calendar_service.push_event_by_id(current_user.id, event_id)
    return {"success": success}


@router.delete("/events/{event_id}/sync")
async def unsync_event(
    event_id: int,
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
) -> Dict[str, bool]:
    success = await calendar_service.delete_event(current_user.id, event_id)
    return {"success": success}


@router.get("/events", response_model=List[DisplayEvent])
async def merged_events(
    start: datetime = Query(...),
    end: datetime = Query(...),
    current_user: User = Depends(deps.get_current_active_user),
    calendar_service: GoogleCalendarService = Depends(deps.get_calendar_service),
):
    """The user's events and their selected Google calendars' events in [start, end)."""
    return await calendar_service.pull_merged_events(current_user.id, start, end)
