# calsync/services/google_calendar_service.py
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from calsync.core.exceptions import (
    BusinessException,
    CalendarNotConnectedException,
    ExternalServiceException,
    ResourceNotFoundException,
    SyncDisabledException,
    ValidationException,
)
from calsync.integrations.google.oauth import GoogleOAuthClient
from calsync.models.google_calendar import CalendarSelection, GoogleCalendarCredential
from calsync.repositories.calendar_event_repository import CalendarEventRepository
from calsync.repositories.google_calendar_repository import CalendarSelectionRepository
from calsync.repositories.sync_mapping_repository import SyncMappingRepository
from calsync.schemas.event import DisplayEvent
from calsync.schemas.google_calendar import (
    AuthorizationUrl,
    CalendarSelectionIn,
    CalendarStatus,
    RemoteCalendar,
    RemoteCalendarColors,
    SelectedCalendarsIn,
    SyncAllResult,
)
from calsync.schemas.token import TokenResponse
from calsync.services.sync_service import CalendarSyncEngine
from calsync.utils.timeout import run_blocking

logger = logging.getLogger(__name__)


class GoogleCalendarService:
    """Service for Google Calendar integration operations."""

    def __init__(self, db: Session, timeout: Optional[float] = None):
        self.db = db
        self.engine = CalendarSyncEngine(db, timeout=timeout)
        self.timeout = self.engine.timeout
        self.credentials = self.engine.credentials
        self.selections = CalendarSelectionRepository(db)
        self.mappings = SyncMappingRepository(db)
        self.events = CalendarEventRepository(db)

    def _require_credential(self, user_id: int) -> GoogleCalendarCredential:
        credential = self.credentials.get(user_id)
        if not credential:
            raise CalendarNotConnectedException("Google Calendar is not connected")
        return credential

    # Authorization

    def start_oauth_flow(self, user_id: int) -> AuthorizationUrl:
        """Build the Google consent URL for a user."""
        state = GoogleOAuthClient.create_state(user_id)
        url = GoogleOAuthClient.authorization_url(state)
        logger.info(f"Started Google Calendar authorization for user {user_id}")
        return AuthorizationUrl(authorization_url=url)

    async def complete_oauth_flow(self, state: str, code: str) -> GoogleCalendarCredential:
        """
        Finish the consent flow: store the tokens and provision the dedicated calendar.

        Raises:
            AuthenticationException: state is invalid or expired
            ExternalServiceException: Google refused the authorization code
        """
        user_id = GoogleOAuthClient.verify_state(state)

        try:
            google_credentials = await run_blocking(
                GoogleOAuthClient.exchange_code,
                code,
                timeout=self.timeout,
                error_message="Google token exchange timed out",
            )
        except BusinessException:
            raise
        except Exception as e:
            logger.error(f"Error exchanging Google authorization code for user {user_id}: {e}")
            raise ExternalServiceException("Failed to complete Google authorization") from e

        credential = self.credentials.save(
            user_id, TokenResponse.from_google_credentials(google_credentials)
        )
        await self._provision_dedicated_calendar(credential)
        return credential

    async def _provision_dedicated_calendar(self, credential: GoogleCalendarCredential) -> None:
        try:
            client = self.credentials.build_client(credential, self.timeout)
            await self.engine.resolver.resolve(client, credential)
            self.credentials.store_refreshed(credential, client)
        except BusinessException as e:
            logger.warning(
                f"Could not provision dedicated calendar for user {credential.user_id}: {e.message}"
            )
        except Exception:
            self.db.rollback()
            logger.exception(
                f"Unexpected error provisioning dedicated calendar for user {credential.user_id}"
            )

    # Connection settings

    def get_status(self, user_id: int) -> CalendarStatus:
        credential = self.credentials.get(user_id)
        if not credential:
            return CalendarStatus(connected=False)
        return CalendarStatus(
            connected=True,
            sync_enabled=bool(credential.sync_enabled),
            dedicated_calendar_id=credential.dedicated_calendar_id,
            selected_calendar_count=self.selections.count_for_user(user_id),
            last_updated=credential.updated_at,
        )

    async def list_remote_calendars(self, user_id: int) -> List[RemoteCalendar]:
        """Every calendar on the user's Google account, flagged if selected."""
        credential = self._require_credential(user_id)
        client = self.credentials.build_client(credential, self.timeout)
        try:
            items = await run_blocking(client.list_calendars, timeout=self.timeout)
        finally:
            self.credentials.store_refreshed(credential, client)

        selected = {
            s.external_calendar_id for s in self.selections.list_for_user(user_id)
        }
        return [
            RemoteCalendar(
                id=item["id"],
                name=item.get("summaryOverride") or item.get("summary") or item["id"],
                description=item.get("description"),
                selected=item["id"] in selected,
                is_primary=bool(item.get("primary", False)),
                access_role=item.get("accessRole"),
                colors=RemoteCalendarColors(
                    background=item.get("backgroundColor"),
                    foreground=item.get("foregroundColor"),
                ),
            )
            for item in items
            if item.get("id")
        ]

    def save_selected_calendars(
        self,
        user_id: int,
        calendars: Iterable[Union[CalendarSelectionIn, dict]],
    ) -> List[CalendarSelection]:
        """Replace the set of calendars shown in the user's merged view."""
        self._require_credential(user_id)
        try:
            payload = SelectedCalendarsIn.model_validate({"calendars": list(calendars)})
        except ValidationError as e:
            raise ValidationException(
                "Invalid calendar selection",
                details={
                    ".".join(str(part) for part in err["loc"]): err["msg"]
                    for err in e.errors()
                },
            )

        rows = [
            CalendarSelection(
                user_id=user_id,
                external_calendar_id=item.external_calendar_id,
                display_name=item.name,
                color=item.color,
                include_in_merged_view=item.display,
            )
            for item in payload.calendars
        ]
        saved = self.selections.replace_for_user(user_id, rows)
        logger.info(f"User {user_id} selected {len(saved)} Google calendars")
        return saved

    def set_sync_enabled(self, user_id: int, enabled: bool) -> CalendarStatus:
        if not self.credentials.set_sync_enabled(user_id, enabled):
            raise CalendarNotConnectedException("Google Calendar is not connected")
        return self.get_status(user_id)

    def disconnect(self, user_id: int) -> None:
        """Forget the user's tokens, selections and event mappings in one transaction."""
        self._require_credential(user_id)
        try:
            mappings = self.mappings.delete_for_user(user_id)
            selections = self.selections.delete_for_user(user_id)
            self.credentials.delete(user_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Error disconnecting Google Calendar for user {user_id}")
            raise
        self.db.expire_all()
        logger.info(
            f"Disconnected Google Calendar for user {user_id}",
            extra={"mappings_removed": mappings, "selections_removed": selections},
        )

    # Sync

    async def push_event(self, user_id: int, event: Any) -> bool:
        return await self.engine.push_event(user_id, event)

    async def push_event_by_id(self, user_id: int, event_id: int) -> bool:
        event = self.events.get_user_event(user_id, event_id)
        if not event:
            raise ResourceNotFoundException(f"Event {event_id} not found")
        return await self.engine.push_event(user_id, event)

    async def delete_event(self, user_id: int, internal_event_id: int) -> bool:
        return await self.engine.delete_event(user_id, internal_event_id)

    async def pull_merged_events(
        self,
        user_id: int,
        window_start: datetime,
        window_end: datetime,
        internal_events: Optional[Iterable[Any]] = None,
    ) -> List[DisplayEvent]:
        """Merged view for the window; loads the user's own events when none are given."""
        if window_end <= window_start:
            raise ValidationException("end must be after start")
        if internal_events is None:
            internal_events = self.events.list_in_window(user_id, window_start, window_end)
        return await self.engine.pull_merged_events(
            user_id, window_start, window_end, internal_events
        )

    async def sync_all_events(self, user_id: int) -> SyncAllResult:
        credential = self._require_credential(user_id)
        if not credential.sync_enabled:
            raise SyncDisabledException("Google Calendar sync is turned off")
        return await self.engine.sync_all_events(user_id)
