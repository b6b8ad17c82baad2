# calsync/services/sync_service.py
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy.orm import Session

from calsync.core.config import settings
from calsync.core.constants import EventSource, SyncOutcome
from calsync.core.exceptions import (
    BusinessException,
    ExternalServiceException,
    RemoteNotFoundException,
)
from calsync.core.logging import log_context
from calsync.integrations.google.calendar import GoogleCalendarClient
from calsync.integrations.google.formatter import EventFormatter
from calsync.models.google_calendar import CalendarSelection, GoogleCalendarCredential
from calsync.repositories.calendar_event_repository import CalendarEventRepository
from calsync.repositories.google_calendar_repository import CalendarSelectionRepository
from calsync.repositories.sync_mapping_repository import SyncMappingRepository
from calsync.schemas.event import DisplayEvent, InternalEvent
from calsync.schemas.google_calendar import SyncAllResult
from calsync.services.calendar_resolver import RemoteCalendarResolver
from calsync.services.credential_service import CredentialService
from calsync.utils.datetime_utils import to_rfc3339
from calsync.utils.timeout import run_blocking

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _event_id(event: Any) -> Optional[int]:
    if isinstance(event, dict):
        return event.get("id")
    return getattr(event, "id", None)


class CalendarSyncEngine:
    """
    Pushes application events to the user's dedicated Google calendar and
    merges the user's selected Google calendars into read-only views.

    Public operations never raise. Push and delete report success as a bool,
    pull degrades to whatever it could fetch. Every Google call runs in a
    worker thread bounded by ``timeout`` seconds.
    """

    def __init__(self, db: Session, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout or settings.GOOGLE_API_TIMEOUT
        self.credentials = CredentialService(db)
        self.mappings = SyncMappingRepository(db)
        self.selections = CalendarSelectionRepository(db)
        self.events = CalendarEventRepository(db)
        self.resolver = RemoteCalendarResolver(self.credentials, timeout=self.timeout)
        self.formatter = EventFormatter()

    async def push_event(self, user_id: int, event: Any) -> bool:
        """Create or update the Google copy of ``event``."""
        with log_context(user_id=user_id, action="push_event", event_id=_event_id(event)):
            outcome = await self._guard(self._push(user_id, event))
            logger.info(f"Push of event {_event_id(event)} finished: {outcome.value}")
            return outcome.succeeded

    async def delete_event(self, user_id: int, internal_event_id: int) -> bool:
        """Remove the Google copy of an event the application deleted."""
        with log_context(user_id=user_id, action="delete_event", event_id=internal_event_id):
            outcome = await self._guard(self._delete(user_id, internal_event_id))
            logger.info(f"Delete of event {internal_event_id} finished: {outcome.value}")
            return outcome.succeeded

    async def pull_merged_events(
        self,
        user_id: int,
        window_start: datetime,
        window_end: datetime,
        internal_events: Iterable[Any] = (),
    ) -> List[DisplayEvent]:
        """
        The caller's internal events plus events from the user's selected
        Google calendars in the window, sorted by start time.

        Events this application pushed are left out so they don't show twice.
        Nothing is written.
        """
        with log_context(user_id=user_id, action="pull_merged_events"):
            merged = self._display_internal(internal_events)
            try:
                merged.extend(await self._pull_remote(user_id, window_start, window_end))
            except BusinessException as e:
                logger.warning(f"Google events unavailable ({e.code}): {e.message}")
            except Exception:
                self.db.rollback()
                logger.exception("Unexpected failure pulling Google events")
            return sorted(merged, key=lambda e: e.start_time)

    async def sync_all_events(self, user_id: int) -> SyncAllResult:
        """Push every event the user created, one at a time."""
        with log_context(user_id=user_id, action="sync_all_events"):
            result = SyncAllResult()
            for event in self.events.list_created_by(user_id):
                result.total += 1
                if await self.push_event(user_id, event):
                    result.success += 1
                else:
                    result.failed += 1
            logger.info(
                f"Synced {result.success}/{result.total} events for user {user_id}",
                extra={"failed": result.failed},
            )
            return result

    async def _guard(self, operation: Awaitable[SyncOutcome]) -> SyncOutcome:
        try:
            return await operation
        except BusinessException as e:
            logger.warning(
                f"Google Calendar sync failed ({e.code}): {e.message}",
                extra={"error_code": e.code},
            )
        except Exception:
            self.db.rollback()
            logger.exception("Unexpected Google Calendar sync failure")
        return SyncOutcome.FAILED

    @staticmethod
    def _gate(credential: Optional[GoogleCalendarCredential]) -> Optional[SyncOutcome]:
        if credential is None:
            return SyncOutcome.NOT_CONNECTED
        if not credential.sync_enabled:
            return SyncOutcome.SYNC_DISABLED
        return None

    async def _push(self, user_id: int, event: Any) -> SyncOutcome:
        credential = self.credentials.get(user_id)
        blocked = self._gate(credential)
        if blocked:
            return blocked

        try:
            internal = InternalEvent.model_validate(event)
        except ValidationError as e:
            logger.warning(f"Event {_event_id(event)} is not syncable: {e.error_count()} error(s)")
            return SyncOutcome.INVALID_EVENT

        mapping = self.mappings.find(internal.id)
        if mapping and mapping.user_id != user_id:
            logger.warning(
                f"Event {internal.id} is mapped for user {mapping.user_id}, refusing to push"
            )
            return SyncOutcome.FOREIGN_MAPPING

        client = self.credentials.build_client(credential, self.timeout)
        try:
            calendar_id = await self.resolver.resolve(client, credential)
            body = self.formatter.to_external(internal).to_body()

            recreated = False
            if mapping:
                try:
                    await self._call(
                        client.update_event,
                        mapping.external_calendar_id,
                        mapping.external_event_id,
                        body,
                    )
                except RemoteNotFoundException:
                    logger.info(
                        f"Google event {mapping.external_event_id} is gone, recreating",
                        extra={"calendar_id": mapping.external_calendar_id},
                    )
                    self.mappings.delete(mapping.id)
                    recreated = True
                else:
                    self.mappings.touch(mapping.id)
                    return SyncOutcome.UPDATED

            created = await self._call(client.insert_event, calendar_id, body)
            if not created.get("id"):
                raise ExternalServiceException("Google returned an event without an id")
            self.mappings.create(internal.id, created["id"], calendar_id, user_id)
            return SyncOutcome.RECREATED if recreated else SyncOutcome.CREATED
        finally:
            self._store_refreshed(credential, client)

    async def _delete(self, user_id: int, internal_event_id: int) -> SyncOutcome:
        mapping = self.mappings.find(internal_event_id, user_id)
        if mapping is None:
            return SyncOutcome.NOTHING_TO_DO

        credential = self.credentials.get(user_id)
        blocked = self._gate(credential)
        if blocked:
            return blocked

        client = self.credentials.build_client(credential, self.timeout)
        try:
            await self._call(
                client.delete_event, mapping.external_calendar_id, mapping.external_event_id
            )
            outcome = SyncOutcome.DELETED
        except RemoteNotFoundException:
            outcome = SyncOutcome.ALREADY_ABSENT
        finally:
            self._store_refreshed(credential, client)

        self.mappings.delete(mapping.id)
        return outcome

    async def _pull_remote(
        self, user_id: int, window_start: datetime, window_end: datetime
    ) -> List[DisplayEvent]:
        credential = self.credentials.get(user_id)
        if self._gate(credential):
            return []

        selections = self.selections.list_for_user(user_id, merged_view_only=True)
        if not selections:
            return []

        client = self.credentials.build_client(credential, self.timeout)
        time_min, time_max = to_rfc3339(window_start), to_rfc3339(window_end)

        pulled: List[DisplayEvent] = []
        try:
            for selection in selections:
                try:
                    items = await self._call(
                        client.list_events, selection.external_calendar_id, time_min, time_max
                    )
                except BusinessException as e:
                    logger.warning(
                        f"Skipping calendar {selection.external_calendar_id} ({e.code}): {e.message}",
                        extra={"calendar_id": selection.external_calendar_id},
                    )
                    continue
                pulled.extend(self._display_remote(user_id, selection, items))
        finally:
            self._store_refreshed(credential, client)
        return pulled

    def _display_remote(
        self, user_id: int, selection: CalendarSelection, items: List[Dict[str, Any]]
    ) -> List[DisplayEvent]:
        events = []
        for item in items:
            if item.get("status") == "cancelled" or self.formatter.is_managed(item):
                continue
            try:
                draft = self.formatter.to_internal(item, user_id)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable Google event {item.get('id')}: {e}")
                continue
            events.append(
                DisplayEvent(
                    **draft.model_dump(),
                    source=EventSource.GOOGLE,
                    read_only=True,
                    external_event_id=item.get("id"),
                    calendar_id=selection.external_calendar_id,
                    calendar_name=selection.display_name,
                    calendar_color=selection.color,
                )
            )
        return events

    @staticmethod
    def _display_internal(internal_events: Iterable[Any]) -> List[DisplayEvent]:
        events = []
        for event in internal_events:
            try:
                events.append(DisplayEvent.from_internal(event))
            except ValidationError:
                logger.warning(
                    f"Event {_event_id(event)} has no usable times, leaving it out of the merged view"
                )
        return events

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        return await run_blocking(func, *args, timeout=self.timeout)

    def _store_refreshed(
        self, credential: GoogleCalendarCredential, client: GoogleCalendarClient
    ) -> None:
        try:
            self.credentials.store_refreshed(credential, client)
        except Exception:
            self.db.rollback()
            logger.exception(f"Could not store refreshed token for user {credential.user_id}")
