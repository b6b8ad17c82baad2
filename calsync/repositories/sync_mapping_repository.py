import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from calsync.models.sync_mapping import EventSyncMapping
from calsync.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SyncMappingRepository(BaseRepository[EventSyncMapping]):
    """Current Google location of each pushed event, keyed by internal event id."""

    def __init__(self, db: Session):
        super().__init__(EventSyncMapping, db)

    def find(
        self, internal_event_id: int, user_id: Optional[int] = None
    ) -> Optional[EventSyncMapping]:
        """Mapping for the event; with ``user_id`` only if that user owns it."""
        if user_id is None:
            return self.get_by(internal_event_id=internal_event_id)
        return self.get_by(internal_event_id=internal_event_id, user_id=user_id)

    def create(
        self,
        internal_event_id: int,
        external_event_id: str,
        external_calendar_id: str,
        user_id: int,
    ) -> EventSyncMapping:
        """
        Upsert the mapping for ``internal_event_id``; the last writer wins.

        Two pushes for the same event can race between lookup and insert. The
        loser of the insert race hits the unique constraint and overwrites the
        winner's row instead.
        """
        mapping = self.find(internal_event_id)
        if mapping is None:
            mapping = EventSyncMapping(internal_event_id=internal_event_id)
            self._apply(mapping, external_event_id, external_calendar_id, user_id)
            try:
                return self.save(mapping)
            except IntegrityError:
                self.db.rollback()
                logger.info(
                    f"Mapping for event {internal_event_id} was written concurrently, overwriting"
                )
                mapping = self.find(internal_event_id)
                if mapping is None:
                    raise

        self._apply(mapping, external_event_id, external_calendar_id, user_id)
        return self.save(mapping)

    def touch(self, mapping_id: int) -> Optional[EventSyncMapping]:
        mapping = self.get(mapping_id)
        if not mapping:
            return None
        mapping.last_synced_at = datetime.now(timezone.utc)
        return self.save(mapping)

    def delete_for_user(self, user_id: int) -> int:
        """Stage deletion of every mapping owned by the user. Caller commits."""
        return (
            self.db.query(EventSyncMapping)
            .filter(EventSyncMapping.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def count_for_user(self, user_id: int) -> int:
        return (
            self.db.query(EventSyncMapping)
            .filter(EventSyncMapping.user_id == user_id)
            .count()
        )

    @staticmethod
    def _apply(mapping, external_event_id, external_calendar_id, user_id):
        mapping.external_event_id = external_event_id
        mapping.external_calendar_id = external_calendar_id
        mapping.user_id = user_id
        mapping.last_synced_at = datetime.now(timezone.utc)
