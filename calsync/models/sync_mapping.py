from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from calsync.db.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class EventSyncMapping(Base):
    """
    Where an internal event lives on Google Calendar.

    At most one row per internal event; no row means the event has never been
    pushed (or its remote copy is known to be gone).
    """

    __tablename__ = "event_sync_mappings"

    id = Column(Integer, primary_key=True, index=True)
    internal_event_id = Column(Integer, nullable=False, unique=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_event_id = Column(String, nullable=False)
    external_calendar_id = Column(String, nullable=False)
    last_synced_at = Column(DateTime, nullable=False, default=_utcnow)
    created_at = Column(DateTime, default=_utcnow)
