from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from calsync.core.constants import EventStatus, EventType
from calsync.db.base import Base


class CalendarEvent(Base):
    """
    An event owned by this application.

    Times are stored naive in UTC. For all-day events ``end_time`` falls on the
    last day of the event (inclusive).
    """

    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    is_all_day = Column(Boolean, default=False, nullable=False)
    color = Column(String, nullable=True)
    event_type = Column(Enum(EventType), default=EventType.OTHER, nullable=False)
    status = Column(Enum(EventStatus), default=EventStatus.APPROVED, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    responsible_parent_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    creator = relationship("User", back_populates="events", foreign_keys=[created_by_id])
