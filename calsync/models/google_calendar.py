from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from calsync.db.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class GoogleCalendarCredential(Base):
    """
    OAuth token pair and sync settings for a user's Google Calendar connection.
    """

    __tablename__ = "google_calendar_credentials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_expiry = Column(DateTime, nullable=True)  # naive UTC; None = refresh lazily
    scopes = Column(String, nullable=True)

    sync_enabled = Column(Boolean, default=True, nullable=False)
    dedicated_calendar_id = Column(String, nullable=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="google_calendar_credential")


class CalendarSelection(Base):
    """A Google calendar the user wants shown in the merged calendar view."""

    __tablename__ = "google_calendar_selections"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_calendar_id = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    include_in_merged_view = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    user = relationship("User", back_populates="calendar_selections")
