from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from calsync.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, index=True, nullable=False)
    is_active = Column(Boolean(), default=True)

    # Relationships
    events = relationship(
        "CalendarEvent",
        back_populates="creator",
        foreign_keys="CalendarEvent.created_by_id",
    )
    google_calendar_credential = relationship(
        "GoogleCalendarCredential",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    calendar_selections = relationship(
        "CalendarSelection", back_populates="user", cascade="all, delete-orphan"
    )
