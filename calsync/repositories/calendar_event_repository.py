from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from calsync.models.calendar_event import CalendarEvent
from calsync.repositories.base_repository import BaseRepository
from calsync.utils.datetime_utils import to_naive_utc


class CalendarEventRepository(BaseRepository[CalendarEvent]):
    """Read access to application events. Events are written elsewhere."""

    def __init__(self, db: Session):
        super().__init__(CalendarEvent, db)

    def get_user_event(self, user_id: int, event_id: int) -> Optional[CalendarEvent]:
        return (
            self.db.query(CalendarEvent)
            .filter(CalendarEvent.id == event_id, CalendarEvent.created_by_id == user_id)
            .first()
        )

    def list_created_by(self, user_id: int) -> List[CalendarEvent]:
        return (
            self.db.query(CalendarEvent)
            .filter(CalendarEvent.created_by_id == user_id)
            .order_by(CalendarEvent.start_time)
            .all()
        )

    def list_in_window(
        self, user_id: int, window_start: datetime, window_end: datetime
    ) -> List[CalendarEvent]:
        """Events the user created or is responsible for that overlap the window."""
        start, end = to_naive_utc(window_start), to_naive_utc(window_end)
        return (
            self.db.query(CalendarEvent)
            .filter(
                (CalendarEvent.created_by_id == user_id)
                | (CalendarEvent.responsible_parent_id == user_id),
                CalendarEvent.start_time < end,
                CalendarEvent.end_time >= start,
            )
            .order_by(CalendarEvent.start_time)
            .all()
        )
