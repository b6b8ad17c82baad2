from typing import List, Optional

from sqlalchemy.orm import Session

from calsync.models.google_calendar import CalendarSelection, GoogleCalendarCredential
from calsync.repositories.base_repository import BaseRepository


class GoogleCalendarCredentialRepository(BaseRepository[GoogleCalendarCredential]):
    """Repository for Google Calendar credentials (one row per user)."""

    def __init__(self, db: Session):
        super().__init__(GoogleCalendarCredential, db)

    def get_by_user_id(self, user_id: int) -> Optional[GoogleCalendarCredential]:
        return self.get_by(user_id=user_id)

    def update_dedicated_calendar(
        self, credential: GoogleCalendarCredential, calendar_id: str
    ) -> GoogleCalendarCredential:
        credential.dedicated_calendar_id = calendar_id
        return self.save(credential)

    def delete_for_user(self, user_id: int) -> int:
        """Stage deletion of the user's credential row. Caller commits."""
        return (
            self.db.query(GoogleCalendarCredential)
            .filter(GoogleCalendarCredential.user_id == user_id)
            .delete(synchronize_session=False)
        )


class CalendarSelectionRepository(BaseRepository[CalendarSelection]):
    """Repository for the calendars a user pulls into the merged view."""

    def __init__(self, db: Session):
        super().__init__(CalendarSelection, db)

    def list_for_user(
        self, user_id: int, merged_view_only: bool = False
    ) -> List[CalendarSelection]:
        query = self.db.query(CalendarSelection).filter(
            CalendarSelection.user_id == user_id
        )
        if merged_view_only:
            query = query.filter(CalendarSelection.include_in_merged_view.is_(True))
        return query.order_by(CalendarSelection.id).all()

    def count_for_user(self, user_id: int) -> int:
        return (
            self.db.query(CalendarSelection)
            .filter(CalendarSelection.user_id == user_id)
            .count()
        )

    def delete_for_user(self, user_id: int) -> int:
        """Stage deletion of every selection row for the user. Caller commits."""
        return (
            self.db.query(CalendarSelection)
            .filter(CalendarSelection.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def replace_for_user(
        self, user_id: int, selections: List[CalendarSelection]
    ) -> List[CalendarSelection]:
        """Swap the user's selections for ``selections`` in one transaction."""
        try:
            self.delete_for_user(user_id)
            self.db.add_all(selections)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.list_for_user(user_id)
