from sqlalchemy.orm import Session

from calsync.models.user import User
from calsync.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(User, db)
