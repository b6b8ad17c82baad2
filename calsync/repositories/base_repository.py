# calsync/repositories/base_repository.py
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from calsync.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)  # type: ignore


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.
    Extend this class for specific models.

    Single-row writes commit immediately. Bulk helpers in subclasses that say
    "caller commits" only stage their changes so several of them can share one
    transaction.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get(self, id: Any) -> Optional[ModelType]:
        """Get a single record by ID."""
        return self.db.get(self.model, id)

    def get_by(self, **kwargs) -> Optional[ModelType]:
        """Get a single record by arbitrary filters."""
        query = self.db.query(self.model)
        for key, value in kwargs.items():
            query = query.filter(getattr(self.model, key) == value)
        return query.first()

    def delete(self, id: Any) -> bool:
        """Delete a record by ID."""
        obj = self.get(id)
        if obj:
            self.db.delete(obj)
            self.db.commit()
            return True
        return False

    def save(self, obj: ModelType) -> ModelType:
        """Save an already instantiated model object."""
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj
