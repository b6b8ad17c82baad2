"""
Database session management utilities.
"""

from typing import Generator

from sqlalchemy.orm import Session

from calsync.db.base import Base, SessionLocal, engine  # noqa: F401


def get_db() -> Generator[Session, None, None]:
    """
    Get a database session.

    Yields:
        SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
