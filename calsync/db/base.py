# calsync/db/base.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from calsync.core.config import settings

db_url = str(settings.SQLALCHEMY_DATABASE_URI)

if db_url in ("sqlite://", "sqlite:///:memory:"):
    # One shared in-memory database for every session
    engine = create_engine(
        db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
elif db_url.startswith("sqlite"):
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
else:
    engine = create_engine(db_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
