# app/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy; SQLite by default, PostgreSQL when DATABASE_URL points there.
All models are imported in create_tables() so one call creates every table.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, TypeDecorator, create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from app.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a thread pool
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,   # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                  # Set True to log all SQL queries (debug only)
    **_engine_kwargs(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """
    Stores aware datetimes as UTC and always hands back aware UTC values,
    including on SQLite which has no timezone support.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Naive datetime given to a UTCDateTime column")
        value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None) if dialect.name == "sqlite" else value

    def process_result_value(self, value: datetime, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.vehicle_record import VehicleRecord   # noqa

    Base.metadata.create_all(bind=bind or engine)
