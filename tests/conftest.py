"""Shared fixtures: throwaway SQLite databases and a hand-driven clock."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import create_tables
from app.services.lifecycle_service import VehicleLifecycleManager

# 10:00 at the Kolkata desk
T0 = datetime(2026, 2, 20, 4, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(clock):
    return VehicleLifecycleManager(clock=clock, tz_name="Asia/Kolkata")


@pytest.fixture
def session_factory():
    """In-memory database shared by every session (and thread) of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed database: each session gets its own connection, like separate requests."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'parking_test.db'}",
        connect_args={"check_same_thread": False},
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
