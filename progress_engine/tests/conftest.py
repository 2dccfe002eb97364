"""
Shared fixtures: an in-memory database and a fixed clock.
"""
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from progress_engine.database import Base
from progress_engine import models  # noqa: F401


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def now():
    """Wednesday 2024-01-10, noon local wall-clock time"""
    return datetime(2024, 1, 10, 12, 0, 0)


@pytest.fixture
def today(now):
    return now.date()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def utc_timezone(monkeypatch):
    """Pin the configured local timezone to UTC"""
    monkeypatch.setenv("PROGRESS_ENGINE_TIMEZONE", "UTC")
