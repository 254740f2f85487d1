"""Pytest configuration and fixtures for CareBook tests."""
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carebook import models_audit, models_notification  # noqa: F401
from carebook.database import Base
from carebook.domain.notifications.schemas import SendNotification
from carebook.services.notification_queue import NotificationQueue
from carebook.services.notification_service import NotificationDispatcher


class FakeSender:
    """Channel sender that records calls and replays scripted outcomes."""

    def __init__(self, outcomes=None, default=(True, None)):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.sent = []

    async def send(self, item):
        self.sent.append(item.id)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    """Controllable replacement for utc_now."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def clock():
    """Fixed clock at 11:30 IST on a weekday."""
    return FakeClock(datetime(2025, 1, 15, 6, 0))


@pytest.fixture(scope="function")
def senders():
    return {"email": FakeSender(), "sms": FakeSender(), "push": FakeSender()}


@pytest.fixture(scope="function")
def dispatcher(senders, db_session):
    return NotificationDispatcher(
        email_sender=senders["email"],
        sms_sender=senders["sms"],
        push_sender=senders["push"],
        db=db_session,
    )


@pytest.fixture(scope="function")
def queue(db_session, dispatcher, clock):
    """Queue wired to fake senders and the fixed clock."""
    return NotificationQueue(db_session, dispatcher, batch_size=10, max_retries=3, clock=clock)


@pytest.fixture(scope="function")
def make_request():
    """Factory fixture for valid send requests."""

    def _make(**overrides):
        data = {
            "user_id": "user-1",
            "type": "appointment_confirmed",
            "title": "Appointment Confirmed",
            "body": "Your appointment with Dr. Sharma is confirmed.",
            "channels": ["email"],
            "user_email": "patient@example.com",
        }
        data.update(overrides)
        return SendNotification(**data)

    return _make
