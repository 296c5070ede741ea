"""Shared fixtures for the notification service tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from app.domain.entities import NotificationEvent, NotificationEventPayload
from app.domain.errors import PublishError
from app.infrastructure.database import build_engine, initialize_database


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_event():
    """Return a factory building notification events with sensible defaults."""

    def _make_event(event_type: str = "test_failure", **payload_overrides) -> NotificationEvent:
        payload = {
            "project_id": "project-1",
            "triggered_by": "user-1",
            "execution_id": "exec-1",
            "test_case_id": "case-1",
            "status": "completed",
            "result": "fail",
            "duration": 1200,
            "error_message": "Assertion failed",
        }
        payload.update(payload_overrides)
        return NotificationEvent(
            event_type=event_type,
            event_id="event-1",
            timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            payload=NotificationEventPayload(**payload),
        )

    return _make_event


class RecordingPublisher:
    """Publisher double that records calls and fails a configurable number of times."""

    def __init__(self, *, failures: int = 0, message_id: str | None = "msg-1") -> None:
        self.calls: list[dict] = []
        self.failures = failures
        self.message_id = message_id

    async def publish(self, *, target, message, subject=None, attributes=None):
        self.calls.append(
            {
                "target": target,
                "message": message,
                "subject": subject,
                "attributes": dict(attributes or {}),
            }
        )
        if self.failures > 0:
            self.failures -= 1
            raise PublishError("Service unavailable")
        return self.message_id


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_publisher():
    return RecordingPublisher
