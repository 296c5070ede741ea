"""HTTP API tests using FastAPI's test client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.application.use_cases.notifications import HistoryLedger
from app.domain.entities import ChannelResult, NotificationHistoryRecord
from app.infrastructure.database import get_db
from app.infrastructure.repositories import NotificationHistoryRepository
from app.interfaces.api.dependencies import get_notification_processor
from app.main import create_app


class StubProcessor:
    def __init__(self) -> None:
        self.events = []

    async def process(self, event, *, remaining_time_ms=None):
        self.events.append(event)
        return [
            ChannelResult(
                notification_id="n-1", channel="email", status="sent", delivery_method="direct"
            )
        ]


@pytest.fixture
def processor() -> StubProcessor:
    return StubProcessor()


@pytest.fixture
def client(session, processor):
    app = create_app()

    def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notification_processor] = lambda: processor
    return TestClient(app)


def _event_body(**overrides) -> dict:
    body = {
        "eventType": "test_failure",
        "eventId": "event-1",
        "timestamp": "2024-05-01T12:00:00Z",
        "payload": {
            "projectId": "project-1",
            "triggeredBy": "user-1",
            "testCaseId": "case-1",
            "result": "fail",
            "buildNumber": 42,
        },
    }
    body.update(overrides)
    return body


def test_submit_event(client, processor) -> None:
    response = client.post("/notifications/events", json=_event_body())

    assert response.status_code == 202
    assert response.json() == {
        "eventId": "event-1",
        "results": [
            {
                "notificationId": "n-1",
                "channel": "email",
                "status": "sent",
                "deliveryMethod": "direct",
                "errorMessage": None,
            }
        ],
    }
    event = processor.events[0]
    assert event.payload.test_case_id == "case-1"
    assert event.payload.extra == {"buildNumber": 42}


def test_submit_event_rejects_unknown_type(client, processor) -> None:
    response = client.post("/notifications/events", json=_event_body(eventType="deploy"))

    assert response.status_code == 422
    assert processor.events == []


def test_preferences_defaults_and_update(client) -> None:
    response = client.get("/notifications/preferences/user-1")

    assert response.status_code == 200
    assert response.json()["events"]["test_failure"] == {
        "enabled": True,
        "channels": ["email"],
        "frequency": None,
    }

    response = client.put(
        "/notifications/preferences/user-1",
        json={
            "events": {"test_completion": {"enabled": True}},
            "quiet_hours": {"enabled": True, "start_time": "22:00", "end_time": "06:00"},
            "contacts": {"email": "Dev@Example.com"},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["events"]["test_completion"]["enabled"] is True
    assert data["events"]["test_completion"]["channels"] == ["email"]
    assert data["quiet_hours"]["start_time"] == "22:00"
    assert data["contacts"]["email"] == "dev@example.com"


def test_preferences_update_validation_error(client) -> None:
    response = client.put(
        "/notifications/preferences/user-1",
        json={"events": {"test_failure": {"channels": ["pager"]}}},
    )

    assert response.status_code == 400
    assert "Unsupported channel" in response.json()["detail"]


def test_preferences_update_rejects_invalid_timezone(client) -> None:
    response = client.put(
        "/notifications/preferences/user-1",
        json={"quiet_hours": {"enabled": True, "timezone": "UTC+30:00"}},
    )

    assert response.status_code == 400
    assert "out of range" in response.json()["detail"]


def test_template_lifecycle(client) -> None:
    payload = {
        "event_type": "test_failure",
        "channel": "sms",
        "format": "text",
        "body": "{{testName}} failed",
    }

    created = client.post("/notifications/templates", json=payload)
    duplicate = client.post("/notifications/templates", json=payload)

    assert created.status_code == 201
    assert created.json()["variables"] == ["testName"]
    assert duplicate.status_code == 409

    template_id = created.json()["template_id"]
    updated = client.put(
        f"/notifications/templates/{template_id}", json={"body": "{{testName}} broke"}
    )
    assert updated.status_code == 200
    assert updated.json()["body"] == "{{testName}} broke"

    listed = client.get("/notifications/templates", params={"channel": "sms"})
    assert [item["template_id"] for item in listed.json()] == [template_id]

    missing = client.put("/notifications/templates/missing", json={"body": "x"})
    assert missing.status_code == 404

    invalid = client.post("/notifications/templates", json={**payload, "channel": "fax"})
    assert invalid.status_code == 400


def test_history_endpoints(client, session) -> None:
    ledger = HistoryLedger(NotificationHistoryRepository(session))
    stored = [
        ledger.record(
            NotificationHistoryRecord(
                notification_id=None,
                user_id="user-1",
                event_type="test_failure",
                event_id=f"event-{index}",
                channel="email",
                delivery_method="direct",
                delivery_status="sent",
                recipient="dev@example.com",
            )
        )
        for index in range(3)
    ]

    page = client.get("/notifications/history", params={"user_id": "user-1", "limit": 2})
    assert page.status_code == 200
    assert len(page.json()["items"]) == 2
    assert page.json()["next_token"]

    record = client.get(f"/notifications/history/{stored[0].notification_id}")
    assert record.status_code == 200
    assert record.json()["event_id"] == "event-0"

    assert client.get("/notifications/history/missing").status_code == 404
    assert (
        client.get("/notifications/history", params={"delivery_status": "lost"}).status_code
        == 400
    )
    assert client.get("/notifications/history", params={"limit": 500}).status_code == 422
