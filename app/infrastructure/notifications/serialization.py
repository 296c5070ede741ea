"""Convert notification events into their camelCase JSON wire form."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any

from app.domain.entities import NotificationEvent, NotificationEventPayload

_PAYLOAD_FIELDS = {
    "project_id": "projectId",
    "triggered_by": "triggeredBy",
    "execution_id": "executionId",
    "test_case_id": "testCaseId",
    "test_suite_id": "testSuiteId",
    "status": "status",
    "result": "result",
    "duration": "duration",
    "error_message": "errorMessage",
    "screenshots": "screenshots",
    "report_data": "reportData",
    "recipient_email": "recipientEmail",
    "recipient_phone": "recipientPhone",
    "slack_webhook": "slackWebhook",
    "webhook_url": "webhookUrl",
}


def to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def serialize_payload(payload: NotificationEventPayload) -> dict[str, Any]:
    """Return the wire representation of ``payload``, omitting unset fields."""

    data: dict[str, Any] = {}
    for attribute, key in _PAYLOAD_FIELDS.items():
        value = getattr(payload, attribute)
        if value is None or value == ():
            continue
        data[key] = _to_wire(value)
    for key, value in payload.extra.items():
        data.setdefault(key, _to_wire(value))
    return data


def serialize_event(event: NotificationEvent) -> dict[str, Any]:
    return {
        "eventType": event.event_type,
        "eventId": event.event_id,
        "timestamp": event.timestamp.isoformat(),
        "payload": serialize_payload(event.payload),
    }


def _to_wire(value: Any) -> Any:
    """Recursively camelCase dataclasses and turn datetimes into ISO strings."""

    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    if isinstance(value, dict):
        return {to_camel(str(key)): _to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


__all__ = ["serialize_event", "serialize_payload", "to_camel"]
