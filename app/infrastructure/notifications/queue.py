"""Publish notification events to the processing queue (SQS)."""

from __future__ import annotations

import json
import logging
from typing import Any

import aioboto3

from app.domain.entities import NotificationEvent

from .serialization import serialize_event

logger = logging.getLogger(__name__)


class NotificationQueuePublisher:
    """Send serialized events to the queue consumed by the worker."""

    def __init__(self, *, queue_url: str, region: str, session: Any | None = None) -> None:
        self._queue_url = queue_url
        self._region = region
        self._session = session

    def _get_session(self) -> Any:
        if self._session is None:
            self._session = aioboto3.Session(region_name=self._region)
        return self._session

    async def publish_event(self, event: NotificationEvent) -> str | None:
        body = json.dumps(serialize_event(event), separators=(",", ":"))
        async with self._get_session().client("sqs") as sqs:
            response = await sqs.send_message(
                QueueUrl=self._queue_url,
                MessageBody=body,
                MessageAttributes={
                    "eventType": {"DataType": "String", "StringValue": event.event_type}
                },
            )
        message_id = response.get("MessageId")
        logger.info("Queued %s event %s as message %s", event.event_type, event.event_id, message_id)
        return message_id


__all__ = ["NotificationQueuePublisher"]
