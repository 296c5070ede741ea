"""Queue worker entry point: processes a batch of notification event messages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

import anyio
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationProcessor,
    build_notification_processor,
)
from app.config import get_settings
from app.domain.errors import InvalidNotificationEventError
from app.infrastructure.database import get_session_factory, initialize_database
from app.infrastructure.log_config import configure_logging
from app.interfaces.api.schemas import parse_notification_event

logger = logging.getLogger(__name__)

ProcessorFactory = Callable[[Session], NotificationProcessor]


async def handle_batch(
    batch: Mapping[str, Any],
    *,
    session_factory: Callable[[], Session] | None = None,
    processor_factory: ProcessorFactory | None = None,
    remaining_time_ms: Callable[[], int] | None = None,
) -> dict[str, list[dict[str, str]]]:
    """Process every record of an SQS-style batch.

    Returns the ids of messages that must be redelivered: poison messages that
    cannot be parsed and messages whose processing raised. Per-channel
    delivery failures are recorded in the history and do not count.
    """

    records = batch.get("Records") or []
    session_factory = session_factory or get_session_factory()
    processor_factory = processor_factory or build_notification_processor
    failures: list[dict[str, str]] = []
    logger.info("Processing %s message(s)", len(records))

    for record in records:
        message_id = str(record.get("messageId") or "")
        try:
            event = parse_notification_event(record.get("body") or "", message_id=message_id)
        except InvalidNotificationEventError as exc:
            logger.error("Rejected message %s: %s", message_id, exc)
            failures.append({"itemIdentifier": message_id})
            continue

        session = session_factory()
        try:
            processor = processor_factory(session)
            await processor.process(event, remaining_time_ms=remaining_time_ms)
        except Exception:
            logger.exception("Failed to process message %s (event %s)", message_id, event.event_id)
            failures.append({"itemIdentifier": message_id})
        finally:
            session.close()

    return {"batchItemFailures": failures}


def handler(event: Mapping[str, Any], context: Any = None) -> dict[str, list[dict[str, str]]]:
    """Synchronous entry point for queue-triggered invocations."""

    configure_logging(get_settings().log_level)
    initialize_database()
    remaining = getattr(context, "get_remaining_time_in_millis", None)
    return anyio.run(partial(handle_batch, event, remaining_time_ms=remaining))


__all__ = ["handle_batch", "handler"]
