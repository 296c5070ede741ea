"""Direct delivery of rendered notifications to email, SMS, Slack and webhooks."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.config import Settings
from app.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_SLACK,
    CHANNEL_SMS,
    CHANNEL_WEBHOOK,
    DELIVERY_STATUS_FAILED,
    DELIVERY_STATUS_SENT,
    FORMAT_JSON,
    DeliveryOutcome,
    NotificationEvent,
    RenderedNotification,
    RetryConfig,
)

from .publishers import ChannelPublisher, SendGridEmailPublisher, SnsPublisher
from .retry import DEFAULT_DELIVERY_RETRY, RetryHandler

DEFAULT_MAX_PAYLOAD_BYTES = 256 * 1024
DEFAULT_EMAIL_SUBJECT = "Test Execution Notification"


@dataclass(frozen=True)
class ChannelDeliveryConfig:
    """Publish targets and limits for direct delivery."""

    topic_arns: Mapping[str, str | None] = field(default_factory=dict)
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    retry: RetryConfig = DEFAULT_DELIVERY_RETRY

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChannelDeliveryConfig":
        return cls(
            topic_arns={
                CHANNEL_EMAIL: settings.sns_topic_arn_email,
                CHANNEL_SMS: settings.sns_topic_arn_sms,
                CHANNEL_SLACK: settings.sns_topic_arn_slack,
                CHANNEL_WEBHOOK: settings.sns_topic_arn_webhook,
            },
            max_payload_bytes=settings.max_payload_bytes,
        )


@dataclass(frozen=True)
class _OutboundMessage:
    target: str
    message: str
    subject: str | None
    attributes: dict[str, str]


class ChannelDeliveryAdapter:
    """Send a rendered notification through a managed publish call.

    Transient publish errors are retried with exponential backoff. Oversized
    payloads and missing recipients or publish targets fail without any
    publish attempt.
    """

    def __init__(
        self,
        config: ChannelDeliveryConfig,
        publisher: ChannelPublisher,
        *,
        email_publisher: ChannelPublisher | None = None,
        retry_handler: RetryHandler | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._publisher = publisher
        self._email_publisher = email_publisher
        self._retry_handler = retry_handler or RetryHandler()
        self._logger = logger or logging.getLogger(__name__)

    async def send(
        self,
        channel: str,
        rendered: RenderedNotification,
        event: NotificationEvent,
        recipient: str | None,
    ) -> DeliveryOutcome:
        if not recipient:
            return self._failed(f"No recipient configured for channel {channel}")

        try:
            outbound, publisher = self._prepare(channel, rendered, event, recipient)
        except ValueError as exc:
            return self._failed(str(exc))

        payload_size = len(outbound.message.encode("utf-8"))
        if payload_size > self._config.max_payload_bytes:
            return self._failed(
                f"Payload size {payload_size} bytes exceeds limit of "
                f"{self._config.max_payload_bytes} bytes"
            )

        async def _publish() -> str | None:
            return await publisher.publish(
                target=outbound.target,
                message=outbound.message,
                subject=outbound.subject,
                attributes=outbound.attributes,
            )

        result = await self._retry_handler.execute_with_retry(_publish, self._config.retry)
        if result.success:
            self._logger.info(
                "Delivered %s notification for event %s after %s attempt(s)",
                channel,
                event.event_id,
                result.attempt_count,
            )
            return DeliveryOutcome(
                success=True,
                status=DELIVERY_STATUS_SENT,
                attempt_count=result.attempt_count,
                message_id=result.result,
            )
        error = str(result.error) if result.error else "Unknown error"
        return DeliveryOutcome(
            success=False,
            status=DELIVERY_STATUS_FAILED,
            attempt_count=result.attempt_count,
            error=error,
        )

    def _prepare(
        self,
        channel: str,
        rendered: RenderedNotification,
        event: NotificationEvent,
        recipient: str,
    ) -> tuple[_OutboundMessage, ChannelPublisher]:
        attributes = {
            "channel": channel,
            "recipient": recipient,
            "eventType": event.event_type,
            "format": rendered.format,
        }

        if channel == CHANNEL_EMAIL:
            subject = rendered.subject or DEFAULT_EMAIL_SUBJECT
            attributes["subject"] = subject
            if self._email_publisher is not None:
                message = _OutboundMessage(recipient, rendered.body, subject, attributes)
                return message, self._email_publisher
            body = rendered.body
        elif channel == CHANNEL_SMS:
            subject = None
            body = rendered.body
        elif channel == CHANNEL_SLACK:
            subject = None
            body = json.dumps({"blocks": build_slack_blocks(rendered.body)})
        elif channel == CHANNEL_WEBHOOK:
            subject = None
            body = json.dumps(build_webhook_payload(rendered, event), default=str)
        else:
            raise ValueError(f"Unsupported channel: {channel}")

        topic_arn = self._config.topic_arns.get(channel)
        if not topic_arn:
            raise ValueError(f"No publish target configured for channel {channel}")
        return _OutboundMessage(topic_arn, body, subject, attributes), self._publisher

    def _failed(self, error: str) -> DeliveryOutcome:
        self._logger.warning("Delivery failed without publishing: %s", error)
        return DeliveryOutcome(
            success=False,
            status=DELIVERY_STATUS_FAILED,
            attempt_count=0,
            error=error,
        )


def build_slack_blocks(body: str) -> list[Any]:
    """Return Block Kit blocks for ``body``.

    Bodies that are not a JSON list of blocks are wrapped in one section.
    """

    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("blocks"), list):
        return parsed["blocks"]
    if isinstance(parsed, list):
        return parsed
    return [{"type": "section", "text": {"type": "mrkdwn", "text": body}}]


def build_webhook_payload(
    rendered: RenderedNotification, event: NotificationEvent
) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if rendered.format == FORMAT_JSON:
        try:
            parsed = json.loads(rendered.body)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            payload.update(parsed)
    if not payload:
        payload["content"] = rendered.body
    payload.setdefault("eventType", event.event_type)
    payload.setdefault("eventId", event.event_id)
    payload.setdefault("timestamp", event.timestamp.isoformat())
    return payload


def build_channel_adapter(settings: Settings) -> ChannelDeliveryAdapter:
    """Create the adapter wired to SNS and, when configured, SendGrid."""

    email_publisher = None
    if settings.sendgrid_api_key and settings.sendgrid_sender:
        email_publisher = SendGridEmailPublisher(
            api_key=settings.sendgrid_api_key, sender=settings.sendgrid_sender
        )
    return ChannelDeliveryAdapter(
        ChannelDeliveryConfig.from_settings(settings),
        SnsPublisher(region=settings.aws_region),
        email_publisher=email_publisher,
    )


__all__ = [
    "DEFAULT_EMAIL_SUBJECT",
    "DEFAULT_MAX_PAYLOAD_BYTES",
    "ChannelDeliveryAdapter",
    "ChannelDeliveryConfig",
    "build_channel_adapter",
    "build_slack_blocks",
    "build_webhook_payload",
]
