"""Delivery transports for the notification pipeline."""

from .channels import (
    DEFAULT_EMAIL_SUBJECT,
    ChannelDeliveryAdapter,
    ChannelDeliveryConfig,
    build_channel_adapter,
    build_slack_blocks,
    build_webhook_payload,
)
from .publishers import ChannelPublisher, SendGridEmailPublisher, SnsPublisher
from .queue import NotificationQueuePublisher
from .relay import RelayConfig, WebhookRelayClient, build_relay_payload
from .retry import (
    DEFAULT_DELIVERY_RETRY,
    RetryHandler,
    calculate_backoff_delay,
    execute_with_retry,
)
from .serialization import serialize_event, serialize_payload

__all__ = [
    "DEFAULT_EMAIL_SUBJECT",
    "ChannelDeliveryAdapter",
    "ChannelDeliveryConfig",
    "build_channel_adapter",
    "build_slack_blocks",
    "build_webhook_payload",
    "ChannelPublisher",
    "SendGridEmailPublisher",
    "SnsPublisher",
    "NotificationQueuePublisher",
    "RelayConfig",
    "WebhookRelayClient",
    "build_relay_payload",
    "DEFAULT_DELIVERY_RETRY",
    "RetryHandler",
    "calculate_backoff_delay",
    "execute_with_retry",
    "serialize_event",
    "serialize_payload",
]
