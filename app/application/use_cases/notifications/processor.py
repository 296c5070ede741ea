"""Delivery orchestrator: turns one notification event into per-channel deliveries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import anyio
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_SLACK,
    CHANNEL_SMS,
    CHANNEL_WEBHOOK,
    DELIVERY_METHOD_DIRECT,
    DELIVERY_METHOD_FALLBACK,
    DELIVERY_METHOD_RELAY,
    DELIVERY_STATUS_FAILED,
    DELIVERY_STATUS_SENT,
    DELIVERY_STATUS_SUPPRESSED,
    ChannelResult,
    NotificationEvent,
    NotificationHistoryRecord,
    NotificationPreferences,
    RenderedNotification,
)
from app.infrastructure.notifications import (
    ChannelDeliveryAdapter,
    RelayConfig,
    WebhookRelayClient,
    build_channel_adapter,
    build_relay_payload,
    serialize_payload,
)
from app.infrastructure.repositories import (
    NotificationHistoryRepository,
    NotificationPreferencesRepository,
    NotificationTemplateRepository,
)
from app.infrastructure.security import filter_sensitive_data, filter_sensitive_values

from .history import HistoryLedger
from .preferences import HistoryFrequencyCounter, PreferenceEvaluator
from .templates import TemplateRenderer, build_render_context

RemainingTime = Callable[[], int]


def resolve_recipient(
    event: NotificationEvent, channel: str, preferences: NotificationPreferences
) -> str | None:
    """Return the address ``channel`` should deliver to for ``event``.

    Overrides carried by the event win over the user's stored contacts.
    """

    payload = event.payload
    contacts = preferences.contacts
    if channel == CHANNEL_EMAIL:
        return payload.recipient_email or contacts.email or event.user_id
    if channel == CHANNEL_SMS:
        return payload.recipient_phone or contacts.phone_number
    if channel == CHANNEL_SLACK:
        if payload.slack_webhook:
            return payload.slack_webhook
        webhook = preferences.slack_webhook_for(event.event_type)
        return webhook.webhook_url if webhook else None
    if channel == CHANNEL_WEBHOOK:
        return payload.webhook_url or contacts.webhook_url
    return None


class NotificationProcessor:
    """Apply user policy to an event and deliver it on every allowed channel.

    Channels are delivered concurrently and each one produces exactly one
    history record, whatever its outcome. A denied event produces a single
    ``suppressed`` record instead. Errors inside a channel are recorded and
    never propagate to the caller.
    """

    def __init__(
        self,
        *,
        evaluator: PreferenceEvaluator,
        templates: NotificationTemplateRepository,
        ledger: HistoryLedger,
        channel_adapter: ChannelDeliveryAdapter,
        relay_client: WebhookRelayClient | None = None,
        renderer: TemplateRenderer | None = None,
        min_channel_budget_ms: int = 1_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._templates = templates
        self._ledger = ledger
        self._channel_adapter = channel_adapter
        self._relay_client = relay_client
        self._renderer = renderer or TemplateRenderer()
        self._min_channel_budget_ms = min_channel_budget_ms
        self._logger = logger or logging.getLogger(__name__)

    async def process(
        self,
        event: NotificationEvent,
        *,
        remaining_time_ms: RemainingTime | None = None,
    ) -> list[ChannelResult]:
        self._logger.info("Processing %s event %s", event.event_type, event.event_id)
        preferences = self._evaluator.load(event.user_id)
        decision = self._evaluator.evaluate(
            event.user_id, event.event_type, preferences=preferences
        )

        if not decision.send:
            channel = decision.channels[0] if decision.channels else CHANNEL_EMAIL
            self._logger.info(
                "Event %s suppressed for %s: %s", event.event_id, event.user_id, decision.reason
            )
            record = self._record(
                event,
                channel=channel,
                recipient=resolve_recipient(event, channel, preferences),
                method=DELIVERY_METHOD_DIRECT,
                status=DELIVERY_STATUS_SUPPRESSED,
                error=decision.reason,
            )
            return [self._to_result(record)]

        if event.is_critical:
            self._logger.info("Critical alert %s bypasses preference checks", event.event_id)

        results: list[ChannelResult | None] = [None] * len(decision.channels)
        async with anyio.create_task_group() as task_group:
            for index, channel in enumerate(decision.channels):
                task_group.start_soon(
                    self._deliver_channel,
                    event,
                    channel,
                    preferences,
                    results,
                    index,
                    remaining_time_ms,
                )
        return [result for result in results if result is not None]

    async def _deliver_channel(
        self,
        event: NotificationEvent,
        channel: str,
        preferences: NotificationPreferences,
        results: list[ChannelResult | None],
        index: int,
        remaining_time_ms: RemainingTime | None,
    ) -> None:
        if remaining_time_ms is not None:
            remaining = remaining_time_ms()
            if remaining < self._min_channel_budget_ms:
                self._logger.warning(
                    "Skipping %s delivery for event %s: %sms left, %sms required",
                    channel,
                    event.event_id,
                    remaining,
                    self._min_channel_budget_ms,
                )
                return

        recipient = resolve_recipient(event, channel, preferences)
        try:
            results[index] = await self._deliver(event, channel, recipient)
        except Exception as exc:
            self._logger.exception(
                "Unexpected error delivering %s for event %s", channel, event.event_id
            )
            results[index] = self._record_failure_safely(event, channel, recipient, exc)

    async def _deliver(
        self, event: NotificationEvent, channel: str, recipient: str | None
    ) -> ChannelResult:
        template = self._templates.get_by_event_and_channel(event.event_type, channel)
        if template is None:
            self._logger.warning("No template found for %s on %s", event.event_type, channel)
            record = self._record(
                event,
                channel=channel,
                recipient=recipient,
                method=DELIVERY_METHOD_DIRECT,
                status=DELIVERY_STATUS_FAILED,
                error=f"No template found for {event.event_type} on {channel}",
            )
            return self._to_result(record)

        rendered = self._renderer.render_notification(template, build_render_context(event))
        rendered = RenderedNotification(
            channel=rendered.channel,
            format=rendered.format,
            body=filter_sensitive_data(rendered.body),
            subject=filter_sensitive_data(rendered.subject) if rendered.subject else None,
        )

        method = DELIVERY_METHOD_DIRECT
        relay_error: str | None = None
        if self._relay_client is not None and self._relay_client.is_enabled():
            relay_result = await self._relay_client.send_to_webhook(
                build_relay_payload(event, self._relay_data(event, channel, rendered))
            )
            if relay_result.success:
                record = self._record(
                    event,
                    channel=channel,
                    recipient=recipient,
                    method=DELIVERY_METHOD_RELAY,
                    status=DELIVERY_STATUS_SENT,
                )
                return self._to_result(record)
            relay_error = relay_result.error_message
            method = DELIVERY_METHOD_FALLBACK
            self._logger.warning(
                "Relay delivery failed for %s (%s); falling back to direct delivery",
                channel,
                relay_error,
            )

        outcome = await self._channel_adapter.send(channel, rendered, event, recipient)
        error = None
        if not outcome.success:
            error = outcome.error or relay_error or "Delivery failed"
        record = self._record(
            event,
            channel=channel,
            recipient=recipient,
            method=method,
            status=outcome.status,
            error=error,
            retry_count=max(outcome.attempt_count - 1, 0),
            message_id=outcome.message_id,
        )
        return self._to_result(record)

    @staticmethod
    def _relay_data(
        event: NotificationEvent, channel: str, rendered: RenderedNotification
    ) -> dict[str, Any]:
        data = filter_sensitive_values(serialize_payload(event.payload))
        data["channel"] = channel
        data["format"] = rendered.format
        data["body"] = rendered.body
        if rendered.subject:
            data["subject"] = rendered.subject
        return data

    def _record(
        self,
        event: NotificationEvent,
        *,
        channel: str,
        recipient: str | None,
        method: str,
        status: str,
        error: str | None = None,
        retry_count: int = 0,
        message_id: str | None = None,
    ) -> NotificationHistoryRecord:
        payload = event.payload
        return self._ledger.record(
            NotificationHistoryRecord(
                notification_id=None,
                user_id=event.user_id,
                event_type=event.event_type,
                event_id=event.event_id,
                channel=channel,
                delivery_method=method,
                delivery_status=status,
                recipient=recipient or event.user_id,
                retry_count=retry_count,
                metadata={
                    "project_id": payload.project_id,
                    "execution_id": payload.execution_id,
                    "test_case_id": payload.test_case_id,
                },
                error_message=error,
                message_id=message_id,
            )
        )

    def _record_failure_safely(
        self,
        event: NotificationEvent,
        channel: str,
        recipient: str | None,
        exc: Exception,
    ) -> ChannelResult:
        error = str(exc) or exc.__class__.__name__
        try:
            record = self._record(
                event,
                channel=channel,
                recipient=recipient,
                method=DELIVERY_METHOD_DIRECT,
                status=DELIVERY_STATUS_FAILED,
                error=error,
            )
        except Exception:
            self._logger.exception(
                "Could not record failed %s delivery for event %s", channel, event.event_id
            )
            return ChannelResult(
                notification_id=None,
                channel=channel,
                status=DELIVERY_STATUS_FAILED,
                delivery_method=DELIVERY_METHOD_DIRECT,
                error_message=error,
            )
        return self._to_result(record)

    @staticmethod
    def _to_result(record: NotificationHistoryRecord) -> ChannelResult:
        return ChannelResult(
            notification_id=record.notification_id,
            channel=record.channel,
            status=record.delivery_status,
            delivery_method=record.delivery_method,
            error_message=record.error_message,
        )


def build_notification_processor(
    session: Session,
    settings: Settings | None = None,
    *,
    channel_adapter: ChannelDeliveryAdapter | None = None,
    relay_client: WebhookRelayClient | None = None,
) -> NotificationProcessor:
    """Wire a processor to the database session and the configured transports."""

    settings = settings or get_settings()
    history_repository = NotificationHistoryRepository(session)
    evaluator = PreferenceEvaluator(
        NotificationPreferencesRepository(session),
        frequency_counter=HistoryFrequencyCounter(history_repository),
        default_timezone=settings.app_timezone,
    )
    if relay_client is None:
        relay_client = WebhookRelayClient(RelayConfig.from_settings(settings))
    return NotificationProcessor(
        evaluator=evaluator,
        templates=NotificationTemplateRepository(session),
        ledger=HistoryLedger(history_repository, retention_days=settings.history_retention_days),
        channel_adapter=channel_adapter or build_channel_adapter(settings),
        relay_client=relay_client,
        min_channel_budget_ms=settings.min_channel_budget_ms,
    )


__all__ = ["NotificationProcessor", "build_notification_processor", "resolve_recipient"]
