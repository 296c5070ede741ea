"""Client for the optional outbound webhook relay (external automation endpoint)."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from app.config import Settings
from app.domain.entities import NotificationEvent, RelayResult
from app.infrastructure.security import is_http_url

RELAY_SOURCE = "test-notifications"
RELAY_VERSION = "1.0.0"
DEFAULT_RELAY_TIMEOUT_MS = 10_000
_RESPONSE_BODY_LIMIT = 5_000


@dataclass(frozen=True)
class RelayConfig:
    enabled: bool = False
    webhook_url: str | None = None
    api_key: str | None = None
    bearer_token: str | None = None
    timeout_ms: int = DEFAULT_RELAY_TIMEOUT_MS

    @classmethod
    def from_settings(cls, settings: Settings) -> "RelayConfig":
        return cls(
            enabled=settings.relay_enabled,
            webhook_url=settings.relay_webhook_url,
            api_key=settings.relay_api_key,
            bearer_token=settings.relay_bearer_token,
            timeout_ms=settings.relay_timeout_ms,
        )


def build_relay_payload(event: NotificationEvent, data: dict[str, Any]) -> dict[str, Any]:
    """Return the relay request body for ``event``."""

    return {
        "eventType": event.event_type,
        "eventId": event.event_id,
        "timestamp": event.timestamp.isoformat(),
        "data": data,
        "metadata": {"source": RELAY_SOURCE, "version": RELAY_VERSION},
    }


class WebhookRelayClient:
    """POST notification events to the configured relay endpoint.

    Every outcome is reported through :class:`RelayResult`; the client never
    raises for transport failures so callers can fall back to direct delivery.
    """

    def __init__(
        self,
        config: RelayConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)

    def is_enabled(self) -> bool:
        return bool(self._config.enabled and self._config.webhook_url)

    def validate_configuration(self) -> bool:
        """Return ``True`` when the relay URL is an absolute http(s) URL."""

        if not self._config.webhook_url:
            self._logger.warning("Relay webhook URL not configured")
            return False
        if not is_http_url(self._config.webhook_url):
            self._logger.warning("Relay webhook URL must use HTTP or HTTPS")
            return False
        return True

    def authentication_headers(self) -> dict[str, str]:
        if self._config.api_key:
            return {"X-API-Key": self._config.api_key}
        if self._config.bearer_token:
            return {"Authorization": f"Bearer {self._config.bearer_token}"}
        return {}

    async def send_to_webhook(self, payload: dict[str, Any]) -> RelayResult:
        if not self._config.webhook_url:
            return RelayResult(
                success=False, duration_ms=0, error_message="Relay webhook URL not configured"
            )

        body = dict(payload)
        body["metadata"] = {"source": RELAY_SOURCE, "version": RELAY_VERSION}
        headers = {"Content-Type": "application/json", **self.authentication_headers()}
        timeout = self._config.timeout_ms / 1000
        started = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(
                    self._config.webhook_url,
                    content=json.dumps(body, default=_json_default),
                    headers=headers,
                )
        except httpx.TimeoutException:
            duration_ms = _elapsed_ms(started)
            self._logger.warning("Relay request timed out after %sms", self._config.timeout_ms)
            return RelayResult(
                success=False,
                duration_ms=duration_ms,
                error_message=f"Webhook request timed out after {self._config.timeout_ms}ms",
            )
        except httpx.HTTPError as exc:
            self._logger.warning("Relay request failed: %s", exc)
            return RelayResult(
                success=False,
                duration_ms=_elapsed_ms(started),
                error_message=str(exc) or exc.__class__.__name__,
            )

        duration_ms = _elapsed_ms(started)
        response_body = response.text[:_RESPONSE_BODY_LIMIT] if response.text else None
        if response.is_success:
            return RelayResult(
                success=True,
                duration_ms=duration_ms,
                status_code=response.status_code,
                response_body=response_body,
            )
        self._logger.warning("Relay responded with status %s", response.status_code)
        return RelayResult(
            success=False,
            duration_ms=duration_ms,
            status_code=response.status_code,
            response_body=response_body,
            error_message=f"Webhook returned status {response.status_code}",
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


__all__ = [
    "DEFAULT_RELAY_TIMEOUT_MS",
    "RELAY_SOURCE",
    "RELAY_VERSION",
    "RelayConfig",
    "WebhookRelayClient",
    "build_relay_payload",
]
