"""Managed publish targets used by the channel delivery adapter."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Protocol

import aioboto3
from anyio import to_thread

from app.domain.errors import PublishError
from app.infrastructure.email import send_email

logger = logging.getLogger(__name__)

# SNS rejects subjects longer than this.
SNS_SUBJECT_MAX_LENGTH = 100


class ChannelPublisher(Protocol):
    """Anything able to hand a rendered message to a delivery service."""

    async def publish(
        self,
        *,
        target: str,
        message: str,
        subject: str | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> str | None:
        """Publish ``message`` to ``target`` and return the provider message id."""


class SnsPublisher:
    """Publish messages to SNS topics through an aioboto3 session."""

    def __init__(self, *, region: str, session: Any | None = None) -> None:
        self._region = region
        self._session = session

    def _get_session(self) -> Any:
        if self._session is None:
            self._session = aioboto3.Session(region_name=self._region)
        return self._session

    async def publish(
        self,
        *,
        target: str,
        message: str,
        subject: str | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> str | None:
        params: dict[str, Any] = {"TopicArn": target, "Message": message}
        if subject:
            params["Subject"] = subject[:SNS_SUBJECT_MAX_LENGTH]
        if attributes:
            params["MessageAttributes"] = {
                key: {"DataType": "String", "StringValue": value}
                for key, value in attributes.items()
                if value
            }

        async with self._get_session().client("sns") as sns:
            response = await sns.publish(**params)
        message_id = response.get("MessageId")
        logger.debug("Published message %s to %s", message_id, target)
        return message_id


class SendGridEmailPublisher:
    """Send email channel messages through SendGrid instead of SNS.

    ``target`` is the recipient address. The blocking SendGrid client runs in
    a worker thread.
    """

    def __init__(self, *, api_key: str, sender: str) -> None:
        self._api_key = api_key
        self._sender = sender

    async def publish(
        self,
        *,
        target: str,
        message: str,
        subject: str | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> str | None:
        html = (attributes or {}).get("format", "html") == "html"
        accepted = await to_thread.run_sync(
            partial(
                send_email,
                subject or "",
                message,
                target,
                api_key=self._api_key,
                sender=self._sender,
                html=html,
            )
        )
        if not accepted:
            raise PublishError("SendGrid did not accept the email")
        return None


__all__ = [
    "ChannelPublisher",
    "SNS_SUBJECT_MAX_LENGTH",
    "SendGridEmailPublisher",
    "SnsPublisher",
]
