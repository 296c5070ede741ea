"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used when a user has no quiet-hours timezone configured",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed to call the HTTP API from a browser",
    )

    aws_region: str = Field(default="us-east-1", description="AWS region for SNS/SQS")
    sns_topic_arn_email: str | None = Field(default=None)
    sns_topic_arn_sms: str | None = Field(default=None)
    sns_topic_arn_slack: str | None = Field(default=None)
    sns_topic_arn_webhook: str | None = Field(default=None)
    notification_queue_url: str | None = Field(
        default=None,
        description="Queue that receives notification events (used by summary reports)",
    )

    relay_enabled: bool = Field(
        default=False, description="Route deliveries through the outbound webhook relay"
    )
    relay_webhook_url: str | None = Field(default=None)
    relay_api_key: str | None = Field(default=None)
    relay_bearer_token: str | None = Field(default=None)
    relay_timeout_ms: int = Field(default=10_000, gt=0)

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )

    history_retention_days: int = Field(default=90, gt=0)
    max_payload_bytes: int = Field(default=256 * 1024, gt=0)
    min_channel_budget_ms: int = Field(
        default=1_000,
        ge=0,
        description="Minimum remaining invocation time required to start a channel delivery",
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
