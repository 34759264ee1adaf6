"""Service configuration — env-driven, read once at start-up.

Centralized config using pydantic-settings. Reads from a .env file and the
plain environment variables the chat deployment already exports
(``RABBITMQ_HOST``, ``SMTP_HOST``, ``TEST_EMAIL_RECIPIENT`` ...).

The resulting ``NotifyConfig`` is frozen and passed to components
explicitly; nothing below the CLI reads ``os.environ`` directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrokerSettings(BaseModel):
    """Connection parameters for the RabbitMQ broker."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = 5672
    user: str = "chatuser"
    password: str = "chatpass"
    vhost: str = "/"


class SmtpSettings(BaseModel):
    """Submission server parameters. Presence alone does not imply validity."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int
    user: str
    password: str


class NotifyConfig(BaseSettings):
    """Notification service configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RABBITMQ_HOST=rabbitmq
        export SMTP_HOST=smtp.gmail.com SMTP_PORT=587
        export SMTP_USER=bot@example.com SMTP_PASSWORD=app-password
        export TEST_EMAIL_RECIPIENT=qa@example.com

    Or via .env file::

        RABBITMQ_HOST=rabbitmq
        LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Broker
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_user: str = "chatuser"
    rabbitmq_password: str = "chatpass"
    rabbitmq_vhost: str = "/"

    # SMTP — all four must be set to leave simulated mode
    smtp_host: str | None = None
    smtp_port: int | None = None
    smtp_user: str | None = None
    smtp_password: str | None = None

    # Redirects every message.created notification to one mailbox
    test_email_recipient: str = ""

    # Runtime
    log_level: str = "INFO"
    receive_timeout_seconds: float = 5.0
    simulated_send_delay_seconds: float = 1.5

    @field_validator("smtp_port", mode="before")
    @classmethod
    def _lenient_port(cls, value: Any) -> Any:
        # An unparsable port is kept as 0 so the transport reports itself
        # unconfigured instead of the whole service failing validation.
        if value is None or isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return 0

    @property
    def broker(self) -> BrokerSettings:
        """Broker parameters as a standalone frozen value."""
        return BrokerSettings(
            host=self.rabbitmq_host,
            port=self.rabbitmq_port,
            user=self.rabbitmq_user,
            password=self.rabbitmq_password,
            vhost=self.rabbitmq_vhost,
        )

    @property
    def smtp(self) -> SmtpSettings | None:
        """SMTP parameters, or ``None`` when any of the four is missing."""
        if (
            self.smtp_host is None
            or self.smtp_port is None
            or self.smtp_user is None
            or self.smtp_password is None
        ):
            return None
        return SmtpSettings(
            host=self.smtp_host,
            port=self.smtp_port,
            user=self.smtp_user,
            password=self.smtp_password,
        )


def load_config(**overrides: Any) -> NotifyConfig:
    """Build the process-wide configuration from the environment."""
    return NotifyConfig(**overrides)
