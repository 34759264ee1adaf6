"""Mail transports — SMTP submission or a simulated, network-free stand-in.

All transports implement the ``MailTransport`` protocol.  The strategy is
chosen once, at start-up, by ``build_mail_transport``:

1. **SMTP** (``SmtpMailTransport``): all four SMTP settings present and
   well-formed.  Authenticated STARTTLS submission via aiosmtplib.
2. **Simulated** (``SimulatedMailTransport``): anything else.  Logs the
   notification, waits a fixed delay and reports success.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from chatnotify.config import NotifyConfig
from chatnotify.mail.simulated import SimulatedMailTransport
from chatnotify.mail.smtp import MailConfigError, MailDeliveryError, SmtpMailTransport

logger = logging.getLogger(__name__)


@runtime_checkable
class MailTransport(Protocol):
    """Protocol that every mail transport must implement."""

    @property
    def is_configured(self) -> bool:
        """``True`` when backed by a real submission server."""
        ...

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """Deliver one plain-text e-mail; ``False`` on failure. Never raises."""
        ...


def build_mail_transport(config: NotifyConfig) -> MailTransport:
    """Select the transport strategy for the lifetime of the process."""
    smtp = config.smtp
    if smtp is None:
        logger.warning(
            "SMTP credentials not found in environment "
            "(set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD); "
            "email sending will be simulated"
        )
        return SimulatedMailTransport(delay_seconds=config.simulated_send_delay_seconds)

    try:
        transport = SmtpMailTransport(smtp)
    except MailConfigError as exc:
        logger.error("SMTP configuration invalid (%s); email sending will be simulated", exc)
        return SimulatedMailTransport(delay_seconds=config.simulated_send_delay_seconds)

    logger.info("SMTP configured: %s:%d as %s", smtp.host, smtp.port, smtp.user)
    return transport


__all__ = [
    "MailConfigError",
    "MailDeliveryError",
    "MailTransport",
    "SimulatedMailTransport",
    "SmtpMailTransport",
    "build_mail_transport",
]
