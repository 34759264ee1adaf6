"""SMTP submission transport backed by aiosmtplib."""

from __future__ import annotations

import asyncio
import logging
from email.message import EmailMessage

import aiosmtplib

from chatnotify.config import SmtpSettings
from chatnotify.mail.message import build_message

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


class MailConfigError(ValueError):
    """Raised when SMTP settings are present but unusable."""


class MailDeliveryError(RuntimeError):
    """Raised when the server does not accept the message for the recipient."""


class SmtpMailTransport:
    """Sends notifications through an authenticated, encrypted SMTP session.

    Parameters
    ----------
    settings:
        Server address and credentials.  The login user is also the
        ``From`` address.
    timeout:
        Seconds allowed for each network operation of one submission.

    Raises
    ------
    MailConfigError
        If the host, user or password is empty or the port is not positive.
    """

    def __init__(self, settings: SmtpSettings, *, timeout: float = 30.0) -> None:
        problems = [
            name
            for name, ok in (
                ("SMTP_HOST", bool(settings.host.strip())),
                ("SMTP_PORT", settings.port > 0),
                ("SMTP_USER", bool(settings.user.strip())),
                ("SMTP_PASSWORD", bool(settings.password)),
            )
            if not ok
        ]
        if problems:
            raise MailConfigError(f"invalid value for {', '.join(problems)}")
        self._settings = settings
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return True

    @property
    def sender(self) -> str:
        return self._settings.user

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        try:
            message = build_message(self._settings.user, to, subject, body)
            await self._submit(message, to)
        except (
            MailDeliveryError,
            ValueError,
            aiosmtplib.SMTPException,
            OSError,
            asyncio.TimeoutError,
        ) as exc:
            logger.error("SMTP error sending to %s: %s", to, exc)
            return False
        logger.info("Email sent successfully to %s", to)
        return True

    async def _submit(self, message: EmailMessage, to: str) -> None:
        implicit_tls = self._settings.port == IMPLICIT_TLS_PORT
        errors, response = await aiosmtplib.send(
            message,
            sender=self._settings.user,
            recipients=[to],
            hostname=self._settings.host,
            port=self._settings.port,
            username=self._settings.user,
            password=self._settings.password,
            use_tls=implicit_tls,
            start_tls=not implicit_tls,
            timeout=self._timeout,
        )
        if errors:
            raise MailDeliveryError(f"recipient refused: {errors}")
        logger.debug("SMTP server response: %s", response)

    def __repr__(self) -> str:
        return f"SmtpMailTransport(host={self._settings.host!r}, port={self._settings.port})"
