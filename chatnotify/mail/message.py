"""RFC 5322 message construction for plain-text notifications."""

from __future__ import annotations

from datetime import datetime
from email.message import EmailMessage
from email.utils import format_datetime


def _single_line(value: str) -> str:
    # Header values may not carry CR or LF; user-supplied names can.
    return " ".join(part.strip() for part in value.splitlines() if part.strip())


def build_message(
    sender: str,
    to: str,
    subject: str,
    body: str,
    *,
    date: datetime | None = None,
) -> EmailMessage:
    """Build a message with Date, To, From and Subject headers and a UTF-8 text body.

    Line breaks inside header values are folded into single spaces.
    """
    message = EmailMessage()
    message["Date"] = format_datetime(date or datetime.now().astimezone())
    message["To"] = _single_line(to)
    message["From"] = _single_line(sender)
    message["Subject"] = _single_line(subject)
    message.set_content(body, subtype="plain", charset="utf-8")
    return message
