"""``chatnotify consume`` — run the notification service.

Exits with status 1 when the broker is unreachable at start-up or the
connection is lost, and 0 after SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio

import typer

from chatnotify.config import load_config
from chatnotify.logging_setup import setup_logging
from chatnotify.service import run_notification_service


def consume_cmd(
    log_level: str = typer.Option(
        None, "--log-level", help="Override LOG_LEVEL from the environment."
    ),
) -> None:
    """Consume events from notification_queue and send e-mails."""
    config = load_config()
    setup_logging(log_level or config.log_level)
    exit_code = asyncio.run(run_notification_service(config))
    raise typer.Exit(code=exit_code)
