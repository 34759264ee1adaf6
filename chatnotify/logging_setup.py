"""Centralized logging configuration for the chatnotify processes.

Installs a single rich console handler on the root logger.  Library modules
only ever call ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

DEFAULT_LOG_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str | int = "INFO", *, log_format: str = DEFAULT_LOG_FORMAT) -> None:
    """Configure the root logger. Safe to call more than once."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level if isinstance(level, int) else level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(handler)

    # aio-pika and aiormq are chatty at INFO about frame-level details.
    logging.getLogger("aiormq").setLevel(logging.WARNING)
    logging.getLogger("aio_pika").setLevel(logging.WARNING)
