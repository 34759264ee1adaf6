"""Simulated transport used when SMTP is not configured."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 1.5


class SimulatedMailTransport:
    """Logs what would be sent, waits a fixed delay, always succeeds.

    No network I/O is attempted.  The delay stands in for submission latency
    so the pipeline's timing stays realistic in development.
    """

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._delay_seconds = delay_seconds
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return False

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        logger.info("SMTP not configured - simulating email to %s: %s", to, subject)
        await self._sleep(self._delay_seconds)
        logger.info("Email simulated successfully (SMTP not configured)")
        return True

    def __repr__(self) -> str:
        return f"SimulatedMailTransport(delay_seconds={self._delay_seconds})"
