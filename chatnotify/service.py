"""Notification service — wires the consumer, dispatcher and mail transport.

Start-up is fail-fast: without the broker the service has nothing to do, so
a failed handshake exits with status 1.  The producer side makes the
opposite choice (see ``EventPublisher``).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

import aio_pika

from chatnotify.broker.connection import Connector
from chatnotify.broker.consumer import EventConsumer
from chatnotify.config import NotifyConfig
from chatnotify.mail import MailTransport, build_mail_transport
from chatnotify.routing.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BROKER_UNAVAILABLE = 1


def build_consumer(
    config: NotifyConfig,
    *,
    transport: MailTransport | None = None,
    connector: Connector = aio_pika.connect,
) -> EventConsumer:
    """Assemble the consumer and its collaborators from *config*."""
    if transport is None:
        transport = build_mail_transport(config)
    dispatcher = NotificationDispatcher(
        transport, test_recipient=config.test_email_recipient
    )
    return EventConsumer(
        config.broker,
        dispatcher,
        connector=connector,
        receive_timeout=config.receive_timeout_seconds,
    )


async def run_notification_service(
    config: NotifyConfig,
    *,
    transport: MailTransport | None = None,
    connector: Connector = aio_pika.connect,
    install_signal_handlers: bool = True,
) -> int:
    """Run the consumer until stopped; return the process exit status."""
    logger.info("Starting Notification Service...")
    consumer = build_consumer(config, transport=transport, connector=connector)

    if not await consumer.connect():
        logger.error("Failed to connect to RabbitMQ. Exiting.")
        await consumer.close()
        return EXIT_BROKER_UNAVAILABLE

    if install_signal_handlers:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            # Not available on every platform's event loop.
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signum, consumer.stop)

    try:
        stopped_cleanly = await consumer.consume_loop()
    finally:
        await consumer.close()

    return EXIT_OK if stopped_cleanly else EXIT_BROKER_UNAVAILABLE
