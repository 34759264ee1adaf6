"""Shared connection handshake for the publisher and the consumer.

Both sides open exactly one connection and one channel and declare the
durable topic exchange before doing anything else.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError

from chatnotify.broker.topology import EXCHANGE_NAME, EXCHANGE_TYPE
from chatnotify.config import BrokerSettings

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[AbstractConnection]]

# Everything the broker client can raise for an unreachable or failing broker.
# ChannelInvalidStateError (a RuntimeError) is raised on a closed channel.
BROKER_ERRORS: tuple[type[BaseException], ...] = (
    AMQPError,
    ChannelInvalidStateError,
    OSError,
    asyncio.TimeoutError,
)


class BrokerConnectionError(RuntimeError):
    """Raised when the broker cannot be reached or the handshake fails."""


async def open_channel(
    settings: BrokerSettings,
    *,
    connector: Connector = aio_pika.connect,
    exchange_name: str = EXCHANGE_NAME,
    **connect_kwargs: Any,
) -> tuple[AbstractConnection, AbstractChannel, AbstractExchange]:
    """Connect, open one channel and declare the topic exchange.

    On failure the partially opened connection is closed before
    ``BrokerConnectionError`` is raised.
    """
    logger.info("Connecting to RabbitMQ at %s:%d...", settings.host, settings.port)
    try:
        connection = await connector(
            host=settings.host,
            port=settings.port,
            login=settings.user,
            password=settings.password,
            virtualhost=settings.vhost,
            **connect_kwargs,
        )
    except BROKER_ERRORS as exc:
        raise BrokerConnectionError(
            f"cannot connect to {settings.host}:{settings.port}: {exc}"
        ) from exc

    try:
        channel = await connection.channel()
        exchange = await channel.declare_exchange(
            exchange_name,
            EXCHANGE_TYPE,
            durable=True,
            auto_delete=False,
        )
    except BROKER_ERRORS as exc:
        await close_quietly(connection)
        raise BrokerConnectionError(
            f"failed to declare exchange {exchange_name!r}: {exc}"
        ) from exc

    logger.info("Connected to RabbitMQ; exchange %r declared", exchange_name)
    return connection, channel, exchange


async def close_quietly(connection: AbstractConnection | None) -> None:
    """Close *connection*, logging instead of raising on broker errors."""
    if connection is None or connection.is_closed:
        return
    try:
        await connection.close()
    except BROKER_ERRORS as exc:
        logger.warning("Error while closing broker connection: %s", exc)
