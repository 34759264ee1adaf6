"""Event publisher — fire-and-forget domain events from the chat API.

Publishing is best-effort: a broker outage degrades notifications but never
fails the request that produced the event.  The caller only ever sees a
boolean result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

from chatnotify.broker.connection import (
    BROKER_ERRORS,
    BrokerConnectionError,
    Connector,
    close_quietly,
    open_channel,
)
from chatnotify.broker.state_machine import ConnectionStateMachine
from chatnotify.broker.topology import EXCHANGE_NAME, JSON_CONTENT_TYPE
from chatnotify.config import BrokerSettings
from chatnotify.core.codec import canonical_json_bytes, preview
from chatnotify.models.connection import ConnectionState
from chatnotify.models.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publishes JSON events to the ``chat_events`` topic exchange.

    One publisher owns one connection and one channel.  Concurrent
    ``publish`` calls from tasks sharing the instance are serialised, since
    the channel must not interleave frames from two publishes.

    Parameters
    ----------
    settings:
        Broker address and credentials.
    connector:
        Coroutine that opens the AMQP connection.  Defaults to
        ``aio_pika.connect``; tests pass an in-memory fake.
    exchange_name:
        Name of the topic exchange to declare and publish to.
    """

    def __init__(
        self,
        settings: BrokerSettings,
        *,
        connector: Connector = aio_pika.connect,
        exchange_name: str = EXCHANGE_NAME,
    ) -> None:
        self._settings = settings
        self._connector = connector
        self._exchange_name = exchange_name
        self._state = ConnectionStateMachine("publisher")
        self._lock = asyncio.Lock()
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None
        self._closing = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state.state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the connection and declare the exchange.

        Returns ``False`` (and stays usable as a no-op publisher) when the
        broker is unreachable.  Calling again after a failure or a lost
        connection retries; calling while connected is a no-op.
        """
        if self._state.is_connected:
            return True
        if self._state.state == ConnectionState.FAILED:
            await self._reset()

        self._state.transition(ConnectionState.CONNECTING)
        try:
            self._connection, self._channel, self._exchange = await open_channel(
                self._settings,
                connector=self._connector,
                exchange_name=self._exchange_name,
            )
        except BrokerConnectionError as exc:
            logger.warning(
                "RabbitMQ not connected, events will not be published: %s", exc
            )
            self._state.transition(ConnectionState.FAILED)
            return False

        self._closing = False
        self._connection.close_callbacks.add(self._on_connection_closed)
        self._state.transition(ConnectionState.BOUND)
        return True

    async def close(self) -> None:
        """Close the channel and connection."""
        if self._state.state == ConnectionState.DISCONNECTED:
            return
        await self._reset()

    async def _reset(self) -> None:
        self._closing = True
        await close_quietly(self._connection)
        self._connection = self._channel = self._exchange = None
        self._state.transition(ConnectionState.DISCONNECTED)

    def _on_connection_closed(self, sender: Any, exc: BaseException | None = None, *_: Any) -> None:
        if self._closing or not self._state.is_connected:
            return
        logger.warning("RabbitMQ connection lost, events will not be published: %s", exc)
        self._state.transition(ConnectionState.FAILED)

    async def __aenter__(self) -> EventPublisher:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(self, routing_key: str, payload: dict[str, Any]) -> bool:
        """Publish *payload* as a persistent JSON message.

        Never raises and never retries: failures are logged and reported
        through the return value.
        """
        if not self._state.is_connected or self._exchange is None:
            logger.warning(
                "RabbitMQ not connected; dropping %s event", routing_key
            )
            return False

        try:
            body = canonical_json_bytes(payload)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Failed to serialise %s event payload: %s", routing_key, exc
            )
            return False

        message = aio_pika.Message(
            body=body,
            content_type=JSON_CONTENT_TYPE,
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
        )

        async with self._lock:
            try:
                await self._exchange.publish(message, routing_key=routing_key)
            except BROKER_ERRORS as exc:
                logger.warning("Failed to publish %s event: %s", routing_key, exc)
                return False

        logger.info("Published event: %s -> %s", routing_key, preview(body))
        return True

    async def publish_event(self, event: DomainEvent) -> bool:
        """Publish a typed event under its own routing key."""
        return await self.publish(event.routing_key.value, event.to_payload())

    def __repr__(self) -> str:
        return (
            f"EventPublisher(host={self._settings.host!r}, "
            f"exchange={self._exchange_name!r}, state={self._state.state.value})"
        )
