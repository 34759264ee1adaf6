"""Event consumer — the notification service's receive/process loop.

Lifecycle
---------
``connect()`` walks the connection state machine through
``connecting -> bound -> consuming``: connection, channel, exchange, the
durable ``notification_queue``, one exact-key binding per routing key, and
finally a consume request.  Any failure lands in ``failed``; the handshake
is never retried.

Delivery semantics
------------------
The consume request uses ``no_ack=True``: the broker forgets a message the
moment it is handed to this process.  An event whose handler fails, or
which is in flight when the process dies, is lost and will not be
redelivered.  Notifications are best-effort.

Prefetch limits do not apply to no-ack consumers, so the broker pushes its
whole backlog straight away.  Deliveries wait in an unbounded in-process
inbox until ``consume_loop`` reaches them; if the process dies, every
buffered event is lost along with the one being handled.

``consume_loop()`` handles one event at a time.  Each iteration waits up to
``receive_timeout`` seconds; a timeout is normal and only logs a heartbeat.
No error raised while processing a single event escapes the loop.  Losing
the broker connection ends it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractIncomingMessage,
    AbstractQueue,
)

from chatnotify.broker.connection import (
    BROKER_ERRORS,
    BrokerConnectionError,
    Connector,
    close_quietly,
    open_channel,
)
from chatnotify.broker.state_machine import ConnectionStateMachine
from chatnotify.broker.topology import BINDING_KEYS, EXCHANGE_NAME, QUEUE_NAME
from chatnotify.config import BrokerSettings
from chatnotify.models.connection import ConnectionState
from chatnotify.models.events import EventDecodeError, UnknownEvent, decode_event

if TYPE_CHECKING:
    from chatnotify.routing.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

DEFAULT_RECEIVE_TIMEOUT = 5.0

# Placed on the inbox when the broker connection goes away.
_CONNECTION_LOST = object()


class EventConsumer:
    """Binds ``notification_queue`` and feeds deliveries to the dispatcher.

    Parameters
    ----------
    settings:
        Broker address and credentials.
    dispatcher:
        Renders and sends the notification for each decoded event.
    connector:
        Coroutine that opens the AMQP connection (``aio_pika.connect``).
    queue_name:
        Durable queue to declare, bind and consume from.
    receive_timeout:
        Seconds ``consume_loop`` waits for a delivery before logging a
        heartbeat and waiting again.
    """

    def __init__(
        self,
        settings: BrokerSettings,
        dispatcher: NotificationDispatcher,
        *,
        connector: Connector = aio_pika.connect,
        queue_name: str = QUEUE_NAME,
        exchange_name: str = EXCHANGE_NAME,
        receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT,
    ) -> None:
        self._settings = settings
        self._dispatcher = dispatcher
        self._connector = connector
        self._queue_name = queue_name
        self._exchange_name = exchange_name
        self._receive_timeout = receive_timeout
        self._state = ConnectionStateMachine("consumer")
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self._stopping = asyncio.Event()
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._queue: AbstractQueue | None = None
        self._consumer_tag: str | None = None
        self._closing = False
        self._lost_reason: str = ""

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state.state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def queue_name(self) -> str:
        return self._queue_name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Run the full handshake: connect, declare, bind, consume.

        Returns ``False`` on the first failing step, leaving the consumer
        in ``failed``.
        """
        self._state.transition(ConnectionState.CONNECTING)
        try:
            self._connection, self._channel, exchange = await open_channel(
                self._settings,
                connector=self._connector,
                exchange_name=self._exchange_name,
            )
        except BrokerConnectionError as exc:
            logger.error("RabbitMQ connection error: %s", exc)
            self._state.transition(ConnectionState.FAILED)
            return False

        try:
            self._queue = await self._channel.declare_queue(
                self._queue_name,
                durable=True,
                exclusive=False,
                auto_delete=False,
            )
            for routing_key in BINDING_KEYS:
                await self._queue.bind(exchange, routing_key=routing_key)
                logger.info("Bound %s to: %s", self._queue_name, routing_key)
            self._state.transition(ConnectionState.BOUND)

            self._connection.close_callbacks.add(self._on_connection_closed)
            self._consumer_tag = await self._queue.consume(
                self._on_message, no_ack=True
            )
        except BROKER_ERRORS as exc:
            logger.error("Failed to set up %s: %s", self._queue_name, exc)
            self._state.transition(ConnectionState.FAILED)
            self._closing = True
            await close_quietly(self._connection)
            return False

        self._state.transition(ConnectionState.CONSUMING)
        logger.info("Notification service is ready and listening on %s", self._queue_name)
        return True

    def stop(self) -> None:
        """Ask ``consume_loop`` to return after the current iteration."""
        self._stopping.set()

    async def close(self) -> None:
        """Cancel the consumer and close the connection."""
        if self._state.state == ConnectionState.DISCONNECTED:
            return
        self._closing = True
        if (
            self._queue is not None
            and self._consumer_tag is not None
            and self._state.state == ConnectionState.CONSUMING
        ):
            try:
                await self._queue.cancel(self._consumer_tag)
            except BROKER_ERRORS as exc:
                logger.warning("Error cancelling consumer: %s", exc)
        await close_quietly(self._connection)
        self._connection = self._channel = self._queue = None
        self._consumer_tag = None
        self._state.transition(ConnectionState.DISCONNECTED)

    async def __aenter__(self) -> EventConsumer:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    async def receive(self, timeout: float) -> AbstractIncomingMessage | None:
        """Wait up to *timeout* seconds for the next delivery.

        Returns ``None`` on timeout.  Each delivery is returned once.

        Raises
        ------
        BrokerConnectionError
            If the broker connection was lost.
        """
        try:
            item = await asyncio.wait_for(self._inbox.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CONNECTION_LOST:
            # Keep reporting the loss to any later caller.
            self._inbox.put_nowait(_CONNECTION_LOST)
            raise BrokerConnectionError(self._lost_reason or "broker connection lost")
        return item

    async def consume_loop(self) -> bool:
        """Receive and process events until stopped or the broker is lost.

        Returns ``True`` when ``stop()`` ended the loop and ``False`` when a
        broker error did.
        """
        self._state.require(ConnectionState.CONSUMING, operation="consume_loop")
        logger.info("Starting event processing loop...")

        while not self._stopping.is_set():
            try:
                message = await self.receive(self._receive_timeout)
            except BrokerConnectionError as exc:
                logger.error("Error consuming message: %s", exc)
                self._state.transition(ConnectionState.FAILED)
                return False

            if message is None:
                logger.info("No messages (timeout), waiting...")
                continue

            routing_key = message.routing_key or ""
            try:
                await self.process_event(routing_key, message.body)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Unhandled error while processing %s event; event dropped",
                    routing_key,
                )

        logger.info("Event processing loop stopped")
        return True

    async def process_event(self, routing_key: str, body: bytes | str) -> bool:
        """Decode one delivery and hand it to the dispatcher.

        Malformed payloads and unknown routing keys are logged and skipped.
        Returns ``True`` only when a notification was delivered.
        """
        logger.info("NEW EVENT routing_key=%s payload=%r", routing_key, body)

        try:
            event = decode_event(routing_key, body)
        except EventDecodeError as exc:
            logger.error(
                "JSON parse error for %s event: %s; payload=%r",
                routing_key,
                exc.reason,
                body,
            )
            return False

        if isinstance(event, UnknownEvent):
            logger.info("Unknown event type: %s; skipping notification", routing_key)
            return False

        return await self._dispatcher.dispatch(event)

    # ------------------------------------------------------------------
    # Broker callbacks
    # ------------------------------------------------------------------

    async def _on_message(self, message: AbstractIncomingMessage) -> None:
        self._inbox.put_nowait(message)

    def _on_connection_closed(self, sender: Any, exc: BaseException | None = None, *_: Any) -> None:
        if self._closing:
            return
        self._lost_reason = f"broker connection closed: {exc}" if exc else "broker connection closed"
        logger.warning("%s", self._lost_reason)
        self._inbox.put_nowait(_CONNECTION_LOST)

    def __repr__(self) -> str:
        return (
            f"EventConsumer(host={self._settings.host!r}, "
            f"queue={self._queue_name!r}, state={self._state.state.value})"
        )
