"""Shared test fixtures for chatnotify.

The fake broker implements just the slice of the aio-pika
connection/channel/exchange/queue API that the publisher and consumer use,
with exact-key topic routing and auto-ack bookkeeping, so the full
publish -> route -> consume path runs in memory.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import pytest

from chatnotify.broker.consumer import EventConsumer
from chatnotify.broker.topology import EXCHANGE_NAME, QUEUE_NAME
from chatnotify.config import BrokerSettings
from chatnotify.models.notifications import Notification
from chatnotify.routing.dispatcher import NotificationDispatcher

CONFIG_ENV_VARS = (
    "RABBITMQ_HOST",
    "RABBITMQ_PORT",
    "RABBITMQ_USER",
    "RABBITMQ_PASSWORD",
    "RABBITMQ_VHOST",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "TEST_EMAIL_RECIPIENT",
    "LOG_LEVEL",
    "RECEIVE_TIMEOUT_SECONDS",
    "SIMULATED_SEND_DELAY_SECONDS",
)


# ---------------------------------------------------------------------------
# In-memory broker
# ---------------------------------------------------------------------------


class FakeCallbacks:
    """Stand-in for aio-pika's CallbackCollection."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[..., Any]] = []

    def add(self, callback: Callable[..., Any]) -> None:
        self._callbacks.append(callback)

    def fire(self, sender: Any, *args: Any) -> None:
        for callback in list(self._callbacks):
            callback(sender, *args)


class FakeIncomingMessage:
    def __init__(self, routing_key: str, body: bytes) -> None:
        self.routing_key = routing_key
        self.body = body


class FakeExchange:
    def __init__(self, broker: FakeBroker, name: str, type_: Any, durable: bool, auto_delete: bool) -> None:
        self.broker = broker
        self.name = name
        self.type = type_
        self.durable = durable
        self.auto_delete = auto_delete

    async def publish(self, message: Any, routing_key: str) -> None:
        await self.broker.on_publish(self, message, routing_key)


class FakeQueue:
    def __init__(self, broker: FakeBroker, name: str, durable: bool, exclusive: bool, auto_delete: bool) -> None:
        self.broker = broker
        self.name = name
        self.durable = durable
        self.exclusive = exclusive
        self.auto_delete = auto_delete
        self.bindings: list[tuple[str, str]] = []
        self.consumers: dict[str, tuple[Callable[..., Any], bool]] = {}
        self.ready: list[FakeIncomingMessage] = []
        self.unacked: list[FakeIncomingMessage] = []
        self.delivered_count = 0

    async def bind(self, exchange: FakeExchange, routing_key: str) -> None:
        self.broker.maybe_fail("bind")
        self.bindings.append((exchange.name, routing_key))

    async def consume(self, callback: Callable[..., Any], no_ack: bool = False) -> str:
        self.broker.maybe_fail("consume")
        tag = f"ctag-{next(self.broker.tags)}"
        self.consumers[tag] = (callback, no_ack)
        pending, self.ready = self.ready, []
        for message in pending:
            await self.put(message)
        return tag

    async def cancel(self, consumer_tag: str) -> None:
        self.consumers.pop(consumer_tag, None)

    async def put(self, message: FakeIncomingMessage) -> None:
        """Deliver to the first consumer, or keep the message ready."""
        if not self.consumers:
            self.ready.append(message)
            return
        callback, no_ack = next(iter(self.consumers.values()))
        if not no_ack:
            self.unacked.append(message)
        self.delivered_count += 1
        await callback(message)


class FakeChannel:
    def __init__(self, broker: FakeBroker) -> None:
        self.broker = broker
        self.is_closed = False

    async def declare_exchange(self, name: str, type_: Any, *, durable: bool = False, auto_delete: bool = False) -> FakeExchange:
        self.broker.maybe_fail("declare_exchange")
        exchange = FakeExchange(self.broker, name, type_, durable, auto_delete)
        self.broker.exchanges[name] = exchange
        return exchange

    async def declare_queue(self, name: str, *, durable: bool = False, exclusive: bool = False, auto_delete: bool = False) -> FakeQueue:
        self.broker.maybe_fail("declare_queue")
        queue = self.broker.queues.get(name)
        if queue is None:
            queue = FakeQueue(self.broker, name, durable, exclusive, auto_delete)
            self.broker.queues[name] = queue
        return queue

    async def close(self) -> None:
        self.is_closed = True


class FakeConnection:
    def __init__(self, broker: FakeBroker, kwargs: dict[str, Any]) -> None:
        self.broker = broker
        self.kwargs = kwargs
        self.is_closed = False
        self.close_callbacks = FakeCallbacks()
        self.channels: list[FakeChannel] = []

    async def channel(self) -> FakeChannel:
        self.broker.maybe_fail("channel")
        channel = FakeChannel(self.broker)
        self.channels.append(channel)
        return channel

    async def close(self) -> None:
        if self.is_closed:
            return
        self.is_closed = True
        self.close_callbacks.fire(self, None)

    def drop(self, exc: BaseException) -> None:
        """Simulate the broker going away underneath the client."""
        self.is_closed = True
        self.close_callbacks.fire(self, exc)


class FakeBroker:
    """In-memory broker with exact-key topic routing.

    Set ``fail_on`` to one of ``connect``, ``channel``, ``declare_exchange``,
    ``declare_queue``, ``bind``, ``consume`` or ``publish`` to make that step
    raise ``fail_with`` (``ConnectionError`` by default).
    """

    def __init__(self) -> None:
        self.fail_on: str | None = None
        self.fail_with: type[BaseException] = ConnectionError
        self.connections: list[FakeConnection] = []
        self.exchanges: dict[str, FakeExchange] = {}
        self.queues: dict[str, FakeQueue] = {}
        self.published: list[tuple[str, Any]] = []
        self.tags = itertools.count(1)

    def maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            raise self.fail_with(f"simulated failure in {step}")

    async def connect(self, **kwargs: Any) -> FakeConnection:
        self.maybe_fail("connect")
        connection = FakeConnection(self, kwargs)
        self.connections.append(connection)
        return connection

    async def on_publish(self, exchange: FakeExchange, message: Any, routing_key: str) -> None:
        self.maybe_fail("publish")
        self.published.append((routing_key, message))
        await self.route(exchange.name, routing_key, message.body)

    async def route(self, exchange_name: str, routing_key: str, body: bytes) -> None:
        for queue in self.queues.values():
            if (exchange_name, routing_key) in queue.bindings:
                await queue.put(FakeIncomingMessage(routing_key, body))

    async def deliver(self, routing_key: str, body: bytes | str) -> None:
        """Publish straight to the exchange, as another producer would."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        await self.route(EXCHANGE_NAME, routing_key, body)

    async def inject(self, routing_key: str, body: bytes | str, queue: str = QUEUE_NAME) -> None:
        """Place a message on *queue* regardless of bindings."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        await self.queues[queue].put(FakeIncomingMessage(routing_key, body))


# ---------------------------------------------------------------------------
# Mail
# ---------------------------------------------------------------------------


class RecordingTransport:
    """Mail transport that records every send instead of delivering it."""

    def __init__(self, result: bool = True, configured: bool = True) -> None:
        self.result = result
        self.configured = configured
        self.sent: list[Notification] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        self.sent.append(Notification(recipient=to, subject=subject, body=body))
        return self.result


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    """Remove config variables and run from a directory without a .env file."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def fake_broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def broker_settings() -> BrokerSettings:
    return BrokerSettings(host="rabbit.test", port=5672, user="chatuser", password="chatpass")


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def dispatcher(recording_transport: RecordingTransport) -> NotificationDispatcher:
    return NotificationDispatcher(recording_transport)


@pytest.fixture
def make_consumer(
    fake_broker: FakeBroker,
    broker_settings: BrokerSettings,
    recording_transport: RecordingTransport,
) -> Callable[..., EventConsumer]:
    """Factory fixture: an EventConsumer wired to the fake broker.

    Must be called inside a running event loop.
    """

    def _factory(
        dispatcher: NotificationDispatcher | None = None,
        receive_timeout: float = 0.01,
    ) -> EventConsumer:
        return EventConsumer(
            broker_settings,
            dispatcher or NotificationDispatcher(recording_transport),
            connector=fake_broker.connect,
            receive_timeout=receive_timeout,
        )

    return _factory


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory fixture: a RecordingTransport with a chosen result."""

    def _factory(result: bool = True, configured: bool = True) -> RecordingTransport:
        return RecordingTransport(result=result, configured=configured)

    return _factory
