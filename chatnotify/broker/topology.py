"""Names and flags of the broker objects this system relies on.

The queue is bound with exact routing keys, never wildcard patterns, so the
consumer's dispatch stays a closed lookup.
"""

from __future__ import annotations

from aio_pika import ExchangeType

from chatnotify.models.events import RoutingKey

EXCHANGE_NAME = "chat_events"
EXCHANGE_TYPE = ExchangeType.TOPIC
QUEUE_NAME = "notification_queue"
JSON_CONTENT_TYPE = "application/json"

BINDING_KEYS: tuple[str, ...] = tuple(key.value for key in RoutingKey)
