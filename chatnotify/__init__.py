"""chatnotify: event-driven e-mail notifications for the chat system.

Producer side:
  - ``EventPublisher`` publishes persistent JSON domain events to the
    durable ``chat_events`` topic exchange (best-effort, never raises).

Consumer side:
  - ``EventConsumer`` binds ``notification_queue`` and runs the timed
    receive loop (auto-acknowledge, one event at a time).
  - ``NotificationDispatcher`` renders each event type's e-mail.
  - Mail transports submit over SMTP or simulate delivery when SMTP is
    not configured.
"""

__version__ = "0.2.0"
__description__ = "Event-driven e-mail notifications over RabbitMQ"

from chatnotify.broker.consumer import EventConsumer
from chatnotify.broker.publisher import EventPublisher
from chatnotify.config import NotifyConfig, load_config
from chatnotify.models.events import (
    MessageCreated,
    RoutingKey,
    UserJoinedRoom,
    UserRegistered,
)
from chatnotify.routing.dispatcher import NotificationDispatcher

__all__ = [
    "EventConsumer",
    "EventPublisher",
    "MessageCreated",
    "NotificationDispatcher",
    "NotifyConfig",
    "RoutingKey",
    "UserJoinedRoom",
    "UserRegistered",
    "load_config",
    "__version__",
]
