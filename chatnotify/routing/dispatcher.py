"""NotificationDispatcher — routes each decoded event to its template.

Exactly one template per event type; an event whose recipient is missing or
malformed is logged and skipped before the transport is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from chatnotify.models.events import (
    DomainEvent,
    MessageCreated,
    UserJoinedRoom,
    UserRegistered,
)
from chatnotify.models.notifications import Notification
from chatnotify.routing.templates import (
    InvalidRecipientError,
    render_new_message,
    render_room_join,
    render_welcome,
)

if TYPE_CHECKING:
    from chatnotify.mail import MailTransport

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Renders events into notifications and sends them.

    Parameters
    ----------
    transport:
        Mail transport used by ``dispatch``.
    test_recipient:
        When non-empty, replaces the recipient of every ``message.created``
        notification.  Read from the process configuration.
    """

    def __init__(self, transport: MailTransport, *, test_recipient: str = "") -> None:
        self._transport = transport
        self._test_recipient = test_recipient
        self._renderers: dict[type[DomainEvent], Callable[[DomainEvent], Notification]] = {
            UserRegistered: render_welcome,  # type: ignore[dict-item]
            MessageCreated: self._render_new_message,  # type: ignore[dict-item]
            UserJoinedRoom: render_room_join,  # type: ignore[dict-item]
        }

    @property
    def transport(self) -> MailTransport:
        return self._transport

    def render(self, event: DomainEvent) -> Notification:
        """Render *event* into a notification.

        Raises
        ------
        InvalidRecipientError
            If the event carries no deliverable address.
        KeyError
            If *event* is not one of the known event types.
        """
        renderer = self._renderers[type(event)]
        return renderer(event)

    async def dispatch(self, event: DomainEvent) -> bool:
        """Render and send one notification.

        Returns ``True`` only if the transport reported success.
        """
        label = event.routing_key.value
        try:
            notification = self.render(event)
        except InvalidRecipientError as exc:
            logger.warning("Skipping %s notification: %s", label, exc)
            return False

        logger.info(
            "Sending %s notification to %s: %s",
            label,
            notification.recipient,
            notification.subject,
        )
        sent = await self._transport.send_email(
            notification.recipient, notification.subject, notification.body
        )
        if sent:
            logger.info("%s notification sent to %s", label, notification.recipient)
        else:
            logger.warning("Failed to send %s notification to %s", label, notification.recipient)
        return sent

    def _render_new_message(self, event: MessageCreated) -> Notification:
        if self._test_recipient:
            logger.debug("Using test recipient from config: %s", self._test_recipient)
        return render_new_message(event, recipient_override=self._test_recipient)
