"""Pure notification templates, one per event type.

Every function is a pure function of its event: the same payload always
renders the same recipient, subject and body.
"""

from __future__ import annotations

from chatnotify.models.events import MessageCreated, UserJoinedRoom, UserRegistered
from chatnotify.models.notifications import Notification

PRODUCT_NAME = "C++ Chat System"
RULE = "─" * 37


class InvalidRecipientError(ValueError):
    """Raised when an event has no usable delivery address."""


def require_recipient(address: str, event_label: str) -> str:
    """Return *address* if it looks deliverable, else raise."""
    if not address or "@" not in address:
        raise InvalidRecipientError(
            f"{event_label}: invalid recipient email {address!r}"
        )
    return address


def render_welcome(event: UserRegistered) -> Notification:
    """Welcome e-mail for a newly registered user."""
    recipient = require_recipient(event.email, "user.registered")
    subject = f"Welcome to {PRODUCT_NAME}, {event.username}!"
    body = (
        f"Hello {event.username}!\n\n"
        f"Your account (ID: {event.user_id}) has been successfully created.\n\n"
        "---\n"
        f"Your email: {recipient}"
    )
    return Notification(recipient=recipient, subject=subject, body=body)


def render_new_message(
    event: MessageCreated, recipient_override: str = ""
) -> Notification:
    """New-message notice.

    Goes to the sender unless *recipient_override* is non-empty, in which
    case every such notice goes to that one mailbox.
    """
    recipient = require_recipient(
        recipient_override or event.sender_email, "message.created"
    )
    subject = f'New message in "{event.room_name}"'
    body = (
        "Hello!\n\n"
        "You have a new message in one of your chat rooms.\n\n"
        f"Room: {event.room_name} (ID: {event.room_id})\n"
        f"From: {event.sender_username}\n"
        f"Message Type: {event.message_type}\n\n"
        "Message:\n"
        f"{RULE}\n"
        f'"{event.content}"\n'
        f"{RULE}\n\n"
        "---\n"
        f"Message ID: {event.message_id}\n"
        f"Timestamp: {event.timestamp}"
    )
    return Notification(recipient=recipient, subject=subject, body=body)


def render_room_join(event: UserJoinedRoom) -> Notification:
    """Confirmation that a user was added to a room."""
    recipient = require_recipient(event.user_email, "user.joined_room")
    subject = f'You\'ve been added to "{event.room_name}"!'
    body = (
        f"Hello {event.username}!\n\n"
        "You have been added to a new chat room.\n\n"
        "Room Details:\n"
        f"{RULE}\n"
        f"Name: {event.room_name}\n"
        f"Room ID: {event.room_id}\n"
        f"Your Role: {event.role}\n"
        f"{RULE}\n\n"
        "---\n"
        f"User ID: {event.user_id}\n"
        f"Email: {recipient}"
    )
    return Notification(recipient=recipient, subject=subject, body=body)
