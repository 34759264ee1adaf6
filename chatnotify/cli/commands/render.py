"""``chatnotify render`` — show the notification an event would produce.

Runs the same decode and template path as the consumer without touching the
broker or the mail server.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from chatnotify.config import load_config
from chatnotify.mail.simulated import SimulatedMailTransport
from chatnotify.models.events import EventDecodeError, UnknownEvent, decode_event
from chatnotify.routing.dispatcher import NotificationDispatcher
from chatnotify.routing.templates import InvalidRecipientError

console = Console()


def render_cmd(
    routing_key: str = typer.Argument(..., help="Routing key, e.g. message.created."),
    payload: str = typer.Argument(..., help="Event payload as a JSON object."),
) -> None:
    """Render the e-mail for ROUTING_KEY and PAYLOAD without sending it."""
    config = load_config()
    dispatcher = NotificationDispatcher(
        SimulatedMailTransport(delay_seconds=0),
        test_recipient=config.test_email_recipient,
    )

    try:
        event = decode_event(routing_key, payload)
    except EventDecodeError as exc:
        console.print(f"[red]Cannot decode payload:[/red] {exc.reason}")
        raise typer.Exit(code=1) from exc

    if isinstance(event, UnknownEvent):
        console.print(f"[yellow]Unknown event type:[/yellow] {routing_key}")
        raise typer.Exit(code=1)

    try:
        notification = dispatcher.render(event)
    except InvalidRecipientError as exc:
        console.print(f"[yellow]Skipped:[/yellow] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold]To:[/bold] {notification.recipient}")
    console.print(f"[bold]Subject:[/bold] {notification.subject}")
    console.print(Panel(notification.body, title="Body", expand=False))
