"""``chatnotify publish`` — publish one event, for smoke-testing a deployment."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer
from rich.console import Console

from chatnotify.broker.publisher import EventPublisher
from chatnotify.config import BrokerSettings, load_config
from chatnotify.logging_setup import setup_logging

console = Console()


def _parse_payload(payload: str) -> dict[str, Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("payload must be a JSON object")
    return data


async def _publish(settings: BrokerSettings, routing_key: str, payload: dict[str, Any]) -> bool:
    async with EventPublisher(settings) as publisher:
        return await publisher.publish(routing_key, payload)


def publish_cmd(
    routing_key: str = typer.Argument(..., help="Routing key, e.g. user.registered."),
    payload: str = typer.Argument(..., help="Event payload as a JSON object."),
) -> None:
    """Publish PAYLOAD to the chat_events exchange under ROUTING_KEY."""
    data = _parse_payload(payload)
    config = load_config()
    setup_logging(config.log_level)

    if asyncio.run(_publish(config.broker, routing_key, data)):
        console.print(f"[green]Published[/green] {routing_key}")
        return
    console.print(f"[red]Failed to publish[/red] {routing_key}")
    raise typer.Exit(code=1)
