"""``chatnotify status`` — show the effective configuration.

Secrets are masked.  Also reports which mail transport the service would
select with this configuration.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from chatnotify.config import load_config
from chatnotify.mail import build_mail_transport

console = Console()


def _mask(secret: str | None) -> str:
    if not secret:
        return "[dim]unset[/dim]"
    return "*" * 8


def status_cmd() -> None:
    """Print broker, SMTP and runtime settings."""
    config = load_config()
    transport = build_mail_transport(config)

    table = Table(title="chatnotify configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("RabbitMQ", f"{config.rabbitmq_host}:{config.rabbitmq_port}{config.rabbitmq_vhost}")
    table.add_row("RabbitMQ user", config.rabbitmq_user)
    table.add_row("RabbitMQ password", _mask(config.rabbitmq_password))
    table.add_row("SMTP server", f"{config.smtp_host or '[dim]unset[/dim]'}:{config.smtp_port or ''}")
    table.add_row("SMTP user", config.smtp_user or "[dim]unset[/dim]")
    table.add_row("SMTP password", _mask(config.smtp_password))
    table.add_row(
        "Mail mode",
        "[green]SMTP[/green]" if transport.is_configured else "[yellow]simulated[/yellow]",
    )
    table.add_row("Test recipient", config.test_email_recipient or "[dim]none[/dim]")
    table.add_row("Receive timeout", f"{config.receive_timeout_seconds:g}s")
    table.add_row("Log level", config.log_level)

    console.print(table)
