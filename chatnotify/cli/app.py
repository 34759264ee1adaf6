"""Main Typer application — imports and registers all CLI commands.

Entry point: ``chatnotify`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import typer

from chatnotify.cli.commands.consume import consume_cmd
from chatnotify.cli.commands.publish import publish_cmd
from chatnotify.cli.commands.render import render_cmd
from chatnotify.cli.commands.status import status_cmd

app = typer.Typer(
    name="chatnotify",
    help="chatnotify: event-driven e-mail notifications for the chat system.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="consume", help="Run the notification service (consumer loop).")(consume_cmd)
app.command(name="publish", help="Publish one domain event to the exchange.")(publish_cmd)
app.command(name="render", help="Preview the e-mail an event would produce.")(render_cmd)
app.command(name="status", help="Show the effective configuration.")(status_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
