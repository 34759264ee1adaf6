"""chatnotify CLI — Typer application for running and operating the service."""
