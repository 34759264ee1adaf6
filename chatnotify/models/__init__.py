"""Pydantic models for domain events, rendered notifications and connection state."""
