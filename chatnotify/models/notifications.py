"""Rendered notification ready for a mail transport."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Notification(BaseModel):
    """One e-mail: who receives it and what it says."""

    model_config = ConfigDict(frozen=True)

    recipient: str
    subject: str
    body: str
