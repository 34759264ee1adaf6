"""Canonical JSON encoding for event bodies.

Identical payloads always produce identical bytes, so a published body can
be compared, logged or golden-tested without key-order noise.
"""

from __future__ import annotations

import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - non-ASCII kept as UTF-8 rather than escaped
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def preview(body: bytes, limit: int = 100) -> str:
    """Return the first *limit* characters of a body for log lines."""
    text = body.decode("utf-8", errors="replace")
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
