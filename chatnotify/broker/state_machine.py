"""Deterministic connection state machine for publishers and consumers.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Operations refused outside the states they are valid in
- Every transition logged under the owner's name
"""

from __future__ import annotations

import logging

from chatnotify.models.connection import (
    CONNECTED_STATES,
    VALID_TRANSITIONS,
    ConnectionState,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition or operation is not valid."""


class ConnectionStateMachine:
    """Tracks the lifecycle of one broker connection.

    Parameters
    ----------
    owner:
        Label used in log lines and error messages (e.g. ``"consumer"``).
    """

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """``True`` while the channel is open and the topology declared."""
        return self._state in CONNECTED_STATES

    def transition(self, target: ConnectionState) -> None:
        """Move to *target*, raising if the move is not in the table."""
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"{self._owner}: cannot transition from {self._state.value} "
                f"to {target.value}. Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug(
            "%s: %s -> %s", self._owner, self._state.value, target.value
        )
        self._state = target

    def require(self, *states: ConnectionState, operation: str) -> None:
        """Raise unless the current state is one of *states*."""
        if self._state not in states:
            raise InvalidTransitionError(
                f"{self._owner}: {operation} is not valid in state "
                f"{self._state.value} (requires {', '.join(s.value for s in states)})"
            )
