"""Broker connection state model — explicit transitions."""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of one broker connection/channel pair."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    BOUND = "bound"  # channel open, topology declared
    CONSUMING = "consuming"
    FAILED = "failed"


# Valid state transitions — enforced structurally by ConnectionStateMachine.
# FAILED only leaves through an explicit close; there is no automatic retry.
VALID_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {ConnectionState.BOUND, ConnectionState.FAILED},
    ConnectionState.BOUND: {
        ConnectionState.CONSUMING,
        ConnectionState.DISCONNECTED,
        ConnectionState.FAILED,
    },
    ConnectionState.CONSUMING: {ConnectionState.DISCONNECTED, ConnectionState.FAILED},
    ConnectionState.FAILED: {ConnectionState.DISCONNECTED},
}

CONNECTED_STATES: frozenset[ConnectionState] = frozenset(
    {ConnectionState.BOUND, ConnectionState.CONSUMING}
)
