"""
Listener state and status snapshot.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict


class ConnectionState(str, Enum):
    """
    Connection lifecycle states.

    UNINITIALIZED -> INITIALIZED -> LISTENING -> (RECONNECTING -> LISTENING | STOPPED)
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    LISTENING = "listening"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ListenerStatus:
    """Read-only snapshot of the listener."""

    is_listening: bool
    state: ConnectionState
    reconnect_attempts: int
    max_reconnect_attempts: int
    contracts_initialized: bool
    pending_count: int
    last_event_time: float
    time_since_last_event: float
    health_check_active: bool
    recovery_exhausted: bool

    @property
    def last_event_at(self) -> datetime:
        """Last event time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.last_event_time, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the JSON shape served by the status endpoint.

        timeSinceLastEvent is in milliseconds.
        """
        return {
            "isListening": self.is_listening,
            "state": self.state.value,
            "reconnectAttempts": self.reconnect_attempts,
            "maxReconnectAttempts": self.max_reconnect_attempts,
            "contractsInitialized": self.contracts_initialized,
            "pendingCount": self.pending_count,
            "lastEventTime": self.last_event_at.isoformat(),
            "timeSinceLastEvent": int(self.time_since_last_event * 1000),
            "healthCheckActive": self.health_check_active,
            "recoveryExhausted": self.recovery_exhausted,
        }
