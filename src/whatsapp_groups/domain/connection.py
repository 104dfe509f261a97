"""Domain models for the messaging backend connection."""

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    """Connection states of the single backend session."""

    DISCONNECTED = "DISCONNECTED"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    AUTHENTICATED = "AUTHENTICATED"
    READY = "READY"


class BackendEventType(str, Enum):
    """Lifecycle events emitted by the backend client."""

    PAIRING_CHALLENGE = "qr"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    AUTH_FAILED = "auth_failure"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class BackendEvent:
    """A lifecycle notification delivered by the backend."""

    type: BackendEventType
    challenge: str | None = None
    identity: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session at a point in time."""

    state: SessionState
    pairing_challenge: str | None = None
    backend_identity: str | None = None

    @property
    def ready(self) -> bool:
        """Return true when provisioning requests can be accepted."""
        return self.state is SessionState.READY
