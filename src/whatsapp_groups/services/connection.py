"""Session state machine for the messaging backend connection."""

import logging
import threading

from whatsapp_groups.domain.connection import (
    BackendEvent,
    BackendEventType,
    SessionSnapshot,
    SessionState,
)

logger = logging.getLogger(__name__)

_RESETTING_EVENTS = {BackendEventType.AUTH_FAILED, BackendEventType.DISCONNECTED}

_ALLOWED_SOURCES: dict[BackendEventType, set[SessionState]] = {
    BackendEventType.PAIRING_CHALLENGE: {
        SessionState.DISCONNECTED,
        SessionState.AWAITING_PAIRING,
    },
    # A stored login may authenticate without a fresh pairing cycle.
    BackendEventType.AUTHENTICATED: {
        SessionState.DISCONNECTED,
        SessionState.AWAITING_PAIRING,
    },
    BackendEventType.READY: {SessionState.AUTHENTICATED},
}

_TARGETS: dict[BackendEventType, SessionState] = {
    BackendEventType.PAIRING_CHALLENGE: SessionState.AWAITING_PAIRING,
    BackendEventType.AUTHENTICATED: SessionState.AUTHENTICATED,
    BackendEventType.READY: SessionState.READY,
}


def next_state(current: SessionState, event_type: BackendEventType) -> SessionState:
    """Return the state reached from ``current`` on ``event_type``.

    Events that are not valid in the current state leave it unchanged.
    """
    if event_type in _RESETTING_EVENTS:
        return SessionState.DISCONNECTED
    if _accepts(current, event_type):
        return _TARGETS[event_type]
    return current


def apply_event(snapshot: SessionSnapshot, event: BackendEvent) -> SessionSnapshot:
    """Return the snapshot that results from applying ``event``."""
    if event.type in _RESETTING_EVENTS:
        return SessionSnapshot(state=SessionState.DISCONNECTED)
    if not _accepts(snapshot.state, event.type):
        return snapshot
    state = _TARGETS[event.type]
    if state is SessionState.AWAITING_PAIRING:
        return SessionSnapshot(state=state, pairing_challenge=event.challenge)
    if state is SessionState.READY:
        return SessionSnapshot(state=state, backend_identity=event.identity)
    return SessionSnapshot(state=state)


def _accepts(current: SessionState, event_type: BackendEventType) -> bool:
    return current in _ALLOWED_SOURCES[event_type]


class SessionStateMachine:
    """Process-wide owner of the backend session state.

    Only lifecycle events mutate the state; readers get immutable snapshots
    and never block on a backend call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = SessionSnapshot(state=SessionState.DISCONNECTED)

    def snapshot(self) -> SessionSnapshot:
        """Return the current session snapshot."""
        with self._lock:
            return self._snapshot

    @property
    def is_ready(self) -> bool:
        """Return true when the session accepts provisioning requests."""
        return self.snapshot().ready

    @property
    def pairing_challenge(self) -> str | None:
        """Return the pairing challenge awaiting a scan, if any."""
        return self.snapshot().pairing_challenge

    def handle_event(self, event: BackendEvent) -> SessionSnapshot:
        """Apply a lifecycle event and return the resulting snapshot."""
        with self._lock:
            previous = self._snapshot
            current = apply_event(previous, event)
            self._snapshot = current
        _log_transition(previous, current, event)
        return current


def _log_transition(
    previous: SessionSnapshot, current: SessionSnapshot, event: BackendEvent
) -> None:
    if event.type is BackendEventType.AUTH_FAILED:
        logger.error("Authentication failed: %s", event.reason or "unknown reason")
    elif event.type is BackendEventType.DISCONNECTED:
        if previous.state is not SessionState.DISCONNECTED:
            logger.warning(
                "Client was disconnected: %s", event.reason or "unknown reason"
            )
    elif current is previous:
        logger.warning(
            "Ignoring %s event in state %s", event.type.value, previous.state.value
        )
    elif current.state is SessionState.AWAITING_PAIRING:
        logger.info(
            "Scan this pairing code with WhatsApp: %s", current.pairing_challenge
        )
    elif current.state is SessionState.AUTHENTICATED:
        logger.info("WhatsApp client authenticated")
    elif current.state is SessionState.READY:
        logger.info("WhatsApp client is ready")
