"""Session events the UI can subscribe to."""

from collections import defaultdict
from enum import Enum, auto
from typing import Any, Callable, DefaultDict, List

from ..logger import get_logger

logger = get_logger(__name__)


class SessionEventType(Enum):
    """Event types for practice sessions."""

    FEEDBACK_CHANGED = auto()
    TARGET_CHANGED = auto()
    STATUS_CHANGED = auto()


class EventEmitter:
    """Synchronous publish/subscribe keyed by event type.

    Listeners run on the emitting thread. A listener that raises is logged and
    skipped; the remaining listeners still run.
    """

    def __init__(self):
        self._listeners: DefaultDict[Any, List[Callable]] = defaultdict(list)

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type. Registering twice has no effect."""
        listeners = self._listeners[event_type]
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Listener added for {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners.get(event_type)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        # Snapshot so listeners may unsubscribe while being notified
        for callback in tuple(self._listeners.get(event_type, ())):
            try:
                callback(*args, **kwargs)
            except Exception:
                logger.exception(f"Listener for {event_type} failed")

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()


class SessionEvents:
    """Observable surface of a practice session for the UI."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_feedback(self, callback: Callable[[str], None]) -> None:
        """Register a callback for feedback text changes."""
        self._emitter.on(SessionEventType.FEEDBACK_CHANGED, callback)

    def on_target(self, callback: Callable) -> None:
        """Register a callback for target note changes (pitch key or None)."""
        self._emitter.on(SessionEventType.TARGET_CHANGED, callback)

    def on_status(self, callback: Callable) -> None:
        """Register a callback for session status changes."""
        self._emitter.on(SessionEventType.STATUS_CHANGED, callback)

    def off(self, event_type: SessionEventType, callback: Callable) -> None:
        self._emitter.off(event_type, callback)

    def emit_feedback(self, feedback: str) -> None:
        self._emitter.emit(SessionEventType.FEEDBACK_CHANGED, feedback)

    def emit_target(self, pitch_key) -> None:
        self._emitter.emit(SessionEventType.TARGET_CHANGED, pitch_key)

    def emit_status(self, status) -> None:
        self._emitter.emit(SessionEventType.STATUS_CHANGED, status)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()
