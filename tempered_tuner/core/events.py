"""Event system connecting the tuning service to display listeners."""

from typing import Any, Callable, Dict, List
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class TuningEventType(Enum):
    """Event types emitted once per processed frame or on failure."""

    READING = auto()
    NO_READING = auto()
    ERROR = auto()


class EventEmitter:
    """Synchronous publish/subscribe keyed by event type."""

    def __init__(self):
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)
            logger.debug(f"Removed listener for event {event_type}")

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Call every listener for ``event_type``.

        A listener that raises is logged and skipped so the capture loop keeps
        running.
        """
        for callback in list(self._listeners.get(event_type, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}", exc_info=True)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")


class TuningEvents:
    """Typed wrapper over :class:`EventEmitter` for tuning events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_reading(self, callback: Callable) -> None:
        """Register ``callback(result)`` for frames with a surfaced reading."""
        self._emitter.on(TuningEventType.READING, callback)

    def on_no_reading(self, callback: Callable) -> None:
        """Register ``callback(timestamp)`` for frames with nothing to show."""
        self._emitter.on(TuningEventType.NO_READING, callback)

    def on_error(self, callback: Callable) -> None:
        """Register ``callback(exception)`` for frames that failed to process."""
        self._emitter.on(TuningEventType.ERROR, callback)

    def off_reading(self, callback: Callable) -> None:
        self._emitter.off(TuningEventType.READING, callback)

    def off_no_reading(self, callback: Callable) -> None:
        self._emitter.off(TuningEventType.NO_READING, callback)

    def off_error(self, callback: Callable) -> None:
        self._emitter.off(TuningEventType.ERROR, callback)

    def emit_reading(self, result) -> None:
        self._emitter.emit(TuningEventType.READING, result)

    def emit_no_reading(self, timestamp: float) -> None:
        self._emitter.emit(TuningEventType.NO_READING, timestamp)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(TuningEventType.ERROR, error)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()
