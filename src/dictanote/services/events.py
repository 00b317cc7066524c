"""Explicit event emission for UI layers and the autosaver."""

from typing import Any, Callable

from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

DOCUMENT_CHANGED = "document_changed"
SUGGESTION_STAGED = "suggestion_staged"
SUGGESTION_RESOLVED = "suggestion_resolved"
CONVERSATION_UPDATED = "conversation_updated"
HISTORY_CHANGED = "history_changed"
INTERACTION_CHANGED = "interaction_changed"

EVENT_NAMES = frozenset({
    DOCUMENT_CHANGED,
    SUGGESTION_STAGED,
    SUGGESTION_RESOLVED,
    CONVERSATION_UPDATED,
    HISTORY_CHANGED,
    INTERACTION_CHANGED,
})

Listener = Callable[..., None]


class EventEmitter:
    """Synchronous named-event dispatcher.

    Listeners run in registration order on the emitting call. A listener that
    raises is logged and skipped; it never interrupts the state transition
    that emitted the event.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener.

        Args:
            event: One of the EVENT_NAMES
            listener: Callable invoked with the event's keyword payload

        Raises:
            ValueError: If the event name is unknown
        """
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {event}")
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a previously registered listener if present."""
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, **payload: Any) -> None:
        """
        Notify every listener of an event.

        Args:
            event: Event name
            **payload: Keyword arguments passed to each listener
        """
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(**payload)
            except Exception as e:
                logger.error(
                    "event_listener_failed",
                    event_name=event,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )
