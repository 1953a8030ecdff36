"""
Observer plumbing between the match engine and whatever draws it.

Each emitting component owns one EventEmitter declaring the event names it
can fire. Handlers are called synchronously, in subscription order, and
their return values are ignored.
"""
from typing import Callable, Dict, Iterable, List


class EventEmitter:
    """A fixed set of named events with explicit subscribe/unsubscribe."""

    def __init__(self, event_names: Iterable[str]):
        self._handlers: Dict[str, List[Callable]] = {name: [] for name in event_names}

    @property
    def event_names(self):
        return tuple(self._handlers)

    def subscribe(self, event: str, handler: Callable) -> None:
        """
        Register a handler for an event.

        Raises:
            ValueError: If the event name is not one this emitter fires
        """
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event}")
        if handler not in self._handlers[event]:
            self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args) -> None:
        """
        Call every handler subscribed to an event.

        A handler that raises is reported and skipped so the remaining
        handlers and the emitting component are not affected.
        """
        for handler in list(self._handlers[event]):
            try:
                handler(*args)
            except Exception as e:
                print(f"Error in '{event}' handler {handler!r}: {e}")
