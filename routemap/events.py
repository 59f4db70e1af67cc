"""
Event Emitter — explicit listener registry for lifecycle and change events.

Behavioral Contract:
- Listeners are called synchronously, in subscription order.
- Emitting iterates over a snapshot, so a listener may unsubscribe itself
  (or others) while being called.
- ``off()`` with no arguments detaches everything; owners call it on teardown
  so no callback outlives the object it was registered on.
"""

from typing import Callable, Dict, List, Optional


class EventEmitter:
    """Named events with a list of listeners each."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable) -> "EventEmitter":
        """Subscribe a callback to an event. Returns self for chaining."""
        if not callable(callback):
            raise TypeError(f"Listener for {event!r} is not callable")
        self._listeners.setdefault(event, []).append(callback)
        return self

    def off(
        self,
        event: Optional[str] = None,
        callback: Optional[Callable] = None,
    ) -> "EventEmitter":
        """
        Unsubscribe listeners.

        off()                 -> every listener of every event
        off(event)            -> every listener of one event
        off(event, callback)  -> one listener of one event
        off(None, callback)   -> one listener from every event
        """
        if event is None and callback is None:
            self._listeners.clear()
            return self

        events = [event] if event is not None else list(self._listeners)
        for name in events:
            if callback is None:
                self._listeners.pop(name, None)
                continue
            remaining = [c for c in self._listeners.get(name, []) if c is not callback]
            if remaining:
                self._listeners[name] = remaining
            else:
                self._listeners.pop(name, None)
        return self

    def emit(self, event: str, *args) -> None:
        """Call every listener of ``event`` with ``args``."""
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())
