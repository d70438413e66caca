"""Synchronous observer events."""

from typing import Any, Callable

Listener = Callable[..., Any]


class Event:
    """Ordered list of listeners called in-line when the event fires.

    Listeners run synchronously, in subscription order, on the thread that
    fires the event. Nothing is queued.
    """

    def __init__(self, name: str):
        """Initialize event.

        Args:
            name: Event name, used in logs and repr
        """
        self.name = name
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        """Add a listener. Subscribing the same callable twice is ignored."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a listener if it is subscribed."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> list[Listener]:
        """Snapshot of the current listeners."""
        return list(self._listeners)

    def fire(self, *args: Any) -> None:
        """Call every listener with the given arguments."""
        # Iterate over a copy so listeners may unsubscribe themselves
        for listener in list(self._listeners):
            listener(*args)

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, listeners={len(self._listeners)})"
