"""
Event Dispatch
==============

An explicit event bus that is handed to every collection, model and view at
construction. Handlers are registered per ``(target, event)`` pair, so one
bus can be shared by many emitters without their events crossing over.

Emission is synchronous: ``emit`` returns after every handler has run.
Handlers registered or removed while an event is being delivered take effect
from the next emission.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

ADD = "add"
REMOVE = "remove"
CHANGE = "change"


@dataclass(frozen=True)
class CollectionChange:
    """
    A single positional mutation of an ordered collection.

    ``event`` is ``"add"`` or ``"remove"``; ``idx`` is valid against the
    collection as it was immediately before this change was applied.
    """

    event: str
    item: Any
    idx: int

    def __repr__(self) -> str:
        return f"CollectionChange({self.event} {self.item!r} @ {self.idx})"


class EventBus:
    """Per-target, per-event handler registry."""

    def __init__(self):
        self._handlers: Dict[Tuple[Any, str], List[Callable]] = defaultdict(list)

    def on(self, target: Any, events: str, handler: Callable) -> Callable[[], None]:
        """
        Register ``handler`` for one or more space-separated events of ``target``.

        Returns:
            Function removing every registration made by this call
        """
        names = _split(events)
        for name in names:
            self._handlers[(target, name)].append(handler)

        def unsubscribe():
            for name in names:
                self._remove(target, name, handler)

        return unsubscribe

    def off(self, target: Any, events: str, handler: Callable) -> bool:
        """Remove a handler. Returns True if at least one registration was removed."""
        removed = False
        for name in _split(events):
            removed = self._remove(target, name, handler) or removed
        return removed

    def emit(self, target: Any, event: str, data: Any) -> None:
        handlers = self._handlers.get((target, event))
        if not handlers:
            return
        for handler in list(handlers):
            handler(data)

    def count(self, target: Any, event: str = None) -> int:
        """Number of handlers registered for ``target`` (optionally one event)."""
        if event is not None:
            return len(self._handlers.get((target, event), ()))
        return sum(
            len(handlers)
            for (owner, _), handlers in self._handlers.items()
            if owner is target
        )

    def clear(self, target: Any) -> None:
        """Drop every handler registered for ``target``."""
        for key in [key for key in self._handlers if key[0] is target]:
            del self._handlers[key]

    def _remove(self, target: Any, event: str, handler: Callable) -> bool:
        key = (target, event)
        handlers = self._handlers.get(key)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._handlers[key]
        return True


def _split(events: str) -> List[str]:
    names = events.split()
    if not names:
        raise ValueError("At least one event name is required")
    return names


__all__ = ["ADD", "CHANGE", "REMOVE", "CollectionChange", "EventBus"]
