"""
JoinedCollection - several collections read as one
==================================================

Concatenates a collection of collections (or a plain list of them) into a
single ordered collection. Adds and removes inside a part are re-emitted
with the part's offset added to ``idx``; a part added to or removed from the
outer collection shows up as one ``add`` or ``remove`` per item it holds.

Parts and the outer collection are followed only when they are observable.
Plain lists are read once, when they are joined.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .events import ADD, REMOVE, CollectionChange, EventBus
from .protocols import Observable


class _Part:
    """One joined collection and the subscription following it."""

    __slots__ = ("collection", "unsubscribe")

    def __init__(self, collection: Any):
        self.collection = collection
        self.unsubscribe: Optional[Callable[[], None]] = None

    def __len__(self) -> int:
        if self.collection is None:
            return 0
        return len(self.collection)

    def items(self) -> List[Any]:
        if self.collection is None:
            return []
        return list(self.collection)


class JoinedCollection:
    """
    Ordered concatenation of collections.

    Args:
        collections: Iterable of collections; ``None`` entries count as empty.
            Followed for added and removed parts when observable.
        event_bus: Event bus to emit on, a private one by default
    """

    def __init__(
        self, collections: Optional[Iterable[Any]] = None, event_bus: Optional[EventBus] = None
    ):
        self._event_bus = event_bus or EventBus()
        self._collections: Any = None
        self._unsubscribe_outer: Optional[Callable[[], None]] = None
        self._parts: List[_Part] = []
        self._attach(collections)

    @property
    def collections(self) -> Any:
        return self._collections

    def __len__(self) -> int:
        return sum(len(part) for part in self._parts)

    @property
    def length(self) -> int:
        return len(self)

    def at(self, idx: int) -> Any:
        if idx < 0:
            return None
        for part in self._parts:
            size = len(part)
            if idx < size:
                return part.items()[idx]
            idx -= size
        return None

    def index_of(self, item: Any) -> int:
        """Position of ``item`` (by identity), -1 if absent."""
        for i, candidate in enumerate(self):
            if candidate is item:
                return i
        return -1

    def to_array(self) -> List[Any]:
        return [item for part in self._parts for item in part.items()]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_array())

    def __repr__(self) -> str:
        return f"JoinedCollection({self.to_array()!r})"

    def on(self, events: str, handler: Callable) -> Callable[[], None]:
        return self._event_bus.on(self, events, handler)

    def off(self, events: str, handler: Callable) -> bool:
        return self._event_bus.off(self, events, handler)

    def subscribe(self, callback: Callable[[CollectionChange], None]) -> Callable[[], None]:
        return self._event_bus.on(self, f"{ADD} {REMOVE}", callback)

    def set_collections(self, collections: Optional[Iterable[Any]]) -> "JoinedCollection":
        """
        Join another set of collections.

        Every item of the current parts is reported removed, then every item
        of the new ones added.
        """
        if collections is self._collections:
            return self
        self._detach(emit=True)
        self._attach(collections, emit=True)
        return self

    def dispose(self) -> None:
        """Stop following the outer collection and every part."""
        self._detach(emit=False)

    def _attach(self, collections: Optional[Iterable[Any]], emit: bool = False) -> None:
        self._collections = collections
        if collections is None:
            return
        for idx, collection in enumerate(collections):
            self._join(collection, idx, emit)
        if isinstance(collections, Observable):
            self._unsubscribe_outer = collections.subscribe(self._on_outer_change)

    def _detach(self, emit: bool) -> None:
        if self._unsubscribe_outer is not None:
            self._unsubscribe_outer()
            self._unsubscribe_outer = None
        while self._parts:
            self._leave(0, emit)
        self._collections = None

    def _join(self, collection: Any, idx: int, emit: bool) -> None:
        part = _Part(collection)
        if isinstance(collection, Observable):
            part.unsubscribe = collection.subscribe(
                lambda change: self._on_part_change(part, change)
            )
        self._parts.insert(idx, part)
        if emit:
            start = self._offset(idx)
            for i, item in enumerate(part.items()):
                self._emit(ADD, item, start + i)

    def _leave(self, idx: int, emit: bool) -> None:
        part = self._parts.pop(idx)
        if part.unsubscribe is not None:
            part.unsubscribe()
            part.unsubscribe = None
        if emit:
            start = self._offset(idx)
            # Each removal shifts the next item down to ``start``.
            for item in part.items():
                self._emit(REMOVE, item, start)

    def _on_outer_change(self, change: CollectionChange) -> None:
        if change.event == ADD:
            idx = change.idx if 0 <= change.idx <= len(self._parts) else len(self._parts)
            self._join(change.item, idx, emit=True)
        elif change.event == REMOVE:
            idx = change.idx
            if not (0 <= idx < len(self._parts)) or self._parts[idx].collection is not change.item:
                idx = self._part_index(change.item)
            if idx < 0:
                logging.warning(f"Removed collection {change.item!r} is not joined in {self!r}")
                return
            self._leave(idx, emit=True)

    def _on_part_change(self, part: _Part, change: CollectionChange) -> None:
        idx = next((i for i, p in enumerate(self._parts) if p is part), -1)
        if idx < 0:
            return
        self._emit(change.event, change.item, self._offset(idx) + change.idx)

    def _part_index(self, collection: Any) -> int:
        for i, part in enumerate(self._parts):
            if part.collection is collection:
                return i
        return -1

    def _offset(self, idx: int) -> int:
        return sum(len(part) for part in self._parts[:idx])

    def _emit(self, event: str, item: Any, idx: int) -> None:
        self._event_bus.emit(self, event, CollectionChange(event, item, idx))


__all__ = ["JoinedCollection"]
