"""
Collection - observable ordered collection
==========================================

A keyed, ordered list of items that reports insertions and removals. Items
are kept in insertion order, or sorted by ``compare`` when one is given, and
looked up by the id returned from ``id_attribute``.

Subscribers receive a :class:`viewsync.events.CollectionChange` per
mutation; ``idx`` is the item's position in this collection's own order.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .errors import ConfigurationError, DuplicateKeyError
from .events import ADD, REMOVE, CollectionChange, EventBus
from .util.sorted_index import index_of_identity, insertion_index, locate


def default_id(item: Any) -> Any:
    """``item["id"]`` for mappings, ``item.id`` for everything else."""
    if isinstance(item, Mapping):
        return item["id"]
    return item.id


def sort_order_compare(a: Any, b: Any) -> int:
    """Compare by a ``sort_order`` attribute or key."""
    x = a["sort_order"] if isinstance(a, Mapping) else a.sort_order
    y = b["sort_order"] if isinstance(b, Mapping) else b.sort_order
    return (x > y) - (x < y)


class Collection:
    """
    Observable ordered collection.

    Args:
        data: Initial items, added without notifications
        compare: Sort order; insertion order when None
        model_factory: Called on every added item, the result is stored
        id_attribute: Id getter; None stores items as a plain list without ids
        event_bus: Event bus to emit on, a private one by default
    """

    def __init__(
        self,
        data: Optional[Iterable[Any]] = None,
        compare: Optional[Callable[[Any, Any], Any]] = None,
        model_factory: Optional[Callable[[Any], Any]] = None,
        id_attribute: Optional[Callable[[Any], Any]] = default_id,
        event_bus: Optional[EventBus] = None,
    ):
        for name, value in (
            ("compare", compare),
            ("model_factory", model_factory),
            ("id_attribute", id_attribute),
        ):
            if value is not None and not callable(value):
                raise ConfigurationError(f"Option '{name}' must be callable")

        self._compare = compare
        self._model_factory = model_factory
        self._id_attribute = id_attribute
        self._event_bus = event_bus or EventBus()

        self._list: List[Any] = []
        self._by_id: Dict[Any, Any] = {}

        if data:
            for item in data:
                self._add_item(item, None, emit=False)

    @property
    def compare(self) -> Optional[Callable[[Any, Any], Any]]:
        return self._compare

    def on(self, events: str, handler: Callable) -> Callable[[], None]:
        """Attach a handler to ``"add"``, ``"remove"`` or ``"add remove"``."""
        return self._event_bus.on(self, events, handler)

    def off(self, events: str, handler: Callable) -> bool:
        return self._event_bus.off(self, events, handler)

    def subscribe(self, callback: Callable[[CollectionChange], None]) -> Callable[[], None]:
        """Observe every add and remove."""
        return self._event_bus.on(self, f"{ADD} {REMOVE}", callback)

    def add(self, item: Any, idx: Optional[int] = None) -> int:
        """
        Add an item.

        Args:
            item: Item to add, passed through ``model_factory`` first
            idx: Insert position; ignored when the collection is sorted

        Returns:
            Position the item was inserted at
        """
        return self._add_item(item, idx, emit=True)

    def remove(self, id: Any) -> int:
        """
        Remove the item with the given id.

        Returns:
            Position of the item before removal, -1 if no such id
        """
        self._require_ids()
        item = self._by_id.get(id)
        if item is None:
            return -1

        if self._compare is not None:
            idx = locate(self._list, item, self._compare)
        else:
            idx = index_of_identity(self._list, item)
        del self._by_id[id]
        del self._list[idx]
        self._event_bus.emit(self, REMOVE, CollectionChange(REMOVE, item, idx))
        return idx

    def remove_at(self, idx: int) -> Any:
        """Remove and return the item at ``idx``."""
        if idx < 0 or idx >= len(self._list):
            raise IndexError(f"Index {idx} out of range for collection of {len(self._list)}")
        item = self._list.pop(idx)
        if self._id_attribute is not None:
            self._by_id.pop(self._id_attribute(item), None)
        self._event_bus.emit(self, REMOVE, CollectionChange(REMOVE, item, idx))
        return item

    def get(self, id: Any) -> Any:
        self._require_ids()
        return self._by_id.get(id)

    def at(self, idx: int) -> Any:
        if 0 <= idx < len(self._list):
            return self._list[idx]
        return None

    def index_of(self, item: Any) -> int:
        """Position of ``item`` (by identity), -1 if absent."""
        return index_of_identity(self._list, item)

    def index_of_id(self, id: Any) -> int:
        item = self.get(id)
        if item is None:
            return -1
        return self.index_of(item)

    def to_array(self) -> List[Any]:
        return list(self._list)

    def __len__(self) -> int:
        return len(self._list)

    @property
    def length(self) -> int:
        return len(self._list)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._list))

    def __contains__(self, item: Any) -> bool:
        return index_of_identity(self._list, item) >= 0

    def __repr__(self) -> str:
        return f"Collection({self._list!r})"

    def _require_ids(self) -> None:
        if self._id_attribute is None:
            raise TypeError("Collection has no id attribute")

    def _add_item(self, item: Any, idx: Optional[int], emit: bool) -> int:
        if self._model_factory is not None:
            item = self._model_factory(item)

        if self._id_attribute is not None:
            key = self._id_attribute(item)
            if key in self._by_id:
                raise DuplicateKeyError(f"Collection key {key!r} already exists")

        if self._compare is not None:
            idx = insertion_index(self._list, item, self._compare)
        elif idx is None:
            idx = len(self._list)
        elif idx < 0 or idx > len(self._list):
            raise IndexError(f"Index {idx} out of range for collection of {len(self._list)}")

        self._list.insert(idx, item)
        if self._id_attribute is not None:
            self._by_id[key] = item

        if emit:
            self._event_bus.emit(self, ADD, CollectionChange(ADD, item, idx))
        return idx


__all__ = ["Collection", "default_id", "sort_order_compare"]
