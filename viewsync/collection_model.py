"""
CollectionModel - a collection's items as model properties
==========================================================

The inverse of :class:`viewsync.model_collection.ModelCollection`: every
item of a collection becomes a property of a :class:`viewsync.model.Model`,
stored under the key ``key(item)`` returns. Adds and removes on the
collection turn into ``change`` notifications carrying ``{key: old_value}``,
the same payload ``Model.set`` produces.

The properties are only ever written by the collection; ``set``, ``update``
and ``reset`` raise ``TypeError``.
"""

from typing import Any, Callable, Optional

from .errors import ConfigurationError
from .events import ADD, CHANGE, REMOVE, CollectionChange, EventBus
from .model import Model
from .protocols import Observable


class CollectionModel(Model):
    """
    Read-only model over a collection.

    Args:
        collection: Iterable of items, followed when observable
        key: ``key(item) -> property name``; should be unique per item and
            based on values that do not change
        map: ``map(item) -> property value``; the item itself by default
        event_bus: Event bus to emit on, a private one by default
    """

    def __init__(
        self,
        collection: Any,
        key: Callable[[Any], Any],
        map: Optional[Callable[[Any], Any]] = None,
        event_bus: Optional[EventBus] = None,
    ):
        if not callable(key):
            raise ConfigurationError("Option 'key' must be callable")
        if map is not None and not callable(map):
            raise ConfigurationError("Option 'map' must be callable")
        super().__init__(event_bus=event_bus)

        self._collection = collection
        self._key = key
        self._map = map
        self._unsubscribe: Optional[Callable[[], None]] = None

        for item in collection:
            # First item wins when keys collide.
            self._props.setdefault(key(item), self._value(item))

        if isinstance(collection, Observable):
            self._unsubscribe = collection.subscribe(self._on_collection_change)

    @property
    def collection(self) -> Any:
        return self._collection

    def set(self, **props: Any):
        raise TypeError(f"{type(self).__name__} properties follow its collection")

    def update(self, props):
        raise TypeError(f"{type(self).__name__} properties follow its collection")

    def reset(self, props):
        raise TypeError(f"{type(self).__name__} properties follow its collection")

    def dispose(self) -> None:
        """Stop following the collection and drop all properties."""
        if self._collection is None:
            return
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._collection = None
        self._props = {}

    def _value(self, item: Any) -> Any:
        return self._map(item) if self._map else item

    def _on_collection_change(self, change: CollectionChange) -> None:
        if self._collection is None:
            return
        key = self._key(change.item)
        old = self._props.get(key)
        if change.event == ADD:
            self._props[key] = self._value(change.item)
        elif change.event == REMOVE:
            self._props.pop(key, None)
        else:
            return
        self._event_bus.emit(self, CHANGE, {key: old})

    def __repr__(self) -> str:
        return f"CollectionModel({self._props!r})"


__all__ = ["CollectionModel"]
