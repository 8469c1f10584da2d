"""
ModelCollection - a model's values as an ordered collection
===========================================================

Exposes the ``key -> value`` pairs of a model as a collection of values,
sorted by key unless another comparator is given and optionally filtered.
Property changes on the model, and changes reported by observable values,
are turned into ``add``/``remove`` events by diffing the old and new value
list.
"""

import logging
from collections.abc import Mapping
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import ConfigurationError
from .events import ADD, REMOVE, CollectionChange, EventBus
from .model import Model
from .protocols import Observable
from .util.ordered_diff import patch_diff
from .util.sorted_index import binary_insert, index_of_identity, locate


class Entry:
    """A ``(key, value)`` pair as seen by ``compare`` and ``filter``."""

    __slots__ = ("key", "value", "unsubscribe")

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        self.unsubscribe: Optional[Callable[[], None]] = None

    def __repr__(self) -> str:
        return f"Entry({self.key!r}, {self.value!r})"


def compare_keys(a: Entry, b: Entry) -> int:
    return (a.key > b.key) - (a.key < b.key)


def _props(model: Any) -> Dict[str, Any]:
    if isinstance(model, Model):
        return model.props
    if isinstance(model, Mapping):
        return dict(model)
    return {k: v for k, v in vars(model).items() if not k.startswith("_")}


class ModelCollection:
    """
    Collection of a model's property values.

    Args:
        model: Model, mapping or plain object; None for an empty collection
        compare: ``compare(entry_a, entry_b)`` over :class:`Entry`; by key by default
        filter: ``filter(key, value) -> bool``; all entries shown by default
        event_bus: Bus to emit on; a private one by default
    """

    def __init__(
        self,
        model: Any = None,
        compare: Optional[Callable[[Entry, Entry], Any]] = None,
        filter: Optional[Callable[[str, Any], bool]] = None,
        event_bus: Optional[EventBus] = None,
    ):
        if compare is not None and not callable(compare):
            raise ConfigurationError("Option 'compare' must be callable")
        if filter is not None and not callable(filter):
            raise ConfigurationError("Option 'filter' must be callable")

        self._compare = compare or compare_keys
        self._sort_key = cmp_to_key(self._compare)
        self._filter = filter
        self._event_bus = event_bus or EventBus()

        self._model: Any = None
        self._unsubscribe_model: Optional[Callable[[], None]] = None
        self._list: List[Entry] = []
        self._entries: Dict[str, Entry] = {}
        self._hidden: Dict[str, Entry] = {}

        self.set_model(model, emit=False)

    @property
    def model(self) -> Any:
        return self._model

    def __len__(self) -> int:
        return len(self._list)

    @property
    def length(self) -> int:
        return len(self._list)

    def at(self, idx: int) -> Any:
        if 0 <= idx < len(self._list):
            return self._list[idx].value
        return None

    def index_of(self, value: Any) -> int:
        for i, entry in enumerate(self._list):
            if entry.value is value:
                return i
        return -1

    def to_array(self) -> List[Any]:
        return [entry.value for entry in self._list]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_array())

    def on(self, events: str, handler: Callable) -> Callable[[], None]:
        return self._event_bus.on(self, events, handler)

    def off(self, events: str, handler: Callable) -> bool:
        return self._event_bus.off(self, events, handler)

    def subscribe(self, callback: Callable[[CollectionChange], None]) -> Callable[[], None]:
        return self._event_bus.on(self, f"{ADD} {REMOVE}", callback)

    def set_model(self, model: Any, emit: bool = True) -> "ModelCollection":
        """Switch to another model; emits the diff unless ``emit`` is False."""
        if model is self._model and model is not None:
            return self

        for entry in self._entries.values():
            self._unlisten(entry)
        if self._unsubscribe_model is not None:
            self._unsubscribe_model()
            self._unsubscribe_model = None

        old = self._list
        self._model = model
        self._list = []
        self._entries = {}
        self._hidden = {}

        if model is not None:
            for key, value in _props(model).items():
                self._insert(key, value, sort=False)
            self._list.sort(key=self._sort_key)
            if isinstance(model, Observable):
                self._unsubscribe_model = model.subscribe(self._on_model_change)

        if emit:
            self._emit_diff(old)
        return self

    def refresh(self, key: Optional[str] = None) -> None:
        """Re-apply filter and sort order to one key, or to every key."""
        if self._model is None:
            return
        old = list(self._list)
        self._list.sort(key=self._sort_key)
        keys = [key] if key is not None else list(self._entries)
        for k in keys:
            entry = self._entries.get(k)
            if entry is not None:
                self._refilter(entry)
        self._emit_diff(old)

    def dispose(self) -> None:
        self.set_model(None, emit=False)

    def _on_model_change(self, changed: Dict[str, Any]) -> None:
        old = list(self._list)
        self._list.sort(key=self._sort_key)
        props = _props(self._model)
        for key in changed:
            entry = self._entries.get(key)
            if key not in props:
                if entry is not None:
                    self._delete(key)
                continue
            value = props[key]
            if entry is not None and entry.value is value:
                continue
            if entry is not None:
                self._delete(key)
            self._insert(key, value)
        self._emit_diff(old)

    def _on_value_change(self, entry: Entry) -> None:
        if self._entries.get(entry.key) is not entry:
            return
        old = list(self._list)
        self._list.sort(key=self._sort_key)
        self._refilter(entry)
        self._emit_diff(old)

    def _insert(self, key: str, value: Any, sort: bool = True) -> None:
        entry = Entry(key, value)
        self._entries[key] = entry
        self._listen(entry)
        if self._filter is not None and not self._filter(key, value):
            self._hidden[key] = entry
        elif sort:
            binary_insert(self._list, entry, self._compare)
        else:
            self._list.append(entry)

    def _delete(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            logging.warning(f"Key {key!r} is not in {self!r}")
            return
        self._unlisten(entry)
        if self._hidden.pop(key, None) is not None:
            return
        idx = locate(self._list, entry, self._compare)
        if idx < 0:
            logging.warning(f"Entry {entry!r} missing from {self!r}")
            return
        del self._list[idx]

    def _refilter(self, entry: Entry) -> None:
        show = self._filter is None or self._filter(entry.key, entry.value)
        if entry.key in self._hidden:
            if show:
                del self._hidden[entry.key]
                binary_insert(self._list, entry, self._compare)
        elif not show:
            idx = index_of_identity(self._list, entry)
            if idx < 0:
                logging.warning(f"Entry {entry!r} missing from {self!r}")
                return
            del self._list[idx]
            self._hidden[entry.key] = entry

    def _listen(self, entry: Entry) -> None:
        if isinstance(entry.value, Observable):
            entry.unsubscribe = entry.value.subscribe(
                lambda change: self._on_value_change(entry)
            )

    def _unlisten(self, entry: Entry) -> None:
        if entry.unsubscribe is not None:
            entry.unsubscribe()
            entry.unsubscribe = None

    def _emit_diff(self, old: List[Entry]) -> None:
        changes = []
        patch_diff(
            old,
            self._list,
            lambda e, _, idx: changes.append(CollectionChange(ADD, e.value, idx)),
            lambda e, _, idx: changes.append(CollectionChange(REMOVE, e.value, idx)),
        )
        for change in changes:
            self._event_bus.emit(self, change.event, change)

    def __repr__(self) -> str:
        return f"ModelCollection({self.to_array()!r})"


__all__ = ["Entry", "ModelCollection", "compare_keys"]
