"""
DerivedView - incrementally synchronized view over a collection
===============================================================

A view tracks every item of its source in an internal container list, in
comparator order when ``compare`` is given and in source order otherwise.
Each container remembers the mapped value and whether the item passes the
filter. The view's output is the window ``[begin:end]`` over the visible
containers.

Every source mutation updates the list and emits the ``add``/``remove``
events that carry an observer's copy of the output from the old state to
the new one. Each event's ``idx`` is valid against the output as it was
right before that event, so an observer can apply them one at a time.

Three paths produce events:

1. Source add/remove: one visible item enters or leaves; the window edges
   are worked out with ``insert_events``/``remove_events``.
2. Item change: the item's value, visibility and sort position are
   re-derived. Unbounded views emit the item's own remove/add directly;
   windowed views diff the old and new window.
3. Resync (``refresh``, ``set_source`` and coalesced item changes): every
   affected container is re-derived, the list is re-sorted, and the old
   and new window are diffed in one pass.

Events from mutations made inside an observer callback are queued behind
the events currently being delivered.
"""

import logging
from collections import deque
from functools import cmp_to_key
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Sequence

from .errors import ConfigurationError, DisposedError
from .events import ADD, REMOVE, CollectionChange, EventBus
from .options import ViewOptions
from .protocols import Observable, SourceCollection
from .scheduler import Scheduler, Task
from .util.ordered_diff import patch_diff, same
from .util.sorted_index import binary_insert, index_of_identity, locate
from .util.window import insert_events, remove_events, window_range

# ============================================================================
# CONTAINERS
# ============================================================================


class _Container:
    """Bookkeeping for one tracked source item."""

    __slots__ = ("item", "value", "visible", "dirty", "tracked", "unsubscribe")

    def __init__(self, item: Any, value: Any, visible: bool):
        self.item = item
        self.value = value
        self.visible = visible
        self.dirty = False
        self.tracked = True
        self.unsubscribe: Optional[Callable[[], None]] = None

    def release(self) -> None:
        self.tracked = False
        if self.unsubscribe is not None:
            self.unsubscribe()
            self.unsubscribe = None

    def __repr__(self) -> str:
        flag = "" if self.visible else ", hidden"
        return f"<{self.value!r}{flag}>"


class _Replaced:
    """Stand-in for a container in a snapshot taken before its value changed."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value


def _value(container: _Container) -> Any:
    return container.value


def _same_entry(a: _Container, b: _Container) -> bool:
    return a is b or (a.item is b.item and same(a.value, b.value))


def _check_source(source: Any) -> None:
    if source is not None and not isinstance(source, SourceCollection):
        raise ConfigurationError(
            f"Source must be iterable, got {type(source).__name__}"
        )


# ============================================================================
# DERIVED VIEW
# ============================================================================


class DerivedView:
    """
    Filtered, mapped, sorted and windowed view of a source collection.

    Args:
        source: Iterable source. If it is observable (``subscribe``), its add
            and remove changes are followed. None means empty.
        map: ``map(item) -> value``; values are what the view exposes
        filter: ``filter(item) -> bool``; hidden items are still tracked
        compare: ``compare(value_a, value_b) -> number``; source order if None
        begin: Window start (slice semantics)
        end: Window end (slice semantics), None for unbounded
        auto_dispose_after_ms: Dispose after this long without observers
        coalesce: Batch item changes into one scheduled resync
        event_bus: Bus to emit on; a private one by default
        scheduler: Required for ``coalesce`` and ``auto_dispose_after_ms``

    Raises:
        ConfigurationError: On any invalid option
    """

    def __init__(
        self,
        source: Any,
        map: Optional[Callable[[Any], Any]] = None,
        filter: Optional[Callable[[Any], bool]] = None,
        compare: Optional[Callable[[Any, Any], Any]] = None,
        begin: int = 0,
        end: Optional[int] = None,
        auto_dispose_after_ms: Optional[int] = None,
        coalesce: bool = False,
        event_bus: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self._options = ViewOptions(
            map=map,
            filter=filter,
            compare=compare,
            begin=begin,
            end=end,
            auto_dispose_after_ms=auto_dispose_after_ms,
            coalesce=coalesce,
        ).validate(scheduler)
        _check_source(source)

        self._map = map
        self._filter = filter
        self._compare = compare
        self._begin = begin
        self._end = end
        self._event_bus = event_bus or EventBus()
        self._scheduler = scheduler
        self._sort_key = (
            cmp_to_key(lambda a, b: compare(a.value, b.value)) if compare else None
        )

        self._source: Any = None
        self._unsubscribe_source: Optional[Callable[[], None]] = None
        self._list: List[_Container] = []
        # id(item) -> containers; a list because plain values may repeat
        self._tracked: Dict[int, List[_Container]] = {}
        self._visible_count = 0

        self._pending: Deque[CollectionChange] = deque()
        self._is_propagating = False
        self._resync_task: Optional[Task] = None
        self._dispose_task: Optional[Task] = None
        self._disposed = False

        self._attach(source)

    # ========================================================================
    # READ API
    # ========================================================================

    @property
    def source(self) -> Any:
        return self._source

    @property
    def options(self) -> ViewOptions:
        return self._options

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def length(self) -> int:
        return len(self)

    def __len__(self) -> int:
        lo, hi = self._window()
        return hi - lo

    def at(self, index: int) -> Any:
        """Value at a window index, None when out of range."""
        lo, hi = self._window()
        if not isinstance(index, int) or index < 0 or index >= hi - lo:
            return None
        return self._visible()[lo + index].value

    def index_of(self, item_or_value: Any) -> int:
        """Window index of a source item or a mapped value, -1 if not shown."""
        for idx, container in enumerate(self._window_containers()):
            if container.item is item_or_value or same(container.value, item_or_value):
                return idx
        return -1

    def to_array(self) -> List[Any]:
        return [container.value for container in self._window_containers()]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_array())

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._list)} tracked"
        return f"DerivedView({self.to_array()!r}, {state})"

    # ========================================================================
    # OBSERVERS
    # ========================================================================

    def on(self, events: str, handler: Callable[[CollectionChange], None]) -> Callable[[], None]:
        """
        Attach a handler to ``"add"``, ``"remove"`` or ``"add remove"``.

        Returns:
            Unsubscribe function
        """
        remove = self._event_bus.on(self, events, handler)
        self._observers_changed()

        def unsubscribe():
            remove()
            self._observers_changed()

        return unsubscribe

    def off(self, events: str, handler: Callable[[CollectionChange], None]) -> bool:
        removed = self._event_bus.off(self, events, handler)
        self._observers_changed()
        return removed

    def subscribe(self, callback: Callable[[CollectionChange], None]) -> Callable[[], None]:
        """Observe every add and remove; lets a view act as another view's source."""
        return self.on(f"{ADD} {REMOVE}", callback)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def set_source(self, source: Any) -> None:
        """
        Replace the source collection.

        Old items are untracked, new ones tracked, and observers receive the
        diff between the old and the new output.
        """
        if self._disposed:
            raise DisposedError("Cannot set the source of a disposed view")
        if source is self._source:
            return
        _check_source(source)
        self._cancel_resync()

        before = self._window_containers()
        self._detach()
        self._attach(source)
        self._emit_diff(before, self._window_containers(), equals=_same_entry)

    def refresh(self, item: Any = None) -> None:
        """
        Re-evaluate map, filter and sort order.

        Args:
            item: Source item to refresh; all items when None
        """
        if self._disposed:
            return
        if item is None:
            targets = list(self._list)
        else:
            targets = list(self._tracked.get(id(item), ()))
            if not targets:
                logging.warning(f"Cannot refresh {item!r}: not tracked by {self!r}")
                return
            targets.extend(c for c in self._list if c.dirty and c.item is not item)
        self._cancel_resync()
        self._sync(targets)

    def flush(self) -> None:
        """Run a pending coalesced resync now."""
        if self._resync_task is not None:
            self._cancel_resync()
            self._sync([c for c in self._list if c.dirty])

    def dispose(self) -> None:
        """Stop following the source and its items. Safe to call repeatedly."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_resync()
        if self._dispose_task is not None:
            self._dispose_task.cancel()
            self._dispose_task = None

        if self._unsubscribe_source is not None:
            self._unsubscribe_source()
            self._unsubscribe_source = None
        for container in self._list:
            container.release()
        self._tracked.clear()
        self._source = None

    # ========================================================================
    # TRACKING
    # ========================================================================

    def _attach(self, source: Any) -> None:
        self._source = source
        if source is None:
            return
        for item in source:
            self._list.append(self._track(item))
        if self._sort_key is not None:
            self._list.sort(key=self._sort_key)
        if isinstance(source, Observable):
            self._unsubscribe_source = source.subscribe(self._on_source_change)

    def _detach(self) -> None:
        if self._unsubscribe_source is not None:
            self._unsubscribe_source()
            self._unsubscribe_source = None
        for container in self._list:
            container.release()
        self._tracked.clear()
        self._list = []
        self._visible_count = 0
        self._source = None

    def _track(self, item: Any) -> _Container:
        value = self._map(item) if self._map else item
        visible = bool(self._filter(item)) if self._filter else True
        container = _Container(item, value, visible)
        if isinstance(item, Observable):
            container.unsubscribe = item.subscribe(
                lambda change: self._on_item_change(container, change)
            )
        self._tracked.setdefault(id(item), []).append(container)
        if visible:
            self._visible_count += 1
        return container

    def _untrack(self, container: _Container) -> None:
        container.release()
        bucket = self._tracked.get(id(container.item))
        if bucket is not None:
            bucket.remove(container)
            if not bucket:
                del self._tracked[id(container.item)]
        if container.visible:
            self._visible_count -= 1

    def _find(self, item: Any, hint: Optional[int]):
        """Container of ``item`` and its list position, preferring the one at ``hint``."""
        candidates = self._tracked.get(id(item))
        if not candidates:
            return None, -1
        if self._compare is None and hint is not None and 0 <= hint < len(self._list):
            container = self._list[hint]
            if container.item is item:
                return container, hint
        container = candidates[0]
        at = self._position(container)
        if at < 0:
            logging.warning(f"{container!r} is tracked but missing from {self!r}")
            return None, -1
        return container, at

    def _position(self, container: _Container) -> int:
        if self._compare is not None:
            return locate(self._list, container, self._compare, key=_value)
        return index_of_identity(self._list, container)

    # ========================================================================
    # SOURCE EVENTS
    # ========================================================================

    def _on_source_change(self, change: CollectionChange) -> None:
        if self._disposed:
            return
        if change.event == ADD:
            self._on_add(change.item, change.idx)
        elif change.event == REMOVE:
            self._on_remove(change.item, change.idx)

    def _on_add(self, item: Any, idx: Optional[int]) -> None:
        container = self._track(item)
        if self._compare is not None:
            at = binary_insert(
                self._list, container.value, self._compare, key=_value, element=container
            )
        else:
            if idx is None or idx < 0 or idx > len(self._list):
                logging.warning(f"Add index {idx} out of range for {self!r}, appending")
                idx = len(self._list)
            at = idx
            self._list.insert(at, container)

        if container.visible:
            events = insert_events(
                self._begin, self._end, self._visible_count - 1, self._visible_position(at)
            )
            self._emit_window(events, container)

    def _on_remove(self, item: Any, idx: Optional[int]) -> None:
        container, at = self._find(item, idx)
        if container is None:
            logging.warning(f"Removed item {item!r} is not tracked by {self!r}")
            return

        was_visible = container.visible
        pos = self._visible_position(at) if was_visible else -1
        del self._list[at]
        self._untrack(container)

        if was_visible:
            events = remove_events(self._begin, self._end, self._visible_count + 1, pos)
            self._emit_window(events, container)

    # ========================================================================
    # ITEM CHANGES
    # ========================================================================

    def _on_item_change(self, container: _Container, change: Any) -> None:
        if self._disposed or not container.tracked:
            return
        if self._options.coalesce:
            container.dirty = True
            if self._resync_task is None:
                self._resync_task = self._scheduler.call_soon(self._resync)
            return
        self._reevaluate(container)

    def _reevaluate(self, container: _Container) -> None:
        at = self._position(container)
        if at < 0:
            logging.warning(f"Changed item {container.item!r} is not tracked by {self!r}")
            return

        old_visible = container.visible
        old_value = container.value
        old_pos = self._visible_position(at) if old_visible else -1
        before = self._window_containers() if self._options.windowed else None

        value_changed = self._rederive(container)
        at = self._reposition(at)
        if not old_visible and not container.visible:
            return

        if before is not None:
            replaced = {id(container): old_value} if value_changed else None
            self._emit_diff(before, self._window_containers(), replaced)
            return

        new_pos = self._visible_position(at) if container.visible else -1
        if old_visible == container.visible and old_pos == new_pos and not value_changed:
            return
        changes = []
        if old_visible:
            changes.append(CollectionChange(REMOVE, old_value, old_pos))
        if container.visible:
            changes.append(CollectionChange(ADD, container.value, new_pos))
        self._dispatch(changes)

    def _rederive(self, container: _Container) -> bool:
        """Recompute value and visibility. Returns True if the value changed."""
        value = self._map(container.item) if self._map else container.item
        changed = not same(value, container.value)
        if changed:
            container.value = value

        visible = bool(self._filter(container.item)) if self._filter else True
        if visible != container.visible:
            container.visible = visible
            self._visible_count += 1 if visible else -1
        return changed

    def _reposition(self, at: int) -> int:
        """Move the container at ``at`` if it broke sort order; returns its position."""
        if self._compare is None:
            return at
        lst = self._list
        container = lst[at]
        if (at > 0 and self._compare(lst[at - 1].value, container.value) > 0) or (
            at + 1 < len(lst) and self._compare(container.value, lst[at + 1].value) > 0
        ):
            del lst[at]
            at = binary_insert(
                lst, container.value, self._compare, key=_value, element=container
            )
        return at

    def _resync(self) -> None:
        self._resync_task = None
        if self._disposed:
            return
        self._sync([c for c in self._list if c.dirty])

    def _cancel_resync(self) -> None:
        if self._resync_task is not None:
            self._resync_task.cancel()
            self._resync_task = None

    def _sync(self, containers: Sequence[_Container]) -> None:
        before = self._window_containers()
        replaced = {}
        for container in containers:
            container.dirty = False
            old_value = container.value
            if self._rederive(container):
                replaced[id(container)] = old_value
        if self._sort_key is not None:
            self._list.sort(key=self._sort_key)
        self._emit_diff(before, self._window_containers(), replaced)

    # ========================================================================
    # WINDOW & EMISSION
    # ========================================================================

    def _window(self):
        return window_range(self._begin, self._end, self._visible_count)

    def _visible(self) -> List[_Container]:
        if self._filter is None:
            return self._list
        return [c for c in self._list if c.visible]

    def _visible_position(self, at: int) -> int:
        if self._filter is None:
            return at
        return sum(1 for c in self._list[:at] if c.visible)

    def _window_containers(self) -> List[_Container]:
        lo, hi = self._window()
        return self._visible()[lo:hi]

    def _emit_window(self, events, own: _Container) -> None:
        visible = None
        changes = []
        for event in events:
            if event.own:
                container = own
            else:
                if visible is None:
                    visible = self._visible()
                container = visible[event.pos]
            changes.append(CollectionChange(event.kind, container.value, event.idx))
        self._dispatch(changes)

    def _emit_diff(
        self,
        before: List[_Container],
        after: List[_Container],
        replaced: Optional[Dict[int, Any]] = None,
        equals: Optional[Callable[[Any, Any], bool]] = None,
    ) -> None:
        if replaced:
            # A container whose value changed must not match itself.
            before = [
                _Replaced(replaced[id(c)]) if id(c) in replaced else c for c in before
            ]
        changes = []
        patch_diff(
            before,
            after,
            lambda c, _, idx: changes.append(CollectionChange(ADD, c.value, idx)),
            lambda c, _, idx: changes.append(CollectionChange(REMOVE, c.value, idx)),
            equals,
        )
        self._dispatch(changes)

    def _dispatch(self, changes: List[CollectionChange]) -> None:
        if not changes:
            return
        self._pending.extend(changes)
        if self._is_propagating:
            return
        self._is_propagating = True
        try:
            while self._pending:
                change = self._pending.popleft()
                self._event_bus.emit(self, change.event, change)
        finally:
            self._is_propagating = False

    # ========================================================================
    # AUTO DISPOSE
    # ========================================================================

    def _observers_changed(self) -> None:
        delay = self._options.auto_dispose_after_ms
        if delay is None or self._disposed:
            return
        if self._event_bus.count(self) > 0:
            if self._dispose_task is not None:
                self._dispose_task.cancel()
                self._dispose_task = None
        elif self._dispose_task is None:
            self._dispose_task = self._scheduler.call_later(delay, self._auto_dispose)

    def _auto_dispose(self) -> None:
        self._dispose_task = None
        if self._disposed or self._event_bus.count(self) > 0:
            return
        logging.debug(f"Disposing {self!r} after {self._options.auto_dispose_after_ms}ms without observers")
        self.dispose()


__all__ = ["DerivedView"]
