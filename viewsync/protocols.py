"""
Capability interfaces for sources, items and views.

An object is observable when it exposes ``subscribe(callback)`` returning an
unsubscribe function. Items that are not observable are treated as plain
values and never re-evaluated on their own.
"""

from typing import Any, Callable, Iterator, Protocol, runtime_checkable

Unsubscribe = Callable[[], None]


@runtime_checkable
class Observable(Protocol):
    """Anything that can notify a callback about changes to itself."""

    def subscribe(self, callback: Callable[[Any], None]) -> Unsubscribe:
        ...


@runtime_checkable
class SourceCollection(Protocol):
    """A finite, re-iterable ordered sequence of items."""

    def __iter__(self) -> Iterator[Any]:
        ...


@runtime_checkable
class ObservableCollection(SourceCollection, Observable, Protocol):
    """
    A source collection that also reports its own mutations.

    Subscribers receive :class:`viewsync.events.CollectionChange` records for
    every insertion and removal, with ``idx`` relative to the collection's
    own order at the time of the event.
    """

    pass


__all__ = ["Observable", "ObservableCollection", "SourceCollection", "Unsubscribe"]
