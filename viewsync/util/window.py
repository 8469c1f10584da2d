"""
Window Math
===========

A window is a ``(begin, end)`` pair with Python slice semantics over the
visible sequence: negative offsets count from the end, both bounds clamp to
``[0, length]`` and ``end=None`` is unbounded. Bounds are always resolved
against the current length, never stored as absolute indices.

Because the bounds move with the length, one item entering or leaving the
visible sequence can also push a neighbour across either edge of the window.
``insert_events`` and ``remove_events`` return every resulting window event
for such a single transition, in an order an observer can apply one by one.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class WindowEvent:
    """
    One window-relative mutation.

    ``pos`` is a position in the visible sequence after the transition,
    except for the removed item's own event, which carries its old position.
    ``own`` marks the event of the item that caused the transition.
    """

    kind: str  # "add" or "remove"
    pos: int
    idx: int
    own: bool = False


def begin_index(begin: int, length: int) -> int:
    if begin < 0:
        return max(0, length + begin)
    return min(begin, length)


def end_index(end: Optional[int], length: int) -> int:
    if end is None:
        return length
    if end < 0:
        return max(0, length + end)
    return min(end, length)


def window_range(begin: int, end: Optional[int], length: int) -> Tuple[int, int]:
    """Absolute half-open range ``(lo, hi)`` of the window, ``hi >= lo``."""
    lo = begin_index(begin, length)
    return lo, max(lo, end_index(end, length))


def is_unbounded(begin: int, end: Optional[int]) -> bool:
    return begin == 0 and end is None


def shift_events(
    old_lo: int, old_hi: int, new_lo: int, new_hi: int
) -> List[Tuple[str, int, int]]:
    """
    Events moving a window from one range of a sequence to another.

    Both ranges index the same, unchanged sequence. Returns
    ``(kind, position, idx)`` triples: removals first (head, then tail),
    then additions (head, then tail).
    """
    events = []
    keep_lo = max(old_lo, new_lo)
    keep_hi = min(old_hi, new_hi)
    if keep_lo >= keep_hi:
        for j in range(old_hi - 1, old_lo - 1, -1):
            events.append(("remove", j, j - old_lo))
        for j in range(new_lo, new_hi):
            events.append(("add", j, j - new_lo))
        return events

    for j in range(old_lo, keep_lo):
        events.append(("remove", j, 0))
    for j in range(old_hi - 1, keep_hi - 1, -1):
        events.append(("remove", j, j - keep_lo))
    for j in range(new_lo, keep_lo):
        events.append(("add", j, j - new_lo))
    for j in range(keep_hi, new_hi):
        events.append(("add", j, j - new_lo))
    return events


def insert_events(
    begin: int, end: Optional[int], length: int, pos: int
) -> List[WindowEvent]:
    """
    Window events for an item becoming visible at ``pos``.

    Args:
        begin, end: Window configuration
        length: Visible length before the item was inserted
        pos: Position of the item in the visible sequence after insertion
    """
    old_lo, old_hi = window_range(begin, end, length)
    new_lo, new_hi = window_range(begin, end, length + 1)

    # New window over the sequence as it was before the insert.
    lo = new_lo if new_lo <= pos else new_lo - 1
    hi = new_hi if new_hi <= pos else new_hi - 1

    events = [
        WindowEvent(kind, j if j < pos else j + 1, idx)
        for kind, j, idx in shift_events(old_lo, old_hi, lo, max(lo, hi))
    ]
    if new_lo <= pos < new_hi:
        events.append(WindowEvent("add", pos, pos - new_lo, own=True))
    return events


def remove_events(
    begin: int, end: Optional[int], length: int, pos: int
) -> List[WindowEvent]:
    """
    Window events for the item at visible position ``pos`` disappearing.

    Args:
        begin, end: Window configuration
        length: Visible length before the item was removed
        pos: Position the item had in the visible sequence
    """
    old_lo, old_hi = window_range(begin, end, length)
    new_lo, new_hi = window_range(begin, end, length - 1)

    events = []
    if old_lo <= pos < old_hi:
        events.append(WindowEvent("remove", pos, pos - old_lo, own=True))

    # Old window minus the item, over the sequence after the removal.
    lo = old_lo if old_lo <= pos else old_lo - 1
    hi = old_hi if old_hi <= pos else old_hi - 1

    events.extend(
        WindowEvent(kind, j, idx)
        for kind, j, idx in shift_events(lo, max(lo, hi), new_lo, new_hi)
    )
    return events


__all__ = [
    "WindowEvent",
    "begin_index",
    "end_index",
    "insert_events",
    "is_unbounded",
    "remove_events",
    "shift_events",
    "window_range",
]
