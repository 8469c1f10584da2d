"""
Binary search helpers over comparator-ordered lists.

``compare(a, b)`` follows the usual signed convention: negative when ``a``
sorts first, positive when ``b`` does, zero for ties. ``key`` extracts the
sort value from a list element; it is applied to list elements only, never
to the value being searched for.

A comparator that is not a strict weak ordering (for example one that
returns NaN) cannot make these loops run away: every iteration shrinks the
search range. The returned position is then arbitrary but in bounds.
"""

import logging
from typing import Any, Callable, Optional, Sequence

Compare = Callable[[Any, Any], Any]
Key = Optional[Callable[[Any], Any]]


def binary_search(seq: Sequence, value: Any, compare: Compare, key: Key = None) -> int:
    """
    Index of an element comparing equal to ``value``.

    If there is none, returns the bitwise complement of the position where
    ``value`` would be inserted. Decode with ``~result``.
    """
    lo, hi = 0, len(seq) - 1
    while lo <= hi:
        mid = (lo + hi) >> 1
        pivot = seq[mid] if key is None else key(seq[mid])
        order = compare(pivot, value)
        if order < 0:
            lo = mid + 1
        elif order > 0:
            hi = mid - 1
        else:
            return mid
    return ~lo


def insertion_index(seq: Sequence, value: Any, compare: Compare, key: Key = None) -> int:
    """Position at which ``value`` keeps ``seq`` sorted, after any equal elements."""
    lo, hi = 0, len(seq)
    while lo < hi:
        mid = (lo + hi) >> 1
        pivot = seq[mid] if key is None else key(seq[mid])
        if compare(value, pivot) < 0:
            hi = mid
        else:
            lo = mid + 1
    return lo


def locate(seq: Sequence, target: Any, compare: Compare, key: Key = None) -> int:
    """
    Index of ``target`` itself (by identity) in ``seq``, or -1.

    The binary search only narrows things down: the element found is checked
    for identity, then its run of equal neighbours, and if the sort value of
    ``target`` has gone stale the whole list is scanned.
    """
    value = target if key is None else key(target)
    idx = binary_search(seq, value, compare, key)
    if idx >= 0:
        if seq[idx] is target:
            return idx
        for step in (-1, 1):
            i = idx + step
            while 0 <= i < len(seq):
                element = seq[i]
                if element is target:
                    return i
                if compare(element if key is None else key(element), value) != 0:
                    break
                i += step

    logging.debug(f"Sorted position of {target!r} is stale, scanning linearly")
    return index_of_identity(seq, target)


def index_of_identity(seq: Sequence, target: Any) -> int:
    """Linear search by identity."""
    for i, element in enumerate(seq):
        if element is target:
            return i
    return -1


def binary_insert(seq: list, value: Any, compare: Compare, key: Key = None, element: Any = None) -> int:
    """
    Insert into a sorted list, returning the insert position.

    ``element`` is what gets stored; it defaults to ``value`` and is only
    needed when the list holds wrappers sorted by ``key``.
    """
    idx = insertion_index(seq, value, compare, key)
    seq.insert(idx, value if element is None else element)
    return idx


__all__ = [
    "binary_insert",
    "binary_search",
    "index_of_identity",
    "insertion_index",
    "locate",
]
