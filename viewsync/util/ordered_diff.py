"""
Ordered Diff
============

Minimal positional edit scripts between two sequences, computed from a
longest common subsequence.

The matching prefix and suffix are trimmed first, so the LCS table only
covers the region that actually differs. The table is filled one row at a
time with numpy: for row ``i`` the recurrence

    c[i+1][j+1] = c[i][j] + 1                     if a[i] == b[j]
                  max(c[i+1][j], c[i][j+1])       otherwise

collapses to a running maximum over ``where(match, c[i][:-1] + 1, c[i][1:])``.

Script order: every removal first, right to left, then every addition, left
to right. Replaying the script in emission order on a copy of ``before``
yields ``after``, and each emit index is valid on the evolving working copy.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

Equals = Callable[[Any, Any], bool]


def same(a: Any, b: Any) -> bool:
    """Identity, then equality."""
    return a is b or bool(a == b)


@dataclass(frozen=True)
class DiffOp:
    """One step of an edit script."""

    kind: str  # "add" or "remove"
    item: Any
    index: int


def lcs_table(a: Sequence, b: Sequence, equals: Equals = same) -> np.ndarray:
    """LCS length table of shape ``(len(a) + 1, len(b) + 1)``."""
    m, n = len(a), len(b)
    table = np.zeros((m + 1, n + 1), dtype=np.intp)
    for i, x in enumerate(a):
        matches = np.fromiter((equals(x, y) for y in b), dtype=bool, count=n)
        row = table[i]
        table[i + 1, 1:] = np.maximum.accumulate(np.where(matches, row[:-1] + 1, row[1:]))
    return table


def patch_diff(
    before: Sequence,
    after: Sequence,
    on_add: Callable[[Any, int, int], None],
    on_remove: Callable[[Any, int, int], None],
    equals: Optional[Equals] = None,
) -> None:
    """
    Emit the edit script turning ``before`` into ``after``.

    Args:
        before: Sequence as the observer currently holds it
        after: Target sequence
        on_add: Called as ``on_add(item, after_index, emit_index)``
        on_remove: Called as ``on_remove(item, before_index, emit_index)``
        equals: Element comparison, defaults to identity-then-equality

    Equal sequences emit nothing.
    """
    eq = equals or same
    a = list(before)
    b = list(after)

    start = 0
    m, n = len(a), len(b)
    while start < m and start < n and eq(a[start], b[start]):
        start += 1
    if start == m and start == n:
        return
    while m > start and n > start and eq(a[m - 1], b[n - 1]):
        m -= 1
        n -= 1

    aa = a[start:m]
    bb = b[start:n]
    table = lcs_table(aa, bb, eq)

    removes = []
    adds = []
    i, j = len(aa), len(bb)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and eq(aa[i - 1], bb[j - 1]):
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i, j - 1] >= table[i - 1, j]):
            adds.append(j - 1)
            j -= 1
        else:
            removes.append(i - 1)
            i -= 1

    # Removals run right to left and additions left to right, so every emit
    # index coincides with the item's index in ``before`` or ``after``.
    for k in removes:
        on_remove(aa[k], k + start, k + start)
    for k in reversed(adds):
        on_add(bb[k], k + start, k + start)


def diff_ops(
    before: Sequence, after: Sequence, equals: Optional[Equals] = None
) -> List[DiffOp]:
    """The edit script of :func:`patch_diff` as a list, in emission order."""
    ops: List[DiffOp] = []
    patch_diff(
        before,
        after,
        lambda item, _, idx: ops.append(DiffOp("add", item, idx)),
        lambda item, _, idx: ops.append(DiffOp("remove", item, idx)),
        equals,
    )
    return ops


def apply_ops(sequence: Sequence, ops: Sequence[DiffOp]) -> list:
    """Replay an edit script on a copy of ``sequence``."""
    result = list(sequence)
    for op in ops:
        if op.kind == "add":
            result.insert(op.index, op.item)
        elif op.kind == "remove":
            del result[op.index]
        else:
            raise ValueError(f"Unknown diff operation: {op.kind!r}")
    return result


__all__ = ["DiffOp", "apply_ops", "diff_ops", "lcs_table", "patch_diff", "same"]
