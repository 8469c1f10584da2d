"""
viewsync utilities - pure sequence algorithms
=============================================

- ordered_diff: LCS-based positional edit scripts
- sorted_index: binary search and verified lookup in comparator-ordered lists
- window: slice bound resolution and window boundary events
"""

from .ordered_diff import DiffOp, apply_ops, diff_ops, lcs_table, patch_diff, same
from .sorted_index import (
    binary_insert,
    binary_search,
    index_of_identity,
    insertion_index,
    locate,
)
from .window import (
    WindowEvent,
    begin_index,
    end_index,
    insert_events,
    is_unbounded,
    remove_events,
    shift_events,
    window_range,
)

__all__ = [
    "DiffOp",
    "WindowEvent",
    "apply_ops",
    "begin_index",
    "binary_insert",
    "binary_search",
    "diff_ops",
    "end_index",
    "index_of_identity",
    "insert_events",
    "insertion_index",
    "is_unbounded",
    "lcs_table",
    "locate",
    "patch_diff",
    "remove_events",
    "same",
    "shift_events",
    "window_range",
]
