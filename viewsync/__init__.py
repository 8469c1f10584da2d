"""
viewsync - Incrementally Synchronized Collection Views

Derived views over mutable ordered collections: filtered, mapped, sorted and
windowed to a sub-range, kept in sync with their source by emitting the
positional add/remove events an observer needs to follow along.

Example:
    fruits = Collection(data=[{"id": 1, "name": "banana"}, {"id": 2, "name": "apple"}])
    view = DerivedView(fruits, map=lambda f: f["name"], compare=compare_values)
    view.on("add", lambda change: print(change.idx, change.item))
    fruits.add({"id": 3, "name": "cherry"})  # prints: 2 cherry
"""

__version__ = "0.3.0"

from .collection import Collection, default_id, sort_order_compare
from .collection_model import CollectionModel
from .errors import ConfigurationError, DisposedError, DuplicateKeyError
from .events import ADD, CHANGE, REMOVE, CollectionChange, EventBus
from .joined_collection import JoinedCollection
from .model import Model
from .model_collection import Entry, ModelCollection, compare_keys
from .options import ViewOptions
from .protocols import Observable, ObservableCollection, SourceCollection
from .scheduler import AsyncioScheduler, Scheduler, Task, TaskQueue
from .util import (
    DiffOp,
    WindowEvent,
    apply_ops,
    diff_ops,
    patch_diff,
    window_range,
)
from .view import DerivedView


def compare_values(a, b) -> int:
    """Natural-order comparator, handy as ``compare=`` for plain values."""
    return (a > b) - (a < b)


__all__ = [
    # Views
    "DerivedView",
    "ViewOptions",
    "ModelCollection",
    "Entry",
    "CollectionModel",
    "JoinedCollection",
    # Collaborators
    "Collection",
    "Model",
    "EventBus",
    "CollectionChange",
    # Scheduling
    "Scheduler",
    "Task",
    "TaskQueue",
    "AsyncioScheduler",
    # Capability interfaces
    "Observable",
    "ObservableCollection",
    "SourceCollection",
    # Algorithms
    "DiffOp",
    "WindowEvent",
    "apply_ops",
    "diff_ops",
    "patch_diff",
    "window_range",
    # Comparators and helpers
    "compare_keys",
    "compare_values",
    "default_id",
    "sort_order_compare",
    # Event names
    "ADD",
    "REMOVE",
    "CHANGE",
    # Exceptions
    "ConfigurationError",
    "DisposedError",
    "DuplicateKeyError",
]
