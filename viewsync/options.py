"""
View configuration.

All options a :class:`viewsync.view.DerivedView` accepts, validated in one
place so a malformed configuration fails at construction and never later
inside a mutation handler.
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Optional

from .errors import ConfigurationError
from .util.window import is_unbounded


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class ViewOptions:
    """
    Options of a derived view.

    Attributes:
        map: ``map(item) -> value`` applied to every source item
        filter: ``filter(item) -> bool`` deciding visibility
        compare: ``compare(value_a, value_b) -> number`` defining view order
        begin: Window start, slice semantics
        end: Window end, slice semantics, ``None`` for unbounded
        auto_dispose_after_ms: Idle time without observers before disposal
        coalesce: Defer item change handling into one resync task
    """

    map: Optional[Callable[[Any], Any]] = None
    filter: Optional[Callable[[Any], bool]] = None
    compare: Optional[Callable[[Any, Any], Any]] = None
    begin: int = 0
    end: Optional[int] = None
    auto_dispose_after_ms: Optional[int] = None
    coalesce: bool = False

    def validate(self, scheduler: Any = None) -> "ViewOptions":
        """Raise ConfigurationError on the first invalid option, else return self."""
        for name in ("map", "filter", "compare"):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise ConfigurationError(
                    f"Option '{name}' must be callable, got {type(value).__name__}"
                )

        if not _is_int(self.begin):
            raise ConfigurationError(f"Option 'begin' must be an int, got {self.begin!r}")
        if self.end is not None and not _is_int(self.end):
            raise ConfigurationError(
                f"Option 'end' must be an int or None, got {self.end!r}"
            )

        delay = self.auto_dispose_after_ms
        if delay is not None and (not _is_int(delay) or delay < 0):
            raise ConfigurationError(
                f"Option 'auto_dispose_after_ms' must be a non-negative int or None, got {delay!r}"
            )
        if not isinstance(self.coalesce, bool):
            raise ConfigurationError(
                f"Option 'coalesce' must be a bool, got {self.coalesce!r}"
            )

        if scheduler is None:
            if self.coalesce:
                raise ConfigurationError("Option 'coalesce' requires a scheduler")
            if delay is not None:
                raise ConfigurationError(
                    "Option 'auto_dispose_after_ms' requires a scheduler"
                )
        return self

    @property
    def windowed(self) -> bool:
        return not is_unbounded(self.begin, self.end)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


__all__ = ["ViewOptions"]
