"""
viewsync errors
===============

Construction-time configuration problems fail loudly. Tracking
inconsistencies inside a running view are logged instead of raised, so
they have no exception class here.
"""


class ConfigurationError(TypeError):
    """Raised when a view or collection is constructed with invalid options."""

    pass


class DuplicateKeyError(KeyError):
    """Raised when an item with an existing id is added to a keyed collection."""

    pass


class DisposedError(RuntimeError):
    """Raised when a disposed view is asked to take on a new source."""

    pass


__all__ = ["ConfigurationError", "DuplicateKeyError", "DisposedError"]
