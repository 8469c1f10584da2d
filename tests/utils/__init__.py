"""
Test utilities for viewsync.

EventRecorder captures the add/remove events of a view and replays them on
a mirror list, checking every index against the mirror as it goes.
"""

from .recorder import EventRecorder

__all__ = ["EventRecorder"]
