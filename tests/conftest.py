"""
Shared pytest fixtures for viewsync tests.
"""

import pytest

from utils import EventRecorder
from viewsync import Collection, Model, TaskQueue

FRUITS = [
    {"id": 10, "fruit": "banana"},
    {"id": 20, "fruit": "pineapple"},
    {"id": 30, "fruit": "orange"},
    {"id": 40, "fruit": "apple"},
]


@pytest.fixture
def collection():
    """banana, pineapple, orange, apple - as models, keyed by id."""
    return Collection(data=[dict(f) for f in FRUITS], model_factory=Model)


@pytest.fixture
def plain_collection():
    """The same fruits as plain dicts."""
    return Collection(data=[dict(f) for f in FRUITS])


@pytest.fixture
def scheduler():
    return TaskQueue()


@pytest.fixture
def recorder():
    """Factory attaching an EventRecorder to a view."""
    recorders = []

    def attach(view):
        rec = EventRecorder(view)
        recorders.append(rec)
        return rec

    yield attach
    for rec in recorders:
        rec.stop()
