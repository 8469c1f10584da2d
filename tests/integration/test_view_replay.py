"""
Randomized integration tests: every view configuration must stay equal to a
from-scratch recomputation, and its events must replay to the same output.
"""

import random
from functools import cmp_to_key

import pytest

from utils import EventRecorder
from viewsync import Collection, DerivedView, Model, TaskQueue, compare_values

NAMES = [
    "apple", "banana", "cherry", "date", "fig", "grape", "kiwi", "lime",
    "mango", "nectarine", "orange", "papaya", "quince", "apple", "fig",
]

CONFIGS = [
    {},
    {"compare": compare_values},
    {"filter": True},
    {"filter": True, "compare": compare_values},
    {"begin": 2},
    {"end": 4},
    {"begin": 1, "end": 4},
    {"begin": -3},
    {"begin": -4, "end": -1},
    {"begin": 2, "end": -2, "compare": compare_values},
    {"begin": 1, "end": 5, "filter": True, "compare": compare_values},
    {"begin": -5, "end": 3, "filter": True},
]


def fruit(model):
    return model.fruit


def ripe(model):
    return model.get("ripe", True)


def expected_output(collection, config):
    items = list(collection)
    if config.get("filter"):
        items = [m for m in items if ripe(m)]
    values = [fruit(m) for m in items]
    if config.get("compare"):
        values.sort(key=cmp_to_key(config["compare"]))
    return values[config.get("begin", 0):config.get("end")]


def build_view(collection, config, scheduler=None, coalesce=False):
    return DerivedView(
        collection,
        map=fruit,
        filter=ripe if config.get("filter") else None,
        compare=config.get("compare"),
        begin=config.get("begin", 0),
        end=config.get("end"),
        coalesce=coalesce,
        scheduler=scheduler,
    )


def mutate(rng, collection, next_id):
    """Apply one random mutation; returns the next unused id."""
    items = collection.to_array()
    op = rng.random()
    if op < 0.3 or len(items) < 3:
        collection.add(
            {"id": next_id, "fruit": rng.choice(NAMES), "ripe": rng.random() < 0.7},
            rng.randrange(len(items) + 1),
        )
        return next_id + 1
    target = rng.choice(items)
    if op < 0.5:
        collection.remove(target.id)
    elif op < 0.7:
        target.set(fruit=rng.choice(NAMES))
    elif op < 0.85:
        target.set(ripe=not ripe(target))
    else:
        target.set(fruit=rng.choice(NAMES), ripe=rng.random() < 0.5)
    return next_id


def seeded_collection(rng):
    data = [
        {"id": i, "fruit": rng.choice(NAMES), "ripe": rng.random() < 0.7}
        for i in range(8)
    ]
    return Collection(data=data, model_factory=Model)


@pytest.mark.integration
@pytest.mark.view
@pytest.mark.parametrize("config", CONFIGS, ids=lambda c: ",".join(sorted(c)) or "plain")
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_view_tracks_random_mutations(config, seed):
    rng = random.Random(seed)
    collection = seeded_collection(rng)
    view = build_view(collection, config)
    rec = EventRecorder(view)
    next_id = 100

    for step in range(150):
        next_id = mutate(rng, collection, next_id)

        assert view.to_array() == expected_output(collection, config), f"step {step}"

    assert rec.replay() == view.to_array()


@pytest.mark.integration
@pytest.mark.view
@pytest.mark.parametrize("config", CONFIGS, ids=lambda c: ",".join(sorted(c)) or "plain")
def test_coalesced_view_tracks_random_mutations(config):
    rng = random.Random(99)
    scheduler = TaskQueue()
    collection = seeded_collection(rng)
    view = build_view(collection, config, scheduler=scheduler, coalesce=True)
    rec = EventRecorder(view)
    next_id = 100

    for step in range(60):
        for _ in range(rng.randrange(1, 5)):
            next_id = mutate(rng, collection, next_id)
        scheduler.flush()

        assert view.to_array() == expected_output(collection, config), f"step {step}"
        assert rec.replay() == view.to_array(), f"step {step}"


@pytest.mark.integration
@pytest.mark.view
@pytest.mark.parametrize("config", CONFIGS[:6], ids=lambda c: ",".join(sorted(c)) or "plain")
def test_set_source_between_random_collections(config):
    rng = random.Random(7)
    view = build_view(seeded_collection(rng), config)
    rec = EventRecorder(view)

    for _ in range(10):
        collection = seeded_collection(rng)
        view.set_source(collection)

        assert view.to_array() == expected_output(collection, config)
        assert rec.replay() == view.to_array()
