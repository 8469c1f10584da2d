"""Unit tests for item-level change handling in DerivedView."""

import pytest

from viewsync import CollectionChange, DerivedView, compare_values


def fruit(model):
    return model.fruit


def ripe(model):
    return model.get("ripe", True)


@pytest.mark.unit
@pytest.mark.view
def test_unrelated_change_emits_nothing(collection, recorder):
    """A change that alters no value, visibility or order is silent"""
    view = DerivedView(collection, map=fruit, compare=compare_values, filter=ripe)
    rec = recorder(view)

    collection.get(10).set(color="yellow")

    assert rec.events == []


@pytest.mark.unit
@pytest.mark.view
def test_value_change_moves_item_in_sorted_view(collection, recorder):
    view = DerivedView(collection, map=fruit, compare=compare_values)
    rec = recorder(view)

    collection.get(10).set(fruit="zucchini")

    assert rec.events == [
        CollectionChange("remove", "banana", 1),
        CollectionChange("add", "zucchini", 3),
    ]
    assert view.to_array() == ["apple", "orange", "pineapple", "zucchini"]


@pytest.mark.unit
@pytest.mark.view
def test_value_change_without_move_is_replaced_in_place(collection, recorder):
    view = DerivedView(collection, map=fruit)
    rec = recorder(view)

    collection.get(30).set(fruit="blood orange")

    assert rec.events == [
        CollectionChange("remove", "orange", 2),
        CollectionChange("add", "blood orange", 2),
    ]


@pytest.mark.unit
@pytest.mark.view
def test_filter_toggle_emits_single_event(collection, recorder):
    """Hiding an item emits one remove, showing it again one add"""
    view = DerivedView(collection, map=fruit, compare=compare_values, filter=ripe)
    rec = recorder(view)
    orange = collection.get(30)

    orange.set(ripe=False)
    assert rec.events == [CollectionChange("remove", "orange", 2)]

    orange.set(ripe=True)
    assert rec.events[1:] == [CollectionChange("add", "orange", 2)]
    assert view.to_array() == ["apple", "banana", "orange", "pineapple"]


@pytest.mark.unit
@pytest.mark.view
def test_hidden_item_changes_are_silent(collection, recorder):
    view = DerivedView(collection, map=fruit, filter=ripe)
    apple = collection.get(40)
    apple.set(ripe=False)
    rec = recorder(view)

    apple.set(fruit="green apple")

    assert rec.events == []
    assert "green apple" not in view.to_array()


@pytest.mark.unit
@pytest.mark.view
def test_batched_change_is_one_reevaluation(collection, recorder):
    """Several properties changing in one notification re-evaluate once"""
    view = DerivedView(collection, map=fruit, compare=compare_values, filter=ripe)
    rec = recorder(view)
    apple = collection.get(40)
    apple.set(ripe=False)
    rec.clear()

    apple.set(ripe=True, fruit="quince")

    assert rec.events == [CollectionChange("add", "quince", 3)]


@pytest.mark.unit
@pytest.mark.view
@pytest.mark.window
def test_change_inside_window_diffs_window(collection, recorder):
    view = DerivedView(collection, map=fruit, compare=compare_values, begin=0, end=2)
    rec = recorder(view)
    assert view.to_array() == ["apple", "banana"]

    collection.get(30).set(fruit="apricot")

    assert rec.events == [
        CollectionChange("remove", "banana", 1),
        CollectionChange("add", "apricot", 1),
    ]


@pytest.mark.unit
@pytest.mark.view
@pytest.mark.window
def test_change_outside_window_is_silent(collection, recorder):
    view = DerivedView(collection, map=fruit, compare=compare_values, begin=0, end=2)
    rec = recorder(view)

    collection.get(20).set(fruit="plum")

    assert rec.events == []
    assert view.to_array() == ["apple", "banana"]


@pytest.mark.unit
@pytest.mark.view
@pytest.mark.window
def test_hiding_item_pulls_next_into_window(collection, recorder):
    view = DerivedView(collection, map=fruit, filter=ripe, begin=0, end=2)
    rec = recorder(view)
    assert view.to_array() == ["banana", "pineapple"]

    collection.get(10).set(ripe=False)

    assert view.to_array() == ["pineapple", "orange"]
    rec.assert_consistent()


@pytest.mark.unit
@pytest.mark.view
@pytest.mark.window
def test_value_change_in_place_inside_window(collection, recorder):
    view = DerivedView(collection, map=fruit, begin=1, end=3)
    rec = recorder(view)

    collection.get(20).set(fruit="PINEAPPLE")

    assert rec.events == [
        CollectionChange("remove", "pineapple", 0),
        CollectionChange("add", "PINEAPPLE", 0),
    ]


@pytest.mark.unit
@pytest.mark.view
def test_removed_item_is_no_longer_observed(collection, recorder):
    view = DerivedView(collection, map=fruit)
    banana = collection.get(10)
    collection.remove(10)
    rec = recorder(view)

    banana.set(fruit="plantain")

    assert rec.events == []
    assert view.to_array() == ["pineapple", "orange", "apple"]


@pytest.mark.unit
@pytest.mark.view
def test_mapped_value_equal_to_previous_keeps_old_object(collection):
    """Re-deriving to an equal value does not replace the exposed object"""
    view = DerivedView(collection, map=lambda m: {"name": m.fruit})
    before = view.at(0)

    collection.get(10).set(color="yellow")

    assert view.at(0) is before


@pytest.mark.unit
@pytest.mark.view
def test_observer_mutations_are_delivered_after_current_events(collection):
    """Events caused from inside a handler are queued behind the current ones"""
    view = DerivedView(collection, map=fruit, compare=compare_values)
    seen = []
    mirror = view.to_array()

    def on_change(change):
        seen.append((change.event, change.item, change.idx))
        if change.event == "add":
            mirror.insert(change.idx, change.item)
        else:
            del mirror[change.idx]
        if change.item == "zucchini" and change.event == "add":
            collection.remove(20)

    view.subscribe(on_change)
    collection.get(10).set(fruit="zucchini")

    assert seen == [
        ("remove", "banana", 1),
        ("add", "zucchini", 3),
        ("remove", "pineapple", 2),
    ]
    assert mirror == view.to_array() == ["apple", "orange", "zucchini"]
