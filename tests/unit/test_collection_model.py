"""Unit tests for CollectionModel."""

import pytest

from utils import EventRecorder
from viewsync import Collection, CollectionModel, ConfigurationError, ModelCollection


def by_id(model):
    return model.id


def fruit(model):
    return model.fruit


@pytest.mark.unit
@pytest.mark.model
def test_items_become_properties(collection):
    fruits = CollectionModel(collection, key=by_id)

    assert sorted(fruits.props) == [10, 20, 30, 40]
    assert fruits.get(30) is collection.get(30)
    assert fruits.collection is collection


@pytest.mark.unit
@pytest.mark.model
def test_to_dict_unwraps_item_models(collection):
    fruits = CollectionModel(collection, key=by_id)

    assert fruits.to_dict() == {
        10: {"id": 10, "fruit": "banana"},
        20: {"id": 20, "fruit": "pineapple"},
        30: {"id": 30, "fruit": "orange"},
        40: {"id": 40, "fruit": "apple"},
    }


@pytest.mark.unit
@pytest.mark.model
def test_add_is_one_change_with_no_old_value(collection):
    fruits = CollectionModel(collection, key=by_id)
    changes = []
    fruits.subscribe(changes.append)

    collection.add({"id": 50, "fruit": "kiwi"})

    assert changes == [{50: None}]
    assert fruits.get(50).fruit == "kiwi"


@pytest.mark.unit
@pytest.mark.model
def test_remove_is_one_change_with_the_old_value(collection):
    fruits = CollectionModel(collection, key=by_id)
    pineapple = collection.get(20)
    changes = []
    fruits.on("change", changes.append)

    collection.remove(20)

    assert changes == [{20: pineapple}]
    assert 20 not in fruits.props


@pytest.mark.unit
@pytest.mark.model
def test_map_and_string_keys_read_as_attributes(plain_collection):
    ids = CollectionModel(plain_collection, key=lambda f: f["fruit"], map=lambda f: f["id"])

    assert ids.banana == 10
    assert ids.apple == 40

    plain_collection.add({"id": 50, "fruit": "kiwi"})

    assert ids.kiwi == 50


@pytest.mark.unit
@pytest.mark.model
@pytest.mark.edge_case
def test_first_item_wins_on_key_collision():
    items = Collection(
        data=[{"id": 1, "fruit": "fig"}, {"id": 2, "fruit": "fig"}],
    )
    by_fruit = CollectionModel(items, key=lambda f: f["fruit"])

    assert by_fruit.fig["id"] == 1


@pytest.mark.unit
@pytest.mark.model
def test_properties_cannot_be_set_directly(collection):
    fruits = CollectionModel(collection, key=by_id)

    with pytest.raises(TypeError):
        fruits.set(kiwi=1)
    with pytest.raises(TypeError):
        fruits.reset({})


@pytest.mark.unit
@pytest.mark.model
def test_dispose_stops_following_the_collection(collection):
    fruits = CollectionModel(collection, key=by_id)
    changes = []
    fruits.subscribe(changes.append)

    fruits.dispose()
    collection.add({"id": 50, "fruit": "kiwi"})

    assert changes == []
    assert fruits.props == {}
    assert fruits.collection is None


@pytest.mark.unit
@pytest.mark.model
def test_model_collection_reads_it_back_in_key_order(collection):
    names = ModelCollection(CollectionModel(collection, key=by_id, map=fruit))
    rec = EventRecorder(names)
    assert names.to_array() == ["banana", "pineapple", "orange", "apple"]

    collection.add({"id": 25, "fruit": "kiwi"})
    collection.remove(40)

    assert names.to_array() == ["banana", "pineapple", "kiwi", "orange"]
    assert rec.summary() == [("add", 2), ("remove", 4)]
    rec.assert_consistent()


@pytest.mark.unit
@pytest.mark.model
@pytest.mark.edge_case
def test_non_callable_key_is_rejected(collection):
    with pytest.raises(ConfigurationError):
        CollectionModel(collection, key="id")
