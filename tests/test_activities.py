"""Tests for ActivityStore and the activity model."""

from __future__ import annotations

import json

import pytest

from moodjournal.activities import CUSTOM_ACTIVITIES_KEY, ActivityStore
from moodjournal.errors import NotFoundError, PersistenceError, ValidationError
from moodjournal.models import PREDEFINED_ACTIVITIES, Activity, ActivityCategory


@pytest.fixture()
def store(provider) -> ActivityStore:
    s = ActivityStore(provider)
    s.load()
    return s


def test_predefined_catalog():
    assert len(PREDEFINED_ACTIVITIES) == 25
    assert len({a.id for a in PREDEFINED_ACTIVITIES}) == 25
    assert not any(a.is_custom for a in PREDEFINED_ACTIVITIES)


def test_predefined_ids_are_stable():
    walk = PREDEFINED_ACTIVITIES[0]
    assert walk.name == "散步"
    assert Activity.from_dict(walk.to_dict()) == walk


def test_add_custom(store, provider):
    act = store.add_custom("  广场舞 ", ActivityCategory.EXERCISE, "music.note")
    assert act.name == "广场舞"
    assert act.is_custom
    assert act.icon == "music.note"
    doc = json.loads(provider.get(CUSTOM_ACTIVITIES_KEY))
    assert doc[0]["isCustom"] is True
    assert doc[0]["category"] == "运动"


def test_custom_icon_defaults_to_category_icon(store):
    act = store.add_custom("钓鱼")
    assert act.category is ActivityCategory.CUSTOM
    assert act.icon == ActivityCategory.CUSTOM.icon


@pytest.mark.parametrize("name", ["", "   ", "这个名字实在是太长了超过十个字"])
def test_add_custom_rejects_bad_names(store, name):
    with pytest.raises(ValidationError):
        store.add_custom(name)
    assert store.custom() == ()


def test_add_custom_rejects_duplicate(store):
    store.add_custom("钓鱼")
    with pytest.raises(ValidationError):
        store.add_custom("钓鱼")


def test_all_activities_and_find(store):
    act = store.add_custom("钓鱼")
    assert store.all_activities()[-1] == act
    assert store.find(act.id) == act
    assert store.find_by_name("散步") == PREDEFINED_ACTIVITIES[0]
    with pytest.raises(NotFoundError):
        store.find_by_name("跳伞")


def test_delete_custom(store, provider):
    act = store.add_custom("钓鱼")
    store.delete_custom(act.id)
    assert store.custom() == ()
    assert json.loads(provider.get(CUSTOM_ACTIVITIES_KEY)) == []
    with pytest.raises(NotFoundError):
        store.delete_custom(act.id)


def test_predefined_cannot_be_deleted(store):
    with pytest.raises(NotFoundError):
        store.delete_custom(PREDEFINED_ACTIVITIES[0].id)


def test_add_rolls_back_on_write_failure(store, provider):
    provider.fail_writes = True
    with pytest.raises(PersistenceError):
        store.add_custom("钓鱼")
    assert store.custom() == ()


def test_reload(store, provider):
    act = store.add_custom("钓鱼")
    again = ActivityStore(provider)
    again.load()
    assert again.custom() == (act,)


def test_corrupt_document_loads_empty(provider):
    provider.blobs[CUSTOM_ACTIVITIES_KEY] = '[{"id": "x", "name": "", "category": "运动"}]'.encode("utf-8")
    s = ActivityStore(provider)
    s.load()
    assert s.custom() == ()
