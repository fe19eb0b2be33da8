"""Tests for EntitlementStore and the static catalogs."""

from __future__ import annotations

import json

import pytest

from moodjournal.catalog import (
    FREE_SKIN_PACKS,
    FREE_THEMES,
    SKIN_PACK_CATEGORY_ALL,
    SKIN_PACKS,
    THEMES,
    CatalogKind,
    lookup,
)
from moodjournal.entitlements import CURRENT_KEYS, UNLOCKED_KEYS, EntitlementStore
from moodjournal.errors import NotFoundError, NotUnlockedError, PersistenceError
from moodjournal.storage import MemoryProvider

THEME = CatalogKind.THEME
SKIN = CatalogKind.SKIN_PACK


# ---- seeding ----


def test_fresh_store_seeds_free_tier(provider):
    store = EntitlementStore(provider)
    assert store.unlocked(THEME) == FREE_THEMES
    assert store.unlocked(SKIN) == FREE_SKIN_PACKS
    assert set(json.loads(provider.get("UnlockedThemes"))) == FREE_THEMES
    assert set(json.loads(provider.get("UnlockedMoodSkinPacks"))) == FREE_SKIN_PACKS


def test_defaults_are_first_catalog_entries(provider):
    store = EntitlementStore(provider)
    assert store.current(THEME) == "default"
    assert store.current(SKIN) == "default_emoji"


def test_existing_empty_array_is_not_reseeded():
    provider = MemoryProvider({"UnlockedThemes": b"[]"})
    store = EntitlementStore(provider)
    assert store.unlocked(THEME) == frozenset()
    assert provider.get("UnlockedThemes") == b"[]"


@pytest.mark.parametrize("blob", [b"{{garbage", b'{"ids": ["default"]}', b'["default", 3]'])
def test_unreadable_unlock_document_is_reseeded(blob):
    provider = MemoryProvider({"UnlockedThemes": blob})
    store = EntitlementStore(provider)
    assert store.is_unlocked(THEME, "default")
    assert store.unlocked(THEME) == FREE_THEMES
    assert set(json.loads(provider.get("UnlockedThemes"))) == FREE_THEMES


@pytest.mark.parametrize("blob", [b'{"id": "no_such_theme"}', b"not json", b'"default"'])
def test_bad_current_falls_back_to_default(blob):
    store = EntitlementStore(MemoryProvider({"CurrentTheme": blob}))
    assert store.current(THEME) == "default"


# ---- unlock / apply ----


def test_apply_locked_then_unlock_then_apply(provider):
    store = EntitlementStore(provider)
    with pytest.raises(NotUnlockedError):
        store.apply(THEME, "elegant_purple")
    assert store.current(THEME) == "default"

    store.unlock(THEME, "elegant_purple")
    store.apply(THEME, "elegant_purple")
    assert store.current(THEME) == "elegant_purple"

    doc = json.loads(provider.get(CURRENT_KEYS[THEME]))
    assert doc["id"] == "elegant_purple"
    assert doc["primaryColor"] == "#9B59B6"


def test_state_survives_reload(provider):
    store = EntitlementStore(provider)
    store.unlock(SKIN, "flowers")
    store.apply(SKIN, "flowers")

    again = EntitlementStore(provider)
    assert again.is_unlocked(SKIN, "flowers")
    assert again.current(SKIN) == "flowers"


def test_unlock_is_idempotent(provider):
    store = EntitlementStore(provider)
    store.unlock(THEME, "dark_theme")
    writes = provider.writes
    store.unlock(THEME, "dark_theme")
    assert provider.writes == writes
    assert json.loads(provider.get(UNLOCKED_KEYS[THEME])).count("dark_theme") == 1


@pytest.mark.parametrize("op", ["unlock", "apply"])
def test_unknown_id(provider, op):
    store = EntitlementStore(provider)
    with pytest.raises(NotFoundError):
        getattr(store, op)(THEME, "neon_green")


def test_theme_id_is_not_a_skin_pack(provider):
    store = EntitlementStore(provider)
    with pytest.raises(NotFoundError):
        store.unlock(SKIN, "dark_theme")


def test_unlock_rolls_back_on_write_failure(provider):
    store = EntitlementStore(provider)
    provider.fail_writes = True
    with pytest.raises(PersistenceError):
        store.unlock(THEME, "vibrant_pink")
    assert not store.is_unlocked(THEME, "vibrant_pink")


def test_apply_rolls_back_on_write_failure(provider):
    store = EntitlementStore(provider)
    provider.fail_writes = True
    with pytest.raises(PersistenceError):
        store.apply(THEME, "calm_blue")
    assert store.current(THEME) == "default"


# ---- queries ----


def test_catalog_flags(provider):
    store = EntitlementStore(provider)
    listing = store.catalog(THEME)
    assert [d.id for d, _ in listing] == [t.id for t in THEMES]
    flags = {d.id: unlocked for d, unlocked in listing}
    assert flags["default"] and flags["calm_blue"]
    assert not flags["dark_theme"]


def test_skin_packs_in_category(provider):
    store = EntitlementStore(provider)
    assert store.skin_packs_in_category(SKIN_PACK_CATEGORY_ALL) == list(SKIN_PACKS)
    assert [p.id for p in store.skin_packs_in_category("自然")] == ["nature_scenes", "flowers"]
    assert store.skin_packs_in_category("音乐") == []


def test_mood_display_follows_current_pack(provider):
    store = EntitlementStore(provider)
    assert store.mood_display(5) == "😄"
    store.apply(SKIN, "cute_animals")
    assert store.mood_display(3) == "🐼"


def test_descriptor_pricing():
    assert lookup(THEME, "default").price_label is None
    assert not lookup(THEME, "default").is_premium
    pack = lookup(SKIN, "flowers")
    assert pack.is_premium and pack.price_label == "¥8"
    assert pack.to_dict()["moodImages"]["1"] == "🥀"
