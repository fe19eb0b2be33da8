"""
Unlock state for themes and skin packs.

Four documents:
  UnlockedThemes / UnlockedMoodSkinPacks   JSON arrays of ids
  CurrentTheme / CurrentMoodSkinPack       JSON objects (id + descriptor fields)

The free tier of a catalog is written when its unlock document is absent or
is not an array of ids. An existing array is never re-seeded, even when empty.
"""

from __future__ import annotations

import logging

from .catalog import (
    SKIN_PACK_CATEGORY_ALL,
    SKIN_PACKS,
    CatalogKind,
    Descriptor,
    SkinPackDescriptor,
    descriptors,
    free_tier,
    lookup,
)
from .errors import NotFoundError, NotUnlockedError, PersistenceError
from .storage import PersistenceProvider, read_document, write_document

logger = logging.getLogger(__name__)

UNLOCKED_KEYS = {
    CatalogKind.THEME: "UnlockedThemes",
    CatalogKind.SKIN_PACK: "UnlockedMoodSkinPacks",
}
CURRENT_KEYS = {
    CatalogKind.THEME: "CurrentTheme",
    CatalogKind.SKIN_PACK: "CurrentMoodSkinPack",
}


class EntitlementStore:
    def __init__(self, provider: PersistenceProvider) -> None:
        self._provider = provider
        self._unlocked: dict[CatalogKind, set[str]] = {}
        self._current: dict[CatalogKind, str] = {}
        for kind in CatalogKind:
            self._unlocked[kind] = self._load_unlocked(kind)
            self._current[kind] = self._load_current(kind)

    # ---- loading ----

    def _load_unlocked(self, kind: CatalogKind) -> set[str]:
        key = UNLOCKED_KEYS[kind]
        present, data = read_document(self._provider, key)

        if present and isinstance(data, list) and all(isinstance(x, str) for x in data):
            return set(data)
        if present:
            logger.warning("%s is not an array of ids; re-seeding the free tier", key)

        seeded = set(free_tier(kind))
        write_document(self._provider, key, sorted(seeded))
        logger.info("seeded %s with free tier %s", key, sorted(seeded))
        return seeded

    def _load_current(self, kind: CatalogKind) -> str:
        default = descriptors(kind)[0].id
        present, data = read_document(self._provider, CURRENT_KEYS[kind])
        if not present:
            return default
        if isinstance(data, dict) and isinstance(data.get("id"), str):
            if lookup(kind, data["id"]) is not None:
                return data["id"]
            logger.warning("%s names unknown id %r; using %r", CURRENT_KEYS[kind], data["id"], default)
            return default
        logger.warning("%s is unreadable; using %r", CURRENT_KEYS[kind], default)
        return default

    # ---- queries ----

    def is_unlocked(self, kind: CatalogKind, item_id: str) -> bool:
        return item_id in self._unlocked[kind]

    def unlocked(self, kind: CatalogKind) -> frozenset[str]:
        return frozenset(self._unlocked[kind])

    def current(self, kind: CatalogKind) -> str:
        return self._current[kind]

    def current_descriptor(self, kind: CatalogKind) -> Descriptor:
        d = lookup(kind, self._current[kind])
        assert d is not None
        return d

    def catalog(self, kind: CatalogKind) -> list[tuple[Descriptor, bool]]:
        return [(d, d.id in self._unlocked[kind]) for d in descriptors(kind)]

    def skin_packs_in_category(self, category: str) -> list[SkinPackDescriptor]:
        if category == SKIN_PACK_CATEGORY_ALL:
            return list(SKIN_PACKS)
        return [p for p in SKIN_PACKS if p.category == category]

    def mood_display(self, level: int) -> str:
        pack = self.current_descriptor(CatalogKind.SKIN_PACK)
        assert isinstance(pack, SkinPackDescriptor)
        return pack.mood_emoji(level)

    # ---- mutations ----

    def _require(self, kind: CatalogKind, item_id: str) -> Descriptor:
        d = lookup(kind, item_id)
        if d is None:
            raise NotFoundError(f"unknown {kind.value} id {item_id!r}")
        return d

    def unlock(self, kind: CatalogKind, item_id: str) -> None:
        d = self._require(kind, item_id)
        unlocked = self._unlocked[kind]
        if item_id in unlocked:
            logger.debug("%s %r already unlocked", kind.value, item_id)
            return

        unlocked.add(item_id)
        try:
            write_document(self._provider, UNLOCKED_KEYS[kind], sorted(unlocked))
        except PersistenceError:
            unlocked.discard(item_id)
            raise
        logger.info("unlocked %s %r (%s)", kind.value, item_id, d.name)

    def apply(self, kind: CatalogKind, item_id: str) -> None:
        d = self._require(kind, item_id)
        if item_id not in self._unlocked[kind]:
            raise NotUnlockedError(f"{kind.value} {item_id!r} is not unlocked")

        previous = self._current[kind]
        self._current[kind] = item_id
        try:
            write_document(self._provider, CURRENT_KEYS[kind], d.to_dict())
        except PersistenceError:
            self._current[kind] = previous
            raise
        logger.info("applied %s %r (%s)", kind.value, item_id, d.name)