"""
The journal entry store.

Entries are kept newest-first by occurred_at and written to the persistence
provider as a single JSON array under the "MoodEntries" key after every
mutation. A mutation whose write fails is rolled back, so the in-memory view
never runs ahead of what is on disk.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from ._util import _as_local, _now_local
from .errors import MediaIOError, NotFoundError, PersistenceError, ValidationError
from .media import MediaStore
from .models import EntryDraft, MoodEntry, validate_mood_level
from .storage import PersistenceProvider, read_document, write_document

logger = logging.getLogger(__name__)

ENTRIES_KEY = "MoodEntries"


class JournalStore:
    def __init__(
        self,
        provider: PersistenceProvider,
        media: MediaStore,
        clock: Callable[[], datetime] = _now_local,
    ) -> None:
        self._provider = provider
        self._media = media
        self._clock = clock
        self._entries: list[MoodEntry] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ---- persistence ----

    def load(self) -> None:
        """
        Replace the in-memory collection with the persisted one.
        Missing or corrupt data yields an empty journal; a corrupt blob is
        left in place until the next successful save().
        """
        present, data = read_document(self._provider, ENTRIES_KEY)
        self._entries = []
        self._loaded = True

        if not present:
            logger.info("no saved journal; starting empty")
            return
        if not isinstance(data, list):
            logger.warning("%s is not a JSON array; starting empty", ENTRIES_KEY)
            return

        entries: list[MoodEntry] = []
        try:
            for raw in data:
                entries.append(MoodEntry.from_dict(raw))
        except ValidationError as e:
            logger.warning("%s holds a malformed entry (%s); starting empty", ENTRIES_KEY, e)
            return

        self._entries = entries
        logger.info("loaded %d journal entries", len(entries))

    def save(self) -> None:
        write_document(self._provider, ENTRIES_KEY, [e.to_dict() for e in self._entries])
        logger.debug("saved %d journal entries", len(self._entries))

    # ---- queries ----

    def list(self) -> tuple[MoodEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> MoodEntry:
        return self._entries[self._index_of(entry_id)]

    def live_handles(self) -> frozenset[str]:
        """Every media handle any entry currently references."""
        return frozenset(ref for e in self._entries for ref in e.media_refs())

    # ---- mutations ----

    def create(self, draft: EntryDraft) -> str:
        self._validate(draft)

        entry_id = draft.id or str(uuid.uuid4())
        if any(e.id == entry_id for e in self._entries):
            raise ValidationError(f"entry id {entry_id!r} already exists")

        now = self._clock()
        entry = MoodEntry(
            id=entry_id,
            occurred_at=_as_local(draft.occurred_at) if draft.occurred_at else now,
            mood_level=draft.mood_level,
            activities=tuple(draft.activities),
            note=draft.note,
            audio_ref=draft.audio_ref,
            image_ref=draft.image_ref,
            created_at=_as_local(draft.created_at) if draft.created_at else now,
            updated_at=now,
        )

        index = self._insertion_index(entry.occurred_at)
        self._entries.insert(index, entry)
        try:
            self.save()
        except PersistenceError:
            del self._entries[index]
            raise

        logger.info("created entry %s (mood %d, %s)", entry.id, entry.mood_level, entry.mood_description)
        return entry.id

    def update(self, entry_id: str, draft: EntryDraft) -> None:
        """
        Replace an entry's content, keeping its id and created_at.

        Media is not touched here: the caller saves new attachments and deletes
        superseded ones through MediaStore.
        """
        index = self._index_of(entry_id)
        self._validate(draft)

        old = self._entries[index]
        now = self._clock()
        if old.updated_at is not None and now <= old.updated_at:
            now = old.updated_at + timedelta(microseconds=1)

        new = MoodEntry(
            id=old.id,
            occurred_at=_as_local(draft.occurred_at) if draft.occurred_at else old.occurred_at,
            mood_level=draft.mood_level,
            activities=tuple(draft.activities),
            note=draft.note,
            audio_ref=draft.audio_ref,
            image_ref=draft.image_ref,
            created_at=old.created_at,
            updated_at=now,
        )

        before = list(self._entries)
        if new.occurred_at == old.occurred_at:
            self._entries[index] = new
        else:
            del self._entries[index]
            self._entries.insert(self._insertion_index(new.occurred_at), new)

        try:
            self.save()
        except PersistenceError:
            self._entries = before
            raise

        logger.info("updated entry %s (mood %d)", new.id, new.mood_level)

    def delete(self, entry_id: str) -> None:
        index = self._index_of(entry_id)
        entry = self._entries.pop(index)
        try:
            self.save()
        except PersistenceError:
            self._entries.insert(index, entry)
            raise

        logger.info("deleted entry %s", entry.id)

        for ref in entry.media_refs():
            try:
                self._media.delete(ref)
            except (MediaIOError, ValidationError) as e:
                # left for reclaim_orphans
                logger.warning("could not release media %s of deleted entry %s: %s", ref, entry.id, e)

    # ---- helpers ----

    def _index_of(self, entry_id: str) -> int:
        for i, e in enumerate(self._entries):
            if e.id == entry_id:
                return i
        raise NotFoundError(f"no entry with id {entry_id!r}")

    def _insertion_index(self, occurred_at: datetime) -> int:
        # first slot whose entry is not newer; equal dates -> newest insert first
        for i, e in enumerate(self._entries):
            if e.occurred_at <= occurred_at:
                return i
        return len(self._entries)

    def _validate(self, draft: EntryDraft) -> None:
        validate_mood_level(draft.mood_level)

        seen: set[str] = set()
        for act in draft.activities:
            if act.id in seen:
                raise ValidationError(f"activity {act.name!r} is listed twice")
            seen.add(act.id)

        if draft.note is not None and not isinstance(draft.note, str):
            raise ValidationError("note must be a string or None")

        for name, ref in (("audio_ref", draft.audio_ref), ("image_ref", draft.image_ref)):
            _check_ref(name, ref)
            if ref is not None and not self._media.exists(ref):
                raise ValidationError(f"{name} {ref!r} has no backing file")


def _check_ref(name: str, ref: Any) -> None:
    if ref is None:
        return
    if not isinstance(ref, str) or not ref.strip():
        raise ValidationError(f"{name} must be None or a non-empty handle, got {ref!r}")
