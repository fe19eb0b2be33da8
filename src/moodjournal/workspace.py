from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .activities import ActivityStore
from .entitlements import EntitlementStore
from .journal import JournalStore
from .media import MediaStore
from .paths import media_dir
from .profile import ProfileStore
from .storage import FileProvider, PersistenceProvider

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Every store for one data directory, constructed and loaded explicitly."""

    provider: PersistenceProvider
    media: MediaStore
    journal: JournalStore
    activities: ActivityStore
    entitlements: EntitlementStore
    profiles: ProfileStore

    @classmethod
    def build(cls, provider: PersistenceProvider, media: MediaStore) -> Workspace:
        journal = JournalStore(provider, media)
        activities = ActivityStore(provider)
        profiles = ProfileStore(provider)
        journal.load()
        activities.load()
        profiles.load()
        return cls(
            provider=provider,
            media=media,
            journal=journal,
            activities=activities,
            entitlements=EntitlementStore(provider),
            profiles=profiles,
        )

    @classmethod
    def open(cls, data_dir: Path) -> Workspace:
        data_dir = Path(data_dir)
        logger.debug("opening workspace at %s", data_dir)
        return cls.build(FileProvider(data_dir), MediaStore(media_dir(data_dir)))

    def reclaim_orphans(self) -> int:
        return self.media.reclaim_orphans(self.journal.live_handles())
