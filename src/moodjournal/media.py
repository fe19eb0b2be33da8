"""
File-backed media attachments.

Handles are bare file names inside the media directory:
  mood_image_<unix time, 6 decimals>.jpg
  recording_<unix time, 6 decimals>.m4a
Nothing else in the directory is ever touched by reclaim_orphans.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from .errors import MediaIOError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "mood_image_"
IMAGE_SUFFIX = ".jpg"
AUDIO_PREFIX = "recording_"
AUDIO_SUFFIX = ".m4a"
MANAGED_PREFIXES = (IMAGE_PREFIX, AUDIO_PREFIX)

UNKNOWN_SIZE = "未知"

_MICROSECOND = 1e-6


def is_managed_name(name: str) -> bool:
    return name.startswith(MANAGED_PREFIXES)


def human_size(num_bytes: int) -> str:
    # decimal units, KB/MB only; a non-empty file is never shown as 0 KB
    kb = round(num_bytes / 1000)
    if kb < 1000:
        return f"{max(kb, 1) if num_bytes else 0} KB"
    return f"{num_bytes / 1_000_000:.1f} MB"


class MediaStore:
    def __init__(self, root: Path, clock: Callable[[], float] = time.time) -> None:
        self.root = Path(root)
        self._clock = clock

    def path_for(self, handle: str) -> Path:
        if not isinstance(handle, str) or not handle:
            raise ValidationError(f"invalid media handle {handle!r}")
        if Path(handle).name != handle or handle in (".", ".."):
            raise ValidationError(f"media handle must be a bare file name, got {handle!r}")
        return self.root / handle

    def exists(self, handle: str) -> bool:
        try:
            return self.path_for(handle).is_file()
        except ValidationError:
            return False

    # ---- save ----

    def save_image(self, data: bytes) -> str:
        return self._save(data, IMAGE_PREFIX, IMAGE_SUFFIX)

    def save_audio(self, data: bytes) -> str:
        return self._save(data, AUDIO_PREFIX, AUDIO_SUFFIX)

    def import_file(self, source: Path, kind: str) -> str:
        """Copy an existing file in as an 'image' or 'audio' attachment."""
        if kind not in ("image", "audio"):
            raise ValidationError(f"media kind must be 'image' or 'audio', got {kind!r}")
        try:
            data = Path(source).expanduser().read_bytes()
        except OSError as e:
            raise MediaIOError(f"could not read {source}: {e}") from e
        if kind == "image":
            return self.save_image(data)
        return self.save_audio(data)

    def _save(self, data: bytes, prefix: str, suffix: str) -> str:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MediaIOError(f"could not create media directory {self.root}: {e}") from e

        stamp = self._clock()
        while True:
            name = f"{prefix}{stamp:.6f}{suffix}"
            path = self.root / name
            try:
                # "x" never clobbers an existing attachment
                f = open(path, "xb")
            except FileExistsError:
                stamp += _MICROSECOND
                continue
            except OSError as e:
                raise MediaIOError(f"could not create {path}: {e}") from e
            break

        try:
            with f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            try:
                path.unlink()
            except OSError:
                pass
            raise MediaIOError(f"could not write {path}: {e}") from e

        logger.info("saved media file %s (%d bytes)", name, len(data))
        return name

    # ---- delete / inspect ----

    def delete(self, handle: str) -> None:
        path = self.path_for(handle)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("media file %s already gone", handle)
            return
        except OSError as e:
            raise MediaIOError(f"could not delete {path}: {e}") from e
        logger.info("deleted media file %s", handle)

    def size_of(self, handle: str) -> str:
        try:
            return human_size(self.path_for(handle).stat().st_size)
        except (OSError, ValidationError) as e:
            logger.warning("could not size media file %r: %s", handle, e)
            return UNKNOWN_SIZE

    def managed_files(self) -> list[str]:
        try:
            names = sorted(p.name for p in self.root.iterdir() if p.is_file())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise MediaIOError(f"could not list {self.root}: {e}") from e
        return [n for n in names if is_managed_name(n)]

    def reclaim_orphans(self, live_handles: Iterable[str]) -> int:
        """
        Delete every managed file that no entry references.

        live_handles must be a snapshot of every handle referenced by any
        entry (JournalStore.live_handles()), taken before calling this.
        Returns the number of files removed.
        """
        live = {Path(h).name for h in live_handles if h}
        reclaimed = 0

        for name in self.managed_files():
            if name in live:
                continue
            try:
                (self.root / name).unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("could not reclaim orphan %s: %s", name, e)
                continue
            reclaimed += 1
            logger.info("reclaimed orphan media file %s", name)

        logger.info("orphan reclamation removed %d file(s)", reclaimed)
        return reclaimed
