from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Protocol

from .errors import PersistenceError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"[A-Za-z0-9_.-]+")


class PersistenceProvider(Protocol):
    """Key -> byte-blob store with synchronous get/set."""

    def get(self, key: str) -> bytes | None:
        """Return the stored blob, or None if the key was never written."""
        ...

    def set(self, key: str, data: bytes) -> None:
        """Replace the blob stored under key as one atomic write."""
        ...


class MemoryProvider:
    """Dict-backed provider. Nothing survives the process."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def set(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)


class FileProvider:
    """
    One file per key under a data directory: <root>/<key>.json

    Writes are atomic-ish:
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.fullmatch(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"could not read {path}: {e}") from e

    def set(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        tmp = path.with_name(path.name + ".tmp")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            try:
                tmp.unlink()
            except OSError:
                pass
            raise PersistenceError(f"could not write {path}: {e}") from e

        try:
            os.chmod(path, 0o600)
        except OSError:
            pass


def encode_document(data: Any) -> bytes:
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"
    return payload.encode("utf-8")


def read_document(provider: PersistenceProvider, key: str) -> tuple[bool, Any]:
    """
    Safe load of one JSON document.
    Returns (present, data):
    - missing or blank -> (False, None)
    - corrupt -> (True, None); the blob is left untouched for inspection
    - otherwise -> (True, decoded JSON)

    Provider failures are propagated as PersistenceError.
    """
    try:
        raw = provider.get(key)
    except PersistenceError:
        raise
    except OSError as e:
        raise PersistenceError(f"could not read {key!r}: {e}") from e

    if raw is None:
        return False, None

    try:
        txt = raw.decode("utf-8").strip()
    except UnicodeDecodeError:
        logger.warning("document %r is not valid UTF-8; ignoring it", key)
        return True, None

    if not txt:
        return False, None

    try:
        return True, json.loads(txt)
    except json.JSONDecodeError as e:
        logger.warning("document %r is corrupt (%s); ignoring it", key, e)
        return True, None


def write_document(provider: PersistenceProvider, key: str, data: Any) -> None:
    try:
        provider.set(key, encode_document(data))
    except PersistenceError:
        raise
    except OSError as e:
        raise PersistenceError(f"could not write {key!r}: {e}") from e
    logger.debug("saved document %r", key)
