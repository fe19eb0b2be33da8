"""Tests for the persistence providers and JSON document helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from moodjournal.errors import PersistenceError
from moodjournal.storage import FileProvider, MemoryProvider, read_document, write_document


@pytest.fixture()
def files(tmp_path: Path) -> FileProvider:
    return FileProvider(tmp_path / "data")


# ---- FileProvider ----


def test_set_creates_file(files):
    files.set("MoodEntries", b"[]")
    assert files.path_for("MoodEntries").exists()


def test_set_creates_parent_dirs(tmp_path):
    deep = FileProvider(tmp_path / "a" / "b" / "c")
    deep.set("UserProfile", b"{}")
    assert (tmp_path / "a" / "b" / "c" / "UserProfile.json").exists()


def test_set_is_atomic_no_tmp_left(files):
    files.set("MoodEntries", b"[]")
    path = files.path_for("MoodEntries")
    assert not path.with_name(path.name + ".tmp").exists()


def test_set_sets_permissions(files):
    files.set("MoodEntries", b"[]")
    mode = oct(os.stat(files.path_for("MoodEntries")).st_mode & 0o777)
    assert mode == "0o600"


def test_get_missing_returns_none(files):
    assert files.get("MoodEntries") is None


def test_get_returns_written_bytes(files):
    files.set("UnlockedThemes", b'["default"]')
    assert files.get("UnlockedThemes") == b'["default"]'


def test_key_with_path_separator_rejected(files):
    with pytest.raises(ValueError):
        files.path_for("../escape")


def test_set_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    provider = FileProvider(blocker / "data")
    with pytest.raises(PersistenceError):
        provider.set("MoodEntries", b"[]")


# ---- read_document / write_document ----


def test_read_missing_is_absent():
    assert read_document(MemoryProvider(), "MoodEntries") == (False, None)


def test_read_blank_is_absent():
    provider = MemoryProvider({"MoodEntries": b"   \n"})
    assert read_document(provider, "MoodEntries") == (False, None)


def test_read_corrupt_is_present_but_empty_and_untouched():
    provider = MemoryProvider({"MoodEntries": b"not valid json {{{{"})
    assert read_document(provider, "MoodEntries") == (True, None)
    assert provider.get("MoodEntries") == b"not valid json {{{{"


def test_read_corrupt_file_leaves_no_backup(files):
    files.set("MoodEntries", b"[{]")
    present, data = read_document(files, "MoodEntries")
    assert present and data is None
    assert files.get("MoodEntries") == b"[{]"
    assert sorted(p.name for p in files.root.iterdir()) == ["MoodEntries.json"]


def test_write_document_is_pretty_utf8():
    provider = MemoryProvider()
    write_document(provider, "CustomActivities", [{"name": "散步"}])
    raw = provider.get("CustomActivities")
    assert "散步" in raw.decode("utf-8")
    assert raw.endswith(b"\n")


def test_write_wraps_os_error():
    class Broken(MemoryProvider):
        def set(self, key, data):
            raise OSError("read-only file system")

    with pytest.raises(PersistenceError):
        write_document(Broken(), "MoodEntries", [])


# ---- round-trip ----


def test_roundtrip(files):
    original = {"id": "abc", "interestedCategories": ["阅读学习"], "isPremium": False}
    write_document(files, "UserProfile", original)
    assert read_document(files, "UserProfile") == (True, original)
    assert json.loads(files.get("UserProfile")) == original
