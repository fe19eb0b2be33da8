"""Shared fixtures: in-memory provider, media directory, controllable clock."""

from __future__ import annotations

import os
import time
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from moodjournal.journal import JournalStore
from moodjournal.media import MediaStore
from moodjournal.storage import MemoryProvider

NOW = datetime(2026, 3, 15, 12, 0, 0).astimezone()


class FakeClock:
    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FlakyProvider(MemoryProvider):
    """MemoryProvider whose writes can be switched to fail."""

    def __init__(self, initial=None) -> None:
        super().__init__(initial)
        self.fail_writes = False
        self.writes = 0

    def set(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes += 1
        super().set(key, data)


@pytest.fixture()
def new_york():
    """Run under America/New_York, where DST starts 2026-03-08 and ends 2026-11-01."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def provider() -> FlakyProvider:
    return FlakyProvider()


@pytest.fixture()
def media(tmp_path: Path) -> MediaStore:
    return MediaStore(tmp_path / "media")


@pytest.fixture()
def journal(provider, media, clock) -> JournalStore:
    store = JournalStore(provider, media, clock=clock)
    store.load()
    return store
