"""Shared low-level time helpers."""

from __future__ import annotations

from datetime import datetime, timedelta


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _as_local(dt: datetime) -> datetime:
    # naive values are local wall-clock time, with the offset in force on that date
    return dt.astimezone()


def _wall(dt: datetime) -> datetime:
    """Local wall-clock time of dt, as a naive datetime."""
    return _as_local(dt).replace(tzinfo=None)


def _shift_days(dt: datetime, days: int) -> datetime:
    # calendar days: same wall-clock time, re-localized on the target date
    return _as_local(_wall(dt) + timedelta(days=days))


def _parse_iso(ts: str) -> datetime:
    """Parse an ISO-8601 timestamp into a local, timezone-aware datetime.

    Raises ValueError on anything that is not ISO-8601.
    """
    return _as_local(datetime.fromisoformat(ts))


def _fmt_time(dt: datetime) -> str:
    # Windows-safe formatting
    try:
        return dt.strftime("%-I:%M %p")
    except ValueError:
        return dt.strftime("%I:%M %p").lstrip("0")


def _start_of_day(dt: datetime) -> datetime:
    return _as_local(_wall(dt).replace(hour=0, minute=0, second=0, microsecond=0))
