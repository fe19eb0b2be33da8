"""
Retrospective statistics over a slice of journal entries.

Everything here is a pure function of its arguments; `now` defaults to the
current local time when omitted.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ._util import _as_local, _now_local, _shift_days, _start_of_day, _wall
from .models import Activity, MoodEntry


class Period(Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def label(self) -> str:
        return {"week": "本周", "month": "本月", "year": "本年"}[self.value]

    @property
    def anchor_count(self) -> int:
        return {"week": 7, "month": 30, "year": 12}[self.value]


@dataclass(frozen=True)
class MoodStatistics:
    average_mood: float
    total_entries: int
    mood_counts: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TrendPoint:
    timestamp: datetime
    mood_level: float


@dataclass(frozen=True)
class ActivityStat:
    activity: Activity
    count: int
    average_mood: float


def _now(now: datetime | None) -> datetime:
    return _as_local(now) if now is not None else _now_local()


def shift_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    total = dt.year * 12 + (dt.month - 1) + months
    year, month0 = divmod(total, 12)
    month = month0 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _shift_months_local(dt: datetime, months: int) -> datetime:
    return _as_local(shift_months(_wall(dt), months))


def period_start(period: Period, now: datetime | None = None) -> datetime:
    now = _now(now)
    if period is Period.WEEK:
        return _shift_days(now, -7)
    if period is Period.MONTH:
        return _shift_months_local(now, -1)
    return _shift_months_local(now, -12)


def filter_by_period(
    entries: Iterable[MoodEntry], period: Period, now: datetime | None = None
) -> list[MoodEntry]:
    start = period_start(period, now)
    return [e for e in entries if e.occurred_at >= start]


def aggregate(entries: Iterable[MoodEntry]) -> MoodStatistics:
    counts: dict[int, int] = {}
    total = 0
    level_sum = 0
    for e in entries:
        counts[e.mood_level] = counts.get(e.mood_level, 0) + 1
        total += 1
        level_sum += e.mood_level

    if total == 0:
        return MoodStatistics(average_mood=0.0, total_entries=0, mood_counts={})

    return MoodStatistics(
        average_mood=level_sum / total,
        total_entries=total,
        mood_counts=dict(sorted(counts.items())),
    )


def stability(stats: MoodStatistics) -> float:
    """
    max(0, 1 - sigma/2) where sigma is the population standard deviation of
    the mood levels behind `stats`. 1.0 means every entry had the same level.
    Empty statistics give 0.0.
    """
    n = sum(stats.mood_counts.values())
    if n == 0:
        return 0.0
    mean = sum(level * c for level, c in stats.mood_counts.items()) / n
    variance = sum(c * (level - mean) ** 2 for level, c in stats.mood_counts.items()) / n
    return max(0.0, 1.0 - math.sqrt(variance) / 2.0)


def stability_label(score: float) -> str:
    if score >= 0.8:
        return "非常稳定"
    if score >= 0.6:
        return "比较稳定"
    if score >= 0.4:
        return "一般"
    if score >= 0.2:
        return "波动较大"
    return "波动很大"


def trend_anchors(period: Period, now: datetime | None = None) -> list[datetime]:
    """Evenly spaced chart anchors ending today (or this month, for a year)."""
    now = _now(now)
    n = period.anchor_count
    if period is Period.YEAR:
        return [_start_of_day(_shift_months_local(now, i - (n - 1))) for i in range(n)]
    return [_start_of_day(_shift_days(now, i - (n - 1))) for i in range(n)]


def trend_points(
    entries: Iterable[MoodEntry], period: Period, now: datetime | None = None
) -> list[TrendPoint]:
    """
    Chart series for the period, positional: the i-th entry in chronological
    order is plotted at the i-th anchor, whatever its real date. Entries past
    the last anchor are dropped. See aligned_trend_points for the date-aligned
    series.
    """
    now = _now(now)
    window = sorted(filter_by_period(entries, period, now), key=lambda e: e.occurred_at)
    anchors = trend_anchors(period, now)
    return [TrendPoint(anchor, e.mood_level) for anchor, e in zip(anchors, window)]


def aligned_trend_points(
    entries: Iterable[MoodEntry], period: Period, now: datetime | None = None
) -> list[TrendPoint]:
    """One point per anchor that has entries on its day (month for a year), valued at their mean level."""
    now = _now(now)
    anchors = trend_anchors(period, now)
    buckets: dict[datetime, list[int]] = {a: [] for a in anchors}

    for e in filter_by_period(entries, period, now):
        when = _as_local(e.occurred_at)
        for a in anchors:
            # year anchors keep now's day-of-month, so match those on (year, month)
            if period is Period.YEAR:
                hit = (a.year, a.month) == (when.year, when.month)
            else:
                hit = a.date() == when.date()
            if hit:
                buckets[a].append(e.mood_level)
                break

    return [TrendPoint(a, sum(v) / len(v)) for a, v in buckets.items() if v]


def activity_stats(entries: Iterable[MoodEntry]) -> list[ActivityStat]:
    by_id: dict[str, tuple[Activity, list[int]]] = {}
    for e in entries:
        for act in e.activities:
            if act.id not in by_id:
                by_id[act.id] = (act, [])
            by_id[act.id][1].append(e.mood_level)

    stats = [ActivityStat(act, len(moods), sum(moods) / len(moods)) for act, moods in by_id.values()]
    return sorted(stats, key=lambda s: -s.count)


def active_days(entries: Iterable[MoodEntry]) -> int:
    return len({_as_local(e.occurred_at).date() for e in entries})


def mood_range(entries: Sequence[MoodEntry]) -> int:
    if not entries:
        return 0
    levels = [e.mood_level for e in entries]
    return max(levels) - min(levels)


def date_range_label(entries: Sequence[MoodEntry]) -> str:
    if not entries:
        return "无数据"
    dates = sorted(_as_local(e.occurred_at) for e in entries)
    return f"{_fmt_cn_date(dates[0])} - {_fmt_cn_date(dates[-1])}"


def _fmt_cn_date(dt: datetime) -> str:
    return f"{dt.year:04d}年{dt.month:02d}月{dt.day:02d}日"


def sparkline(values: list[float], vmin: float = 1.0, vmax: float = 5.0) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, vmax - vmin)
    out = []
    for v in values:
        x = (v - vmin) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)
