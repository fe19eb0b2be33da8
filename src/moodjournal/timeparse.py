from __future__ import annotations

import re
from datetime import datetime, timedelta

from ._util import _as_local, _now_local, _shift_days, _wall


def parse_ts(value: str | None, now: datetime | None = None) -> datetime:
    """
    Parse flexible user time into a timezone-aware local datetime.
    Accepts:
      - None / blank -> now
      - ISO 8601 (with or without tz; naive assumed local)
      - "7:34am", "7:34 am", "19:34", "7am"
      - "2026-02-25 7:34am", "2026-02-25 19:34", "2026/02/25 19:34"
      - date only: "2026-02-25" (midnight)
      - relative: "3 days ago", "1 week ago", "2 hours ago", "15 minutes ago"
      - keywords: "today 14:30", "yesterday 9am", "前天 9am"
    Raises ValueError for anything else.
    """
    now = _as_local(now) if now is not None else _now_local()

    if not value or not value.strip():
        return now

    raw = value.strip()
    s = raw.lower()

    # --- 1) ISO 8601 ---
    try:
        return _as_local(datetime.fromisoformat(raw))
    except ValueError:
        pass

    # --- 2) Relative like "3 days ago", "1 week ago", "15 minutes ago" ---
    m = re.fullmatch(r"(\d+)\s*(week|weeks|day|days|hour|hours|minute|minutes)\s*ago", s)
    if m:
        n = int(m.group(1))
        unit = m.group(2)
        if "week" in unit:
            return _shift_days(now, -7 * n)
        if "day" in unit:
            return _shift_days(now, -n)
        if "hour" in unit:
            return now - timedelta(hours=n)
        return now - timedelta(minutes=n)

    # --- 3) Keyword date prefix ---
    m = re.fullmatch(r"(today|yesterday|今天|昨天|前天)\s*(.*)", s)
    if m:
        offsets = {"today": 0, "今天": 0, "yesterday": 1, "昨天": 1, "前天": 2}
        base = _shift_days(now, -offsets[m.group(1)])
        rest = m.group(2).strip()
        if not rest:
            return base
        return _parse_time_only(rest, base)

    # --- 4) Date + time formats ---
    dt_formats = [
        "%Y-%m-%d %I:%M%p",
        "%Y-%m-%d %I:%M %p",
        "%Y-%m-%d %I%p",
        "%Y-%m-%d %H:%M",
        "%Y/%m/%d %I:%M%p",
        "%Y/%m/%d %I:%M %p",
        "%Y/%m/%d %H:%M",
        "%Y/%m/%d",
    ]
    for fmt in dt_formats:
        try:
            dt = datetime.strptime(raw, fmt)
            return _as_local(dt)
        except ValueError:
            continue

    # --- 5) Time-only formats (assume today) ---
    try:
        return _parse_time_only(raw, now)
    except ValueError:
        pass

    raise ValueError(
        f"Could not parse time {value!r}. Try ISO like '2026-02-25T07:34:00+08:00' "
        f"or '2026-02-25 7:34am' or '7:34am' or 'yesterday 9am' or '3 days ago'."
    )


def _parse_time_only(time_str: str, base_dt: datetime) -> datetime:
    """
    Parse a time like '9am', '7:34am', '14:30' and apply it to base_dt's date.
    Returns timezone-aware datetime (base_dt tz).
    """
    s = time_str.strip().lower()

    t_formats = [
        "%I:%M%p",
        "%I:%M %p",
        "%I%p",
        "%H:%M",
    ]
    for fmt in t_formats:
        try:
            t = datetime.strptime(s, fmt)
            return _as_local(_wall(base_dt).replace(hour=t.hour, minute=t.minute, second=0, microsecond=0))
        except ValueError:
            continue

    raise ValueError(f"Could not parse time-only value: {time_str!r}")
