"""CSV, text-report and JSON renderings of the journal."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from ._util import _as_local, _now_local
from .models import Activity, MoodEntry
from .profile import UserProfile
from .stats import aggregate, date_range_label

logger = logging.getLogger(__name__)

CSV_HEADER = ["日期", "时间", "心情等级", "心情描述", "活动", "备注", "包含语音", "包含图片"]


def _yes_no(flag: bool) -> str:
    return "是" if flag else "否"


def csv_row(entry: MoodEntry) -> list[str]:
    dt = _as_local(entry.occurred_at)
    return [
        dt.strftime("%Y-%m-%d"),
        dt.strftime("%H:%M"),
        str(entry.mood_level),
        entry.mood_description,
        "、".join(a.name for a in entry.activities),
        entry.note or "",
        _yes_no(entry.audio_ref is not None),
        _yes_no(entry.image_ref is not None),
    ]


def entries_to_csv(entries: Sequence[MoodEntry]) -> str:
    """Every field quoted; embedded quotes doubled."""
    buf = io.StringIO()
    w = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for e in entries:
        w.writerow(csv_row(e))
    return buf.getvalue()


def write_csv(out_path: Path, entries: Sequence[MoodEntry]) -> int:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    # BOM so spreadsheet apps pick up UTF-8
    out_path.write_text(entries_to_csv(entries), encoding="utf-8-sig")
    logger.info("exported %d entries to %s", len(entries), out_path)
    return len(entries)


def data_summary(
    entries: Sequence[MoodEntry],
    custom_activities: Sequence[Activity],
    profile: UserProfile,
) -> dict[str, Any]:
    stats = aggregate(entries)
    return {
        "totalEntries": stats.total_entries,
        "averageMood": stats.average_mood,
        "dateRange": date_range_label(entries),
        "customActivitiesCount": len(custom_activities),
        "isPremium": profile.is_premium,
    }


def backup_report(summary: dict[str, Any], now: datetime | None = None) -> str:
    now = _as_local(now) if now is not None else _now_local()
    membership = "付费用户" if summary.get("isPremium") else "免费用户"
    lines = [
        "心情日记备份报告",
        "",
        f"导出日期: {now.strftime('%Y年%m月%d日 %H:%M')}",
        "",
        "数据统计:",
        f"• 心情记录总数: {summary.get('totalEntries', 0)} 条",
        f"• 平均心情评分: {summary.get('averageMood', 0.0):.1f}",
        f"• 记录时间范围: {summary.get('dateRange', '无数据')}",
        f"• 自定义活动: {summary.get('customActivitiesCount', 0)} 个",
        f"• 会员状态: {membership}",
        "",
        "此报告由心情日记应用自动生成。",
    ]
    return "\n".join(lines) + "\n"


def export_json(
    profile: UserProfile,
    entries: Sequence[MoodEntry],
    custom_activities: Sequence[Activity],
    now: datetime | None = None,
) -> str:
    now = _as_local(now) if now is not None else _now_local()
    doc = {
        "userProfile": profile.to_dict(),
        "moodEntries": [e.to_dict() for e in entries],
        "customActivities": [a.to_dict() for a in custom_activities],
        "exportDate": now.isoformat(),
    }
    return json.dumps(doc, indent=2, ensure_ascii=False) + "\n"
