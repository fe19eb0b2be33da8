"""Tests for CSV, report and JSON export."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime

from moodjournal.export import (
    CSV_HEADER,
    backup_report,
    csv_row,
    data_summary,
    entries_to_csv,
    export_json,
    write_csv,
)
from moodjournal.models import PREDEFINED_ACTIVITIES, Activity, ActivityCategory, MoodEntry
from moodjournal.profile import UserProfile

WHEN = datetime(2026, 3, 14, 9, 5).astimezone()
WALK, READ = PREDEFINED_ACTIVITIES[0], PREDEFINED_ACTIVITIES[8]


def _entry(**kwargs) -> MoodEntry:
    base = dict(id="e1", occurred_at=WHEN, mood_level=4, created_at=WHEN, updated_at=WHEN)
    base.update(kwargs)
    return MoodEntry(**base)


def test_header_line():
    text = entries_to_csv([])
    assert text == '"日期","时间","心情等级","心情描述","活动","备注","包含语音","包含图片"\n'
    assert len(CSV_HEADER) == 8


def test_row_fields():
    row = csv_row(_entry(activities=(WALK, READ), note="晴天", image_ref="mood_image_1.000000.jpg"))
    assert row == ["2026-03-14", "09:05", "4", "不错", "散步、阅读", "晴天", "否", "是"]


def test_quotes_are_doubled():
    text = entries_to_csv([_entry(note='他说 "很好", 然后走了')])
    assert '"他说 ""很好"", 然后走了"' in text
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1][5] == '他说 "很好", 然后走了'


def test_write_csv_has_bom(tmp_path):
    out = tmp_path / "exports" / "mood.csv"
    n = write_csv(out, [_entry(), _entry(id="e2", mood_level=1)])
    assert n == 2
    raw = out.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    assert raw.decode("utf-8-sig").count("\n") == 3


def test_summary_and_report():
    custom = [Activity(id="c1", name="钓鱼", category=ActivityCategory.CUSTOM, is_custom=True)]
    entries = [_entry(mood_level=5), _entry(id="e2", mood_level=2)]
    summary = data_summary(entries, custom, UserProfile(is_premium=True))
    assert summary["totalEntries"] == 2
    assert summary["averageMood"] == 3.5
    assert summary["customActivitiesCount"] == 1
    assert summary["dateRange"] == "2026年03月14日 - 2026年03月14日"

    report = backup_report(summary, now=WHEN)
    assert "导出日期: 2026年03月14日 09:05" in report
    assert "• 心情记录总数: 2 条" in report
    assert "• 平均心情评分: 3.5" in report
    assert "付费用户" in report


def test_report_for_empty_journal():
    summary = data_summary([], [], UserProfile())
    report = backup_report(summary, now=WHEN)
    assert "无数据" in report
    assert "免费用户" in report


def test_export_json():
    doc = json.loads(export_json(UserProfile(), [_entry(activities=(WALK,))], [], now=WHEN))
    assert set(doc) == {"userProfile", "moodEntries", "customActivities", "exportDate"}
    assert doc["moodEntries"][0]["activities"][0]["name"] == "散步"
    assert doc["customActivities"] == []
