"""
Journal records and their JSON wire form.

Wire shapes:
  MoodEntry: {id, date, moodLevel, activities, note, audioURL, imageURL,
              createdAt, updatedAt}
  Activity:  {id, name, category, isCustom, customIcon}
Timestamps are ISO-8601 strings; absent values are null.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ._util import _parse_iso
from .errors import ValidationError

MIN_MOOD = 1
MAX_MOOD = 5
MAX_ACTIVITY_NAME = 10

MOOD_DESCRIPTIONS = {
    1: "很差",
    2: "不好",
    3: "一般",
    4: "不错",
    5: "很好",
}

MOOD_COLORS = {
    1: "mood_very_bad",
    2: "mood_bad",
    3: "mood_neutral",
    4: "mood_good",
    5: "mood_very_good",
}

# stable ids for the built-in activities
_ACTIVITY_NAMESPACE = uuid.UUID("6f1c3f64-2a52-4e0b-9a55-0d7c1c5b8e21")


def mood_description(level: int) -> str:
    return MOOD_DESCRIPTIONS.get(level, "未知")


def validate_mood_level(level: Any) -> int:
    # bool is an int subclass; True must not pass as mood 1
    if isinstance(level, bool) or not isinstance(level, int):
        raise ValidationError(f"moodLevel must be an integer, got {level!r}")
    if not (MIN_MOOD <= level <= MAX_MOOD):
        raise ValidationError(f"moodLevel must be between {MIN_MOOD} and {MAX_MOOD}, got {level}")
    return level


def _optional_str(value: Any, name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string or null, got {type(value).__name__}")
    return value


def _required_ts(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO-8601 string, got {value!r}")
    try:
        return _parse_iso(value)
    except ValueError as e:
        raise ValidationError(f"{name} is not ISO-8601: {value!r}") from e


class ActivityCategory(Enum):
    EXERCISE = "运动"
    SOCIAL = "社交"
    HOBBY = "爱好"
    FAMILY = "家庭"
    HEALTH = "健康"
    ENTERTAINMENT = "娱乐"
    WORK = "工作"
    CUSTOM = "自定义"

    @property
    def icon(self) -> str:
        return _CATEGORY_ICONS[self]

    @property
    def color(self) -> str:
        return f"category_{self.name.lower()}"


_CATEGORY_ICONS = {
    ActivityCategory.EXERCISE: "figure.walk",
    ActivityCategory.SOCIAL: "person.2",
    ActivityCategory.HOBBY: "paintbrush",
    ActivityCategory.FAMILY: "house",
    ActivityCategory.HEALTH: "heart",
    ActivityCategory.ENTERTAINMENT: "tv",
    ActivityCategory.WORK: "briefcase",
    ActivityCategory.CUSTOM: "star",
}


def validate_activity_name(name: Any) -> str:
    if not isinstance(name, str):
        raise ValidationError("activity name must be a string")
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("activity name must not be empty")
    if len(cleaned) > MAX_ACTIVITY_NAME:
        raise ValidationError(
            f"activity name must be at most {MAX_ACTIVITY_NAME} characters, got {len(cleaned)}"
        )
    return cleaned


@dataclass(frozen=True)
class Activity:
    id: str
    name: str
    category: ActivityCategory
    is_custom: bool = False
    custom_icon: str | None = None

    @property
    def icon(self) -> str:
        return self.custom_icon or self.category.icon

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "isCustom": self.is_custom,
            "customIcon": self.custom_icon,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Activity:
        if not isinstance(data, dict):
            raise ValidationError(f"activity must be an object, got {type(data).__name__}")
        act_id = data.get("id")
        if not isinstance(act_id, str) or not act_id:
            raise ValidationError("activity id must be a non-empty string")
        try:
            category = ActivityCategory(data.get("category"))
        except ValueError as e:
            raise ValidationError(f"unknown activity category {data.get('category')!r}") from e
        is_custom = data.get("isCustom", False)
        if not isinstance(is_custom, bool):
            raise ValidationError("isCustom must be a boolean")
        return cls(
            id=act_id,
            name=validate_activity_name(data.get("name")),
            category=category,
            is_custom=is_custom,
            custom_icon=_optional_str(data.get("customIcon"), "customIcon"),
        )


def _predefined(name: str, category: ActivityCategory) -> Activity:
    return Activity(
        id=str(uuid.uuid5(_ACTIVITY_NAMESPACE, name)),
        name=name,
        category=category,
    )


PREDEFINED_ACTIVITIES: tuple[Activity, ...] = (
    _predefined("散步", ActivityCategory.EXERCISE),
    _predefined("太极", ActivityCategory.EXERCISE),
    _predefined("游泳", ActivityCategory.EXERCISE),
    _predefined("骑车", ActivityCategory.EXERCISE),
    _predefined("与朋友聊天", ActivityCategory.SOCIAL),
    _predefined("参加聚会", ActivityCategory.SOCIAL),
    _predefined("社区活动", ActivityCategory.SOCIAL),
    _predefined("志愿服务", ActivityCategory.SOCIAL),
    _predefined("阅读", ActivityCategory.HOBBY),
    _predefined("书法", ActivityCategory.HOBBY),
    _predefined("绘画", ActivityCategory.HOBBY),
    _predefined("园艺", ActivityCategory.HOBBY),
    _predefined("烹饪", ActivityCategory.HOBBY),
    _predefined("与家人聊天", ActivityCategory.FAMILY),
    _predefined("带孙子", ActivityCategory.FAMILY),
    _predefined("家务", ActivityCategory.FAMILY),
    _predefined("家庭聚餐", ActivityCategory.FAMILY),
    _predefined("体检", ActivityCategory.HEALTH),
    _predefined("吃药", ActivityCategory.HEALTH),
    _predefined("按摩", ActivityCategory.HEALTH),
    _predefined("休息", ActivityCategory.HEALTH),
    _predefined("看电视", ActivityCategory.ENTERTAINMENT),
    _predefined("听音乐", ActivityCategory.ENTERTAINMENT),
    _predefined("看电影", ActivityCategory.ENTERTAINMENT),
    _predefined("打牌", ActivityCategory.ENTERTAINMENT),
)


@dataclass(frozen=True)
class EntryDraft:
    """What a caller hands to JournalStore.create / JournalStore.update."""

    mood_level: int
    occurred_at: datetime | None = None
    activities: tuple[Activity, ...] = ()
    note: str | None = None
    audio_ref: str | None = None
    image_ref: str | None = None
    id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class MoodEntry:
    id: str
    occurred_at: datetime
    mood_level: int
    activities: tuple[Activity, ...] = field(default_factory=tuple)
    note: str | None = None
    audio_ref: str | None = None
    image_ref: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def mood_description(self) -> str:
        return mood_description(self.mood_level)

    @property
    def mood_color(self) -> str:
        return MOOD_COLORS.get(self.mood_level, "mood_neutral")

    def media_refs(self) -> tuple[str, ...]:
        return tuple(ref for ref in (self.audio_ref, self.image_ref) if ref is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.occurred_at.isoformat(),
            "moodLevel": self.mood_level,
            "activities": [a.to_dict() for a in self.activities],
            "note": self.note,
            "audioURL": self.audio_ref,
            "imageURL": self.image_ref,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> MoodEntry:
        if not isinstance(data, dict):
            raise ValidationError(f"entry must be an object, got {type(data).__name__}")

        entry_id = data.get("id")
        if not isinstance(entry_id, str) or not entry_id:
            raise ValidationError("entry id must be a non-empty string")

        raw_acts = data.get("activities", [])
        if not isinstance(raw_acts, list):
            raise ValidationError("activities must be a list")

        occurred = _required_ts(data.get("date"), "date")
        created = _required_ts(data["createdAt"], "createdAt") if data.get("createdAt") else occurred
        updated = _required_ts(data["updatedAt"], "updatedAt") if data.get("updatedAt") else created

        return cls(
            id=entry_id,
            occurred_at=occurred,
            mood_level=validate_mood_level(data.get("moodLevel")),
            activities=tuple(Activity.from_dict(a) for a in raw_acts),
            note=_optional_str(data.get("note"), "note"),
            audio_ref=_optional_str(data.get("audioURL"), "audioURL") or None,
            image_ref=_optional_str(data.get("imageURL"), "imageURL") or None,
            created_at=created,
            updated_at=updated,
        )
