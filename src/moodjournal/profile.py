"""The single UserProfile document: preferences, reminders, haptics."""

from __future__ import annotations

import dataclasses
import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ._util import _now_local, _parse_iso
from .errors import PersistenceError, ValidationError
from .storage import PersistenceProvider, read_document, write_document

logger = logging.getLogger(__name__)

PROFILE_KEY = "UserProfile"

GENDERS = ("男", "女", "其他")
MOOD_STYLES = ("表情符号", "简约风格", "彩色风格", "经典风格")
SUBSCRIPTION_TYPES = ("月度订阅", "年度订阅", "终身订阅")

_HHMM = re.compile(r"([01]\d|2[0-3]):[0-5]\d")

# dataclass field name -> wire name
_WIRE = {
    "id": "id",
    "gender": "gender",
    "birthday": "birthday",
    "preferred_mood_style": "preferredMoodStyle",
    "preferred_color_scheme": "preferredColorScheme",
    "selected_mood_skin_pack": "selectedMoodSkinPack",
    "interested_categories": "interestedCategories",
    "is_premium": "isPremium",
    "subscription_type": "subscriptionType",
    "enable_daily_reminder": "enableDailyReminder",
    "daily_reminder_time": "dailyReminderTime",
    "enable_weekly_review": "enableWeeklyReview",
    "enable_health_tips": "enableHealthTips",
    "enable_haptic_feedback": "enableHapticFeedback",
    "haptic_intensity": "hapticIntensity",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


@dataclass(frozen=True)
class UserProfile:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    gender: str | None = None
    birthday: date | None = None
    preferred_mood_style: str = "表情符号"
    preferred_color_scheme: str = "system"
    selected_mood_skin_pack: str | None = None
    interested_categories: tuple[str, ...] = ()
    is_premium: bool = False
    subscription_type: str | None = None
    enable_daily_reminder: bool = True
    daily_reminder_time: str = "20:00"
    enable_weekly_review: bool = True
    enable_health_tips: bool = True
    enable_haptic_feedback: bool = True
    haptic_intensity: float = 0.5
    created_at: datetime = field(default_factory=_now_local)
    updated_at: datetime = field(default_factory=_now_local)

    def age(self, today: date | None = None) -> int | None:
        if self.birthday is None:
            return None
        today = today or _now_local().date()
        years = today.year - self.birthday.year
        if (today.month, today.day) < (self.birthday.month, self.birthday.day):
            years -= 1
        return years

    @property
    def is_onboarding_completed(self) -> bool:
        return (
            self.gender is not None
            and bool(self.interested_categories)
            and self.selected_mood_skin_pack is not None
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name, wire in _WIRE.items():
            value = getattr(self, name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            elif isinstance(value, tuple):
                value = list(value)
            out[wire] = value
        return out

    @classmethod
    def from_dict(cls, data: Any) -> UserProfile:
        if not isinstance(data, dict):
            raise ValidationError("profile must be an object")
        kwargs: dict[str, Any] = {}
        for name, wire in _WIRE.items():
            if wire in data and data[wire] is not None:
                kwargs[name] = data[wire]
        try:
            if "birthday" in kwargs:
                kwargs["birthday"] = date.fromisoformat(str(kwargs["birthday"])[:10])
            for ts in ("created_at", "updated_at"):
                if ts in kwargs:
                    kwargs[ts] = _parse_iso(str(kwargs[ts]))
        except ValueError as e:
            raise ValidationError(f"profile has a bad date: {e}") from e
        if "interested_categories" in kwargs:
            kwargs["interested_categories"] = tuple(str(c) for c in kwargs["interested_categories"])
        profile = cls(**kwargs)
        _validate(profile)
        return profile


def _validate(p: UserProfile) -> None:
    if p.gender is not None and p.gender not in GENDERS:
        raise ValidationError(f"gender must be one of {GENDERS}, got {p.gender!r}")
    if p.preferred_mood_style not in MOOD_STYLES:
        raise ValidationError(f"unknown mood style {p.preferred_mood_style!r}")
    if p.subscription_type is not None and p.subscription_type not in SUBSCRIPTION_TYPES:
        raise ValidationError(f"unknown subscription type {p.subscription_type!r}")
    if not isinstance(p.daily_reminder_time, str) or not _HHMM.fullmatch(p.daily_reminder_time):
        raise ValidationError(f"daily reminder time must be HH:MM, got {p.daily_reminder_time!r}")
    intensity = p.haptic_intensity
    if isinstance(intensity, bool) or not isinstance(intensity, (int, float)) or not (0.0 <= intensity <= 1.0):
        raise ValidationError(f"haptic intensity must be within [0, 1], got {intensity!r}")
    for flag in ("is_premium", "enable_daily_reminder", "enable_weekly_review",
                 "enable_health_tips", "enable_haptic_feedback"):
        if not isinstance(getattr(p, flag), bool):
            raise ValidationError(f"{flag} must be a boolean")


class ProfileStore:
    def __init__(
        self,
        provider: PersistenceProvider,
        clock: Callable[[], datetime] = _now_local,
    ) -> None:
        self._provider = provider
        self._clock = clock
        now = clock()
        self._profile = UserProfile(created_at=now, updated_at=now)

    @property
    def profile(self) -> UserProfile:
        return self._profile

    def load(self) -> None:
        present, data = read_document(self._provider, PROFILE_KEY)
        now = self._clock()
        if not present:
            logger.info("no saved profile; using a fresh one")
            self._profile = UserProfile(created_at=now, updated_at=now)
            return
        try:
            self._profile = UserProfile.from_dict(data)
        except (ValidationError, TypeError) as e:
            logger.warning("%s is unreadable (%s); using a fresh profile", PROFILE_KEY, e)
            self._profile = UserProfile(created_at=now, updated_at=now)

    def update(self, **changes: Any) -> UserProfile:
        unknown = set(changes) - set(_WIRE)
        locked = set(changes) & {"id", "created_at", "updated_at"}
        if unknown or locked:
            raise ValidationError(f"cannot update profile field(s): {sorted(unknown | locked)}")
        if "interested_categories" in changes:
            changes["interested_categories"] = tuple(changes["interested_categories"])

        updated = dataclasses.replace(self._profile, updated_at=self._clock(), **changes)
        _validate(updated)

        previous = self._profile
        self._profile = updated
        try:
            write_document(self._provider, PROFILE_KEY, updated.to_dict())
        except PersistenceError:
            self._profile = previous
            raise
        logger.info("updated profile: %s", ", ".join(sorted(changes)))
        return updated

    def update_notification_settings(
        self,
        daily_reminder: bool,
        reminder_time: str,
        weekly_review: bool,
        health_tips: bool,
    ) -> UserProfile:
        return self.update(
            enable_daily_reminder=daily_reminder,
            daily_reminder_time=reminder_time,
            enable_weekly_review=weekly_review,
            enable_health_tips=health_tips,
        )

    def update_haptic_settings(self, enabled: bool, intensity: float) -> UserProfile:
        return self.update(enable_haptic_feedback=enabled, haptic_intensity=intensity)
