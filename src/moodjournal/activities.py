from __future__ import annotations

import logging
import uuid

from .errors import NotFoundError, PersistenceError, ValidationError
from .models import PREDEFINED_ACTIVITIES, Activity, ActivityCategory, validate_activity_name
from .storage import PersistenceProvider, read_document, write_document

logger = logging.getLogger(__name__)

CUSTOM_ACTIVITIES_KEY = "CustomActivities"


class ActivityStore:
    """Predefined activities plus the user's own, persisted under CustomActivities."""

    def __init__(self, provider: PersistenceProvider) -> None:
        self._provider = provider
        self._custom: list[Activity] = []

    def load(self) -> None:
        present, data = read_document(self._provider, CUSTOM_ACTIVITIES_KEY)
        self._custom = []
        if not present:
            return
        if not isinstance(data, list):
            logger.warning("%s is not a JSON array; ignoring it", CUSTOM_ACTIVITIES_KEY)
            return
        try:
            acts = [Activity.from_dict(raw) for raw in data]
        except ValidationError as e:
            logger.warning("%s holds a malformed activity (%s); ignoring it", CUSTOM_ACTIVITIES_KEY, e)
            return
        self._custom = [a for a in acts if a.is_custom]
        logger.info("loaded %d custom activities", len(self._custom))

    def save(self) -> None:
        write_document(self._provider, CUSTOM_ACTIVITIES_KEY, [a.to_dict() for a in self._custom])

    def custom(self) -> tuple[Activity, ...]:
        return tuple(self._custom)

    def all_activities(self) -> tuple[Activity, ...]:
        return PREDEFINED_ACTIVITIES + tuple(self._custom)

    def find(self, activity_id: str) -> Activity:
        for a in self.all_activities():
            if a.id == activity_id:
                return a
        raise NotFoundError(f"no activity with id {activity_id!r}")

    def find_by_name(self, name: str) -> Activity:
        wanted = name.strip()
        for a in self.all_activities():
            if a.name == wanted:
                return a
        raise NotFoundError(f"no activity named {name!r}")

    def add_custom(
        self,
        name: str,
        category: ActivityCategory = ActivityCategory.CUSTOM,
        icon: str | None = None,
    ) -> Activity:
        cleaned = validate_activity_name(name)
        if any(a.name == cleaned for a in self._custom):
            raise ValidationError(f"custom activity {cleaned!r} already exists")

        act = Activity(
            id=str(uuid.uuid4()),
            name=cleaned,
            category=category,
            is_custom=True,
            custom_icon=icon or None,
        )
        self._custom.append(act)
        try:
            self.save()
        except PersistenceError:
            self._custom.pop()
            raise

        logger.info("added custom activity %r (%s, icon=%s)", act.name, category.value, act.icon)
        return act

    def delete_custom(self, activity_id: str) -> None:
        for i, a in enumerate(self._custom):
            if a.id == activity_id:
                break
        else:
            raise NotFoundError(f"no custom activity with id {activity_id!r}")

        removed = self._custom.pop(i)
        try:
            self.save()
        except PersistenceError:
            self._custom.insert(i, removed)
            raise
        logger.info("deleted custom activity %r", removed.name)
