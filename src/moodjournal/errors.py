"""Exception types raised by the journal core."""

from __future__ import annotations


class MoodJournalError(Exception):
    """Base class for every error the core raises on purpose."""


class ValidationError(MoodJournalError, ValueError):
    """Out-of-range mood level, empty required field, malformed record."""


class NotFoundError(MoodJournalError, LookupError):
    """An operation referenced an unknown entry, activity or catalog id."""


class NotUnlockedError(MoodJournalError):
    """A theme or skin pack was applied before being unlocked."""


class PersistenceError(MoodJournalError):
    """The persistence provider rejected a read or a write."""


class MediaIOError(MoodJournalError, OSError):
    """A media file could not be written, read or deleted."""
