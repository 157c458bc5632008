"""Task data model and its JSON layout."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from todolist.config import settings

DEFAULT_CATEGORY = "General"
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def default_category() -> str:
    """Category given to tasks without one (``settings.default_category``)."""
    return settings.default_category.strip() or DEFAULT_CATEGORY


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort rank: high first."""
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.LOW


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class Repeat(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def parse(cls, raw: Any) -> Repeat:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE


class SortMode(StrEnum):
    DEFAULT = "default"
    PRIORITY = "priority"
    DONE = "done"


@dataclass
class TaskDraft:
    """The user-editable part of a task, as entered in an add or edit form."""

    text: str
    priority: Priority = Priority.LOW
    category: str = ""
    due_at: datetime | None = None
    reminder_offset_minutes: int = 0
    repeat: Repeat = Repeat.NONE


@dataclass
class Task:
    """A single to-do item.

    Attributes:
        id: Unique identifier (UUID hex), assigned once at creation.
        text: Trimmed, non-empty description.
        done: Completion flag.
        priority: ``low``, ``medium`` or ``high``.
        category: Free-text label, the configured default when omitted.
        due_at: When the task is due, if ever.
        reminder_offset_minutes: Lead time before ``due_at`` for the reminder.
        repeat: ``none``, ``daily`` or ``weekly``.
        reminder_handle: Handle of the live reminder registration, if any.
        created_at: Creation time, the default sort key.
    """

    id: str
    text: str
    done: bool = False
    priority: Priority = Priority.LOW
    category: str = field(default_factory=default_category)
    due_at: datetime | None = None
    reminder_offset_minutes: int = 0
    repeat: Repeat = Repeat.NONE
    reminder_handle: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    # -- Convenience properties ------------------------------------------------

    @property
    def has_reminder(self) -> bool:
        return self.reminder_handle is not None

    def reminder_fields(self) -> tuple[datetime | None, int, Repeat]:
        """The fields whose change requires a reminder to be rescheduled."""
        return (self.due_at, self.reminder_offset_minutes, self.repeat)

    # -- Serialization ---------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted JSON record layout."""
        return {
            "id": self.id,
            "text": self.text,
            "done": self.done,
            "priority": self.priority.value,
            "category": self.category,
            "dueAt": self.due_at.isoformat() if self.due_at else None,
            "reminderOffsetMinutes": self.reminder_offset_minutes,
            "repeat": self.repeat.value,
            "reminderHandle": self.reminder_handle,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        """Deserialize a persisted record.

        Records written by older app versions lack some fields; those take
        their defaults. Raises ValueError for records that cannot be a task.
        """
        if not isinstance(data, dict):
            msg = f"Task record must be an object, got {type(data).__name__}"
            raise ValueError(msg)

        text = str(data.get("text") or "").strip()
        if not text:
            msg = "Task record has no text"
            raise ValueError(msg)

        raw_id = data.get("id")
        task_id = str(raw_id) if raw_id not in (None, "") else make_task_id()

        category = str(data.get("category") or "").strip() or default_category()

        try:
            offset = int(data.get("reminderOffsetMinutes") or 0)
        except (TypeError, ValueError):
            offset = 0

        handle = data.get("reminderHandle")

        return cls(
            id=task_id,
            text=text,
            done=data.get("done") is True,
            priority=Priority.parse(data.get("priority", Priority.LOW)),
            category=category,
            due_at=parse_timestamp(data.get("dueAt")),
            reminder_offset_minutes=max(0, offset),
            repeat=Repeat.parse(data.get("repeat", Repeat.NONE)),
            reminder_handle=str(handle) if handle else None,
            created_at=parse_timestamp(data.get("createdAt")) or EPOCH,
        )


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO 8601 string or epoch milliseconds. Returns None if unusable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        try:
            return datetime.fromtimestamp(raw / 1000, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        return None


def make_task_id() -> str:
    """Generate a new task ID."""
    return uuid.uuid4().hex
