"""TriggerSpec — when a reminder fires."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from todolist.tasks.models import Repeat

# ISO weekday (Monday=1 … Sunday=7) to APScheduler's day_of_week names.
_CRON_DAY_NAMES = {1: "mon", 2: "tue", 3: "wed", 4: "thu", 5: "fri", 6: "sat", 7: "sun"}


class TriggerKind(StrEnum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def for_repeat(cls, repeat: Repeat) -> TriggerKind:
        if repeat == Repeat.DAILY:
            return cls.DAILY
        if repeat == Repeat.WEEKLY:
            return cls.WEEKLY
        return cls.ONCE


def normalize_weekday(day: int) -> int:
    """Map a Sunday-is-0 weekday (0..6) onto ISO numbering (1..7, Sunday=7)."""
    if not 0 <= day <= 7:
        msg = f"Weekday out of range: {day}"
        raise ValueError(msg)
    return 7 if day == 0 else day


@dataclass(frozen=True)
class TriggerSpec:
    """A computed reminder trigger.

    Attributes:
        kind: ``once``, ``daily`` or ``weekly``.
        fire_at: The one-shot time (``due_at`` minus the offset). For recurring
            triggers this is also the first occurrence.
        hour: Hour of day the reminder fires, in ``fire_at``'s timezone.
        minute: Minute of the hour.
        weekday: ISO weekday (Monday=1 … Sunday=7) for weekly triggers, else None.
    """

    kind: TriggerKind
    fire_at: datetime
    hour: int
    minute: int
    weekday: int | None = None

    @property
    def is_recurring(self) -> bool:
        return self.kind != TriggerKind.ONCE

    @property
    def cron_day_of_week(self) -> str | None:
        """The weekday as an APScheduler ``day_of_week`` name."""
        if self.weekday is None:
            return None
        return _CRON_DAY_NAMES[self.weekday]

    def describe(self) -> str:
        """Short human-readable summary, e.g. ``weekly on sun at 09:30``."""
        at = f"{self.hour:02d}:{self.minute:02d}"
        if self.kind == TriggerKind.DAILY:
            return f"daily at {at}"
        if self.kind == TriggerKind.WEEKLY:
            return f"weekly on {self.cron_day_of_week} at {at}"
        return f"once at {self.fire_at.isoformat(timespec='minutes')}"

    def next_fire(self, after: datetime) -> datetime | None:
        """The first firing time strictly after *after*, or None if none remains."""
        if self.kind == TriggerKind.ONCE:
            return self.fire_at if self.fire_at > after else None

        tz = self.fire_at.tzinfo
        local = after.astimezone(tz) if tz else after
        candidate = local.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if self.kind == TriggerKind.WEEKLY and self.weekday is not None:
            candidate += timedelta(days=(self.weekday - candidate.isoweekday()) % 7)
        step = timedelta(days=7 if self.kind == TriggerKind.WEEKLY else 1)
        while candidate <= local:
            candidate += step
        return candidate
