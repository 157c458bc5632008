"""Missed reminder recovery — detect and notify on startup.

Reminders are registered in memory only, so any handle persisted by a previous
run is stale once the process restarts. One-shot reminders whose time passed
while nothing was running would otherwise be lost silently.
"""

from __future__ import annotations

import logging
import zoneinfo
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from todolist.config import settings
from todolist.tasks.models import Repeat

if TYPE_CHECKING:
    from collections.abc import Sequence

    from todolist.notifications.router import NotificationRouter
    from todolist.tasks.models import Task

logger = logging.getLogger(__name__)

MISSED_TITLE = "Missed reminder"


def find_missed_reminders(
    tasks: Sequence[Task],
    *,
    now: datetime | None = None,
    tz: zoneinfo.ZoneInfo | None = None,
) -> list[Task]:
    """Return open tasks whose one-shot reminder was registered but is now past."""
    tz = tz or zoneinfo.ZoneInfo(settings.timezone)
    now = now or datetime.now(tz)
    missed: list[Task] = []

    for task in tasks:
        if task.done or not task.has_reminder or task.due_at is None:
            continue
        if task.repeat != Repeat.NONE:
            continue

        due_at = task.due_at if task.due_at.tzinfo else task.due_at.replace(tzinfo=tz)
        fire_at = due_at - timedelta(minutes=task.reminder_offset_minutes)
        if fire_at >= now:
            continue
        missed.append(task)

    return missed


async def notify_missed_reminders(
    tasks: Sequence[Task],
    router: NotificationRouter,
    *,
    now: datetime | None = None,
    channel: str | None = None,
) -> int:
    """Send one notification per missed reminder.

    Returns the number of missed reminders found.
    """
    tz = zoneinfo.ZoneInfo(settings.timezone)
    missed = find_missed_reminders(tasks, now=now, tz=tz)

    for task in missed:
        due_at = task.due_at if task.due_at.tzinfo else task.due_at.replace(tzinfo=tz)
        formatted_time = due_at.astimezone(tz).strftime("%Y-%m-%d %H:%M %Z")
        await router.send(MISSED_TITLE, f"{task.text} (was due {formatted_time})", channel=channel)
        logger.info("Notified about missed reminder for task %s", task.id)

    if missed:
        logger.info("Found %d missed reminder(s)", len(missed))
    return len(missed)
