"""ReminderScheduler — turns a task's due time into a registered reminder."""

from __future__ import annotations

import logging
import zoneinfo
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from todolist.config import settings
from todolist.reminders.models import TriggerKind, TriggerSpec, normalize_weekday

if TYPE_CHECKING:
    from todolist.reminders.platform import ReminderPlatform
    from todolist.tasks.models import Repeat

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "To-do reminder"


def compute_trigger(
    due_at: datetime | None,
    offset_minutes: int,
    repeat: Repeat,
    *,
    now: datetime | None = None,
    tz: zoneinfo.ZoneInfo | None = None,
    roll_forward: bool = False,
) -> TriggerSpec | None:
    """Work out when the reminder for a task should fire.

    Returns None when there is no due time or when ``due_at - offset`` is not
    strictly after *now*; a reminder in the past is never scheduled. Naive
    datetimes are taken to be in *tz*, and the hour, minute and weekday of a
    recurring trigger are read in *tz* as well.

    With *roll_forward*, a daily or weekly trigger whose first occurrence has
    passed is moved to its next occurrence after *now* instead. Use it to
    re-register a reminder that was already set up; a changed due time still
    goes through the plain rule.
    """
    if due_at is None:
        return None

    tz = tz or zoneinfo.ZoneInfo(settings.timezone)
    if due_at.tzinfo is None:
        due_at = due_at.replace(tzinfo=tz)
    now = now or datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    fire_at = due_at - timedelta(minutes=max(0, offset_minutes))
    kind = TriggerKind.for_repeat(repeat)
    if fire_at <= now and not (roll_forward and kind != TriggerKind.ONCE):
        return None

    local = fire_at.astimezone(tz)
    weekday = None
    if kind == TriggerKind.WEEKLY:
        # %w counts Sunday as 0
        weekday = normalize_weekday(int(local.strftime("%w")))
    trigger = TriggerSpec(
        kind=kind,
        fire_at=local,
        hour=local.hour,
        minute=local.minute,
        weekday=weekday,
    )
    if fire_at <= now:
        trigger = replace(trigger, fire_at=trigger.next_fire(now))
    return trigger


class ReminderScheduler:
    """Registers and cancels task reminders on a ReminderPlatform.

    Failures never propagate: a reminder that cannot be registered is logged
    and reported as a ``None`` handle, and the task mutation that asked for it
    goes ahead regardless.

    Args:
        platform: Where reminders are registered.
        timezone: IANA timezone string (default from settings).
        title: Notification title used for every reminder.
    """

    def __init__(
        self,
        platform: ReminderPlatform,
        timezone: str | None = None,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self._platform = platform
        self._tz = zoneinfo.ZoneInfo(timezone or settings.timezone)
        self._title = title
        self._permission: bool | None = None

    @property
    def platform(self) -> ReminderPlatform:
        return self._platform

    def compute_trigger(
        self,
        due_at: datetime | None,
        offset_minutes: int,
        repeat: Repeat,
        *,
        now: datetime | None = None,
        roll_forward: bool = False,
    ) -> TriggerSpec | None:
        return compute_trigger(
            due_at, offset_minutes, repeat, now=now, tz=self._tz, roll_forward=roll_forward
        )

    async def has_permission(self) -> bool:
        """Ask the platform once; the answer is cached for the scheduler's lifetime."""
        if self._permission is None:
            try:
                self._permission = bool(await self._platform.request_permission())
            except Exception:
                logger.exception("Reminder permission request failed")
                return False
            if not self._permission:
                logger.warning("Reminder permission denied; no reminders will be registered")
        return self._permission

    async def schedule(self, text: str, trigger: TriggerSpec | None) -> str | None:
        """Register a reminder. Returns its handle, or None if nothing was registered."""
        if trigger is None:
            return None
        if not await self.has_permission():
            return None
        try:
            handle = await self._platform.schedule_notification(self._title, text, trigger)
        except Exception:
            logger.exception("Failed to schedule reminder (%s)", trigger.describe())
            return None
        logger.debug("Scheduled reminder %s for '%s'", handle, text)
        return handle

    async def cancel(self, handle: str | None) -> bool:
        """Cancel a reminder. A None handle is a no-op and counts as success."""
        if handle is None:
            return True
        try:
            return bool(await self._platform.cancel_notification(handle))
        except Exception:
            logger.exception("Failed to cancel reminder %s", handle)
            return False

    async def reschedule(
        self,
        old_handle: str | None,
        text: str,
        due_at: datetime | None,
        offset_minutes: int,
        repeat: Repeat,
        *,
        now: datetime | None = None,
        roll_forward: bool = False,
    ) -> str | None:
        """Cancel *old_handle*, then schedule a fresh reminder if one is due.

        The cancel always happens first, so at most one reminder per task is
        ever live. *roll_forward* is passed on to ``compute_trigger``.
        """
        await self.cancel(old_handle)
        trigger = self.compute_trigger(
            due_at, offset_minutes, repeat, now=now, roll_forward=roll_forward
        )
        return await self.schedule(text, trigger)
