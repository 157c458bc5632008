"""Reminder platform — where reminders are actually registered.

``ReminderPlatform`` is the interface the scheduler talks to. The shipped
implementation keeps reminders as APScheduler jobs and delivers them through
the ``NotificationRouter`` when they fire.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from todolist.config import settings
from todolist.notifications.router import NotificationRouter
from todolist.reminders.models import TriggerKind, TriggerSpec

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


@runtime_checkable
class ReminderPlatform(Protocol):
    """Protocol for the local notification facility."""

    async def request_permission(self) -> bool:
        """Ask whether reminders may be delivered. True means granted."""
        ...

    async def schedule_notification(self, title: str, body: str, trigger: TriggerSpec) -> str:
        """Register a reminder and return its handle. Raises on failure."""
        ...

    async def cancel_notification(self, handle: str) -> bool:
        """Cancel a registered reminder. Returns False if it was not registered."""
        ...


class APSchedulerPlatform:
    """Keeps reminders as APScheduler jobs; job IDs are the handles.

    Args:
        router: NotificationRouter that delivers fired reminders
            (default: the shared router).
        timezone: IANA timezone string (default from settings).
        channel: Channel name to deliver through (default from settings).
        enabled: Whether reminders are allowed at all (default from settings).
        on_fired: Optional async callback ``(handle, trigger)`` invoked after a
            reminder has been delivered.
    """

    def __init__(
        self,
        router: NotificationRouter | None = None,
        timezone: str | None = None,
        channel: str | None = None,
        enabled: bool | None = None,
        on_fired: Callable[[str, TriggerSpec], Awaitable[None]] | None = None,
    ) -> None:
        self._router = router or NotificationRouter.get()
        self._timezone = timezone or settings.timezone
        self._channel = channel if channel is not None else settings.notification_channel
        self._enabled = settings.notifications_enabled if enabled is None else enabled
        self._on_fired = on_fired
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def set_on_fired(self, callback: Callable[[str, TriggerSpec], Awaitable[None]] | None) -> None:
        self._on_fired = callback

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start the underlying scheduler. Reminders fire only while running."""
        if not self._running:
            self._scheduler.start()
            self._running = True
            logger.info("Reminder platform started (tz=%s)", self._timezone)

    async def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Reminder platform stopped")

    # -- ReminderPlatform ------------------------------------------------------

    async def request_permission(self) -> bool:
        """Granted only while the scheduler runs, so every handle handed out is live."""
        if not self._enabled:
            logger.info("Reminders are disabled in settings")
            return False
        if not self._running:
            logger.info("Reminder platform not running; `todolist run` registers reminders")
            return False
        if not self._router.can_deliver(self._channel or None):
            logger.warning(
                "No notification channel available (requested=%s, registered=%s)",
                self._channel,
                self._router.list_channels(),
            )
            return False
        return True

    async def schedule_notification(self, title: str, body: str, trigger: TriggerSpec) -> str:
        handle = uuid.uuid4().hex
        job = self._scheduler.add_job(
            self._fire,
            trigger=self._build_trigger(trigger),
            id=handle,
            name=body,
            args=[handle, title, body, trigger],
            misfire_grace_time=None,
        )
        logger.info("Registered reminder %s (%s)", handle, trigger.describe())
        logger.debug("Reminder %s next run %s", handle, getattr(job, "next_run_time", None))
        return handle

    async def cancel_notification(self, handle: str) -> bool:
        try:
            self._scheduler.remove_job(handle)
        except JobLookupError:
            logger.debug("Reminder %s not found (may already have fired)", handle)
            return False
        logger.info("Cancelled reminder %s", handle)
        return True

    def handles(self) -> list[str]:
        """Handles of all currently registered reminders."""
        return [job.id for job in self._scheduler.get_jobs()]

    # -- Internal --------------------------------------------------------------

    async def _fire(self, handle: str, title: str, body: str, trigger: TriggerSpec) -> None:
        """Callback invoked by APScheduler when a reminder is due."""
        delivered = await self._router.send(title, body, channel=self._channel or None)
        if not delivered:
            logger.warning("Reminder %s could not be delivered", handle)
        if self._on_fired is not None:
            try:
                await self._on_fired(handle, trigger)
            except Exception:
                logger.exception("on_fired callback failed for reminder %s", handle)

    def _build_trigger(self, trigger: TriggerSpec):
        """Convert a TriggerSpec into an APScheduler trigger."""
        if trigger.kind == TriggerKind.ONCE:
            return DateTrigger(run_date=trigger.fire_at, timezone=self._timezone)
        if trigger.kind == TriggerKind.WEEKLY:
            return CronTrigger(
                day_of_week=trigger.cron_day_of_week,
                hour=trigger.hour,
                minute=trigger.minute,
                timezone=self._timezone,
            )
        return CronTrigger(hour=trigger.hour, minute=trigger.minute, timezone=self._timezone)
