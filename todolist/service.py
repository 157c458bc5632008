"""TodoService — wires task mutations to persistence and reminders.

Every mutation follows the same order: apply the pure operation to the
in-memory list, cancel/schedule the affected reminder, then save the whole
list. A failed save is logged by the store and retried implicitly by the next
mutation; a failed reminder leaves the task without one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from todolist.reminders.missed import notify_missed_reminders
from todolist.reminders.models import TriggerKind
from todolist.tasks.models import SortMode
from todolist.tasks.operations import (
    add_task,
    filter_and_sort,
    find_task,
    remove_task,
    set_priority,
    set_reminder_handle,
    toggle_done,
    update_task,
)

if TYPE_CHECKING:
    from datetime import datetime

    from todolist.notifications.router import NotificationRouter
    from todolist.reminders.models import TriggerSpec
    from todolist.reminders.scheduler import ReminderScheduler
    from todolist.tasks.models import Priority, Task, TaskDraft
    from todolist.tasks.store import TaskStore

logger = logging.getLogger(__name__)

MIN_ID_PREFIX = 4


class TodoService:
    """Holds the current task list and keeps storage and reminders in step with it.

    Args:
        store: TaskStore for persistence.
        reminders: ReminderScheduler for task reminders.
        router: NotificationRouter for missed-reminder notices on startup.
    """

    def __init__(
        self,
        store: TaskStore,
        reminders: ReminderScheduler,
        router: NotificationRouter | None = None,
    ) -> None:
        self._store = store
        self._reminders = reminders
        self._router = router
        self._tasks: list[Task] = []
        self._started = False

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def started(self) -> bool:
        return self._started

    def _require_started(self) -> None:
        if not self._started:
            msg = "TodoService not started — call start() first"
            raise RuntimeError(msg)

    async def _save(self) -> bool:
        return await self._store.save(self._tasks)

    # -- Lifecycle -------------------------------------------------------------

    async def start(self, *, recover: bool = False, now: datetime | None = None) -> list[Task]:
        """Load the saved list.

        With *recover*, also announce reminders missed while nothing was
        running and re-register the reminders of open tasks, since handles
        from a previous run are no longer live. Daily and weekly reminders
        resume from their next occurrence.
        """
        self._tasks = await self._store.load()
        self._started = True
        if not recover:
            return self.tasks

        if self._router is not None:
            await notify_missed_reminders(self._tasks, self._router, now=now)

        changed = False
        for task in list(self._tasks):
            if task.done:
                handle = None
                await self._reminders.cancel(task.reminder_handle)
            else:
                handle = await self._reminders.reschedule(
                    task.reminder_handle,
                    task.text,
                    task.due_at,
                    task.reminder_offset_minutes,
                    task.repeat,
                    now=now,
                    roll_forward=True,
                )
            if handle != task.reminder_handle:
                self._tasks = set_reminder_handle(self._tasks, task.id, handle)
                changed = True

        if changed:
            await self._save()
        logger.info("Recovered reminders for %d task(s)", len(self._tasks))
        return self.tasks

    # -- Mutations -------------------------------------------------------------

    async def add(self, draft: TaskDraft, *, now: datetime | None = None) -> Task | None:
        """Add a task and schedule its reminder. Returns None for blank text."""
        self._require_started()
        new_tasks, created = add_task(self._tasks, draft, now=now)
        if created is None:
            return None
        self._tasks = new_tasks

        trigger = self._reminders.compute_trigger(
            created.due_at, created.reminder_offset_minutes, created.repeat, now=now
        )
        handle = await self._reminders.schedule(created.text, trigger)
        if handle is not None:
            self._tasks = set_reminder_handle(self._tasks, created.id, handle)
            created = replace(created, reminder_handle=handle)

        await self._save()
        logger.info("Added task %s", created.id)
        return created

    async def edit(
        self, task_id: str, draft: TaskDraft, *, now: datetime | None = None
    ) -> Task | None:
        """Apply an edit. Returns None if the task is missing or the text is blank."""
        self._require_started()
        before = find_task(self._tasks, task_id)
        result = update_task(self._tasks, task_id, draft)
        if result is None or before is None:
            logger.debug("Edit of unknown task %s ignored", task_id)
            return None
        new_tasks, updated = result
        if updated is None:
            return None
        self._tasks = new_tasks

        # A text-only change re-registers a live reminder so it carries the new
        # text; a recurring one keeps firing from its next occurrence.
        fields_changed = before.reminder_fields() != updated.reminder_fields()
        text_changed = before.text != updated.text and updated.has_reminder
        if (fields_changed or text_changed) and not updated.done:
            handle = await self._reminders.reschedule(
                updated.reminder_handle,
                updated.text,
                updated.due_at,
                updated.reminder_offset_minutes,
                updated.repeat,
                now=now,
                roll_forward=not fields_changed,
            )
            self._tasks = set_reminder_handle(self._tasks, task_id, handle)
            updated = replace(updated, reminder_handle=handle)

        await self._save()
        return updated

    async def toggle(self, task_id: str, *, now: datetime | None = None) -> Task | None:
        """Flip a task's done flag. Done tasks lose their reminder; reopened ones get it back.

        A reopened daily or weekly task resumes from its next occurrence.
        """
        self._require_started()
        self._tasks = toggle_done(self._tasks, task_id)
        task = find_task(self._tasks, task_id)
        if task is None:
            return None

        if task.done:
            await self._reminders.cancel(task.reminder_handle)
            handle = None
        else:
            handle = await self._reminders.reschedule(
                task.reminder_handle,
                task.text,
                task.due_at,
                task.reminder_offset_minutes,
                task.repeat,
                now=now,
                roll_forward=True,
            )
        if handle != task.reminder_handle:
            self._tasks = set_reminder_handle(self._tasks, task_id, handle)
            task = replace(task, reminder_handle=handle)

        await self._save()
        return task

    async def set_priority(self, task_id: str, priority: Priority) -> Task | None:
        self._require_started()
        self._tasks = set_priority(self._tasks, task_id, priority)
        task = find_task(self._tasks, task_id)
        if task is None:
            return None
        await self._save()
        return task

    async def delete(self, task_id: str) -> Task | None:
        """Cancel the task's reminder, then remove it. Returns the removed task."""
        self._require_started()
        task = find_task(self._tasks, task_id)
        if task is None:
            return None
        await self._reminders.cancel(task.reminder_handle)
        self._tasks, removed = remove_task(self._tasks, task_id)
        await self._save()
        logger.info("Deleted task %s", task_id)
        return removed

    # -- Queries ---------------------------------------------------------------

    def visible(
        self,
        query: str = "",
        sort_mode: SortMode = SortMode.DEFAULT,
        *,
        category: str | None = None,
    ) -> list[Task]:
        """The list as the presentation layer should show it."""
        return filter_and_sort(self._tasks, query, sort_mode, category=category)

    def resolve_id(self, prefix: str) -> str | None:
        """Resolve a full task ID or a unique prefix of at least four characters."""
        prefix = prefix.strip()
        if find_task(self._tasks, prefix) is not None:
            return prefix
        if len(prefix) < MIN_ID_PREFIX:
            return None
        matches = [t.id for t in self._tasks if t.id.startswith(prefix)]
        return matches[0] if len(matches) == 1 else None

    # -- Reminder callbacks ----------------------------------------------------

    async def handle_reminder_fired(self, handle: str, trigger: TriggerSpec) -> None:
        """Clear the handle of a one-shot reminder once it has fired."""
        if trigger.kind != TriggerKind.ONCE:
            return
        for task in self._tasks:
            if task.reminder_handle == handle:
                self._tasks = set_reminder_handle(self._tasks, task.id, None)
                await self._save()
                return
