"""Pure operations over task lists.

Every function takes a sequence of tasks and returns a new list; inputs are
never mutated. Given the same arguments (including ``now`` and ``new_id``)
the result is always the same, so none of this needs storage to test.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from todolist.tasks.models import (
    Priority,
    SortMode,
    Task,
    TaskDraft,
    default_category,
    make_task_id,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _clean_category(category: str | None) -> str:
    return (category or "").strip() or default_category()


def _created_key(task: Task) -> datetime:
    created = task.created_at
    return created if created.tzinfo else created.replace(tzinfo=UTC)


def _index_of(tasks: Sequence[Task], task_id: str) -> int | None:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    return None


def find_task(tasks: Sequence[Task], task_id: str) -> Task | None:
    """Look up a task by ID."""
    i = _index_of(tasks, task_id)
    return tasks[i] if i is not None else None


def add_task(
    tasks: Sequence[Task],
    draft: TaskDraft,
    *,
    now: datetime | None = None,
    new_id: str | None = None,
) -> tuple[list[Task], Task | None]:
    """Append a task built from *draft*.

    Returns ``(tasks, None)`` unchanged when the draft text is blank.
    """
    text = draft.text.strip()
    if not text:
        logger.debug("Rejected task with empty text")
        return list(tasks), None

    existing = {t.id for t in tasks}
    task_id = new_id or make_task_id()
    while task_id in existing:
        task_id = make_task_id()

    task = Task(
        id=task_id,
        text=text,
        priority=draft.priority,
        category=_clean_category(draft.category),
        due_at=draft.due_at,
        reminder_offset_minutes=max(0, draft.reminder_offset_minutes),
        repeat=draft.repeat,
        created_at=now or datetime.now(UTC),
    )
    return [*tasks, task], task


def update_task(
    tasks: Sequence[Task],
    task_id: str,
    draft: TaskDraft,
) -> tuple[list[Task], Task | None] | None:
    """Replace the editable fields of the task with *task_id*.

    Returns None if no such task exists, and ``(tasks, None)`` unchanged when
    the draft text is blank. ``id``, ``created_at``, ``done`` and
    ``reminder_handle`` are carried over; rescheduling the reminder is the
    caller's job.
    """
    i = _index_of(tasks, task_id)
    if i is None:
        return None

    text = draft.text.strip()
    if not text:
        logger.debug("Rejected update of %s with empty text", task_id)
        return list(tasks), None

    updated = replace(
        tasks[i],
        text=text,
        priority=draft.priority,
        category=_clean_category(draft.category),
        due_at=draft.due_at,
        reminder_offset_minutes=max(0, draft.reminder_offset_minutes),
        repeat=draft.repeat,
    )
    new_tasks = list(tasks)
    new_tasks[i] = updated
    return new_tasks, updated


def toggle_done(tasks: Sequence[Task], task_id: str) -> list[Task]:
    i = _index_of(tasks, task_id)
    new_tasks = list(tasks)
    if i is not None:
        new_tasks[i] = replace(tasks[i], done=not tasks[i].done)
    return new_tasks


def set_priority(tasks: Sequence[Task], task_id: str, priority: Priority) -> list[Task]:
    i = _index_of(tasks, task_id)
    new_tasks = list(tasks)
    if i is not None:
        new_tasks[i] = replace(tasks[i], priority=priority)
    return new_tasks


def set_reminder_handle(tasks: Sequence[Task], task_id: str, handle: str | None) -> list[Task]:
    """Record the live reminder handle for a task (None clears it)."""
    i = _index_of(tasks, task_id)
    new_tasks = list(tasks)
    if i is not None:
        new_tasks[i] = replace(tasks[i], reminder_handle=handle)
    return new_tasks


def remove_task(tasks: Sequence[Task], task_id: str) -> tuple[list[Task], Task | None]:
    """Remove a task. Returns the removed record so its reminder can be cancelled."""
    i = _index_of(tasks, task_id)
    if i is None:
        return list(tasks), None
    return [*tasks[:i], *tasks[i + 1 :]], tasks[i]


def filter_and_sort(
    tasks: Sequence[Task],
    query: str = "",
    sort_mode: SortMode = SortMode.DEFAULT,
    *,
    category: str | None = None,
) -> list[Task]:
    """Return the tasks matching *query* (and *category*) in display order.

    ``query`` is a case-insensitive substring match on the text. Sorting is
    stable, so ties keep their list order.
    """
    needle = query.casefold()
    result = [t for t in tasks if needle in t.text.casefold()]
    if category:
        result = [t for t in result if t.category == category]

    if sort_mode == SortMode.PRIORITY:
        result.sort(key=lambda t: t.priority.rank)
    elif sort_mode == SortMode.DONE:
        result.sort(key=lambda t: t.done)
    else:
        result.sort(key=_created_key, reverse=True)
    return result
