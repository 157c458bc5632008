"""Task model, pure list operations, and persistence."""

from todolist.tasks.models import Priority, Repeat, SortMode, Task, TaskDraft, make_task_id
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
from todolist.tasks.store import TaskStore

__all__ = [
    "Priority",
    "Repeat",
    "SortMode",
    "Task",
    "TaskDraft",
    "TaskStore",
    "add_task",
    "filter_and_sort",
    "find_task",
    "make_task_id",
    "remove_task",
    "set_priority",
    "set_reminder_handle",
    "toggle_done",
    "update_task",
]
