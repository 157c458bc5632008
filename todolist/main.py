"""todolist command-line entry point.

Usage examples:
    todolist add "Buy milk"
    todolist add "Dentist" --due 2026-11-03T09:30 --offset 30 --priority high
    todolist list --sort priority --query milk
    todolist done 3f2a
    todolist run        # keep running so reminders fire
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import zoneinfo
from datetime import datetime

from todolist.config import settings
from todolist.notifications.console_channel import ConsoleChannel
from todolist.notifications.router import NotificationRouter
from todolist.reminders.platform import APSchedulerPlatform
from todolist.reminders.scheduler import ReminderScheduler
from todolist.service import TodoService
from todolist.tasks.models import Priority, Repeat, SortMode, Task, TaskDraft
from todolist.tasks.store import TaskStore

logger = logging.getLogger(__name__)


def build_service(
    store: TaskStore | None = None,
    router: NotificationRouter | None = None,
) -> tuple[TodoService, APSchedulerPlatform]:
    """Wire router, reminder platform, scheduler and store into a TodoService."""
    router = router or NotificationRouter.get()
    if router.get_channel("console") is None:
        router.register_channel(ConsoleChannel())
    if not router.default_channel_name:
        router.set_default_channel("console")

    platform = APSchedulerPlatform(router=router)
    service = TodoService(
        store=store or TaskStore(),
        reminders=ReminderScheduler(platform),
        router=router,
    )
    platform.set_on_fired(service.handle_reminder_fired)
    return service, platform


# -- Formatting ----------------------------------------------------------------


def format_task(task: Task) -> str:
    """One list line: short id, checkbox, text, then the details that are set."""
    box = "[x]" if task.done else "[ ]"
    details = [task.priority.value, task.category]
    if task.due_at is not None:
        details.append(f"due {task.due_at.isoformat(timespec='minutes')}")
        if task.reminder_offset_minutes:
            details.append(f"remind {task.reminder_offset_minutes}m before")
        if task.repeat != Repeat.NONE:
            details.append(task.repeat.value)
    return f"{task.id[:8]}  {box} {task.text}  ({', '.join(details)})"


def parse_due(raw: str | None) -> datetime | None:
    """Parse an ISO 8601 due time; naive input is taken to be in the configured timezone."""
    if raw is None:
        return None
    due = datetime.fromisoformat(raw)
    if due.tzinfo is None:
        due = due.replace(tzinfo=zoneinfo.ZoneInfo(settings.timezone))
    return due


# -- Argument parsing ----------------------------------------------------------


def _add_draft_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--priority", choices=[p.value for p in Priority])
    parser.add_argument("--category")
    parser.add_argument("--due", help="ISO 8601 due time, e.g. 2026-11-03T09:30")
    parser.add_argument("--offset", type=int, help="Remind this many minutes before the due time")
    parser.add_argument("--repeat", choices=[r.value for r in Repeat])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todolist", description="Personal to-do list")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show tasks")
    p_list.add_argument("--query", default="")
    p_list.add_argument(
        "--sort", choices=[m.value for m in SortMode], default=SortMode.DEFAULT.value
    )
    p_list.add_argument("--category")

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("text", nargs="+")
    _add_draft_options(p_add)

    p_edit = sub.add_parser("edit", help="Edit a task; omitted options keep their values")
    p_edit.add_argument("id")
    p_edit.add_argument("text", nargs="*")
    _add_draft_options(p_edit)
    p_edit.add_argument("--no-due", action="store_true", help="Remove the due time")

    p_done = sub.add_parser("done", help="Toggle a task's done flag")
    p_done.add_argument("id")

    p_prio = sub.add_parser("priority", help="Change a task's priority")
    p_prio.add_argument("id")
    p_prio.add_argument("level", choices=[p.value for p in Priority])

    p_rm = sub.add_parser("rm", help="Delete a task")
    p_rm.add_argument("id")

    sub.add_parser("run", help="Keep running so reminders fire")
    return parser


# -- Commands ------------------------------------------------------------------


def _resolve(service: TodoService, raw_id: str) -> str | None:
    task_id = service.resolve_id(raw_id)
    if task_id is None:
        print(f"No task with id {raw_id}", file=sys.stderr)
    return task_id


async def _run_forever(service: TodoService, platform: APSchedulerPlatform) -> int:
    await platform.start()
    await service.start(recover=True)
    logger.info(
        "Watching %d task(s), %d reminder(s) registered; Ctrl+C to stop",
        len(service.tasks),
        len(platform.handles()),
    )
    try:
        await asyncio.Event().wait()
    finally:
        await platform.stop()
    return 0


async def run_command(args: argparse.Namespace, service: TodoService, platform) -> int:
    """Execute one parsed command. Returns the process exit code."""
    if args.command == "run":
        return await _run_forever(service, platform)

    # The platform is not started for one-off commands, so no reminder is
    # registered here; `run` picks them up from the saved due times.
    await service.start()

    if args.command == "list":
        tasks = service.visible(args.query, SortMode(args.sort), category=args.category)
        for task in tasks:
            print(format_task(task))
        if not tasks:
            print("No tasks.")
        return 0

    if args.command == "add":
        draft = TaskDraft(
            text=" ".join(args.text),
            priority=Priority(args.priority or Priority.LOW),
            category=args.category or "",
            due_at=parse_due(args.due),
            reminder_offset_minutes=args.offset or 0,
            repeat=Repeat(args.repeat or Repeat.NONE),
        )
        task = await service.add(draft)
        if task is None:
            print("Task text cannot be empty", file=sys.stderr)
            return 1
        print(f"Added {task.id[:8]}: {task.text}")
        return 0

    task_id = _resolve(service, args.id)
    if task_id is None:
        return 1

    if args.command == "edit":
        current = next(t for t in service.tasks if t.id == task_id)
        draft = TaskDraft(
            text=" ".join(args.text) if args.text else current.text,
            priority=Priority(args.priority) if args.priority else current.priority,
            category=args.category or current.category,
            due_at=None if args.no_due else (parse_due(args.due) or current.due_at),
            reminder_offset_minutes=(
                current.reminder_offset_minutes if args.offset is None else args.offset
            ),
            repeat=Repeat(args.repeat) if args.repeat else current.repeat,
        )
        task = await service.edit(task_id, draft)
        if task is None:
            print("Task text cannot be empty", file=sys.stderr)
            return 1
        print(format_task(task))
        return 0

    if args.command == "done":
        task = await service.toggle(task_id)
    elif args.command == "priority":
        task = await service.set_priority(task_id, Priority(args.level))
    else:
        task = await service.delete(task_id)
        if task is not None:
            print(f"Deleted {task.id[:8]}: {task.text}")
            return 0

    if task is None:
        print(f"No task with id {args.id}", file=sys.stderr)
        return 1
    print(format_task(task))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging, and run the command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    service, platform = build_service()
    try:
        return asyncio.run(run_command(args, service, platform))
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 0
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
