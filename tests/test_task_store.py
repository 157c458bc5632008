"""Tests for TaskStore — load/save of the task list blob."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

from todolist.db import BlobStore
from todolist.tasks.models import Priority, Repeat, Task
from todolist.tasks.store import TaskStore


def _make_tasks() -> list[Task]:
    return [
        Task(
            id="t1",
            text="Buy milk",
            created_at=datetime(2025, 1, 1, tzinfo=UTC),
        ),
        Task(
            id="t2",
            text="Dentist",
            done=True,
            priority=Priority.HIGH,
            category="Health",
            due_at=datetime(2025, 2, 3, 9, 30, tzinfo=UTC),
            reminder_offset_minutes=30,
            repeat=Repeat.WEEKLY,
            reminder_handle="h1",
            created_at=datetime(2025, 1, 2, tzinfo=UTC),
        ),
    ]


# -- load ----------------------------------------------------------------------


async def test_load_empty_store(store: TaskStore) -> None:
    assert await store.load() == []


async def test_save_then_load_round_trip(store: TaskStore) -> None:
    tasks = _make_tasks()
    assert await store.save(tasks) is True
    assert await store.load() == tasks


async def test_save_load_save_is_stable(store: TaskStore, blobs: BlobStore) -> None:
    await store.save(_make_tasks())
    first = await blobs.get_item("@tasks_v2")
    await store.save(await store.load())
    assert await blobs.get_item("@tasks_v2") == first


async def test_save_writes_json_array(store: TaskStore, blobs: BlobStore) -> None:
    await store.save(_make_tasks())
    raw = json.loads(await blobs.get_item("@tasks_v2"))
    assert isinstance(raw, list)
    assert raw[1]["reminderOffsetMinutes"] == 30


async def test_load_malformed_json_returns_empty(store: TaskStore, blobs: BlobStore) -> None:
    await blobs.set_item("@tasks_v2", "{not json")
    assert await store.load() == []


async def test_load_non_array_returns_empty(store: TaskStore, blobs: BlobStore) -> None:
    await blobs.set_item("@tasks_v2", '{"text": "x"}')
    assert await store.load() == []


async def test_load_skips_bad_records(store: TaskStore, blobs: BlobStore) -> None:
    payload = [
        {"id": "1", "text": "ok"},
        {"id": "2", "text": ""},
        "junk",
        {"id": "1", "text": "dup"},
    ]
    await blobs.set_item("@tasks_v2", json.dumps(payload))
    tasks = await store.load()
    assert [(t.id, t.text) for t in tasks] == [("1", "ok")]


async def test_load_falls_back_to_legacy_key(store: TaskStore, blobs: BlobStore) -> None:
    await blobs.set_item("tasks", json.dumps([{"text": "Old one", "done": False}]))
    tasks = await store.load()
    assert len(tasks) == 1
    assert tasks[0].text == "Old one"
    assert tasks[0].category == "General"


async def test_current_key_wins_over_legacy(store: TaskStore, blobs: BlobStore) -> None:
    await blobs.set_item("tasks", json.dumps([{"text": "Old"}]))
    await blobs.set_item("@tasks_v2", json.dumps([{"id": "n", "text": "New"}]))
    assert [t.text for t in await store.load()] == ["New"]


async def test_load_read_failure_returns_empty() -> None:
    blobs = AsyncMock(spec=BlobStore)
    blobs.get_item.side_effect = OSError("disk gone")
    store = TaskStore(blobs=blobs, key="@tasks_v2")
    assert await store.load() == []


# -- save ----------------------------------------------------------------------


async def test_save_failure_returns_false() -> None:
    blobs = AsyncMock(spec=BlobStore)
    blobs.set_item.side_effect = OSError("read-only")
    store = TaskStore(blobs=blobs, key="@tasks_v2")
    assert await store.save(_make_tasks()) is False


async def test_failed_save_keeps_previous_contents(store: TaskStore, blobs: BlobStore) -> None:
    await store.save(_make_tasks())
    before = await blobs.get_item("@tasks_v2")

    unserializable = Task(id="x", text="x", created_at=datetime(2025, 1, 1, tzinfo=UTC))
    unserializable.category = object()  # type: ignore[assignment]
    assert await store.save([unserializable]) is False
    assert await blobs.get_item("@tasks_v2") == before


async def test_save_empty_list(store: TaskStore) -> None:
    await store.save(_make_tasks())
    await store.save([])
    assert await store.load() == []
