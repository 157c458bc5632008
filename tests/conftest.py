"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from todolist.db import BlobStore
from todolist.notifications.router import NotificationRouter
from todolist.reminders.models import TriggerSpec
from todolist.tasks.store import TaskStore


class FakePlatform:
    """In-memory ReminderPlatform that records every call in order."""

    def __init__(self, *, granted: bool = True, fail: bool = False) -> None:
        self.granted = granted
        self.fail = fail
        self.calls: list[tuple] = []
        self.live: dict[str, TriggerSpec] = {}
        self.permission_requests = 0
        self._counter = 0

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.granted

    async def schedule_notification(self, title: str, body: str, trigger: TriggerSpec) -> str:
        if self.fail:
            msg = "platform unavailable"
            raise RuntimeError(msg)
        self._counter += 1
        handle = f"h{self._counter}"
        self.live[handle] = trigger
        self.calls.append(("schedule", handle, title, body))
        return handle

    async def cancel_notification(self, handle: str) -> bool:
        self.calls.append(("cancel", handle))
        return self.live.pop(handle, None) is not None

    def cancelled(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "cancel"]


class FakeChannel:
    """Minimal notification channel that records what it was sent."""

    def __init__(self, channel_name: str = "fake") -> None:
        self._name = channel_name
        self.sent: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    async def send(self, title: str, message: str) -> bool:
        self.sent.append((title, message))
        return True


@pytest.fixture(autouse=True)
def _reset_router():
    """Reset the router singleton before and after each test."""
    NotificationRouter._reset()
    yield
    NotificationRouter._reset()


@pytest.fixture
def blobs(tmp_path: Path) -> BlobStore:
    """A BlobStore backed by a temp database."""
    return BlobStore(db_path=tmp_path / "test.db")


@pytest.fixture
def store(blobs: BlobStore) -> TaskStore:
    return TaskStore(blobs=blobs, key="@tasks_v2")


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()
