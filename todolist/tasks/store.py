"""TaskStore — mirrors the task list to a single JSON blob."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from todolist.config import settings
from todolist.db import BlobStore
from todolist.tasks.models import Task

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class TaskStore:
    """Loads and saves the whole task list under one storage key.

    Neither operation raises: a missing or unreadable blob loads as an empty
    list, and a failed save is logged and reported as ``False`` so the next
    mutation can try again.

    Args:
        blobs: Key-value store holding the blob (default: settings database).
        key: Storage key to write (default ``settings.storage_key``).
    """

    def __init__(self, blobs: BlobStore | None = None, key: str | None = None) -> None:
        self._blobs = blobs or BlobStore()
        self._key = key or settings.storage_key

    @property
    def key(self) -> str:
        return self._key

    def _read_keys(self) -> list[str]:
        keys = [self._key]
        keys.extend(k for k in settings.get_storage_keys() if k not in keys)
        return keys

    async def load(self) -> list[Task]:
        """Read the persisted task list, or ``[]`` if there is nothing usable."""
        raw: str | None = None
        for key in self._read_keys():
            try:
                raw = await self._blobs.get_item(key)
            except Exception:
                logger.exception("Failed to read task list from key %s", key)
                return []
            if raw is not None:
                if key != self._key:
                    logger.info("Loading task list from legacy key %s", key)
                break

        if raw is None:
            logger.info("No saved task list found")
            return []

        try:
            records = json.loads(raw)
        except ValueError:
            logger.warning("Saved task list is not valid JSON; starting empty")
            return []
        if not isinstance(records, list):
            logger.warning("Saved task list is not an array; starting empty")
            return []

        tasks: list[Task] = []
        seen: set[str] = set()
        for record in records:
            try:
                task = Task.from_dict(record)
            except ValueError as exc:
                logger.warning("Skipping unreadable task record: %s", exc)
                continue
            if task.id in seen:
                logger.warning("Skipping duplicate task id %s", task.id)
                continue
            seen.add(task.id)
            tasks.append(task)

        logger.info("Loaded %d task(s)", len(tasks))
        return tasks

    async def save(self, tasks: Sequence[Task]) -> bool:
        """Overwrite the persisted task list. Returns True on success."""
        try:
            payload = json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)
            await self._blobs.set_item(self._key, payload)
        except Exception:
            logger.exception("Failed to save %d task(s)", len(tasks))
            return False
        logger.debug("Saved %d task(s)", len(tasks))
        return True
