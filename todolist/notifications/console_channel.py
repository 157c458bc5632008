"""Console implementation of the NotificationChannel protocol."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import TextIO

logger = logging.getLogger(__name__)


class ConsoleChannel:
    """Prints notifications to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def name(self) -> str:
        return "console"

    async def send(self, title: str, message: str) -> bool:
        """Write a timestamped notification line."""
        stream = self._stream or sys.stdout
        stamp = datetime.now().strftime("%H:%M")
        try:
            stream.write(f"[{stamp}] {title}: {message}\n")
            stream.flush()
            return True
        except Exception:
            logger.exception("ConsoleChannel.send failed")
            return False
