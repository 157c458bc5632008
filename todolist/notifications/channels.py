"""NotificationChannel protocol — interface for all notification delivery channels."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol that all notification channels must satisfy."""

    @property
    def name(self) -> str:
        """Unique channel identifier (e.g. 'console')."""
        ...

    async def send(self, title: str, message: str) -> bool:
        """Deliver a notification. Returns True on success."""
        ...
