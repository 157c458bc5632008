"""Notification channel abstraction layer."""

from todolist.notifications.channels import NotificationChannel
from todolist.notifications.console_channel import ConsoleChannel
from todolist.notifications.router import NotificationRouter

__all__ = [
    "ConsoleChannel",
    "NotificationChannel",
    "NotificationRouter",
]
