"""Reminder system — trigger computation, registration, and startup recovery."""

from todolist.reminders.missed import find_missed_reminders, notify_missed_reminders
from todolist.reminders.models import TriggerKind, TriggerSpec, normalize_weekday
from todolist.reminders.platform import APSchedulerPlatform, ReminderPlatform
from todolist.reminders.scheduler import ReminderScheduler, compute_trigger

__all__ = [
    "APSchedulerPlatform",
    "ReminderPlatform",
    "ReminderScheduler",
    "TriggerKind",
    "TriggerSpec",
    "compute_trigger",
    "find_missed_reminders",
    "normalize_weekday",
    "notify_missed_reminders",
]
