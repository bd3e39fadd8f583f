"""Task assignment reminder scheduling and processing."""

from modules.reminders.models import TaskReminder, build_reminder_plan
from modules.reminders.processor import ReminderProcessor
from modules.reminders.scheduler import InMemoryReminderScheduler, ReminderScheduler

__all__ = [
    "InMemoryReminderScheduler",
    "ReminderProcessor",
    "ReminderScheduler",
    "TaskReminder",
    "build_reminder_plan",
]
