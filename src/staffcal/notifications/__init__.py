"""Daily role reminders driven by a task table."""

from staffcal.notifications.reminders import (
    MIT_LEAD,
    ROLE_REMINDERS,
    SECOND_SHIFT_LEAD,
    ReminderTable,
    ReminderTask,
    ReminderTicker,
    next_occurrence,
)

__all__ = [
    "MIT_LEAD",
    "ROLE_REMINDERS",
    "SECOND_SHIFT_LEAD",
    "ReminderTable",
    "ReminderTask",
    "ReminderTicker",
    "next_occurrence",
]
