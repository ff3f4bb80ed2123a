"""Daily role reminders.

Reminders live in an explicit task table. A background ticker wakes up
periodically, asks the table which tasks are due, delivers them and
advances each one to its next daily occurrence. Re-running setup for a
role replaces the table's contents, so nothing is left scheduled from an
earlier session.

Delivery is up to the caller; the ticker only hands due tasks to a
callable.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

MIT_LEAD = "MIT Lead"
SECOND_SHIFT_LEAD = "Second Shift Lead"

# Role -> (time of day, message)
ROLE_REMINDERS: dict[str, tuple[time, str]] = {
    MIT_LEAD: (time(16, 15), "Time to submit your daily MIT Lead report!"),
    SECOND_SHIFT_LEAD: (time(21, 45), "Time to submit your daily Second Shift report!"),
}


@dataclass
class ReminderTask:
    """A reminder that repeats every day at a fixed time.

    Attributes:
        task_id: Unique identifier within the table.
        role: Role the reminder is for.
        time_of_day: Local time the reminder fires.
        message: Text to deliver.
        next_due: Next moment the reminder is due.
    """

    task_id: str
    role: str
    time_of_day: time
    message: str
    next_due: datetime

    def is_due(self, now: datetime) -> bool:
        return self.next_due <= now


def next_occurrence(time_of_day: time, now: datetime) -> datetime:
    """First moment at ``time_of_day`` strictly after ``now``."""
    candidate = datetime.combine(now.date(), time_of_day, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class ReminderTable:
    """Thread-safe table of daily reminder tasks, one per role.

    Example:
        >>> table = ReminderTable()
        >>> table.setup_role_reminders("MIT Lead", now=datetime(2024, 2, 7, 9, 0))
        >>> table.due_tasks(datetime(2024, 2, 7, 16, 15))
    """

    def __init__(self):
        self.lock = threading.Lock()
        self._tasks: dict[str, ReminderTask] = {}

    def schedule_daily(
        self,
        role: str,
        time_of_day: time,
        message: str,
        now: datetime,
    ) -> ReminderTask:
        """Add or replace the daily reminder for a role."""
        task = ReminderTask(
            task_id=role,
            role=role,
            time_of_day=time_of_day,
            message=message,
            next_due=next_occurrence(time_of_day, now),
        )
        with self.lock:
            self._tasks[task.task_id] = task
        logger.debug("Scheduled %r reminder, next due %s", role, task.next_due)
        return task

    def setup_role_reminders(self, role: str, now: datetime) -> Optional[ReminderTask]:
        """Replace the table's contents with the reminder for ``role``.

        Returns:
            The installed task, or None if the role has no reminder.
        """
        self.cancel_all()
        if role not in ROLE_REMINDERS:
            return None
        time_of_day, message = ROLE_REMINDERS[role]
        return self.schedule_daily(role, time_of_day, message, now)

    def due_tasks(self, now: datetime) -> list[ReminderTask]:
        """Tasks due at ``now``, earliest first."""
        with self.lock:
            due = [task for task in self._tasks.values() if task.is_due(now)]
        return sorted(due, key=lambda task: task.next_due)

    def mark_fired(self, task_id: str, now: datetime) -> Optional[ReminderTask]:
        """Advance a task by whole days until it is due after ``now``."""
        with self.lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            while task.next_due <= now:
                task.next_due += timedelta(days=1)
            return task

    def get(self, task_id: str) -> Optional[ReminderTask]:
        with self.lock:
            return self._tasks.get(task_id)

    def cancel(self, task_id: str) -> None:
        with self.lock:
            self._tasks.pop(task_id, None)

    def cancel_all(self) -> None:
        with self.lock:
            self._tasks.clear()

    @property
    def tasks(self) -> list[ReminderTask]:
        with self.lock:
            return list(self._tasks.values())

    def __len__(self) -> int:
        with self.lock:
            return len(self._tasks)


class ReminderTicker:
    """Background thread that delivers due reminders.

    Example:
        >>> ticker = ReminderTicker(table, deliver=print, interval_seconds=30)
        >>> ticker.start()
        >>> ...
        >>> ticker.stop()
    """

    def __init__(
        self,
        table: ReminderTable,
        deliver: Callable[[ReminderTask], None],
        interval_seconds: float = 30.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.table = table
        self.deliver = deliver
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self, now: Optional[datetime] = None) -> list[ReminderTask]:
        """Deliver every due task once and advance it.

        A task that was missed for several days (e.g. the process was
        suspended) fires once, not once per missed day.

        Returns:
            Tasks that were delivered successfully.
        """
        now = now or self.clock()
        delivered = []
        for task in self.table.due_tasks(now):
            try:
                self.deliver(task)
                delivered.append(task)
            except Exception as e:
                logger.warning(
                    "Delivering %r reminder failed (%s: %s)",
                    task.role,
                    type(e).__name__,
                    e,
                )
            finally:
                self.table.mark_fired(task.task_id, now)
        logger.debug("Reminder tick at %s: %d delivered", now, len(delivered))
        return delivered

    def start(self) -> None:
        """Start the ticker thread (no-op if already running)."""
        if self.is_running:
            return
        self.stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="staffcal-reminders",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the thread to stop and wait for it."""
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self.stop_event.wait(self.interval_seconds):
            try:
                self.tick()
            except Exception:
                # Keep ticking; the next interval retries.
                logger.exception("Reminder tick failed")
