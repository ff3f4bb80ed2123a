"""Tests for the reminder task table and ticker."""

import logging
import threading
from datetime import datetime, time

import pytest

from staffcal.notifications.reminders import (
    MIT_LEAD,
    SECOND_SHIFT_LEAD,
    ReminderTable,
    ReminderTicker,
    next_occurrence,
)

MORNING = datetime(2024, 2, 7, 9, 0)


class TestNextOccurrence:
    """Tests for computing the next daily occurrence."""

    def test_later_today(self):
        assert next_occurrence(time(16, 15), MORNING) == datetime(2024, 2, 7, 16, 15)

    def test_already_passed_means_tomorrow(self):
        now = datetime(2024, 2, 7, 17, 0)
        assert next_occurrence(time(16, 15), now) == datetime(2024, 2, 8, 16, 15)

    def test_exactly_now_means_tomorrow(self):
        now = datetime(2024, 2, 7, 16, 15)
        assert next_occurrence(time(16, 15), now) == datetime(2024, 2, 8, 16, 15)


class TestReminderTable:
    """Tests for ReminderTable."""

    @pytest.fixture
    def table(self):
        return ReminderTable()

    def test_mit_lead_reminder(self, table):
        task = table.setup_role_reminders(MIT_LEAD, MORNING)
        assert task.time_of_day == time(16, 15)
        assert task.message == "Time to submit your daily MIT Lead report!"
        assert task.next_due == datetime(2024, 2, 7, 16, 15)

    def test_second_shift_lead_reminder(self, table):
        task = table.setup_role_reminders(SECOND_SHIFT_LEAD, MORNING)
        assert task.time_of_day == time(21, 45)
        assert task.message == "Time to submit your daily Second Shift report!"

    def test_role_without_reminder(self, table):
        table.setup_role_reminders(MIT_LEAD, MORNING)
        assert table.setup_role_reminders("Technician", MORNING) is None
        assert len(table) == 0

    def test_setup_replaces_previous_tasks(self, table):
        """Re-running setup never leaves an earlier session's reminder behind."""
        table.setup_role_reminders(MIT_LEAD, MORNING)
        table.setup_role_reminders(SECOND_SHIFT_LEAD, MORNING)
        assert [t.role for t in table.tasks] == [SECOND_SHIFT_LEAD]

    def test_schedule_daily_upserts_per_role(self, table):
        table.schedule_daily("Lead", time(8, 0), "first", MORNING)
        table.schedule_daily("Lead", time(10, 0), "second", MORNING)
        assert len(table) == 1
        assert table.get("Lead").message == "second"

    def test_due_tasks(self, table):
        table.setup_role_reminders(MIT_LEAD, MORNING)
        assert table.due_tasks(datetime(2024, 2, 7, 16, 14)) == []
        due = table.due_tasks(datetime(2024, 2, 7, 16, 15))
        assert [t.role for t in due] == [MIT_LEAD]

    def test_due_tasks_ordered(self, table):
        table.schedule_daily("late", time(12, 0), "b", MORNING)
        table.schedule_daily("early", time(10, 0), "a", MORNING)
        due = table.due_tasks(datetime(2024, 2, 7, 13, 0))
        assert [t.role for t in due] == ["early", "late"]

    def test_mark_fired_advances_one_day(self, table):
        task = table.setup_role_reminders(MIT_LEAD, MORNING)
        table.mark_fired(task.task_id, datetime(2024, 2, 7, 16, 15))
        assert table.get(task.task_id).next_due == datetime(2024, 2, 8, 16, 15)

    def test_mark_fired_skips_missed_days(self, table):
        task = table.setup_role_reminders(MIT_LEAD, MORNING)
        table.mark_fired(task.task_id, datetime(2024, 2, 10, 18, 0))
        assert table.get(task.task_id).next_due == datetime(2024, 2, 11, 16, 15)

    def test_mark_fired_unknown_task(self, table):
        assert table.mark_fired("nope", MORNING) is None

    def test_cancel(self, table):
        task = table.setup_role_reminders(MIT_LEAD, MORNING)
        table.cancel(task.task_id)
        assert len(table) == 0

    def test_cancel_all(self, table):
        table.schedule_daily("a", time(8, 0), "a", MORNING)
        table.schedule_daily("b", time(9, 0), "b", MORNING)
        table.cancel_all()
        assert table.tasks == []


class TestReminderTicker:
    """Tests for ReminderTicker."""

    @pytest.fixture
    def table(self):
        table = ReminderTable()
        table.setup_role_reminders(MIT_LEAD, MORNING)
        return table

    def test_tick_delivers_due_tasks(self, table):
        delivered = []
        ticker = ReminderTicker(table, delivered.append)
        ticker.tick(datetime(2024, 2, 7, 16, 20))
        assert [t.message for t in delivered] == [
            "Time to submit your daily MIT Lead report!"
        ]

    def test_tick_fires_once_per_day(self, table):
        delivered = []
        ticker = ReminderTicker(table, delivered.append)
        ticker.tick(datetime(2024, 2, 7, 16, 20))
        ticker.tick(datetime(2024, 2, 7, 16, 21))
        assert len(delivered) == 1
        ticker.tick(datetime(2024, 2, 8, 16, 15))
        assert len(delivered) == 2

    def test_nothing_due(self, table):
        delivered = []
        ticker = ReminderTicker(table, delivered.append)
        assert ticker.tick(datetime(2024, 2, 7, 10, 0)) == []
        assert delivered == []

    def test_failed_delivery_logged_and_advanced(self, table, caplog):
        def deliver(task):
            raise RuntimeError("push service down")

        ticker = ReminderTicker(table, deliver)
        with caplog.at_level(logging.WARNING):
            assert ticker.tick(datetime(2024, 2, 7, 16, 20)) == []
        assert "push service down" in caplog.text
        assert table.get(MIT_LEAD).next_due == datetime(2024, 2, 8, 16, 15)

    def test_uses_clock_when_no_time_given(self, table):
        delivered = []
        ticker = ReminderTicker(
            table, delivered.append, clock=lambda: datetime(2024, 2, 7, 16, 30)
        )
        ticker.tick()
        assert len(delivered) == 1

    def test_invalid_interval(self, table):
        with pytest.raises(ValueError):
            ReminderTicker(table, print, interval_seconds=0)

    def test_background_thread(self, table):
        fired = threading.Event()
        ticker = ReminderTicker(
            table,
            lambda task: fired.set(),
            interval_seconds=0.01,
            clock=lambda: datetime(2024, 2, 7, 16, 30),
        )
        ticker.start()
        try:
            assert fired.wait(2)
            assert ticker.is_running
        finally:
            ticker.stop()
        assert not ticker.is_running

    def test_background_thread_survives_clock_failure(self, table, caplog):
        fired = threading.Event()
        calls = []

        def clock():
            calls.append(None)
            if len(calls) == 1:
                raise RuntimeError("clock unavailable")
            return datetime(2024, 2, 7, 16, 30)

        ticker = ReminderTicker(
            table, lambda task: fired.set(), interval_seconds=0.01, clock=clock
        )
        with caplog.at_level(logging.ERROR):
            ticker.start()
            try:
                assert fired.wait(2)
                assert ticker.is_running
            finally:
                ticker.stop()
        assert "Reminder tick failed" in caplog.text
