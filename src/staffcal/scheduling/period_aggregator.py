"""Period views built from per-person resolution.

This module builds day, week, month and single-person ("my schedule")
views by resolving every roster member across a date range. Every view
is a pure recomputation from roster, rules, overrides and dates; nothing
is cached between calls.
"""

import unicodedata
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional

from staffcal.domain.calendar_util import (
    leading_blank_days,
    month_dates,
    start_of_month,
    week_dates,
)
from staffcal.domain.models import (
    DaySchedule,
    DayViewLists,
    EngineConfig,
    MonthSchedule,
    MyScheduleDay,
    Person,
    RecurringRule,
    ResolvedDayStatus,
)
from staffcal.domain.policies import GroupingPolicy, WeekdayWeekendGroupingPolicy
from staffcal.scheduling.override_lookup import OverrideSource
from staffcal.scheduling.resolver import ScheduleResolver


def name_sort_key(entry: ResolvedDayStatus) -> tuple[str, str, str]:
    """Case- and accent-insensitive name ordering, stable on ties."""
    folded = unicodedata.normalize("NFKD", entry.name or "")
    base = "".join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    return (base, entry.name or "", entry.person_id)


def group_rules_by_person(
    rules: Iterable[RecurringRule],
) -> dict[str, list[RecurringRule]]:
    """Index rules by technician ID, keeping stored order within each person."""
    grouped: dict[str, list[RecurringRule]] = defaultdict(list)
    for rule in rules:
        grouped[rule.technician_id].append(rule)
    return dict(grouped)


class PeriodAggregator:
    """Builds period views for a roster.

    Example:
        >>> aggregator = PeriodAggregator()
        >>> week = aggregator.schedule_for_week(roster, date(2024, 2, 7), rules, overrides)
        >>> len(week)
        7
    """

    def __init__(
        self,
        resolver: Optional[ScheduleResolver] = None,
        grouping_policy: Optional[GroupingPolicy] = None,
        config: Optional[EngineConfig] = None,
    ):
        """Initialize aggregator.

        Args:
            resolver: Per-person resolver.
            grouping_policy: Policy for primary/secondary day lists.
            config: Engine configuration (status sets).
        """
        self.config = config or EngineConfig()
        self.resolver = resolver or ScheduleResolver()
        self.grouping_policy = (
            grouping_policy or WeekdayWeekendGroupingPolicy.from_config(self.config)
        )

    def schedule_for_day(
        self,
        roster: Sequence[Person],
        d: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
        today: Optional[date] = None,
    ) -> DaySchedule:
        """Resolve every roster member on one date.

        Args:
            roster: People to resolve. Entries without an ID are skipped.
            d: Date to resolve.
            rules: Recurring rules for the roster.
            overrides: Date-keyed day schedule documents.
            today: Reference date for the ``is_today`` flag.

        Returns:
            DaySchedule with staff sorted by name and the day's notes.
        """
        rules_by_person = group_rules_by_person(rules)
        return self._day(roster, d, rules_by_person, overrides, today)

    def schedule_for_week(
        self,
        roster: Sequence[Person],
        any_date: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
        today: Optional[date] = None,
    ) -> list[DaySchedule]:
        """Resolve the Sunday..Saturday week containing ``any_date``."""
        rules_by_person = group_rules_by_person(rules)
        return [
            self._day(roster, d, rules_by_person, overrides, today)
            for d in week_dates(any_date)
        ]

    def schedule_for_month(
        self,
        roster: Sequence[Person],
        any_date: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
        today: Optional[date] = None,
    ) -> MonthSchedule:
        """Resolve every day of the month containing ``any_date``.

        The result carries the number of blank grid cells before the 1st;
        laying out the grid is left to the caller.
        """
        rules_by_person = group_rules_by_person(rules)
        return MonthSchedule(
            month_start=start_of_month(any_date),
            leading_blank_days=leading_blank_days(any_date),
            days=[
                self._day(roster, d, rules_by_person, overrides, today)
                for d in month_dates(any_date)
            ],
        )

    def my_schedule(
        self,
        roster: Sequence[Person],
        person_id: str,
        any_date: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
        today: Optional[date] = None,
    ) -> list[MyScheduleDay]:
        """One person's week, always exactly seven entries.

        Days on which the person is not on the roster have no entry and
        read as "Not Scheduled".
        """
        person = next((p for p in roster if p and p.id == person_id), None)
        person_rules = group_rules_by_person(rules).get(person_id, [])

        days = []
        for d in week_dates(any_date):
            entry = None
            if person is not None:
                entry = self.resolver.resolve(person, d, person_rules, overrides)
            days.append(
                MyScheduleDay(
                    schedule_date=d,
                    entry=entry,
                    is_today=today is not None and d == today,
                )
            )
        return days

    def day_view_lists(self, day: DaySchedule) -> DayViewLists:
        """Split a day's staff into primary (exceptions) and secondary lists."""
        return self.grouping_policy.partition(day.schedule_date, day.staff)

    def week_view_lists(self, week: Sequence[DaySchedule]) -> list[DayViewLists]:
        """Primary/secondary lists for each day of a week view."""
        return [self.day_view_lists(day) for day in week]

    def staffing_for_month(
        self,
        roster: Sequence[Person],
        any_date: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
    ) -> list[int]:
        """Working headcount for each day of the month containing ``any_date``.

        Only people still employed and done training on a day are counted,
        and only if their resolved status is a working status.
        """
        rules_by_person = group_rules_by_person(rules)
        staffing = []
        for d in month_dates(any_date):
            counted = [p for p in roster if p and p.id and p.counts_toward_staffing(d)]
            day = self._day(counted, d, rules_by_person, overrides, None)
            staffing.append(
                sum(1 for entry in day.staff if self.config.is_working(entry.status))
            )
        return staffing

    def _day(
        self,
        roster: Sequence[Person],
        d: date,
        rules_by_person: dict[str, list[RecurringRule]],
        overrides: OverrideSource,
        today: Optional[date],
    ) -> DaySchedule:
        staff = [
            self.resolver.resolve(
                person, d, rules_by_person.get(person.id, []), overrides
            )
            for person in roster
            if person and person.id
        ]
        staff.sort(key=name_sort_key)

        document = self.resolver.override_lookup.document_for(overrides, d)
        return DaySchedule(
            schedule_date=d,
            notes=document.notes if document else "",
            staff=staff,
            is_today=today is not None and d == today,
        )
