"""Domain models for the staff schedule resolution engine.

This module contains the core data structures used throughout the engine:
the roster, recurring availability rules, day-specific overrides, and the
resolved per-person statuses that period views are built from.

All input entities are immutable snapshots. Raw store records are turned
into these types at the store-read boundary (see ``staffcal.stores.records``)
so nothing downstream has to deal with legacy field names.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from staffcal.domain.calendar_util import (
    day_of_week,
    days_in_month,
    holiday_name,
    is_weekend,
    to_date_key,
)

SCHEDULED = "Scheduled"
OFF = "Off"
VACATION = "Vacation"
NOT_SCHEDULED = "Not Scheduled"


def normalize_status(status: Optional[str]) -> str:
    """Case-insensitive comparison key for a status string."""
    return (status or "").strip().casefold()


class RuleFrequency(Enum):
    """How often a recurring rule repeats."""

    WEEKLY = "weekly"
    EVERY_OTHER_WEEK = "every-other-week"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RuleFrequency"]:
        """Parse a stored frequency, accepting the legacy ``every-other`` spelling.

        Returns None for unknown values. An absent frequency means weekly.
        """
        if value is None or value == "":
            return cls.WEEKLY
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "every-other":
            return cls.EVERY_OTHER_WEEK
        for member in cls:
            if member.value == key:
                return member
        return None


class StatusSource(Enum):
    """Which precedence layer produced a resolved status."""

    WEEKDAY_DEFAULT = "Weekday Default"
    WEEKEND_DEFAULT = "Weekend Default"
    RECURRING_RULE = "Recurring Rule"
    SPECIFIC_OVERRIDE = "Specific Override"


@dataclass(frozen=True)
class Person:
    """A member of the roster.

    Attributes:
        id: Unique identifier for the person.
        name: Display name.
        zone_name: Zone or team the person belongs to.
        end_date: Last employment date, if the person is leaving.
        in_training: True while the person is still in training.
        training_end_date: Date training ends, if known.
    """

    id: str
    name: str
    zone_name: str = ""
    end_date: Optional[date] = None
    in_training: bool = False
    training_end_date: Optional[date] = None

    def is_active_on(self, d: date) -> bool:
        """Check if the person is still employed on a date."""
        return self.end_date is None or self.end_date > d

    def is_done_training_on(self, d: date) -> bool:
        """Check if the person has finished training by a date."""
        if not self.in_training:
            return True
        return self.training_end_date is not None and self.training_end_date <= d

    def counts_toward_staffing(self, d: date) -> bool:
        """Active and trained people count toward daily staffing numbers."""
        return self.is_active_on(d) and self.is_done_training_on(d)


@dataclass(frozen=True)
class RecurringRule:
    """A standing weekly or biweekly pattern for one person.

    Attributes:
        technician_id: ID of the person the rule applies to.
        days: Weekdays the rule covers (0=Sunday..6=Saturday).
        frequency: Weekly or every other week.
        week_anchor: Reference week number whose parity selects the
            active weeks of an every-other-week rule.
        start_date: First date the rule is valid (inclusive), if bounded.
        end_date: Last date the rule is valid (inclusive), if bounded.
        status: Status the rule assigns, or None to keep the default.
        hours: Custom hours text the rule assigns, if any.
        rule_id: Store identifier, for diagnostics.
    """

    technician_id: str
    days: frozenset[int]
    frequency: RuleFrequency = RuleFrequency.WEEKLY
    week_anchor: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    hours: Optional[str] = None
    rule_id: Optional[str] = None

    def is_valid_on(self, d: date) -> bool:
        """Check the inclusive validity range; a missing bound is open."""
        if self.start_date is not None and d < self.start_date:
            return False
        if self.end_date is not None and d > self.end_date:
            return False
        return True

    def covers_weekday(self, d: date) -> bool:
        """Check if the date's weekday is one of the rule's days."""
        return day_of_week(d) in self.days

    def __str__(self) -> str:
        label = self.rule_id or "rule"
        days = ",".join(str(day) for day in sorted(self.days))
        return (
            f"{label}({self.technician_id}, days={days}, "
            f"{self.frequency.value}, status={self.status})"
        )


@dataclass(frozen=True)
class DailyOverrideEntry:
    """A day-specific status for one person.

    Attributes:
        technician_id: ID of the person overridden.
        status: Status for the day, or None to keep the lower layer's.
        hours: Custom hours text for the day, if any.
    """

    technician_id: str
    status: Optional[str] = None
    hours: Optional[str] = None


@dataclass(frozen=True)
class DayScheduleDocument:
    """All overrides and notes stored for one calendar date.

    Attributes:
        date_key: The ``YYYY-MM-DD`` date the document belongs to.
        notes: Free-form supervisor notes for the day.
        staff_list: Override entries, in stored order.
    """

    date_key: str
    notes: str = ""
    staff_list: tuple[DailyOverrideEntry, ...] = ()

    def find_entry(self, person_id: str) -> Optional[DailyOverrideEntry]:
        """Get the first entry for a person, if any."""
        if not person_id:
            return None
        for entry in self.staff_list:
            if entry.technician_id == person_id:
                return entry
        return None


@dataclass(frozen=True)
class DailyStatus:
    """A status/hours pair produced by one precedence layer."""

    status: str
    hours: str = ""
    source: StatusSource = StatusSource.WEEKDAY_DEFAULT


@dataclass(frozen=True)
class ResolvedDayStatus:
    """Effective status of one person on one date.

    Attributes:
        person_id: ID of the person.
        name: Display name of the person.
        zone_name: Zone the person belongs to.
        status: Effective status.
        hours: Effective custom hours text ("" when none).
        source: Precedence layer that decided the status.
    """

    person_id: str
    name: str
    zone_name: str
    status: str
    hours: str = ""
    source: StatusSource = StatusSource.WEEKDAY_DEFAULT

    @property
    def status_key(self) -> str:
        """Case-insensitive form of the status."""
        return normalize_status(self.status)

    @property
    def has_custom_hours(self) -> bool:
        """True if a non-empty hours value is set."""
        return bool(self.hours)

    @property
    def display_status(self) -> str:
        """Human readable status, e.g. ``No Call No Show (7-3)``."""
        return format_status(self.status, self.hours)

    @property
    def compact_name(self) -> str:
        """Shortened name for dense views."""
        return format_name_compact(self.name)


@dataclass
class DaySchedule:
    """Resolved schedule for the whole roster on one date.

    Attributes:
        schedule_date: Date of the schedule.
        notes: Notes from the day's schedule document ("" when none).
        staff: Resolved statuses, sorted by name.
        is_today: True if the date equals the caller's reference date.
    """

    schedule_date: date
    notes: str = ""
    staff: list[ResolvedDayStatus] = field(default_factory=list)
    is_today: bool = False

    @property
    def date_key(self) -> str:
        return to_date_key(self.schedule_date)

    @property
    def is_weekend(self) -> bool:
        return is_weekend(self.schedule_date)

    @property
    def holiday(self) -> Optional[str]:
        return holiday_name(self.schedule_date)

    def get_entry(self, person_id: str) -> Optional[ResolvedDayStatus]:
        """Get the resolved status for a person, if on the roster."""
        for entry in self.staff:
            if entry.person_id == person_id:
                return entry
        return None

    def count_with_status(self, statuses: frozenset[str]) -> int:
        """Count people whose status (case-insensitive) is in ``statuses``."""
        return sum(1 for entry in self.staff if entry.status_key in statuses)


@dataclass
class MonthSchedule:
    """Resolved schedules for every day of a month.

    Attributes:
        month_start: First day of the month.
        leading_blank_days: Grid cells before the 1st in a Sunday-first week.
        days: One DaySchedule per calendar day, in order.
    """

    month_start: date
    leading_blank_days: int
    days: list[DaySchedule] = field(default_factory=list)

    @property
    def days_in_month(self) -> int:
        return days_in_month(self.month_start)

    @property
    def total_weeks(self) -> int:
        """Number of week rows a Sunday-first grid needs."""
        return math.ceil((self.leading_blank_days + self.days_in_month) / 7)

    def get_day(self, d: date) -> Optional[DaySchedule]:
        """Get the schedule for a date in this month."""
        for day in self.days:
            if day.schedule_date == d:
                return day
        return None


@dataclass
class MyScheduleDay:
    """One day of a single person's weekly schedule.

    Attributes:
        schedule_date: Date of the entry.
        entry: Resolved status, or None if the person is not on the roster.
        is_today: True if the date equals the caller's reference date.
    """

    schedule_date: date
    entry: Optional[ResolvedDayStatus] = None
    is_today: bool = False

    @property
    def is_scheduled(self) -> bool:
        return self.entry is not None

    @property
    def status(self) -> str:
        return self.entry.status if self.entry else NOT_SCHEDULED

    @property
    def hours(self) -> str:
        return self.entry.hours if self.entry else ""

    @property
    def display_status(self) -> str:
        return self.entry.display_status if self.entry else NOT_SCHEDULED


@dataclass
class DayViewLists:
    """Primary/secondary grouping of a day's staff.

    The primary list holds the exceptions to the expected pattern for the
    day (people working on a weekend, people off or on custom hours on a
    weekday); the secondary list holds the routine majority.
    """

    primary: list[ResolvedDayStatus] = field(default_factory=list)
    secondary: list[ResolvedDayStatus] = field(default_factory=list)
    primary_header: str = ""
    secondary_header: str = ""


@dataclass
class EngineConfig:
    """Configuration for schedule resolution and data loading.

    Attributes:
        off_statuses: Statuses counted as off/absent (case-insensitive).
        working_statuses: Statuses counted as working (case-insensitive).
            Includes the legacy ``on`` status used by older records.
        fetch_timeout_seconds: Time limit for each collaborator fetch.
        max_fetch_workers: Threads used to issue fetches concurrently.
    """

    off_statuses: frozenset[str] = frozenset(
        {"off", "sick", "vacation", "no-call-no-show"}
    )
    working_statuses: frozenset[str] = frozenset({"scheduled", "on"})
    fetch_timeout_seconds: float = 10.0
    max_fetch_workers: int = 3

    def __post_init__(self):
        self.off_statuses = frozenset(normalize_status(s) for s in self.off_statuses)
        self.working_statuses = frozenset(
            normalize_status(s) for s in self.working_statuses
        )
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        if self.max_fetch_workers < 1:
            raise ValueError("max_fetch_workers must be at least 1")

    def is_off(self, status: Optional[str]) -> bool:
        return normalize_status(status) in self.off_statuses

    def is_working(self, status: Optional[str]) -> bool:
        return normalize_status(status) in self.working_statuses


def format_status(status: str, hours: str = "") -> str:
    """Format a status for display.

    Hyphens become spaces and each word is capitalized; custom hours are
    appended in parentheses.
    """
    text = re.sub(r"\b\w", lambda m: m.group(0).upper(), (status or "").replace("-", " "))
    if hours:
        text += f" ({hours})"
    return text


def format_name_compact(full_name: str) -> str:
    """Shorten a name to first name plus last initial (``Jane D.``)."""
    if not full_name:
        return ""
    parts = full_name.split(" ")
    if len(parts) > 1:
        return f"{parts[0]} {parts[-1][:1]}."
    return parts[0]
