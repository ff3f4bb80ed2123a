"""Policy definitions for schedule resolution.

This module contains configurable policies that define business rules
for default statuses, choosing between overlapping recurring rules, and
grouping a day's staff for display. Policies are kept separate from the
resolution engine to allow independent testing and easy modification.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from staffcal.domain.calendar_util import is_weekend
from staffcal.domain.models import (
    OFF,
    SCHEDULED,
    DailyStatus,
    DayViewLists,
    EngineConfig,
    RecurringRule,
    ResolvedDayStatus,
    StatusSource,
)

WEEKEND_PRIMARY_HEADER = "Working Today"
WEEKEND_SECONDARY_HEADER = "Scheduled Off"
WEEKDAY_PRIMARY_HEADER = "Scheduled Off / Custom"
WEEKDAY_SECONDARY_HEADER = "Working Today"


class StatusPolicy(ABC):
    """Abstract base class for baseline status policies."""

    @abstractmethod
    def default_for(self, d: date) -> DailyStatus:
        """Status for a person on a date when no rule or override applies."""
        pass


class RuleSelectionPolicy(ABC):
    """Abstract base class for choosing among a person's recurring rules."""

    @abstractmethod
    def select(
        self,
        candidates: Iterable[RecurringRule],
        applies: Callable[[RecurringRule], bool],
    ) -> Optional[RecurringRule]:
        """Choose the rule that decides a person's status.

        Args:
            candidates: The person's rules, in stored order.
            applies: Predicate telling whether a rule matches the date.

        Returns:
            The chosen rule, or None if no rule applies.
        """
        pass


class GroupingPolicy(ABC):
    """Abstract base class for splitting a day's staff into display groups."""

    @abstractmethod
    def partition(self, d: date, staff: list[ResolvedDayStatus]) -> DayViewLists:
        """Split resolved statuses into primary and secondary lists."""
        pass


@dataclass
class DefaultStatusPolicy(StatusPolicy):
    """Default status policy implementation.

    - Saturday and Sunday: "Off"
    - Monday through Friday: "Scheduled"

    Hours are always empty at this layer.
    """

    weekday_status: str = SCHEDULED
    weekend_status: str = OFF

    def default_for(self, d: date) -> DailyStatus:
        if is_weekend(d):
            return DailyStatus(self.weekend_status, "", StatusSource.WEEKEND_DEFAULT)
        return DailyStatus(self.weekday_status, "", StatusSource.WEEKDAY_DEFAULT)


def pick_first_match(
    candidates: Iterable[RecurringRule],
    applies: Callable[[RecurringRule], bool],
) -> Optional[RecurringRule]:
    """Return the first candidate that applies, in the order given.

    Later candidates are never inspected once one applies, even if they
    are narrower or newer. Rules carry no explicit priority, so the stored
    order is the tie-breaker.
    """
    for rule in candidates:
        if applies(rule):
            return rule
    return None


@dataclass
class FirstMatchSelectionPolicy(RuleSelectionPolicy):
    """Stored order wins: the earliest applicable rule decides."""

    def select(
        self,
        candidates: Iterable[RecurringRule],
        applies: Callable[[RecurringRule], bool],
    ) -> Optional[RecurringRule]:
        return pick_first_match(candidates, applies)


@dataclass
class WeekdayWeekendGroupingPolicy(GroupingPolicy):
    """Surface the exceptions to the expected working pattern first.

    Weekend days:
    - Primary ("Working Today"): working status, or any custom hours.
    - Secondary ("Scheduled Off"): off status with no custom hours.

    Weekdays:
    - Primary ("Scheduled Off / Custom"): off status, or any custom hours.
    - Secondary ("Working Today"): working status with no custom hours.

    Custom statuses without hours fall in neither list.
    """

    off_statuses: frozenset[str] = field(
        default_factory=lambda: EngineConfig().off_statuses
    )
    working_statuses: frozenset[str] = field(
        default_factory=lambda: EngineConfig().working_statuses
    )

    @classmethod
    def from_config(cls, config: EngineConfig) -> "WeekdayWeekendGroupingPolicy":
        return cls(
            off_statuses=config.off_statuses,
            working_statuses=config.working_statuses,
        )

    def _is_off(self, entry: ResolvedDayStatus) -> bool:
        return entry.status_key in self.off_statuses

    def _is_working(self, entry: ResolvedDayStatus) -> bool:
        return entry.status_key in self.working_statuses

    def partition(self, d: date, staff: list[ResolvedDayStatus]) -> DayViewLists:
        if is_weekend(d):
            return DayViewLists(
                primary=[
                    s for s in staff if self._is_working(s) or s.has_custom_hours
                ],
                secondary=[
                    s for s in staff if self._is_off(s) and not s.has_custom_hours
                ],
                primary_header=WEEKEND_PRIMARY_HEADER,
                secondary_header=WEEKEND_SECONDARY_HEADER,
            )

        return DayViewLists(
            primary=[s for s in staff if self._is_off(s) or s.has_custom_hours],
            secondary=[
                s for s in staff if self._is_working(s) and not s.has_custom_hours
            ],
            primary_header=WEEKDAY_PRIMARY_HEADER,
            secondary_header=WEEKDAY_SECONDARY_HEADER,
        )
