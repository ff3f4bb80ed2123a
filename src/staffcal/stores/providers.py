"""Interfaces of the external data collaborators.

The engine only reads from these. Writing rules and overrides, and how
they are persisted, belong to the caller.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import date

from staffcal.domain.models import DayScheduleDocument, Person, RecurringRule

OverrideListener = Callable[[list[DayScheduleDocument]], None]
Unsubscribe = Callable[[], None]


class RosterProvider(ABC):
    """Source of the people to schedule."""

    @abstractmethod
    def get_all(self) -> list[Person]:
        """Get every roster member."""
        pass


class RuleStore(ABC):
    """Source of recurring rules."""

    @abstractmethod
    def get_all_for_roster(self, person_ids: Iterable[str]) -> list[RecurringRule]:
        """Get the rules belonging to any of ``person_ids``, in stored order."""
        pass


class OverrideStore(ABC):
    """Source of day schedule documents."""

    @abstractmethod
    def get_range(self, start: date, end: date) -> list[DayScheduleDocument]:
        """Get the documents dated from ``start`` to ``end`` inclusive."""
        pass

    @abstractmethod
    def subscribe_range(
        self,
        start: date,
        end: date,
        on_change: OverrideListener,
    ) -> Unsubscribe:
        """Watch a date range for changes.

        Args:
            start: First date of the range.
            end: Last date of the range (inclusive).
            on_change: Called with the range's current documents whenever
                a document in the range changes.

        Returns:
            Callable that cancels the subscription.
        """
        pass
