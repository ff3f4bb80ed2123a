"""Main schedule service interface.

This module provides the high-level ScheduleService that loads roster,
rules and overrides from the external collaborators and hands them to
the PeriodAggregator, plus LiveScheduleView, which keeps a selected view
up to date as override documents change.

Fetch failures never fail a view. A collaborator that raises or times out
is logged and treated as returning nothing, so the view degrades to the
best known schedule (no rules means defaults everywhere, no overrides
means none apply).
"""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Optional

from staffcal.domain.calendar_util import (
    DateLike,
    as_date,
    end_of_month,
    end_of_week,
    start_of_month,
    start_of_week,
)
from staffcal.domain.models import (
    DayScheduleDocument,
    DaySchedule,
    DayViewLists,
    EngineConfig,
    MonthSchedule,
    MyScheduleDay,
    Person,
    RecurringRule,
)
from staffcal.scheduling.override_lookup import OverrideSnapshot
from staffcal.scheduling.period_aggregator import PeriodAggregator
from staffcal.stores.providers import (
    OverrideStore,
    RosterProvider,
    RuleStore,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

DAY_VIEW = "day"
WEEK_VIEW = "week"
MONTH_VIEW = "month"
MY_SCHEDULE_VIEW = "my-schedule"
VIEWS = (DAY_VIEW, WEEK_VIEW, MONTH_VIEW, MY_SCHEDULE_VIEW)


@dataclass
class ScheduleSnapshot:
    """Everything loaded for one resolution pass.

    Attributes:
        start: First date covered by the overrides.
        end: Last date covered by the overrides.
        roster: Roster members.
        rules: Recurring rules for the roster, in stored order.
        overrides: Day schedule documents for the range.
    """

    start: date
    end: date
    roster: list[Person] = field(default_factory=list)
    rules: list[RecurringRule] = field(default_factory=list)
    overrides: OverrideSnapshot = field(default_factory=OverrideSnapshot)

    def with_overrides(
        self, documents: Iterable[DayScheduleDocument]
    ) -> "ScheduleSnapshot":
        """Copy of the snapshot with a fresh set of override documents."""
        return replace(self, overrides=OverrideSnapshot(documents))


@dataclass
class ViewResult:
    """A computed view.

    Attributes:
        view: One of "day", "week", "month", "my-schedule".
        anchor_date: The date the view was requested for.
        start: First date of the view's range.
        end: Last date of the view's range.
        data: DaySchedule (day), list of DaySchedule (week),
            MonthSchedule (month) or list of MyScheduleDay (my-schedule).
        person_id: Person shown by a my-schedule view.
    """

    view: str
    anchor_date: date
    start: date
    end: date
    data: Any
    person_id: Optional[str] = None


def view_range(view: str, any_date: date) -> tuple[date, date]:
    """Date range a view covers.

    Raises:
        ValueError: If ``view`` is not a known view name.
    """
    if view == DAY_VIEW:
        return any_date, any_date
    if view in (WEEK_VIEW, MY_SCHEDULE_VIEW):
        return start_of_week(any_date), end_of_week(any_date)
    if view == MONTH_VIEW:
        return start_of_month(any_date), end_of_month(any_date)
    raise ValueError(f"Unknown view {view!r}; expected one of {', '.join(VIEWS)}")


class ScheduleService:
    """High-level service for schedule views.

    The ScheduleService coordinates data loading and aggregation to
    produce view-ready schedules.

    Example:
        >>> service = ScheduleService(roster, rule_store, override_store)
        >>> day = service.get_day_schedule(date(2024, 2, 7))
        >>> [(s.name, s.status) for s in day.staff]
    """

    def __init__(
        self,
        roster_provider: RosterProvider,
        rule_store: RuleStore,
        override_store: OverrideStore,
        config: Optional[EngineConfig] = None,
        aggregator: Optional[PeriodAggregator] = None,
    ):
        """Initialize service with its collaborators.

        Args:
            roster_provider: Source of roster members.
            rule_store: Source of recurring rules.
            override_store: Source of day schedule documents.
            config: Engine configuration.
            aggregator: Period aggregator; built from ``config`` if omitted.
        """
        self.roster_provider = roster_provider
        self.rule_store = rule_store
        self.override_store = override_store
        self.config = config or EngineConfig()
        self.aggregator = aggregator or PeriodAggregator(config=self.config)

    def load_snapshot(self, start: date, end: date) -> ScheduleSnapshot:
        """Fetch roster, rules and overrides for a date range.

        The roster and override fetches are issued together; the rule
        fetch starts as soon as the roster's IDs are known and overlaps
        with the override fetch.

        Args:
            start: First date of the range.
            end: Last date of the range (inclusive).

        Returns:
            ScheduleSnapshot; any layer whose fetch failed is empty.
        """
        executor = ThreadPoolExecutor(
            max_workers=self.config.max_fetch_workers,
            thread_name_prefix="staffcal-fetch",
        )
        try:
            roster_future = executor.submit(self.roster_provider.get_all)
            overrides_future = executor.submit(
                self.override_store.get_range, start, end
            )

            roster = [p for p in self._await(roster_future, "roster") if p is not None]
            person_ids = [p.id for p in roster if p.id]

            rules: list[RecurringRule] = []
            if person_ids:
                rules_future = executor.submit(
                    self.rule_store.get_all_for_roster, person_ids
                )
                rules = self._await(rules_future, "recurring rules")

            documents = self._await(overrides_future, "day schedules")
        finally:
            # A timed-out fetch keeps its worker thread; don't wait for it.
            executor.shutdown(wait=False, cancel_futures=True)

        return ScheduleSnapshot(
            start=start,
            end=end,
            roster=roster,
            rules=rules,
            overrides=OverrideSnapshot(documents),
        )

    def _await(self, future: Future, what: str) -> list:
        timeout = self.config.fetch_timeout_seconds
        try:
            return list(future.result(timeout=timeout) or [])
        except FutureTimeoutError:
            logger.warning(
                "Fetching %s timed out after %.1fs; continuing without it",
                what,
                timeout,
            )
        except Exception as e:
            logger.warning(
                "Fetching %s failed (%s: %s); continuing without it",
                what,
                type(e).__name__,
                e,
            )
        return []

    def build_view(
        self,
        view: str,
        any_date: DateLike,
        snapshot: ScheduleSnapshot,
        person_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ViewResult:
        """Compute a view from an already-loaded snapshot.

        Raises:
            ValueError: For an unknown view, or a my-schedule view
                without a person.
        """
        d = as_date(any_date)
        start, end = view_range(view, d)
        args = (snapshot.rules, snapshot.overrides)

        if view == DAY_VIEW:
            data = self.aggregator.schedule_for_day(snapshot.roster, d, *args, today=today)
        elif view == WEEK_VIEW:
            data = self.aggregator.schedule_for_week(snapshot.roster, d, *args, today=today)
        elif view == MONTH_VIEW:
            data = self.aggregator.schedule_for_month(snapshot.roster, d, *args, today=today)
        else:
            if not person_id:
                raise ValueError("my-schedule view requires a person_id")
            data = self.aggregator.my_schedule(
                snapshot.roster, person_id, d, *args, today=today
            )

        return ViewResult(
            view=view,
            anchor_date=d,
            start=start,
            end=end,
            data=data,
            person_id=person_id,
        )

    def get_view(
        self,
        view: str,
        any_date: DateLike,
        person_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ViewResult:
        """Load the data a view needs and compute it."""
        d = as_date(any_date)
        start, end = view_range(view, d)
        snapshot = self.load_snapshot(start, end)
        return self.build_view(view, d, snapshot, person_id=person_id, today=today)

    def get_day_schedule(
        self, d: DateLike, today: Optional[date] = None
    ) -> DaySchedule:
        """Resolved schedule for one date, with the day's notes."""
        return self.get_view(DAY_VIEW, d, today=today).data

    def get_week_schedule(
        self, any_date: DateLike, today: Optional[date] = None
    ) -> list[DaySchedule]:
        """Seven day schedules, Sunday through Saturday."""
        return self.get_view(WEEK_VIEW, any_date, today=today).data

    def get_month_schedule(
        self, any_date: DateLike, today: Optional[date] = None
    ) -> MonthSchedule:
        """Every day of the month plus the leading blank-cell count."""
        return self.get_view(MONTH_VIEW, any_date, today=today).data

    def get_my_schedule(
        self,
        person_id: str,
        any_date: DateLike,
        today: Optional[date] = None,
    ) -> list[MyScheduleDay]:
        """One person's week; days read "Not Scheduled" if not on the roster."""
        return self.get_view(
            MY_SCHEDULE_VIEW, any_date, person_id=person_id, today=today
        ).data

    def get_day_view_lists(self, d: DateLike) -> DayViewLists:
        """Primary/secondary grouping of a day's staff."""
        return self.aggregator.day_view_lists(self.get_day_schedule(d))

    def get_month_staffing(self, any_date: DateLike) -> list[int]:
        """Working headcount for each day of the month."""
        d = as_date(any_date)
        snapshot = self.load_snapshot(start_of_month(d), end_of_month(d))
        return self.aggregator.staffing_for_month(
            snapshot.roster, d, snapshot.rules, snapshot.overrides
        )


@dataclass
class _Selection:
    view: str
    anchor_date: date
    start: date
    end: date
    person_id: Optional[str] = None
    today: Optional[date] = None


class LiveScheduleView:
    """Keeps one selected view current as the override store changes.

    Each selection subscribes to the override store for its date range;
    selecting a new view or date drops the previous subscription. Every
    computation is tagged with a generation number, and a result whose
    generation is no longer the latest when it finishes is discarded, so
    the most recently requested range always wins regardless of which
    fetch returns first.

    Example:
        >>> live = LiveScheduleView(service, on_update=render)
        >>> live.show("week", date(2024, 2, 7))
        >>> # a supervisor edits 2024-02-08 -> render() is called again
        >>> live.close()
    """

    def __init__(
        self,
        service: ScheduleService,
        on_update: Callable[[ViewResult], None],
    ):
        self.service = service
        self.on_update = on_update
        self.current: Optional[ViewResult] = None

        # Re-entrant so on_update may call show() from the same thread.
        self.lock = threading.RLock()
        self._generation = 0
        self._range_token = 0
        self._selection: Optional[_Selection] = None
        self._snapshot: Optional[ScheduleSnapshot] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    def show(
        self,
        view: str,
        any_date: DateLike,
        person_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Optional[ViewResult]:
        """Select a view and date, subscribe to its range and compute it.

        Returns:
            The computed view, or None if a newer request superseded it.

        Raises:
            ValueError: If ``view`` is not a known view name.
        """
        d = as_date(any_date)
        start, end = view_range(view, d)
        if view == MY_SCHEDULE_VIEW and not person_id:
            raise ValueError("my-schedule view requires a person_id")
        selection = _Selection(view, d, start, end, person_id, today)

        with self.lock:
            self._range_token += 1
            token = self._range_token
            self._generation += 1
            generation = self._generation
            self._selection = selection
            self._snapshot = None
            previous, self._unsubscribe = self._unsubscribe, None

        if previous is not None:
            previous()

        unsubscribe = self.service.override_store.subscribe_range(
            start,
            end,
            lambda documents: self._on_overrides_changed(token, documents),
        )
        with self.lock:
            if token == self._range_token:
                self._unsubscribe = unsubscribe
                unsubscribe = None
        if unsubscribe is not None:
            # Another selection won while subscribing.
            unsubscribe()

        snapshot = self.service.load_snapshot(start, end)
        return self._publish(generation, selection, snapshot)

    def refresh(self) -> Optional[ViewResult]:
        """Reload everything for the current selection (e.g. roster changed)."""
        with self.lock:
            selection = self._selection
            if selection is None:
                return None
            self._generation += 1
            generation = self._generation
            # Changes arriving mid-reload must not patch the old roster.
            self._snapshot = None

        snapshot = self.service.load_snapshot(selection.start, selection.end)
        return self._publish(generation, selection, snapshot)

    def close(self) -> None:
        """Drop the subscription; later notifications are ignored."""
        with self.lock:
            self._range_token += 1
            self._generation += 1
            self._selection = None
            previous, self._unsubscribe = self._unsubscribe, None
        if previous is not None:
            previous()

    def _on_overrides_changed(
        self, token: int, documents: list[DayScheduleDocument]
    ) -> None:
        with self.lock:
            if token != self._range_token or self._selection is None:
                logger.debug("Ignoring override change for a stale range")
                return
            self._generation += 1
            generation = self._generation
            selection = self._selection
            snapshot = self._snapshot

        if snapshot is None:
            snapshot = self.service.load_snapshot(selection.start, selection.end)
        else:
            snapshot = snapshot.with_overrides(documents)
        self._publish(generation, selection, snapshot)

    def _publish(
        self,
        generation: int,
        selection: _Selection,
        snapshot: ScheduleSnapshot,
    ) -> Optional[ViewResult]:
        result = self.service.build_view(
            selection.view,
            selection.anchor_date,
            snapshot,
            person_id=selection.person_id,
            today=selection.today,
        )
        with self.lock:
            if generation != self._generation:
                logger.debug(
                    "Discarding stale %s view for %s", selection.view, selection.anchor_date
                )
                return None
            self._snapshot = snapshot
            self.current = result
            self.on_update(result)
        return result
