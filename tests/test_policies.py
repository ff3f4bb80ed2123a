"""Tests for status, rule selection and grouping policies."""

from datetime import date

import pytest

from staffcal.domain.models import (
    RecurringRule,
    ResolvedDayStatus,
    StatusSource,
)
from staffcal.domain.policies import (
    WEEKDAY_PRIMARY_HEADER,
    WEEKDAY_SECONDARY_HEADER,
    WEEKEND_PRIMARY_HEADER,
    WEEKEND_SECONDARY_HEADER,
    DefaultStatusPolicy,
    FirstMatchSelectionPolicy,
    WeekdayWeekendGroupingPolicy,
    pick_first_match,
)

WEDNESDAY = date(2024, 2, 7)
SATURDAY = date(2024, 2, 10)
SUNDAY = date(2024, 2, 11)


def _entry(person_id: str, status: str, hours: str = "") -> ResolvedDayStatus:
    return ResolvedDayStatus(
        person_id=person_id,
        name=person_id.upper(),
        zone_name="",
        status=status,
        hours=hours,
    )


class TestDefaultStatusPolicy:
    """Tests for DefaultStatusPolicy."""

    def test_weekday_is_scheduled(self):
        """Monday through Friday default to Scheduled."""
        policy = DefaultStatusPolicy()
        result = policy.default_for(WEDNESDAY)
        assert result.status == "Scheduled"
        assert result.hours == ""
        assert result.source == StatusSource.WEEKDAY_DEFAULT

    def test_saturday_is_off(self):
        policy = DefaultStatusPolicy()
        result = policy.default_for(SATURDAY)
        assert result.status == "Off"
        assert result.source == StatusSource.WEEKEND_DEFAULT

    def test_sunday_is_off(self):
        policy = DefaultStatusPolicy()
        assert policy.default_for(SUNDAY).status == "Off"

    def test_custom_statuses(self):
        """Custom baseline statuses should be respected."""
        policy = DefaultStatusPolicy(weekday_status="On", weekend_status="Closed")
        assert policy.default_for(WEDNESDAY).status == "On"
        assert policy.default_for(SATURDAY).status == "Closed"


class TestPickFirstMatch:
    """Tests for first-match rule selection."""

    def _rule(self, rule_id: str) -> RecurringRule:
        return RecurringRule(technician_id="p1", days=frozenset({3}), rule_id=rule_id)

    def test_returns_first_applicable(self):
        rules = [self._rule("a"), self._rule("b"), self._rule("c")]
        chosen = pick_first_match(rules, lambda r: r.rule_id in ("b", "c"))
        assert chosen.rule_id == "b"

    def test_returns_none_when_nothing_applies(self):
        rules = [self._rule("a"), self._rule("b")]
        assert pick_first_match(rules, lambda r: False) is None

    def test_empty_candidates(self):
        assert pick_first_match([], lambda r: True) is None

    def test_stops_at_first_match(self):
        """Later candidates are never inspected once one applies."""
        seen = []

        def applies(rule):
            seen.append(rule.rule_id)
            return True

        pick_first_match([self._rule("a"), self._rule("b")], applies)
        assert seen == ["a"]

    def test_policy_delegates(self):
        rules = [self._rule("a"), self._rule("b")]
        policy = FirstMatchSelectionPolicy()
        assert policy.select(rules, lambda r: True).rule_id == "a"


class TestWeekdayWeekendGroupingPolicy:
    """Tests for primary/secondary day lists."""

    @pytest.fixture
    def policy(self):
        return WeekdayWeekendGroupingPolicy()

    def test_weekend_scheduled_is_primary(self, policy):
        """On a Saturday, working people are the exception."""
        working = _entry("p1", "Scheduled")
        off = _entry("p2", "Off")
        lists = policy.partition(SATURDAY, [working, off])
        assert lists.primary == [working]
        assert lists.secondary == [off]
        assert lists.primary_header == WEEKEND_PRIMARY_HEADER
        assert lists.secondary_header == WEEKEND_SECONDARY_HEADER

    def test_weekend_off_with_hours_is_primary(self, policy):
        entry = _entry("p1", "Off", hours="10-2")
        lists = policy.partition(SATURDAY, [entry])
        assert lists.primary == [entry]
        assert lists.secondary == []

    def test_weekday_off_is_primary(self, policy):
        off = _entry("p1", "Vacation")
        working = _entry("p2", "Scheduled")
        lists = policy.partition(WEDNESDAY, [off, working])
        assert lists.primary == [off]
        assert lists.secondary == [working]
        assert lists.primary_header == WEEKDAY_PRIMARY_HEADER
        assert lists.secondary_header == WEEKDAY_SECONDARY_HEADER

    def test_weekday_custom_hours_is_primary(self, policy):
        entry = _entry("p1", "Scheduled", hours="7-1")
        lists = policy.partition(WEDNESDAY, [entry])
        assert lists.primary == [entry]
        assert lists.secondary == []

    def test_status_comparison_is_case_insensitive(self, policy):
        """Legacy lowercase statuses group like their canonical forms."""
        on = _entry("p1", "on")
        off = _entry("p2", "off")
        nc = _entry("p3", "No-Call-No-Show")
        lists = policy.partition(WEDNESDAY, [on, off, nc])
        assert lists.primary == [off, nc]
        assert lists.secondary == [on]

    def test_custom_status_without_hours_in_neither_list(self, policy):
        entry = _entry("p1", "Training")
        lists = policy.partition(WEDNESDAY, [entry])
        assert lists.primary == []
        assert lists.secondary == []

    def test_order_is_preserved(self, policy):
        entries = [_entry(f"p{i}", "Off") for i in range(5)]
        lists = policy.partition(WEDNESDAY, entries)
        assert lists.primary == entries
