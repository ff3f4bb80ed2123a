"""Tests for per-person schedule resolution."""

from datetime import date, timedelta

import pytest

from staffcal.domain.models import (
    DailyOverrideEntry,
    DayScheduleDocument,
    Person,
    RecurringRule,
    RuleFrequency,
    StatusSource,
)
from staffcal.domain.policies import DefaultStatusPolicy
from staffcal.scheduling.override_lookup import OverrideSnapshot
from staffcal.scheduling.resolver import ScheduleResolver
from staffcal.stores.records import parse_rule_record

WEDNESDAY = date(2024, 2, 7)
THURSDAY = date(2024, 2, 8)
SATURDAY = date(2024, 2, 10)


@pytest.fixture
def resolver():
    return ScheduleResolver()


@pytest.fixture
def p1():
    return Person(id="p1", name="Ana Diaz", zone_name="North")


@pytest.fixture
def off_rule():
    return parse_rule_record(
        {
            "technicianId": "p1",
            "days": [1, 3, 5],
            "frequency": "weekly",
            "status": "Off",
            "startDate": "2024-01-01",
            "endDate": "2024-03-31",
        }
    )


def _overrides(*entries: DailyOverrideEntry, date_key: str = "2024-02-07"):
    return OverrideSnapshot([DayScheduleDocument(date_key=date_key, staff_list=entries)])


class TestConcreteScenarios:
    """The reference scenarios for rule and override precedence."""

    def test_weekly_rule_on_listed_day(self, resolver, p1, off_rule):
        result = resolver.resolve(p1, WEDNESDAY, [off_rule], OverrideSnapshot())
        assert result.status == "Off"
        assert result.source == StatusSource.RECURRING_RULE

    def test_weekly_rule_falls_back_on_unlisted_day(self, resolver, p1, off_rule):
        result = resolver.resolve(p1, THURSDAY, [off_rule], OverrideSnapshot())
        assert result.status == "Scheduled"
        assert result.source == StatusSource.WEEKDAY_DEFAULT

    def test_every_other_week_parity(self, resolver):
        p2 = Person(id="p2", name="Ben")
        rule = parse_rule_record(
            {
                "technicianId": "p2",
                "days": [5],
                "frequency": "every-other-week",
                "weekAnchor": 0,
                "status": "Off",
            }
        )
        week_6 = resolver.resolve(p2, date(2024, 2, 9), [rule], OverrideSnapshot())
        week_7 = resolver.resolve(p2, date(2024, 2, 16), [rule], OverrideSnapshot())
        assert week_6.status == "Off"
        assert week_7.status == "Scheduled"

    def test_override_beats_rule(self, resolver, p1, off_rule):
        overrides = _overrides(DailyOverrideEntry("p1", status="Vacation"))
        result = resolver.resolve(p1, WEDNESDAY, [off_rule], overrides)
        assert result.status == "Vacation"
        assert result.source == StatusSource.SPECIFIC_OVERRIDE


class TestPrecedence:
    """Tests for layering default, rule and override."""

    def test_no_rule_or_override_gives_default(self, resolver, p1):
        policy = DefaultStatusPolicy()
        for offset in range(14):
            d = WEDNESDAY + timedelta(days=offset)
            result = resolver.resolve(p1, d, [], OverrideSnapshot())
            expected = policy.default_for(d)
            assert (result.status, result.hours, result.source) == (
                expected.status,
                expected.hours,
                expected.source,
            )

    def test_weekend_default(self, resolver, p1):
        result = resolver.resolve(p1, SATURDAY, [], OverrideSnapshot())
        assert result.status == "Off"
        assert result.source == StatusSource.WEEKEND_DEFAULT

    def test_weekly_rule_across_range(self, resolver, p1, off_rule):
        """Inside the range on listed days the rule decides; elsewhere it doesn't."""
        d = date(2023, 12, 25)
        while d <= date(2024, 4, 7):
            result = resolver.resolve(p1, d, [off_rule], OverrideSnapshot())
            in_range = off_rule.start_date <= d <= off_rule.end_date
            if in_range and off_rule.covers_weekday(d):
                assert result.source == StatusSource.RECURRING_RULE
                assert result.status == "Off"
            else:
                assert result.source != StatusSource.RECURRING_RULE
            d += timedelta(days=1)

    def test_rule_hours_only_keeps_default_status(self, resolver, p1):
        rule = RecurringRule(technician_id="p1", days=frozenset({3}), hours="7-1")
        result = resolver.resolve(p1, WEDNESDAY, [rule], OverrideSnapshot())
        assert result.status == "Scheduled"
        assert result.hours == "7-1"
        assert result.source == StatusSource.RECURRING_RULE

    def test_override_status_keeps_rule_hours(self, resolver, p1):
        rule = RecurringRule(
            technician_id="p1", days=frozenset({3}), status="Scheduled", hours="7-1"
        )
        overrides = _overrides(DailyOverrideEntry("p1", status="Sick"))
        result = resolver.resolve(p1, WEDNESDAY, [rule], overrides)
        assert result.status == "Sick"
        assert result.hours == "7-1"

    def test_empty_override_fields_do_not_blank_lower_layers(self, resolver, p1):
        rule = RecurringRule(
            technician_id="p1", days=frozenset({3}), status="Off", hours="10-2"
        )
        overrides = _overrides(DailyOverrideEntry("p1", status="", hours=""))
        result = resolver.resolve(p1, WEDNESDAY, [rule], overrides)
        assert result.status == "Off"
        assert result.hours == "10-2"
        assert result.source == StatusSource.SPECIFIC_OVERRIDE

    def test_override_applies_without_rule(self, resolver, p1):
        overrides = _overrides(
            DailyOverrideEntry("p1", status="Scheduled", hours="9-1"),
            date_key="2024-02-10",
        )
        result = resolver.resolve(p1, SATURDAY, [], overrides)
        assert result.status == "Scheduled"
        assert result.hours == "9-1"

    def test_other_peoples_overrides_ignored(self, resolver, p1):
        overrides = _overrides(DailyOverrideEntry("p2", status="Vacation"))
        assert resolver.resolve(p1, WEDNESDAY, [], overrides).status == "Scheduled"

    def test_malformed_rule_never_matches(self, resolver, p1):
        rule = RecurringRule(technician_id="p1", days=frozenset(), status="Off")
        assert resolver.resolve(p1, WEDNESDAY, [rule], OverrideSnapshot()).status == "Scheduled"

    def test_identity_fields_copied(self, resolver, p1):
        result = resolver.resolve(p1, WEDNESDAY, [], OverrideSnapshot())
        assert (result.person_id, result.name, result.zone_name) == (
            "p1",
            "Ana Diaz",
            "North",
        )

    def test_first_stored_rule_wins_on_overlap(self, resolver, p1):
        rules = [
            RecurringRule(technician_id="p1", days=frozenset({3}), status="Off"),
            RecurringRule(
                technician_id="p1",
                days=frozenset({3}),
                frequency=RuleFrequency.EVERY_OTHER_WEEK,
                week_anchor=0,
                status="Sick",
            ),
        ]
        assert resolver.resolve(p1, WEDNESDAY, rules, OverrideSnapshot()).status == "Off"
