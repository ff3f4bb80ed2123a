"""Schedule resolution for one person on one date.

Three layers decide a status, in increasing precedence:

1. The default policy (weekday/weekend baseline).
2. The selected recurring rule, if any.
3. The day-specific override, if any.

A higher layer only replaces the fields it actually sets; a missing or
empty status or hours value falls back to the layer below.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

from staffcal.domain.models import (
    DailyStatus,
    Person,
    RecurringRule,
    ResolvedDayStatus,
    StatusSource,
)
from staffcal.domain.policies import DefaultStatusPolicy, StatusPolicy
from staffcal.scheduling.override_lookup import DailyOverrideLookup, OverrideSource
from staffcal.scheduling.rule_matcher import RecurringRuleMatcher


def _layer(
    base: DailyStatus,
    status: Optional[str],
    hours: Optional[str],
    source: StatusSource,
) -> DailyStatus:
    # Empty strings count as unset so they never blank out a lower layer.
    return DailyStatus(
        status=status or base.status,
        hours=hours or base.hours,
        source=source,
    )


class ScheduleResolver:
    """Computes a person's effective status on a date.

    Example:
        >>> resolver = ScheduleResolver()
        >>> result = resolver.resolve(person, date(2024, 2, 7), rules, overrides)
        >>> result.status
        'Vacation'
    """

    def __init__(
        self,
        status_policy: Optional[StatusPolicy] = None,
        rule_matcher: Optional[RecurringRuleMatcher] = None,
        override_lookup: Optional[DailyOverrideLookup] = None,
    ):
        """Initialize resolver with its layers.

        Args:
            status_policy: Baseline status policy.
            rule_matcher: Recurring rule matcher.
            override_lookup: Day-specific override lookup.
        """
        self.status_policy = status_policy or DefaultStatusPolicy()
        self.rule_matcher = rule_matcher or RecurringRuleMatcher()
        self.override_lookup = override_lookup or DailyOverrideLookup()

    def resolve(
        self,
        person: Person,
        d: date,
        rules: Iterable[RecurringRule],
        overrides: OverrideSource,
    ) -> ResolvedDayStatus:
        """Resolve the effective status of ``person`` on ``d``.

        Args:
            person: Roster member to resolve.
            d: Date to resolve.
            rules: Recurring rules; rules for other people are ignored.
            overrides: Date-keyed day schedule documents.

        Returns:
            A fresh ResolvedDayStatus.
        """
        base = self.status_policy.default_for(d)

        matched = self.rule_matcher.match(rules, person.id, d)
        if matched is not None:
            base = _layer(base, matched.status, matched.hours, StatusSource.RECURRING_RULE)

        override = self.override_lookup.lookup(overrides, d, person.id)
        if override is not None:
            base = _layer(
                base, override.status, override.hours, StatusSource.SPECIFIC_OVERRIDE
            )

        return ResolvedDayStatus(
            person_id=person.id,
            name=person.name,
            zone_name=person.zone_name,
            status=base.status,
            hours=base.hours,
            source=base.source,
        )
