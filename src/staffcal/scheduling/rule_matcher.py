"""Recurring rule matching.

This module decides which of a person's recurring rules, if any, governs
their status on a date. A rule applies when all of the following hold:

1. The date falls inside the rule's inclusive validity range.
2. The date's weekday is one of the rule's days.
3. The cadence matches: weekly rules always do; every-other-week rules
   only when the date's ISO week number has the same parity as the
   rule's week anchor.

Among applicable rules the selection policy chooses one; the default
policy keeps the first in stored order.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

from staffcal.domain.calendar_util import iso_week_number
from staffcal.domain.models import RecurringRule, RuleFrequency
from staffcal.domain.policies import FirstMatchSelectionPolicy, RuleSelectionPolicy


class RecurringRuleMatcher:
    """Selects the recurring rule that applies to a person on a date.

    Example:
        >>> matcher = RecurringRuleMatcher()
        >>> rule = matcher.match(rules, "p1", date(2024, 2, 7))
    """

    def __init__(self, selection_policy: Optional[RuleSelectionPolicy] = None):
        self.selection_policy = selection_policy or FirstMatchSelectionPolicy()

    def match(
        self,
        rules: Iterable[RecurringRule],
        person_id: str,
        d: date,
    ) -> Optional[RecurringRule]:
        """Find the rule deciding ``person_id``'s status on ``d``.

        Args:
            rules: Rules to search, in stored order. Rules for other
                people are ignored.
            person_id: ID of the person.
            d: Date to resolve.

        Returns:
            The selected rule, or None if no rule applies.
        """
        candidates = self.candidates_for(rules, person_id)
        return self.selection_policy.select(
            candidates, lambda rule: self.rule_applies(rule, d)
        )

    @staticmethod
    def candidates_for(
        rules: Iterable[RecurringRule],
        person_id: str,
    ) -> list[RecurringRule]:
        """Rules belonging to a person, in their original order."""
        if not person_id:
            return []
        return [rule for rule in rules if rule.technician_id == person_id]

    def rule_applies(self, rule: RecurringRule, d: date) -> bool:
        """Check validity range, weekday and cadence for one rule."""
        if not rule.technician_id or not rule.days:
            return False
        if not rule.is_valid_on(d):
            return False
        if not rule.covers_weekday(d):
            return False
        return self.cadence_matches(rule, d)

    @staticmethod
    def cadence_matches(rule: RecurringRule, d: date) -> bool:
        """Check whether the rule is active in the week containing ``d``."""
        if rule.frequency == RuleFrequency.EVERY_OTHER_WEEK:
            return iso_week_number(d) % 2 == rule.week_anchor % 2
        return True
