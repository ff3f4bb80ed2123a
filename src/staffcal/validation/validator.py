"""Validation module for checking rule and override data.

The engine itself never fails on bad data: malformed records are skipped
and simply never match. This module reports what would be skipped, and
points out data whose outcome depends on stored order, so supervisors
can clean it up.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from itertools import combinations
from typing import Any, Optional

from staffcal.domain.calendar_util import iter_dates
from staffcal.domain.models import Person, RecurringRule, RuleFrequency
from staffcal.scheduling.rule_matcher import RecurringRuleMatcher
from staffcal.stores.records import (
    MalformedRecordError,
    parse_day_document,
    parse_override_entry,
    parse_rule_record,
)

# Any span this long contains every weekday in weeks of both parities.
_FULL_CADENCE_SPAN = timedelta(days=28)


class ValidationErrorType(Enum):
    """Types of validation errors."""

    MALFORMED_RULE = "malformed_rule"
    INVALID_DATE_RANGE = "invalid_date_range"
    MALFORMED_DAY_SCHEDULE = "malformed_day_schedule"
    MALFORMED_OVERRIDE_ENTRY = "malformed_override_entry"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    technician_id: Optional[str] = None
    record_index: Optional[int] = None
    date_key: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.record_index is not None:
            parts.append(f"#{self.record_index}")
        if self.date_key:
            parts.append(f"{self.date_key}")
        if self.technician_id:
            parts.append(f"Technician {self.technician_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating rule and override data."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    overlaps: list[tuple[RecurringRule, RecurringRule]] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        """Fold another result into this one."""
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)
        self.overlaps.extend(other.overlaps)


class RuleSetValidator:
    """Checks rule and day schedule records.

    Errors are records the engine will skip. Warnings are records that
    load fine but are likely mistakes:

    - rules or override entries for people not on the roster,
    - several override entries for one person on one day (the first wins),
    - overlapping rules for one person (stored order decides).

    Example:
        >>> validator = RuleSetValidator()
        >>> result = validator.validate(rule_records, day_records, roster)
        >>> for warning in result.warnings:
        ...     print(warning)
    """

    def __init__(self, rule_matcher: Optional[RecurringRuleMatcher] = None):
        self.rule_matcher = rule_matcher or RecurringRuleMatcher()

    def validate(
        self,
        rule_records: Iterable[Any],
        day_records: Iterable[Any],
        roster: Optional[Sequence[Person]] = None,
    ) -> ValidationResult:
        """Validate rule and day schedule records together.

        Args:
            rule_records: Raw rule records, in stored order.
            day_records: Raw day schedule records.
            roster: Roster to check technician IDs against, if known.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        roster_ids = {p.id for p in roster} if roster is not None else None
        result = self.validate_rule_records(rule_records, roster_ids)
        result.merge(self.validate_day_records(day_records, roster_ids))
        return result

    def validate_rule_records(
        self,
        records: Iterable[Any],
        roster_ids: Optional[set[str]] = None,
    ) -> ValidationResult:
        """Validate raw rule records and look for overlapping rules."""
        result = ValidationResult(is_valid=True)
        rules = []

        for index, record in enumerate(records):
            technician_id = (
                record.get("technicianId") if isinstance(record, Mapping) else None
            )
            try:
                rule = parse_rule_record(record)
            except MalformedRecordError as e:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MALFORMED_RULE,
                        message=str(e),
                        technician_id=technician_id,
                        record_index=index,
                    )
                )
                continue

            if (
                rule.start_date is not None
                and rule.end_date is not None
                and rule.start_date > rule.end_date
            ):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.INVALID_DATE_RANGE,
                        message=(
                            f"startDate {rule.start_date} is after endDate "
                            f"{rule.end_date}; the rule can never apply"
                        ),
                        technician_id=rule.technician_id,
                        record_index=index,
                    )
                )
                continue

            if roster_ids is not None and rule.technician_id not in roster_ids:
                result.add_warning(
                    f"Rule #{index} is for {rule.technician_id}, who is not on the roster"
                )
            rules.append(rule)

        for first, second in self.find_overlaps(rules):
            result.overlaps.append((first, second))
            result.add_warning(
                f"Rules {first} and {second} overlap for {first.technician_id}; "
                f"the first in stored order wins where both apply"
            )

        return result

    def validate_day_records(
        self,
        records: Iterable[Any],
        roster_ids: Optional[set[str]] = None,
    ) -> ValidationResult:
        """Validate raw day schedule records and their override entries."""
        result = ValidationResult(is_valid=True)
        seen_dates: set[str] = set()

        for index, record in enumerate(records):
            try:
                document = parse_day_document(record)
            except MalformedRecordError as e:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MALFORMED_DAY_SCHEDULE,
                        message=str(e),
                        record_index=index,
                    )
                )
                continue

            if document.date_key in seen_dates:
                result.add_warning(
                    f"Day schedule #{index} repeats {document.date_key}; "
                    f"only the first is used"
                )
            seen_dates.add(document.date_key)

            raw_staff = record.get("staffList", record.get("staff")) or []
            for entry_record in raw_staff:
                try:
                    parse_override_entry(entry_record)
                except MalformedRecordError as e:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.MALFORMED_OVERRIDE_ENTRY,
                            message=str(e),
                            record_index=index,
                            date_key=document.date_key,
                        )
                    )

            counts: dict[str, int] = {}
            for entry in document.staff_list:
                counts[entry.technician_id] = counts.get(entry.technician_id, 0) + 1
            for technician_id, count in counts.items():
                if count > 1:
                    result.add_warning(
                        f"{document.date_key}: {count} entries for {technician_id}; "
                        f"the first is used"
                    )
                if roster_ids is not None and technician_id not in roster_ids:
                    result.add_warning(
                        f"{document.date_key}: entry for {technician_id}, "
                        f"who is not on the roster"
                    )

        return result

    def find_overlaps(
        self, rules: Sequence[RecurringRule]
    ) -> list[tuple[RecurringRule, RecurringRule]]:
        """Pairs of rules for the same person that can apply on the same date.

        Pairs are returned in stored order: the first rule of each pair is
        the one that wins.
        """
        overlaps = []
        by_person: dict[str, list[RecurringRule]] = {}
        for rule in rules:
            by_person.setdefault(rule.technician_id, []).append(rule)

        for person_rules in by_person.values():
            for first, second in combinations(person_rules, 2):
                if self.rules_overlap(first, second):
                    overlaps.append((first, second))
        return overlaps

    def rules_overlap(self, first: RecurringRule, second: RecurringRule) -> bool:
        """Check whether two rules can both apply on some date."""
        if first.technician_id != second.technician_id:
            return False
        if not first.days & second.days:
            return False
        if (
            first.frequency == RuleFrequency.EVERY_OTHER_WEEK
            and second.frequency == RuleFrequency.EVERY_OTHER_WEEK
            and first.week_anchor % 2 != second.week_anchor % 2
        ):
            # A date has one week number, so opposite parities never coincide.
            return False

        lo = _later(first.start_date, second.start_date)
        hi = _earlier(first.end_date, second.end_date)
        if lo is not None and hi is not None:
            if lo > hi:
                return False
            if hi - lo < _FULL_CADENCE_SPAN:
                return any(
                    self.rule_matcher.rule_applies(first, d)
                    and self.rule_matcher.rule_applies(second, d)
                    for d in iter_dates(lo, hi)
                )
        return True


def _later(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _earlier(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)
