"""Store-read boundary: raw records to canonical models.

Store records use camelCase field names and have accumulated a few
legacy shapes over time:

- Override entries name the person ``technicianId`` or, in older
  documents, ``id``.
- Rule frequencies are stored as ``every-other`` as well as
  ``every-other-week``.
- ``days`` may be a list or a single weekday number.
- ``weekAnchor`` may be a number or a numeric string.
- Dates may be ``YYYY-MM-DD`` strings, ISO timestamps, or date objects.

Everything is normalized here so the resolver sees exactly one shape.
The ``parse_*`` functions raise MalformedRecordError with a reason; the
``*_from_record`` functions return None instead, and the ``load_*``
helpers drop malformed records.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Optional

from staffcal.domain.calendar_util import as_date, to_date_key
from staffcal.domain.models import (
    DailyOverrideEntry,
    DayScheduleDocument,
    Person,
    RecurringRule,
    RuleFrequency,
)

logger = logging.getLogger(__name__)


class MalformedRecordError(ValueError):
    """A store record is missing required fields or has unusable values."""


def _text(value: Any) -> Optional[str]:
    """Non-empty string or None."""
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def _optional_date(record: Mapping, key: str) -> Optional[date]:
    value = record.get(key)
    if value is None or value == "":
        return None
    try:
        return as_date(value)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"{key} is not a date: {value!r}")


def _require_mapping(record: Any) -> Mapping:
    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"expected a mapping, got {type(record).__name__}")
    return record


def _parse_days(value: Any) -> frozenset[int]:
    if value is None:
        raise MalformedRecordError("days is missing")
    raw = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    days = set()
    for day in raw:
        if isinstance(day, float) and day.is_integer():
            day = int(day)
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise MalformedRecordError(f"invalid weekday {day!r} in days")
        days.add(day)
    if not days:
        raise MalformedRecordError("days is empty")
    return frozenset(days)


def _parse_week_anchor(value: Any, frequency: RuleFrequency) -> int:
    if value is None or value == "":
        # Only every-other-week rules read the anchor.
        if frequency == RuleFrequency.EVERY_OTHER_WEEK:
            raise MalformedRecordError("every-other-week rule has no weekAnchor")
        return 0
    if isinstance(value, bool):
        raise MalformedRecordError(f"weekAnchor is not a number: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"weekAnchor is not a number: {value!r}")


def parse_person_record(record: Any) -> Person:
    """Build a Person from a roster record.

    Raises:
        MalformedRecordError: If the record has no ID.
    """
    record = _require_mapping(record)
    person_id = _text(record.get("id"))
    if person_id is None:
        raise MalformedRecordError("person has no id")
    return Person(
        id=person_id,
        name=_text(record.get("name")) or "",
        zone_name=_text(record.get("zoneName", record.get("zone"))) or "",
        end_date=_optional_date(record, "endDate"),
        in_training=bool(record.get("inTraining", False)),
        training_end_date=_optional_date(record, "trainingEndDate"),
    )


def parse_rule_record(record: Any) -> RecurringRule:
    """Build a RecurringRule from a rule record.

    Raises:
        MalformedRecordError: If required fields are missing or invalid.
    """
    record = _require_mapping(record)
    technician_id = _text(record.get("technicianId"))
    if technician_id is None:
        raise MalformedRecordError("rule has no technicianId")

    frequency = RuleFrequency.parse(record.get("frequency"))
    if frequency is None:
        raise MalformedRecordError(f"unknown frequency {record.get('frequency')!r}")

    start_date = _optional_date(record, "startDate")
    end_date = _optional_date(record, "endDate")

    return RecurringRule(
        technician_id=technician_id,
        days=_parse_days(record.get("days")),
        frequency=frequency,
        week_anchor=_parse_week_anchor(record.get("weekAnchor"), frequency),
        start_date=start_date,
        end_date=end_date,
        status=_text(record.get("status")),
        hours=_text(record.get("hours")),
        rule_id=_text(record.get("id")),
    )


def parse_override_entry(record: Any) -> DailyOverrideEntry:
    """Build a DailyOverrideEntry, folding the legacy ``id`` field.

    Raises:
        MalformedRecordError: If neither ``technicianId`` nor ``id`` is set.
    """
    record = _require_mapping(record)
    technician_id = _text(record.get("technicianId")) or _text(record.get("id"))
    if technician_id is None:
        raise MalformedRecordError("override entry has no technicianId or id")
    return DailyOverrideEntry(
        technician_id=technician_id,
        status=_text(record.get("status")),
        hours=_text(record.get("hours")),
    )


def parse_day_document(
    record: Any,
    date_key: Optional[str] = None,
) -> DayScheduleDocument:
    """Build a DayScheduleDocument from a day schedule record.

    Malformed staff entries are dropped; the rest of the document is kept.

    Args:
        record: The stored document.
        date_key: Date key to use when the record has no ``date`` field
            (e.g. when the store keys documents by date).

    Raises:
        MalformedRecordError: If the document has no usable date.
    """
    record = _require_mapping(record)
    raw_date = record.get("date")
    if raw_date is None or raw_date == "":
        if date_key is None:
            raise MalformedRecordError("day schedule has no date")
        raw_date = date_key
    try:
        key = to_date_key(raw_date)
    except (TypeError, ValueError):
        raise MalformedRecordError(f"day schedule date is not a date: {raw_date!r}")

    raw_staff = record.get("staffList", record.get("staff")) or []
    if not isinstance(raw_staff, (list, tuple)):
        raise MalformedRecordError(f"staffList for {key} is not a list")
    entries = []
    for raw_entry in raw_staff:
        entry = override_entry_from_record(raw_entry, context=key)
        if entry is not None:
            entries.append(entry)

    return DayScheduleDocument(
        date_key=key,
        notes=_text(record.get("notes")) or "",
        staff_list=tuple(entries),
    )


def person_from_record(record: Any) -> Optional[Person]:
    """Lenient form of parse_person_record."""
    try:
        return parse_person_record(record)
    except MalformedRecordError as e:
        logger.debug("Skipping roster record: %s", e)
        return None


def rule_from_record(record: Any) -> Optional[RecurringRule]:
    """Lenient form of parse_rule_record."""
    try:
        return parse_rule_record(record)
    except MalformedRecordError as e:
        rule_id = record.get("id") if isinstance(record, Mapping) else None
        logger.debug("Skipping rule %s: %s", rule_id or "<no id>", e)
        return None


def override_entry_from_record(
    record: Any,
    context: str = "",
) -> Optional[DailyOverrideEntry]:
    """Lenient form of parse_override_entry."""
    try:
        return parse_override_entry(record)
    except MalformedRecordError as e:
        logger.debug("Skipping override entry %s: %s", context, e)
        return None


def day_document_from_record(
    record: Any,
    date_key: Optional[str] = None,
) -> Optional[DayScheduleDocument]:
    """Lenient form of parse_day_document."""
    try:
        return parse_day_document(record, date_key)
    except MalformedRecordError as e:
        logger.debug("Skipping day schedule %s: %s", date_key or "", e)
        return None


def load_people(records: Iterable[Any]) -> list[Person]:
    """Normalize roster records, dropping malformed ones."""
    return [p for p in (person_from_record(r) for r in records) if p is not None]


def load_rules(records: Iterable[Any]) -> list[RecurringRule]:
    """Normalize rule records in stored order, dropping malformed ones."""
    return [r for r in (rule_from_record(rec) for rec in records) if r is not None]


def load_day_documents(records: Iterable[Any]) -> list[DayScheduleDocument]:
    """Normalize day schedule records, dropping malformed ones."""
    return [
        d for d in (day_document_from_record(rec) for rec in records) if d is not None
    ]
