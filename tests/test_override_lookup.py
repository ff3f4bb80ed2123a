"""Tests for day-specific override lookup."""

from datetime import date

import pytest

from staffcal.domain.models import DailyOverrideEntry, DayScheduleDocument
from staffcal.scheduling.override_lookup import DailyOverrideLookup, OverrideSnapshot

WEDNESDAY = date(2024, 2, 7)


@pytest.fixture
def documents():
    return [
        DayScheduleDocument(
            date_key="2024-02-07",
            notes="Inventory",
            staff_list=(
                DailyOverrideEntry("p1", status="Vacation"),
                DailyOverrideEntry("p2", status="Scheduled", hours="9-5"),
            ),
        ),
        DayScheduleDocument(date_key="2024-02-08"),
    ]


class TestOverrideSnapshot:
    """Tests for the date-keyed document view."""

    def test_keyed_by_date(self, documents):
        snapshot = OverrideSnapshot(documents)
        assert set(snapshot) == {"2024-02-07", "2024-02-08"}
        assert len(snapshot) == 2

    def test_document_for(self, documents):
        snapshot = OverrideSnapshot(documents)
        assert snapshot.document_for(WEDNESDAY).notes == "Inventory"
        assert snapshot.document_for(date(2024, 2, 9)) is None

    def test_notes_for(self, documents):
        snapshot = OverrideSnapshot(documents)
        assert snapshot.notes_for(WEDNESDAY) == "Inventory"
        assert snapshot.notes_for(date(2024, 2, 8)) == ""
        assert snapshot.notes_for(date(2024, 2, 9)) == ""

    def test_first_document_per_date_wins(self):
        snapshot = OverrideSnapshot(
            [
                DayScheduleDocument(date_key="2024-02-07", notes="first"),
                DayScheduleDocument(date_key="2024-02-07", notes="second"),
            ]
        )
        assert snapshot.notes_for(WEDNESDAY) == "first"


class TestDailyOverrideLookup:
    """Tests for DailyOverrideLookup."""

    @pytest.fixture
    def lookup(self):
        return DailyOverrideLookup()

    def test_entry_found(self, lookup, documents):
        entry = lookup.lookup(OverrideSnapshot(documents), WEDNESDAY, "p1")
        assert entry.status == "Vacation"

    def test_no_document(self, lookup, documents):
        assert lookup.lookup(OverrideSnapshot(documents), date(2024, 2, 9), "p1") is None

    def test_document_without_entry(self, lookup, documents):
        assert lookup.lookup(OverrideSnapshot(documents), date(2024, 2, 8), "p1") is None

    def test_unknown_person(self, lookup, documents):
        assert lookup.lookup(OverrideSnapshot(documents), WEDNESDAY, "p9") is None

    def test_plain_mapping_store(self, lookup, documents):
        """Any date-keyed mapping works as a store."""
        store = {doc.date_key: doc for doc in documents}
        assert lookup.lookup(store, WEDNESDAY, "p2").hours == "9-5"
