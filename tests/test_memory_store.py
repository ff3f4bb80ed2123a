"""Tests for in-memory and JSON collaborators."""

import json
from datetime import date

import pytest

from staffcal.domain.models import DailyOverrideEntry, DayScheduleDocument, Person, RecurringRule
from staffcal.stores.json_store import JsonDataSource
from staffcal.stores.memory import (
    InMemoryOverrideStore,
    InMemoryRosterProvider,
    InMemoryRuleStore,
)


def _doc(key: str, notes: str = "") -> DayScheduleDocument:
    return DayScheduleDocument(date_key=key, notes=notes)


class TestInMemoryRosterAndRules:
    """Tests for roster and rule stores."""

    def test_roster_get_all_returns_copy(self):
        provider = InMemoryRosterProvider([Person(id="p1", name="A")])
        people = provider.get_all()
        people.clear()
        assert len(provider.get_all()) == 1

    def test_roster_replace_all(self):
        provider = InMemoryRosterProvider([Person(id="p1", name="A")])
        provider.replace_all([Person(id="p2", name="B")])
        assert [p.id for p in provider.get_all()] == ["p2"]

    def test_rules_filtered_by_roster_in_order(self):
        store = InMemoryRuleStore(
            [
                RecurringRule("p1", frozenset({1}), rule_id="a"),
                RecurringRule("p2", frozenset({1}), rule_id="b"),
                RecurringRule("p1", frozenset({2}), rule_id="c"),
            ]
        )
        assert [r.rule_id for r in store.get_all_for_roster(["p1"])] == ["a", "c"]

    def test_rules_add(self):
        store = InMemoryRuleStore()
        store.add(RecurringRule("p1", frozenset({1})))
        assert len(store.get_all_for_roster(["p1"])) == 1


class TestInMemoryOverrideStore:
    """Tests for override documents and range subscriptions."""

    @pytest.fixture
    def store(self):
        return InMemoryOverrideStore(
            [_doc("2024-02-05"), _doc("2024-02-07"), _doc("2024-02-20")]
        )

    def test_get_range_inclusive_and_sorted(self, store):
        docs = store.get_range(date(2024, 2, 5), date(2024, 2, 7))
        assert [d.date_key for d in docs] == ["2024-02-05", "2024-02-07"]

    def test_get(self, store):
        assert store.get(date(2024, 2, 7)).date_key == "2024-02-07"
        assert store.get(date(2024, 2, 8)) is None

    def test_first_document_per_date_kept_on_load(self):
        store = InMemoryOverrideStore([_doc("2024-02-07", "a"), _doc("2024-02-07", "b")])
        assert store.get(date(2024, 2, 7)).notes == "a"

    def test_put_notifies_subscribers_in_range(self, store):
        received = []
        store.subscribe_range(date(2024, 2, 4), date(2024, 2, 10), received.append)

        store.put(
            DayScheduleDocument(
                date_key="2024-02-08",
                staff_list=(DailyOverrideEntry("p1", status="Sick"),),
            )
        )

        assert len(received) == 1
        assert [d.date_key for d in received[0]] == ["2024-02-05", "2024-02-07", "2024-02-08"]

    def test_put_outside_range_does_not_notify(self, store):
        received = []
        store.subscribe_range(date(2024, 2, 4), date(2024, 2, 10), received.append)
        store.put(_doc("2024-02-21"))
        assert received == []

    def test_remove_notifies(self, store):
        received = []
        store.subscribe_range(date(2024, 2, 4), date(2024, 2, 10), received.append)
        store.remove(date(2024, 2, 7))
        assert [d.date_key for d in received[0]] == ["2024-02-05"]

    def test_remove_missing_is_silent(self, store):
        received = []
        store.subscribe_range(date(2024, 2, 4), date(2024, 2, 10), received.append)
        store.remove(date(2024, 2, 8))
        assert received == []

    def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe_range(
            date(2024, 2, 4), date(2024, 2, 10), received.append
        )
        assert store.subscription_count == 1
        unsubscribe()
        assert store.subscription_count == 0
        store.put(_doc("2024-02-08"))
        assert received == []

    def test_unsubscribe_twice_is_harmless(self, store):
        unsubscribe = store.subscribe_range(date(2024, 2, 4), date(2024, 2, 10), print)
        unsubscribe()
        unsubscribe()
        assert store.subscription_count == 0


class TestJsonDataSource:
    """Tests for the JSON file data source."""

    @pytest.fixture
    def data(self):
        return {
            "roster": [{"id": "p1", "name": "Ana"}, {"name": "no id"}],
            "rules": [
                {"technicianId": "p1", "days": [5], "frequency": "every-other", "weekAnchor": 1},
                {"technicianId": "p1"},
            ],
            "schedules": [
                {"date": "2024-02-07", "staffList": [{"id": "p1", "status": "off"}]}
            ],
        }

    def test_normalizes_records(self, data):
        source = JsonDataSource(data)
        assert [p.id for p in source.roster.get_all()] == ["p1"]
        assert len(source.rules.get_all_for_roster(["p1"])) == 1
        document = source.overrides.get(date(2024, 2, 7))
        assert document.staff_list[0].technician_id == "p1"

    def test_raw_records_kept(self, data):
        source = JsonDataSource(data)
        assert len(source.raw_rules) == 2
        assert len(source.raw_roster) == 2
        assert len(source.raw_schedules) == 1

    def test_from_file(self, data, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        source = JsonDataSource.from_file(path)
        assert [p.id for p in source.roster.get_all()] == ["p1"]

    def test_from_file_rejects_non_object(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            JsonDataSource.from_file(path)

    def test_from_file_invalid_json(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            JsonDataSource.from_file(path)

    def test_empty_data(self):
        source = JsonDataSource({})
        assert source.roster.get_all() == []
        assert source.raw_rules == []
