"""Data collaborators: store interfaces, record normalization, implementations."""

from staffcal.stores.json_store import JsonDataSource
from staffcal.stores.memory import (
    InMemoryOverrideStore,
    InMemoryRosterProvider,
    InMemoryRuleStore,
)
from staffcal.stores.providers import OverrideStore, RosterProvider, RuleStore
from staffcal.stores.records import (
    MalformedRecordError,
    load_day_documents,
    load_people,
    load_rules,
)

__all__ = [
    "RosterProvider",
    "RuleStore",
    "OverrideStore",
    "InMemoryRosterProvider",
    "InMemoryRuleStore",
    "InMemoryOverrideStore",
    "JsonDataSource",
    "MalformedRecordError",
    "load_day_documents",
    "load_people",
    "load_rules",
]
