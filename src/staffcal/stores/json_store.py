"""JSON file data source.

Loads a single JSON file of the form::

    {
        "roster": [{"id": "p1", "name": "Ana Diaz", "zoneName": "North"}],
        "rules": [{"technicianId": "p1", "days": [5], "frequency": "weekly",
                   "status": "Off"}],
        "schedules": [{"date": "2024-02-07", "notes": "",
                       "staffList": [{"technicianId": "p1", "status": "Vacation"}]}]
    }

and exposes it through the in-memory collaborators. The raw records are
kept so they can be checked with the rule set validator.
"""

import json
from pathlib import Path
from typing import Any, Union

from staffcal.stores.memory import (
    InMemoryOverrideStore,
    InMemoryRosterProvider,
    InMemoryRuleStore,
)
from staffcal.stores.records import load_day_documents, load_people, load_rules


class JsonDataSource:
    """Roster, rules and day schedules loaded from JSON data.

    Attributes:
        roster: Roster provider over the normalized people.
        rules: Rule store over the normalized rules.
        overrides: Override store over the normalized day schedules.
        raw: The data as loaded, before normalization.
    """

    def __init__(self, data: dict[str, Any]):
        self.raw = data
        self.roster = InMemoryRosterProvider(load_people(data.get("roster", [])))
        self.rules = InMemoryRuleStore(load_rules(data.get("rules", [])))
        self.overrides = InMemoryOverrideStore(
            load_day_documents(data.get("schedules", []))
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "JsonDataSource":
        """Load a data file.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not valid JSON or not an object.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object at the top level")
        return cls(data)

    @property
    def raw_roster(self) -> list:
        return list(self.raw.get("roster", []))

    @property
    def raw_rules(self) -> list:
        return list(self.raw.get("rules", []))

    @property
    def raw_schedules(self) -> list:
        return list(self.raw.get("schedules", []))
