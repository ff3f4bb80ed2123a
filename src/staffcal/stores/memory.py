"""In-memory collaborators.

Thread-safe stores holding already-normalized models. Used by the CLI,
by tests, and by applications that load their data elsewhere and hand
the engine a snapshot.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Optional

from staffcal.domain.calendar_util import as_date
from staffcal.domain.models import DayScheduleDocument, Person, RecurringRule
from staffcal.stores.providers import (
    OverrideListener,
    OverrideStore,
    RosterProvider,
    RuleStore,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class InMemoryRosterProvider(RosterProvider):
    """Roster held in a list."""

    def __init__(self, people: Iterable[Person] = ()):
        self.lock = threading.Lock()
        self._people = list(people)

    def get_all(self) -> list[Person]:
        with self.lock:
            return list(self._people)

    def replace_all(self, people: Iterable[Person]) -> None:
        with self.lock:
            self._people = list(people)


class InMemoryRuleStore(RuleStore):
    """Rules held in a list, in insertion order."""

    def __init__(self, rules: Iterable[RecurringRule] = ()):
        self.lock = threading.Lock()
        self._rules = list(rules)

    def get_all_for_roster(self, person_ids: Iterable[str]) -> list[RecurringRule]:
        wanted = set(person_ids)
        with self.lock:
            return [rule for rule in self._rules if rule.technician_id in wanted]

    def add(self, rule: RecurringRule) -> None:
        with self.lock:
            self._rules.append(rule)


@dataclass
class _Subscription:
    start: date
    end: date
    on_change: OverrideListener

    def covers(self, d: date) -> bool:
        return self.start <= d <= self.end


class InMemoryOverrideStore(OverrideStore):
    """Day schedule documents keyed by date, with range subscriptions.

    Subscribers are notified synchronously, outside the store lock, after
    a document in their range is stored or removed.
    """

    def __init__(self, documents: Iterable[DayScheduleDocument] = ()):
        self.lock = threading.Lock()
        self._documents: dict[date, DayScheduleDocument] = {}
        self._subscriptions: dict[int, _Subscription] = {}
        self._next_subscription_id = 1
        for document in documents:
            self._documents.setdefault(as_date(document.date_key), document)

    def get_range(self, start: date, end: date) -> list[DayScheduleDocument]:
        with self.lock:
            return self._range_locked(start, end)

    def get(self, d: date) -> Optional[DayScheduleDocument]:
        with self.lock:
            return self._documents.get(d)

    def put(self, document: DayScheduleDocument) -> None:
        """Store or replace the document for its date and notify watchers."""
        d = as_date(document.date_key)
        with self.lock:
            self._documents[d] = document
        self._notify(d)

    def remove(self, d: date) -> None:
        """Delete the document for a date, if any, and notify watchers."""
        with self.lock:
            removed = self._documents.pop(d, None)
        if removed is not None:
            self._notify(d)

    def subscribe_range(
        self,
        start: date,
        end: date,
        on_change: OverrideListener,
    ) -> Unsubscribe:
        with self.lock:
            subscription_id = self._next_subscription_id
            self._next_subscription_id += 1
            self._subscriptions[subscription_id] = _Subscription(start, end, on_change)
        logger.debug("Subscribed %d to overrides %s..%s", subscription_id, start, end)

        def unsubscribe() -> None:
            with self.lock:
                self._subscriptions.pop(subscription_id, None)
            logger.debug("Unsubscribed %d", subscription_id)

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        with self.lock:
            return len(self._subscriptions)

    def _range_locked(self, start: date, end: date) -> list[DayScheduleDocument]:
        return [
            self._documents[d]
            for d in sorted(self._documents)
            if start <= d <= end
        ]

    def _notify(self, d: date) -> None:
        with self.lock:
            pending = [
                (sub, self._range_locked(sub.start, sub.end))
                for sub in self._subscriptions.values()
                if sub.covers(d)
            ]
        for subscription, documents in pending:
            subscription.on_change(documents)
