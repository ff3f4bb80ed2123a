"""Day-specific override lookup.

Override documents are sparse: most dates have none. Both a missing
document and a document without an entry for the person are normal and
simply mean no override applies.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Optional, Union

from staffcal.domain.calendar_util import to_date_key
from staffcal.domain.models import DailyOverrideEntry, DayScheduleDocument


class OverrideSnapshot(Mapping):
    """Immutable date-keyed view over a set of day schedule documents.

    If several documents share a date key, the first one loaded is kept.
    """

    def __init__(self, documents: Iterable[DayScheduleDocument] = ()):
        by_key: dict[str, DayScheduleDocument] = {}
        for document in documents:
            by_key.setdefault(document.date_key, document)
        self._documents = by_key

    def __getitem__(self, key: str) -> DayScheduleDocument:
        return self._documents[key]

    def __iter__(self):
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def document_for(self, d: date) -> Optional[DayScheduleDocument]:
        """Get the document stored for a date, if any."""
        return self._documents.get(to_date_key(d))

    def notes_for(self, d: date) -> str:
        """Get the notes stored for a date ("" when none)."""
        document = self.document_for(d)
        return document.notes if document else ""


OverrideSource = Union[OverrideSnapshot, Mapping[str, DayScheduleDocument]]


class DailyOverrideLookup:
    """Finds a person's override entry for a date."""

    def document_for(
        self,
        store: OverrideSource,
        d: date,
    ) -> Optional[DayScheduleDocument]:
        """Fetch the day's document from a date-keyed store."""
        return store.get(to_date_key(d))

    def lookup(
        self,
        store: OverrideSource,
        d: date,
        person_id: str,
    ) -> Optional[DailyOverrideEntry]:
        """Find the override entry for ``person_id`` on ``d``.

        Args:
            store: Date-keyed day schedule documents.
            d: Date to look up.
            person_id: ID of the person.

        Returns:
            The entry, or None if there is no document or no entry.
        """
        document = self.document_for(store, d)
        if document is None:
            return None
        return document.find_entry(person_id)
