"""In-memory stores.

Used for dry runs (nothing is written anywhere durable) and as test doubles.
"""

from datetime import datetime
from typing import Dict, Iterable, List

from jobmatch.domain.models import MatchRecord, NotificationHistoryEntry

from .base import HistoryStore, MatchStore, Pair


class InMemoryHistoryStore(HistoryStore):
    """History held in a list; preserves append order."""

    def __init__(self, entries: Iterable[NotificationHistoryEntry] = ()):
        self.entries: List[NotificationHistoryEntry] = list(entries)

    def last_sent_for(self, pairs: Iterable[Pair]) -> Dict[Pair, datetime]:
        wanted = set(pairs)
        last_sent: Dict[Pair, datetime] = {}
        for entry in self.entries:
            key = (entry.user_id, entry.job_id)
            if key in wanted and (key not in last_sent or entry.sent_at > last_sent[key]):
                last_sent[key] = entry.sent_at
        return last_sent

    def append(self, entries: Iterable[NotificationHistoryEntry]) -> int:
        entries = list(entries)
        self.entries.extend(entries)
        return len(entries)


class InMemoryMatchStore(MatchStore):
    """Match records keyed by (user_id, job_id)."""

    def __init__(self):
        self.records: Dict[Pair, MatchRecord] = {}

    def upsert(self, record: MatchRecord) -> None:
        self.records[(record.user_id, record.job_id)] = record
