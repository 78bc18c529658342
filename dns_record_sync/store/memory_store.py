"""
In-memory local store.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from .base_store import ChangeHistoryEntry, LocalStore
from ..core.records import LocalRecord

logger = logging.getLogger(__name__)


class MemoryStore(LocalStore):
    """Local store keeping records and change history in memory."""

    def __init__(self, records: Optional[Iterable[LocalRecord]] = None):
        self._lock = threading.Lock()
        self._records: Dict[str, LocalRecord] = {}
        self._changes: List[ChangeHistoryEntry] = []

        for record in records or []:
            self._records[record.local_id] = record

    def list_records(self, domain_id: str) -> List[LocalRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.domain_id == domain_id]

    def get_record(self, local_id: str) -> Optional[LocalRecord]:
        with self._lock:
            return self._records.get(local_id)

    def insert_record(self, record: LocalRecord) -> None:
        with self._lock:
            if record.local_id in self._records:
                raise KeyError(f"Local record {record.local_id} already exists")
            self._records[record.local_id] = record

    def update_record(self, record: LocalRecord) -> None:
        with self._lock:
            if record.local_id not in self._records:
                raise KeyError(f"Local record {record.local_id} not found")
            self._records[record.local_id] = record

    def delete_record(self, local_id: str) -> None:
        with self._lock:
            if self._records.pop(local_id, None) is None:
                raise KeyError(f"Local record {local_id} not found")

    def add_change_history(self, entries: Iterable[ChangeHistoryEntry]) -> None:
        with self._lock:
            self._changes.extend(entries)

    def all_changes(self) -> List[ChangeHistoryEntry]:
        with self._lock:
            return list(self._changes)
