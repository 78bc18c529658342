"""
JSON file local store.

Keeps records and change history in a single JSON document. Every write
goes to a temporary file that then replaces the state file, so a crash
never leaves a half-written state behind. A change-set applied with
``apply_changes`` is written once, together with its history.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .base_store import ChangeHistoryEntry
from .memory_store import MemoryStore
from ..core.changes import ChangeEntry
from ..core.records import LocalRecord

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class JSONFileStore(MemoryStore):
    """Local store persisted to a JSON state file."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self._deferred = False
        self._load()

    def _load(self) -> None:
        state = self._read_state()
        for data in state.get("records", []):
            record = LocalRecord.from_dict(data)
            self._records[record.local_id] = record
        self._changes = [ChangeHistoryEntry.from_dict(c) for c in state.get("changes", [])]
        logger.info(
            f"Loaded {len(self._records)} records and {len(self._changes)} changes from {self.path}"
        )

    def _read_state(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"version": STATE_VERSION, "records": [], "changes": []}
        try:
            return json.loads(self.path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load state file {self.path}: {e}")
            return {"version": STATE_VERSION, "records": [], "changes": []}

    def save(self) -> None:
        with self._lock:
            state = {
                "version": STATE_VERSION,
                "records": [r.to_dict() for r in self._records.values()],
                "changes": [c.to_dict() for c in self._changes],
            }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(state, indent=2, sort_keys=True), "utf-8")
        tmp_path.replace(self.path)

    def _changed(self) -> None:
        if not self._deferred:
            self.save()

    def insert_record(self, record: LocalRecord) -> None:
        super().insert_record(record)
        self._changed()

    def update_record(self, record: LocalRecord) -> None:
        super().update_record(record)
        self._changed()

    def delete_record(self, local_id: str) -> None:
        super().delete_record(local_id)
        self._changed()

    def add_change_history(self, entries: Iterable[ChangeHistoryEntry]) -> None:
        super().add_change_history(entries)
        self._changed()

    def apply_changes(
        self,
        domain_id: str,
        changes: Iterable[ChangeEntry],
        synced_at: Optional[datetime] = None,
        history: Optional[Iterable[ChangeHistoryEntry]] = None,
    ) -> int:
        # A failed batch is restored in memory and never reaches the file
        self._deferred = True
        try:
            applied = super().apply_changes(domain_id, changes, synced_at, history)
        finally:
            self._deferred = False
        self.save()
        return applied
