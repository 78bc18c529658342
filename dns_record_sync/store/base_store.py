"""
Base local store interface.

The local store persists the last-synced copy of every record and the
history of detected changes. Concrete stores implement row access;
applying a change-set and querying history are shared here.
"""

import logging
import math
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..core.changes import ChangeEntry, ChangeType
from ..core.records import LocalRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeHistoryEntry:
    """A change-set entry persisted under a sync batch."""

    id: str
    domain_id: str
    sync_batch_id: str
    entry: ChangeEntry
    created_at: datetime = field(default_factory=datetime.now)
    user_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "domain_id": self.domain_id,
            "sync_batch_id": self.sync_batch_id,
            "created_at": self.created_at.isoformat(),
            "user_id": self.user_id,
            "entry": self.entry.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ChangeHistoryEntry":
        return cls(
            id=data["id"],
            domain_id=data["domain_id"],
            sync_batch_id=data["sync_batch_id"],
            entry=ChangeEntry.from_dict(data["entry"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            user_id=data.get("user_id"),
        )


@dataclass
class ChangePage:
    """One page of change history, newest first."""

    changes: List[ChangeHistoryEntry]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class LocalStore(ABC):
    """Abstract base class for local record stores."""

    @abstractmethod
    def list_records(self, domain_id: str) -> List[LocalRecord]:
        """Get a consistent copy of all local records of a domain."""
        pass

    @abstractmethod
    def get_record(self, local_id: str) -> Optional[LocalRecord]:
        """Get a local record by its internal identifier."""
        pass

    @abstractmethod
    def insert_record(self, record: LocalRecord) -> None:
        """Insert a new local record."""
        pass

    @abstractmethod
    def update_record(self, record: LocalRecord) -> None:
        """Replace the local record with the same internal identifier."""
        pass

    @abstractmethod
    def delete_record(self, local_id: str) -> None:
        """Delete a local record."""
        pass

    @abstractmethod
    def add_change_history(self, entries: Iterable[ChangeHistoryEntry]) -> None:
        """Append change history entries."""
        pass

    @abstractmethod
    def all_changes(self) -> List[ChangeHistoryEntry]:
        """Get every stored change history entry."""
        pass

    def apply_changes(
        self,
        domain_id: str,
        changes: Iterable[ChangeEntry],
        synced_at: Optional[datetime] = None,
        history: Optional[Iterable[ChangeHistoryEntry]] = None,
    ) -> int:
        """
        Apply a change-set so the local records mirror the remote snapshot.

        Every row named by a modified or deleted entry is checked before
        anything is written. If a write still fails, the rows already
        touched are restored and the error is re-raised, so either the
        whole batch and its history land or nothing does.

        Args:
            domain_id: Domain the change-set was computed for
            changes: Entries returned by ``reconcile``
            synced_at: Sync timestamp stored on touched rows
            history: Change history entries recorded with the batch

        Returns:
            Number of local rows inserted, updated or deleted

        Raises:
            KeyError: If a row named by the change-set does not exist
        """
        changes = list(changes)
        synced_at = synced_at or datetime.now()

        existing_rows = {}
        for change in changes:
            if change.change_type is ChangeType.ADDED:
                continue
            existing = self.get_record(change.local_record_id)
            if existing is None or existing.domain_id != domain_id:
                raise KeyError(f"Local record {change.local_record_id} not found")
            existing_rows[change.local_record_id] = existing

        undo = []
        try:
            for change in changes:
                if change.change_type is ChangeType.ADDED:
                    record = _record_from_change(uuid.uuid4().hex, domain_id, change, synced_at)
                    self.insert_record(record)
                    undo.append((self.delete_record, record.local_id))
                elif change.change_type is ChangeType.MODIFIED:
                    existing = existing_rows[change.local_record_id]
                    self.update_record(
                        _record_from_change(
                            existing.local_id, domain_id, change, synced_at, existing.extra
                        )
                    )
                    undo.append((self.update_record, existing))
                else:
                    existing = existing_rows[change.local_record_id]
                    self.delete_record(existing.local_id)
                    undo.append((self.insert_record, existing))

            if history is not None:
                self.add_change_history(list(history))
        except Exception:
            logger.error(f"Applying changes to {domain_id} failed, restoring {len(undo)} rows")
            for step, argument in reversed(undo):
                step(argument)
            raise

        logger.info(f"Applied {len(changes)} changes to local records of {domain_id}")
        return len(changes)

    def list_changes(
        self,
        domain_id: Optional[str] = None,
        change_type: Optional[ChangeType] = None,
        days: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> ChangePage:
        """Filter and paginate change history, newest first."""
        changes = self.all_changes()

        if domain_id:
            changes = [c for c in changes if c.domain_id == domain_id]
        if change_type:
            change_type = ChangeType(change_type)
            changes = [c for c in changes if c.entry.change_type is change_type]
        if days:
            since = datetime.now() - timedelta(days=days)
            changes = [c for c in changes if c.created_at >= since]
        if search:
            needle = search.lower()
            changes = [
                c
                for c in changes
                if needle in c.entry.record_name.lower()
                or needle in c.entry.record_type.lower()
            ]

        changes.sort(key=lambda c: c.created_at, reverse=True)
        page = max(page, 1)
        offset = (page - 1) * limit
        return ChangePage(
            changes=changes[offset:offset + limit],
            page=page,
            limit=limit,
            total=len(changes),
        )

    def get_change_stats(self, days: int = 7) -> Dict[str, int]:
        """Count stored changes per type over the last ``days`` days."""
        since = datetime.now() - timedelta(days=days)
        stats = {"total": 0, "added": 0, "modified": 0, "deleted": 0}
        for change in self.all_changes():
            if change.created_at >= since:
                stats["total"] += 1
                stats[change.entry.change_type.value] += 1
        return stats


def _record_from_change(
    local_id: str,
    domain_id: str,
    change: ChangeEntry,
    synced_at: datetime,
    extra: Optional[Dict] = None,
) -> LocalRecord:
    value = change.current_value
    return LocalRecord(
        local_id=local_id,
        remote_id=change.remote_id,
        type=change.record_type,
        name=change.record_name,
        content=value.content,
        ttl=value.ttl,
        priority=value.priority,
        proxied=value.proxied,
        domain_id=domain_id,
        synced_at=synced_at,
        extra=extra,
    )
