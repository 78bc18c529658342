"""
Change-set types - Typed divergences between local and remote records

A change-set is the ordered list of ChangeEntry values produced by one
reconciliation call. Entries are transient; callers decide whether to
persist them.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .records import RecordValue


class ChangeType(str, Enum):
    """Kind of divergence detected for one record."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEntry:
    """One detected divergence between the local and remote snapshots."""

    change_type: ChangeType
    remote_id: str
    record_type: str
    record_name: str
    previous_value: Optional[RecordValue] = None
    current_value: Optional[RecordValue] = None
    changed_fields: Optional[Tuple[str, ...]] = None
    local_record_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "remote_id": self.remote_id,
            "record_type": self.record_type,
            "record_name": self.record_name,
            "previous_value": self.previous_value.to_dict() if self.previous_value else None,
            "current_value": self.current_value.to_dict() if self.current_value else None,
            "changed_fields": list(self.changed_fields) if self.changed_fields is not None else None,
            "local_record_id": self.local_record_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangeEntry":
        previous = data.get("previous_value")
        current = data.get("current_value")
        fields = data.get("changed_fields")

        return cls(
            change_type=ChangeType(data["change_type"]),
            remote_id=str(data["remote_id"]),
            record_type=str(data["record_type"]),
            record_name=str(data["record_name"]),
            previous_value=RecordValue.from_dict(previous) if previous else None,
            current_value=RecordValue.from_dict(current) if current else None,
            changed_fields=tuple(fields) if fields is not None else None,
            local_record_id=data.get("local_record_id"),
        )

    def describe(self) -> str:
        """Return a one-line human readable description of the change."""
        label = f"{self.record_type} {self.record_name}"
        if self.change_type is ChangeType.ADDED:
            return f"+ {label} -> {self.current_value.content}"
        if self.change_type is ChangeType.DELETED:
            return f"- {label} ({self.previous_value.content})"

        deltas = []
        for name in self.changed_fields or ():
            before = getattr(self.previous_value, name)
            after = getattr(self.current_value, name)
            deltas.append(f"{name}: {before} -> {after}")
        return f"~ {label} [{', '.join(deltas)}]"


def changes_to_json(changes: Iterable[ChangeEntry], indent: Optional[int] = 2) -> str:
    """Serialize a change-set to JSON, preserving its order."""
    return json.dumps([change.to_dict() for change in changes], indent=indent)


def changes_from_json(text: str) -> List[ChangeEntry]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Change-set JSON must be a list of entries")
    return [ChangeEntry.from_dict(item) for item in data]


def summarize_changes(changes: Iterable[ChangeEntry]) -> Dict[str, int]:
    """Count entries per change type."""
    summary = {change_type.value: 0 for change_type in ChangeType}
    for change in changes:
        summary[change.change_type.value] += 1
    summary["total_changes"] = sum(summary[change_type.value] for change_type in ChangeType)
    return summary
