"""
Record Model - Canonical representation of DNS records

This module defines the provider-agnostic record shapes shared by the
provider adapters, the local store and the reconciliation engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union

# Mutable fields compared by the reconciliation engine, in reporting order.
TRACKED_FIELDS = ("content", "ttl", "priority", "proxied")


def normalize_priority(priority: Optional[int]) -> Optional[int]:
    """Map a missing priority to the canonical "not applicable" value (None).

    A numeric zero is a real priority and is kept as is.
    """
    if priority is None or priority == "":
        return None
    return int(priority)


def normalize_proxied(proxied: Optional[bool]) -> bool:
    """Map a missing proxied flag to False."""
    return bool(proxied) if proxied is not None else False


@dataclass(frozen=True)
class CanonicalRecord:
    """A DNS record as reported by a provider."""

    remote_id: str
    type: str
    name: str
    content: str
    ttl: int
    priority: Optional[int] = None
    proxied: Optional[bool] = None
    extra: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    @property
    def value(self) -> "RecordValue":
        return RecordValue.from_record(self)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.remote_id,
            "type": self.type,
            "name": self.name,
            "content": self.content,
            "ttl": self.ttl,
            "priority": self.priority,
            "proxied": self.proxied,
        }
        if self.extra:
            data["extra"] = dict(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalRecord":
        """Build a record from a provider payload.

        Accepts either ``id`` or ``remote_id`` for the provider identifier.
        Optional fields that are missing stay missing; normalization happens
        at comparison time.
        """
        remote_id = data.get("id", data.get("remote_id"))
        if remote_id is None:
            raise ValueError(f"Record is missing its remote identifier: {data}")

        return cls(
            remote_id=str(remote_id),
            type=str(data["type"]),
            name=str(data["name"]),
            content=str(data["content"]),
            ttl=int(data["ttl"]),
            priority=normalize_priority(data.get("priority")),
            proxied=_optional_bool(data.get("proxied")),
            extra=data.get("extra"),
        )


@dataclass(frozen=True)
class LocalRecord:
    """The last-synced copy of a record held by the local store."""

    local_id: str
    remote_id: str
    type: str
    name: str
    content: str
    ttl: int
    priority: Optional[int] = None
    proxied: Optional[bool] = False
    domain_id: str = ""
    synced_at: Optional[datetime] = None
    extra: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    @property
    def value(self) -> "RecordValue":
        return RecordValue.from_record(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.local_id,
            "remote_id": self.remote_id,
            "domain_id": self.domain_id,
            "type": self.type,
            "name": self.name,
            "content": self.content,
            "ttl": self.ttl,
            "priority": self.priority,
            "proxied": self.proxied,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
            "extra": dict(self.extra) if self.extra else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalRecord":
        synced_at = data.get("synced_at")
        if isinstance(synced_at, str):
            synced_at = datetime.fromisoformat(synced_at)

        return cls(
            local_id=str(data.get("id") or data.get("local_id") or ""),
            remote_id=str(data.get("remote_id") or ""),
            type=str(data["type"]),
            name=str(data["name"]),
            content=str(data["content"]),
            ttl=int(data["ttl"]),
            priority=normalize_priority(data.get("priority")),
            proxied=_optional_bool(data.get("proxied")),
            domain_id=str(data.get("domain_id") or ""),
            synced_at=synced_at,
            extra=data.get("extra"),
        )


AnyRecord = Union[CanonicalRecord, LocalRecord]


@dataclass(frozen=True)
class RecordValue:
    """Normalized snapshot of the four mutable record fields."""

    content: str
    ttl: int
    priority: Optional[int] = None
    proxied: bool = False

    @classmethod
    def from_record(cls, record: AnyRecord) -> "RecordValue":
        return cls(
            content=record.content,
            ttl=record.ttl,
            priority=normalize_priority(record.priority),
            proxied=normalize_proxied(record.proxied),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "ttl": self.ttl,
            "priority": self.priority,
            "proxied": self.proxied,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordValue":
        return cls(
            content=str(data["content"]),
            ttl=int(data["ttl"]),
            priority=normalize_priority(data.get("priority")),
            proxied=normalize_proxied(_optional_bool(data.get("proxied"))),
        )


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
