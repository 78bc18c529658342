"""
Reconciler - Change detection between local and remote DNS records

This module compares the last-synced local snapshot of a domain against a
freshly fetched provider snapshot and produces an ordered change-set.
Records are matched by remote identifier only; equality is decided on the
four mutable fields (content, ttl, priority, proxied) after normalization.

``reconcile`` is a pure function: it performs no I/O, keeps no state and
never mutates its inputs, so it can be called concurrently from several
sync drivers.
"""

import logging
from typing import Dict, Iterable, List, Sequence, TypeVar

from .changes import ChangeEntry, ChangeType
from .records import TRACKED_FIELDS, AnyRecord, CanonicalRecord, LocalRecord, RecordValue

logger = logging.getLogger(__name__)

R = TypeVar("R", CanonicalRecord, LocalRecord)


class DuplicateRemoteIdError(ValueError):
    """Raised when one snapshot holds the same remote identifier twice."""

    def __init__(self, remote_id: str, side: str):
        self.remote_id = remote_id
        self.side = side
        super().__init__(f"Duplicate remote id '{remote_id}' in {side} records")


def values_equal(local: AnyRecord, remote: AnyRecord) -> bool:
    """Check whether two records carry the same normalized values."""
    return RecordValue.from_record(local) == RecordValue.from_record(remote)


def changed_fields(local: AnyRecord, remote: AnyRecord) -> List[str]:
    """
    Get the fields that differ between a local and a remote record.

    Each field is compared independently with the same normalization used
    by ``values_equal``. The result follows the fixed order
    content, ttl, priority, proxied.
    """
    before = RecordValue.from_record(local)
    after = RecordValue.from_record(remote)
    return [name for name in TRACKED_FIELDS if getattr(before, name) != getattr(after, name)]


def index_by_remote_id(records: Sequence[R], side: str) -> Dict[str, R]:
    """Index records by remote identifier, rejecting duplicates."""
    index: Dict[str, R] = {}
    for record in records:
        if record.remote_id in index:
            raise DuplicateRemoteIdError(record.remote_id, side)
        index[record.remote_id] = record
    return index


def reconcile(
    local_records: Iterable[LocalRecord], remote_records: Iterable[CanonicalRecord]
) -> List[ChangeEntry]:
    """
    Detect record changes between local and remote snapshots.

    Args:
        local_records: Last-synced records from the local store
        remote_records: Records freshly listed from the provider

    Returns:
        Ordered change-set. Added and modified entries come first, in remote
        iteration order, followed by deleted entries in local iteration order.
        Unchanged records are not reported.

    Raises:
        DuplicateRemoteIdError: If either snapshot repeats a remote id.
    """
    local_list = list(local_records)
    remote_list = list(remote_records)

    local_index = index_by_remote_id(local_list, "local")
    remote_index = index_by_remote_id(remote_list, "remote")

    changes: List[ChangeEntry] = []

    for remote in remote_list:
        local = local_index.get(remote.remote_id)

        if local is None:
            changes.append(
                ChangeEntry(
                    change_type=ChangeType.ADDED,
                    remote_id=remote.remote_id,
                    record_type=remote.type,
                    record_name=remote.name,
                    current_value=RecordValue.from_record(remote),
                )
            )
        elif not values_equal(local, remote):
            changes.append(
                ChangeEntry(
                    change_type=ChangeType.MODIFIED,
                    remote_id=remote.remote_id,
                    record_type=remote.type,
                    record_name=remote.name,
                    previous_value=RecordValue.from_record(local),
                    current_value=RecordValue.from_record(remote),
                    changed_fields=tuple(changed_fields(local, remote)),
                    local_record_id=local.local_id,
                )
            )

    for local in local_list:
        if local.remote_id not in remote_index:
            changes.append(
                ChangeEntry(
                    change_type=ChangeType.DELETED,
                    remote_id=local.remote_id,
                    record_type=local.type,
                    record_name=local.name,
                    previous_value=RecordValue.from_record(local),
                    local_record_id=local.local_id,
                )
            )

    logger.debug(
        f"Reconciled {len(local_list)} local against {len(remote_list)} remote records: "
        f"{len(changes)} changes"
    )
    return changes
