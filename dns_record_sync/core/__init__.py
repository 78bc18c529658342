"""
Core record sync functionality.

This package contains the record model, the reconciliation engine, alert
rules and the sync manager that ties providers and the local store together.
"""

from .records import CanonicalRecord, LocalRecord, RecordValue
from .changes import ChangeEntry, ChangeType
from .reconciler import DuplicateRemoteIdError, changed_fields, reconcile, values_equal
from .alerts import AlertManager, AlertRule
from .monitor import DNSChecker, DNSCheckResult, MonitorManager, MonitorTask
from .sync_manager import SyncManager, SyncResult

__all__ = [
    "AlertManager",
    "AlertRule",
    "CanonicalRecord",
    "ChangeEntry",
    "ChangeType",
    "DNSCheckResult",
    "DNSChecker",
    "DuplicateRemoteIdError",
    "LocalRecord",
    "MonitorManager",
    "MonitorTask",
    "RecordValue",
    "SyncManager",
    "SyncResult",
    "changed_fields",
    "reconcile",
    "values_equal",
]
