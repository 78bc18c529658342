"""
DNS Record Sync - Mirror DNS provider records into a local store

Keeps a local copy of the records held by DNS providers, detects what
changed on the provider side between syncs (additions, modifications with
per-field deltas, deletions) and reports those changes to operators.
"""

__version__ = "1.0.0"
__author__ = "DNS Record Sync Team"
__description__ = "Reconcile DNS provider records with a local mirror"

from .core.reconciler import reconcile
from .core.sync_manager import SyncManager
from .providers.dns_client import DNSClient

__all__ = [
    "DNSClient",
    "SyncManager",
    "reconcile",
]
