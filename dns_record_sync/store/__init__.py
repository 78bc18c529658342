"""
Local record stores.

This package contains the local store interface and its in-memory and
JSON file implementations.
"""

import logging
from typing import Dict, Optional

from .base_store import ChangeHistoryEntry, ChangePage, LocalStore
from .json_store import JSONFileStore
from .memory_store import MemoryStore

logger = logging.getLogger(__name__)


def create_store(config: Optional[Dict] = None) -> LocalStore:
    """Create the local store described by the ``store`` config section."""
    config = config or {}
    store_type = config.get("type", "memory")

    if store_type == "json":
        return JSONFileStore(config.get("path", "data/state.json"))
    if store_type != "memory":
        logger.warning(f"Unknown store type '{store_type}', using memory store")
    return MemoryStore()


__all__ = [
    "ChangeHistoryEntry",
    "ChangePage",
    "JSONFileStore",
    "LocalStore",
    "MemoryStore",
    "create_store",
]
