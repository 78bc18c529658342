"""
Mock DNS provider for testing and demonstration.

This module provides a mock DNS provider that stores records in memory
for safe testing and demonstration purposes.
"""

import logging
import uuid
from typing import Dict, List, Optional

from .base_provider import DNSProvider, DomainNotFoundError, RecordInput, RecordNotFoundError
from ..core.records import CanonicalRecord

logger = logging.getLogger(__name__)


class MockDNSProvider(DNSProvider):
    """Mock DNS provider for testing and demonstration purposes."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize mock provider, seeding records from ``config["domains"]``."""
        config = config or {}
        self.strict = bool(config.get("strict", False))
        self.domains: Dict[str, Dict[str, CanonicalRecord]] = {}

        for domain_id, records in (config.get("domains") or {}).items():
            zone = self.domains.setdefault(domain_id, {})
            for data in records or []:
                record = CanonicalRecord.from_dict(data)
                zone[record.remote_id] = record

        logger.info("Mock DNS provider initialized")

    @property
    def name(self) -> str:
        return "mock"

    def _zone(self, domain_id: str) -> Dict[str, CanonicalRecord]:
        if domain_id not in self.domains:
            if self.strict:
                raise DomainNotFoundError(self.name, domain_id)
            self.domains[domain_id] = {}
        return self.domains[domain_id]

    def list_records(self, domain_id: str) -> List[CanonicalRecord]:
        """Get all DNS records for a domain."""
        records = list(self._zone(domain_id).values())
        logger.info(f"Mock: Retrieved {len(records)} records for {domain_id}")
        return records

    def create_record(self, domain_id: str, record: RecordInput) -> CanonicalRecord:
        """Create a new DNS record."""
        created = CanonicalRecord(
            remote_id=uuid.uuid4().hex,
            type=record.type,
            name=record.name,
            content=record.content,
            ttl=record.ttl,
            priority=record.priority,
            proxied=record.proxied,
        )
        self._zone(domain_id)[created.remote_id] = created
        logger.info(f"Mock: Created record {record.name} -> {record.content}")
        return created

    def update_record(
        self, domain_id: str, remote_id: str, record: RecordInput
    ) -> CanonicalRecord:
        """Update an existing DNS record."""
        zone = self._zone(domain_id)
        if remote_id not in zone:
            raise RecordNotFoundError(self.name, remote_id)

        updated = CanonicalRecord(
            remote_id=remote_id,
            type=record.type,
            name=record.name,
            content=record.content,
            ttl=record.ttl,
            priority=record.priority,
            proxied=record.proxied,
        )
        zone[remote_id] = updated
        logger.info(f"Mock: Updated record {record.name} -> {record.content}")
        return updated

    def delete_record(self, domain_id: str, remote_id: str) -> None:
        """Delete a DNS record."""
        zone = self._zone(domain_id)
        if remote_id not in zone:
            raise RecordNotFoundError(self.name, remote_id)

        record = zone.pop(remote_id)
        logger.info(f"Mock: Deleted record {record.name}")

    def put_record(self, domain_id: str, record: CanonicalRecord) -> None:
        """Place a record directly, as if it had been edited on the provider."""
        self._zone(domain_id)[record.remote_id] = record
