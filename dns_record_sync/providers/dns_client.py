"""
DNS Client - Unified interface for DNS provider APIs

This module selects a provider adapter by name from configuration and
forwards record operations to it. Provider settings are passed explicitly
from the ``dns_providers`` section of the configuration.
"""

import logging
from typing import Dict, List

from .base_provider import DNSProvider, RecordInput
from .bind_provider import BINDProvider
from .mock_provider import MockDNSProvider
from ..core.records import CanonicalRecord

logger = logging.getLogger(__name__)

PROVIDERS = {
    "bind": BINDProvider,
    "mock": MockDNSProvider,
}


class DNSClient:
    """Unified DNS client that supports multiple providers."""

    def __init__(self, config: Dict):
        """Initialize DNS client with configuration."""
        self.config = config
        self.provider = self._get_provider()

    def _get_provider(self) -> DNSProvider:
        """Get DNS provider based on configuration."""
        provider_name = self.config.get("default_provider", "mock")
        provider_config = self.config.get("dns_providers", {}).get(provider_name) or {}

        provider_class = PROVIDERS.get(provider_name)
        if provider_class is None:
            logger.warning(f"Unknown provider '{provider_name}', using mock provider")
            return MockDNSProvider()
        return provider_class(provider_config)

    @property
    def name(self) -> str:
        return self.provider.name

    def list_records(self, domain_id: str) -> List[CanonicalRecord]:
        """Get all DNS records for a domain."""
        return self.provider.list_records(domain_id)

    def create_record(self, domain_id: str, record: RecordInput) -> CanonicalRecord:
        """Create a new DNS record."""
        return self.provider.create_record(domain_id, record)

    def update_record(
        self, domain_id: str, remote_id: str, record: RecordInput
    ) -> CanonicalRecord:
        """Update an existing DNS record."""
        return self.provider.update_record(domain_id, remote_id, record)

    def delete_record(self, domain_id: str, remote_id: str) -> None:
        """Delete a DNS record."""
        self.provider.delete_record(domain_id, remote_id)
