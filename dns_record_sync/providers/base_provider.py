"""
Base DNS provider interface.

This module defines the abstract base class that all DNS providers must
implement, the record input accepted by write operations, and the provider
error hierarchy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.records import CanonicalRecord


class DNSProviderError(Exception):
    """Base error raised by provider adapters."""

    def __init__(
        self,
        message: str,
        code: str,
        provider: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.provider = provider
        self.details = details or {}


class AuthenticationError(DNSProviderError):
    def __init__(self, provider: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("Authentication failed", "AUTH_FAILED", provider, details)


class RecordNotFoundError(DNSProviderError):
    def __init__(
        self, provider: str, record_id: str, details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            f"Record not found: {record_id}", "RECORD_NOT_FOUND", provider, details
        )
        self.record_id = record_id


class DomainNotFoundError(DNSProviderError):
    def __init__(
        self, provider: str, domain_id: str, details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            f"Domain not found: {domain_id}", "DOMAIN_NOT_FOUND", provider, details
        )
        self.domain_id = domain_id


@dataclass(frozen=True)
class RecordInput:
    """Fields sent to a provider when creating or updating a record."""

    type: str
    name: str
    content: str
    ttl: int = 600
    priority: Optional[int] = None
    proxied: Optional[bool] = None


class DNSProvider(ABC):
    """Abstract base class for DNS providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name for logging."""
        pass

    @abstractmethod
    def list_records(self, domain_id: str) -> List[CanonicalRecord]:
        """Get all DNS records for a domain."""
        pass

    @abstractmethod
    def create_record(self, domain_id: str, record: RecordInput) -> CanonicalRecord:
        """Create a new DNS record."""
        pass

    @abstractmethod
    def update_record(
        self, domain_id: str, remote_id: str, record: RecordInput
    ) -> CanonicalRecord:
        """Update an existing DNS record."""
        pass

    @abstractmethod
    def delete_record(self, domain_id: str, remote_id: str) -> None:
        """Delete a DNS record."""
        pass

    def validate_credentials(self) -> bool:
        """Check that the provider accepts the configured credentials."""
        return True
