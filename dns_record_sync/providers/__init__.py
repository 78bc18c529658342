"""
DNS provider implementations.

This package contains the provider adapter interface and its
implementations for BIND and an in-memory mock provider.
"""

from .base_provider import (
    AuthenticationError,
    DNSProvider,
    DNSProviderError,
    DomainNotFoundError,
    RecordInput,
    RecordNotFoundError,
)
from .bind_provider import BINDProvider
from .dns_client import DNSClient
from .mock_provider import MockDNSProvider

__all__ = [
    "AuthenticationError",
    "BINDProvider",
    "DNSClient",
    "DNSProvider",
    "DNSProviderError",
    "DomainNotFoundError",
    "MockDNSProvider",
    "RecordInput",
    "RecordNotFoundError",
]
