"""
Utility functions and helpers.

This package contains validation helpers shared by the parsers and the
sync manager.
"""

from .validators import (
    validate_fqdn,
    validate_ipv4,
    validate_ipv6,
    validate_record,
    validate_record_name,
    validate_ttl,
    validate_zone_name,
)

__all__ = [
    "validate_fqdn",
    "validate_ipv4",
    "validate_ipv6",
    "validate_record",
    "validate_record_name",
    "validate_ttl",
    "validate_zone_name",
]
