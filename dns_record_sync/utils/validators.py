"""
Validators - Input validation for DNS records

This module provides validation functions for names, addresses and record
fields. They guard records entering the system from files and from write
requests; the reconciliation engine itself never validates.
"""

import ipaddress
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "TXT", "NS", "SRV", "CAA", "PTR")
PRIORITY_TYPES = ("MX", "SRV")
MAX_TTL = 2147483647


def validate_fqdn(fqdn: str) -> bool:
    """
    Validate Fully Qualified Domain Name (FQDN).

    Args:
        fqdn: The FQDN to validate

    Returns:
        True if valid, False otherwise
    """
    if not fqdn or not isinstance(fqdn, str):
        return False

    # Trailing dot is accepted for absolute names
    fqdn = fqdn[:-1] if fqdn.endswith(".") else fqdn

    if len(fqdn) > 253:
        logger.warning(f"FQDN too long: {fqdn}")
        return False

    labels = fqdn.split(".")

    if len(labels) < 2:
        logger.warning(f"FQDN must have at least 2 labels: {fqdn}")
        return False

    if any(label == "" for label in labels):
        logger.warning(f"FQDN contains empty labels: {fqdn}")
        return False

    for label in labels:
        if not _validate_label(label):
            logger.warning(f"Invalid label '{label}' in FQDN: {fqdn}")
            return False

    return True


def _validate_label(label: str, allow_service: bool = False) -> bool:
    """
    Validate a single domain label.

    Args:
        label: The label to validate
        allow_service: Whether a leading underscore is allowed (_sip, _dmarc)

    Returns:
        True if valid, False otherwise
    """
    if len(label) == 0 or len(label) > 63:
        return False

    if allow_service and label.startswith("_"):
        label = label[1:]
        if not label:
            return False

    # Letters, digits and hyphens; no leading or trailing hyphen
    return bool(re.match(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$", label))


def validate_record_name(name: str) -> bool:
    """
    Validate a record name as used by providers.

    Accepts ``@`` for the zone apex, relative or absolute names, a leading
    wildcard label and underscore-prefixed service labels.
    """
    if not name or not isinstance(name, str):
        return False
    if name == "@":
        return True

    name = name[:-1] if name.endswith(".") else name
    if len(name) > 253:
        return False

    labels = name.split(".")
    for i, label in enumerate(labels):
        if i == 0 and label == "*":
            continue
        if not _validate_label(label, allow_service=True):
            logger.warning(f"Invalid label '{label}' in record name: {name}")
            return False
    return True


def validate_ipv4(ipv4: str) -> bool:
    """
    Validate IPv4 address.

    Args:
        ipv4: The IPv4 address to validate

    Returns:
        True if valid, False otherwise
    """
    if not ipv4 or not isinstance(ipv4, str):
        return False

    try:
        ipaddress.IPv4Address(ipv4.strip())
        return True
    except ipaddress.AddressValueError:
        logger.warning(f"Invalid IPv4 address: {ipv4}")
        return False


def validate_ipv6(ipv6: str) -> bool:
    if not ipv6 or not isinstance(ipv6, str):
        return False

    try:
        ipaddress.IPv6Address(ipv6.strip())
        return True
    except ipaddress.AddressValueError:
        logger.warning(f"Invalid IPv6 address: {ipv6}")
        return False


def validate_zone_name(zone: str) -> bool:
    """
    Validate DNS zone name.

    Args:
        zone: The zone name to validate

    Returns:
        True if valid, False otherwise
    """
    if not zone or not isinstance(zone, str):
        return False

    if not validate_fqdn(zone):
        return False

    # Zone names are never IP addresses
    if validate_ipv4(zone):
        return False

    return True


def validate_ttl(ttl: Any) -> bool:
    return isinstance(ttl, int) and not isinstance(ttl, bool) and 0 <= ttl <= MAX_TTL


def validate_record(record: Dict[str, Any]) -> List[str]:
    """
    Validate the fields of a record dictionary.

    Args:
        record: Mapping with type, name, content, ttl and optional priority

    Returns:
        List of validation errors, empty when the record is valid
    """
    errors = []
    record_type = str(record.get("type") or "").upper()
    content = record.get("content")
    priority = record.get("priority")

    if record_type not in RECORD_TYPES:
        errors.append(f"Unsupported record type '{record.get('type')}'")

    if not validate_record_name(record.get("name")):
        errors.append(f"Invalid record name '{record.get('name')}'")

    if not content or not isinstance(content, str):
        errors.append("Record content is required")
    elif record_type == "A" and not validate_ipv4(content):
        errors.append(f"Invalid IPv4 address '{content}'")
    elif record_type == "AAAA" and not validate_ipv6(content):
        errors.append(f"Invalid IPv6 address '{content}'")
    elif record_type in ("CNAME", "NS", "MX", "PTR") and not validate_record_name(content):
        errors.append(f"Invalid target hostname '{content}'")

    if not validate_ttl(record.get("ttl")):
        errors.append(f"Invalid TTL '{record.get('ttl')}'")

    if priority is not None:
        if record_type not in PRIORITY_TYPES:
            errors.append(f"Priority is not applicable to {record_type} records")
        elif not isinstance(priority, int) or isinstance(priority, bool) or not 0 <= priority <= 65535:
            errors.append(f"Invalid priority '{priority}'")

    return errors
