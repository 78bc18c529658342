"""
BIND DNS provider implementation.

This module provides BIND DNS server integration using the dnspython library.
Records are listed with a zone transfer (AXFR) and written with RFC 2136
dynamic updates, optionally signed with a TSIG key.

BIND has no record identifiers of its own, so remote ids are derived from
each record's name, type, priority and content. Editing a record's content
on the server therefore shows up as one deletion plus one addition.
"""

import hashlib
import logging
import re
from typing import Dict, List, Optional

import dns.exception
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.tsigkeyring
import dns.update
import dns.xfr
import dns.zone

from .base_provider import (
    AuthenticationError,
    DNSProvider,
    DNSProviderError,
    DomainNotFoundError,
    RecordInput,
    RecordNotFoundError,
)
from ..core.records import CanonicalRecord
from ..utils.validators import validate_zone_name

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ("A", "AAAA", "CNAME", "MX", "TXT", "NS", "SRV", "CAA", "PTR")
TXT_CHUNK_SIZE = 255


class BINDProvider(DNSProvider):
    """BIND DNS provider implementation using dnspython library."""

    def __init__(self, config: Dict):
        """Initialize BIND provider."""
        self.config = config
        self.nameserver = config.get("nameserver", "127.0.0.1")
        self.port = int(config.get("port", 53))
        self.timeout = float(config.get("timeout", 30))
        self.key_file = config.get("key_file", "")
        self.key_name = config.get("key_name", "")

        self.keyring = None
        if self.key_file and self.key_name:
            self.keyring = self._load_keyring(self.key_file, self.key_name)

        logger.info(
            f"BIND provider initialized for nameserver {self.nameserver}:{self.port}"
        )

    @property
    def name(self) -> str:
        return "bind"

    def _load_keyring(self, key_file: str, key_name: str):
        """Load a TSIG keyring from a BIND key file, or None if unavailable."""
        try:
            with open(key_file, "r") as f:
                key_content = f.read().strip()
        except OSError as e:
            logger.warning(f"Failed to load TSIG key: {e}")
            logger.debug("TSIG authentication will not be available")
            return None

        secret = parse_bind_key_file(key_content, key_name)
        if not secret:
            logger.warning(
                f"Could not extract secret for key '{key_name}' from {key_file}"
            )
            return None

        logger.info(f"TSIG key loaded from {key_file}")
        return dns.tsigkeyring.from_text({key_name: secret})

    def list_records(self, domain_id: str) -> List[CanonicalRecord]:
        """Get all supported DNS records of a zone through a zone transfer."""
        zone_obj = self._zone_transfer(domain_id)

        records = []
        for name, node in zone_obj.nodes.items():
            for rdataset in node.rdatasets:
                rtype = dns.rdatatype.to_text(rdataset.rdtype)
                if rtype not in SUPPORTED_TYPES:
                    continue
                for rdata in rdataset:
                    records.append(
                        self._to_canonical(name.to_text(), rtype, rdataset.ttl, rdata)
                    )

        logger.info(f"Retrieved {len(records)} records from BIND zone {domain_id}")
        return records

    def _zone_transfer(self, zone: str) -> dns.zone.Zone:
        """Transfer the zone from the nameserver."""
        if not validate_zone_name(zone):
            raise DomainNotFoundError(self.name, zone, {"reason": "invalid zone name"})

        try:
            return dns.zone.from_xfr(
                dns.query.xfr(
                    self.nameserver,
                    zone,
                    port=self.port,
                    keyring=self.keyring,
                    lifetime=self.timeout,
                )
            )
        except dns.xfr.TransferError as e:
            if e.rcode == dns.rcode.NOTAUTH:
                raise DomainNotFoundError(self.name, zone, {"rcode": "NOTAUTH"}) from e
            raise DNSProviderError(
                f"Zone transfer refused for {zone}: {e}",
                "ZONE_TRANSFER_FAILED",
                self.name,
            ) from e
        except (dns.exception.DNSException, OSError) as e:
            raise DNSProviderError(
                f"Zone transfer failed for {zone}: {e}",
                "ZONE_TRANSFER_FAILED",
                self.name,
            ) from e

    def _to_canonical(self, name: str, rtype: str, ttl: int, rdata) -> CanonicalRecord:
        """Convert one rdata into a canonical record."""
        priority: Optional[int] = None

        if rtype == "MX":
            priority = rdata.preference
            content = rdata.exchange.to_text()
        elif rtype == "SRV":
            priority = rdata.priority
            content = f"{rdata.weight} {rdata.port} {rdata.target.to_text()}"
        elif rtype == "TXT":
            content = b"".join(rdata.strings).decode("utf-8", errors="replace")
        else:
            content = rdata.to_text()

        return CanonicalRecord(
            remote_id=record_id_for(name, rtype, content, priority),
            type=rtype,
            name=name,
            content=content,
            ttl=ttl,
            priority=priority,
            extra={"rdata": rdata.to_text()},
        )

    def _find_record(self, zone: str, remote_id: str) -> CanonicalRecord:
        for record in self.list_records(zone):
            if record.remote_id == remote_id:
                return record
        raise RecordNotFoundError(self.name, remote_id)

    def create_record(self, domain_id: str, record: RecordInput) -> CanonicalRecord:
        """Create a new DNS record with a dynamic update."""
        self._check_type(record.type)

        update = dns.update.Update(domain_id, keyring=self.keyring)
        update.add(record.name, record.ttl, record.type, rdata_text(record))
        self._send(update, "create")

        logger.debug(f"Created record {record.name} -> {record.content}")
        return self._from_input(record)

    def update_record(
        self, domain_id: str, remote_id: str, record: RecordInput
    ) -> CanonicalRecord:
        """Replace an existing DNS record in a single dynamic update."""
        self._check_type(record.type)
        existing = self._find_record(domain_id, remote_id)

        update = dns.update.Update(domain_id, keyring=self.keyring)
        update.delete(existing.name, existing.type, rdata_text(existing))
        update.add(record.name, record.ttl, record.type, rdata_text(record))
        self._send(update, "update")

        logger.debug(f"Updated record {record.name} -> {record.content}")
        return self._from_input(record)

    def delete_record(self, domain_id: str, remote_id: str) -> None:
        """Delete a DNS record with a dynamic update."""
        existing = self._find_record(domain_id, remote_id)

        update = dns.update.Update(domain_id, keyring=self.keyring)
        update.delete(existing.name, existing.type, rdata_text(existing))
        self._send(update, "delete")

        logger.debug(f"Deleted record {existing.name} -> {existing.content}")

    def _check_type(self, rtype: str) -> None:
        if rtype not in SUPPORTED_TYPES:
            raise DNSProviderError(
                f"Record type {rtype} is not supported by BIND provider",
                "UNSUPPORTED_TYPE",
                self.name,
            )

    def _from_input(self, record: RecordInput) -> CanonicalRecord:
        return CanonicalRecord(
            remote_id=record_id_for(record.name, record.type, record.content, record.priority),
            type=record.type,
            name=record.name,
            content=record.content,
            ttl=record.ttl,
            priority=record.priority,
        )

    def _send(self, update: dns.update.Update, operation: str) -> None:
        try:
            response = dns.query.tcp(
                update, self.nameserver, port=self.port, timeout=self.timeout
            )
        except (dns.exception.DNSException, OSError) as e:
            logger.error(f"DNS {operation} query failed: {e}")
            raise DNSProviderError(
                f"Failed to {operation} the record: {e}", "UPDATE_FAILED", self.name
            ) from e

        if response.rcode() != dns.rcode.NOERROR:
            self._handle_dns_error(response, operation)

    def _handle_dns_error(self, response: dns.message.Message, operation: str) -> None:
        """Handle DNS error responses by logging and raising appropriate exceptions."""
        rcode = response.rcode()
        error_message = (
            f"DNS update failed with response code: {dns.rcode.to_text(rcode)}"
        )
        logger.error(error_message)

        if rcode in (dns.rcode.REFUSED, dns.rcode.NOTAUTH):
            raise AuthenticationError(self.name, {"rcode": dns.rcode.to_text(rcode)})
        raise DNSProviderError(
            f"Failed to {operation} the record: {error_message}",
            "UPDATE_FAILED",
            self.name,
        )


def parse_bind_key_file(key_content: str, key_name: str) -> Optional[str]:
    """Parse BIND key file format to extract the secret for a specific key."""
    key_pattern = rf'key\s+"{re.escape(key_name)}"\s*{{(.*?)}}'
    match = re.search(key_pattern, key_content, re.DOTALL)
    if not match:
        return None

    secret_match = re.search(r'secret\s+"([^"]+)"', match.group(1))
    return secret_match.group(1) if secret_match else None


def record_id_for(name: str, rtype: str, content: str, priority: Optional[int]) -> str:
    """Derive a stable remote id from a record's identity and value."""
    key = f"{name}|{rtype}|{'' if priority is None else priority}|{content}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def rdata_text(record) -> str:
    """Render a record's value in zone file syntax.

    Records read from the zone keep their original rdata text, so a TXT
    value split into several strings is rendered the way the zone holds it.
    """
    extra = getattr(record, "extra", None)
    if extra and extra.get("rdata"):
        return extra["rdata"]
    if record.type in ("MX", "SRV"):
        return f"{record.priority if record.priority is not None else 0} {record.content}"
    if record.type == "TXT":
        chunks = [
            record.content[i:i + TXT_CHUNK_SIZE]
            for i in range(0, len(record.content), TXT_CHUNK_SIZE)
        ] or [""]
        return " ".join(_quote(chunk) for chunk in chunks)
    return record.content


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
