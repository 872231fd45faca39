"""
RDAP lookups: validate, resolve the authoritative server from the IANA
bootstrap registries, query it and normalize the answer.

Usage:
    lookup = RDAPLookup()
    record = await lookup.lookup_domain("example.com")
    print(record.to_dict())
"""

import asyncio
import logging
import re

import httpx

from .config import get_settings
from .errors import NoServerFound, ValidationError
from .geolocation import try_geolocate
from .normalizer import (
    ASNRecord,
    DomainRecord,
    EntityRecord,
    IPRecord,
    normalize_asn,
    normalize_domain,
    normalize_entity,
    normalize_ip,
)
from .rdap_bootstrap import BootstrapCache, get_default_cache
from .rdap_client import RDAPQueryClient, query_rdap
from .resolver import OBJECT_TAG, REGISTRY_TYPES, resolve
from .validators import (
    ASN,
    DOMAIN,
    get_ip_version,
    is_private_ip,
    is_reserved_ip,
    validate_asn,
    validate_domain,
    validate_ip,
)

logger = logging.getLogger(__name__)

HANDLE_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def parse_entity_handle(handle: str) -> tuple[str, str]:
    """
    Split a tagged entity handle such as "GOGL-ARIN" into (handle, tag).

    Raises:
        ValidationError: the handle has no "-TAG" suffix, or contains
            characters other than letters, digits, "_" and "-".
    """
    clean = handle.strip() if isinstance(handle, str) else ""
    base, sep, tag = clean.rpartition("-")
    if not HANDLE_PATTERN.fullmatch(clean) or not sep or not base or not tag.isalnum():
        raise ValidationError(f"'{clean}' is not a tagged entity handle (expected NAME-TAG).")
    return clean, tag.upper()


class RDAPLookup:
    """
    Lookup entry points, one per identifier kind.

    Args:
        cache: Bootstrap cache to use (default: the process-wide cache).
        timeout: HTTP timeout for RDAP and geolocation queries.
        geolocation: Enrich IP lookups with ip-api.com data.
        transport: Optional httpx transport for RDAP/geolocation queries.
    """

    def __init__(
        self,
        cache: BootstrapCache | None = None,
        timeout: float | None = None,
        geolocation: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings() if timeout is None or geolocation is None else None
        self.cache = cache if cache is not None else get_default_cache()
        self.timeout = timeout if timeout is not None else settings.timeout
        self.geolocation = geolocation if geolocation is not None else settings.geolocation
        self._transport = transport

    def _client(self) -> RDAPQueryClient:
        return RDAPQueryClient(timeout=self.timeout, transport=self._transport)

    async def _find_server(self, identifier: str | int, kind: str) -> str | None:
        table = await self.cache.get(REGISTRY_TYPES[kind])
        return resolve(identifier, kind, table)

    async def _query(self, server: str, object_path: str, identifier: str | int) -> dict:
        return await query_rdap(
            server, object_path, identifier, timeout=self.timeout, transport=self._transport
        )

    async def lookup_domain(self, domain: str) -> DomainRecord:
        """Look up registration data for a domain name."""
        validation = validate_domain(domain)
        if not validation.is_valid:
            raise ValidationError(validation.error)

        name, tld = validation.normalized, validation.tld

        server = await self._find_server(tld, DOMAIN)
        if not server:
            raise NoServerFound(f"No RDAP server found for the '.{tld}' TLD.")

        logger.debug("Querying %s for domain %s", server, name)
        data = await self._query(server, "domain", name)

        return normalize_domain(data, server)

    async def lookup_ip(self, ip: str, include_location: bool | None = None) -> IPRecord:
        """
        Look up the network registration covering an IP address.

        Private and reserved addresses are rejected before any network I/O.
        """
        validation = validate_ip(ip)
        if not validation.is_valid:
            raise ValidationError(validation.error)

        address, version = validation.normalized, validation.kind

        if is_private_ip(address):
            raise ValidationError("Private IP addresses are not supported")
        if is_reserved_ip(address):
            raise ValidationError("Reserved IP addresses are not supported")

        server = await self._find_server(address, version)
        if not server:
            raise NoServerFound(f"No RDAP server found for IP {address}")

        if include_location is None:
            include_location = self.geolocation

        logger.debug("Querying %s for IP %s", server, address)
        async with self._client() as client:
            if include_location:
                data, location = await asyncio.gather(
                    client.query(server, "ip", address),
                    try_geolocate(address, timeout=self.timeout, transport=self._transport),
                    return_exceptions=True,
                )
                if isinstance(data, BaseException):
                    raise data
                if isinstance(location, BaseException):
                    location = None
            else:
                data = await client.query(server, "ip", address)
                location = None

        record = normalize_ip(data, address, version, server)
        record.location = location
        return record

    async def lookup_asn(self, asn: str | int) -> ASNRecord:
        """Look up registration data for an autonomous system number."""
        validation = validate_asn(asn)
        if not validation.is_valid:
            raise ValidationError(validation.error)

        number = validation.normalized

        server = await self._find_server(number, ASN)
        if not server:
            raise NoServerFound(f"No RDAP server found for AS{number}")

        logger.debug("Querying %s for AS%d", server, number)
        data = await self._query(server, "autnum", number)

        return normalize_asn(data, number, server)

    async def lookup_entity(self, handle: str) -> EntityRecord:
        """Look up a tagged entity handle (e.g. "GOGL-ARIN") via the object-tags registry."""
        handle, tag = parse_entity_handle(handle)

        server = await self._find_server(tag, OBJECT_TAG)
        if not server:
            raise NoServerFound(f"No RDAP server found for the '{tag}' object tag.")

        logger.debug("Querying %s for entity %s", server, handle)
        data = await self._query(server, "entity", handle)

        return normalize_entity(data, server)

    async def lookup(self, query: str) -> DomainRecord | IPRecord | ASNRecord | EntityRecord:
        """
        Look up any identifier, detecting its kind.

        Detection order: IP address, AS number ("AS13335" or all digits),
        tagged entity handle (contains "-" but no "."), domain name.
        """
        text = query.strip() if isinstance(query, str) else str(query)

        if get_ip_version(text):
            return await self.lookup_ip(text)

        digits = text[2:] if text[:2].upper() == "AS" else text
        if digits.isascii() and digits.isdigit():
            return await self.lookup_asn(text)

        if "-" in text and "." not in text:
            return await self.lookup_entity(text)

        return await self.lookup_domain(text)


async def lookup_domain(domain: str) -> DomainRecord:
    """Look up a domain using the shared bootstrap cache."""
    return await RDAPLookup().lookup_domain(domain)


async def lookup_ip(ip: str, include_location: bool | None = None) -> IPRecord:
    """Look up an IP address using the shared bootstrap cache."""
    return await RDAPLookup().lookup_ip(ip, include_location=include_location)


async def lookup_asn(asn: str | int) -> ASNRecord:
    """Look up an AS number using the shared bootstrap cache."""
    return await RDAPLookup().lookup_asn(asn)


async def lookup_entity(handle: str) -> EntityRecord:
    """Look up a tagged entity handle using the shared bootstrap cache."""
    return await RDAPLookup().lookup_entity(handle)
