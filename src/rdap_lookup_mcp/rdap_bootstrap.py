"""
RDAP Bootstrap Cache Module

Fetches and caches the IANA RDAP bootstrap registries, which map TLDs,
IP prefixes, AS number ranges and entity object tags to their authoritative
RDAP servers.

Each registry is held in memory for a fixed time-to-live and replaced
wholesale when it expires. Fetch failures are never papered over with
expired data: the error reaches the caller.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

import httpx

from . import __version__
from .config import DEFAULT_BOOTSTRAP_TTL, DEFAULT_TIMEOUT, get_settings
from .errors import BootstrapUnavailable

logger = logging.getLogger(__name__)

# IANA bootstrap URLs
IANA_BOOTSTRAP_URLS = {
    "dns": "https://data.iana.org/rdap/dns.json",
    "ipv4": "https://data.iana.org/rdap/ipv4.json",
    "ipv6": "https://data.iana.org/rdap/ipv6.json",
    "asn": "https://data.iana.org/rdap/asn.json",
    "objectTags": "https://data.iana.org/rdap/object-tags.json",
}

USER_AGENT = f"RDAPLookupMCP/{__version__} (RDAP Bootstrap)"


@dataclass(frozen=True)
class BootstrapEntry:
    """One service entry: the ranges it covers and the servers that answer."""
    ranges: tuple[str, ...]
    urls: tuple[str, ...]
    # Only populated by the object-tags registry
    contacts: tuple[str, ...] = ()

    @property
    def preferred_url(self) -> str | None:
        return self.urls[0] if self.urls else None


@dataclass(frozen=True)
class BootstrapTable:
    """A parsed bootstrap registry for one resource type."""
    resource_type: str
    entries: tuple[BootstrapEntry, ...]
    description: str = ""
    publication: str = ""
    version: str = ""

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class _CacheEntry:
    table: BootstrapTable
    expiry: float


def _string_tuple(values) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    return tuple(v for v in values if isinstance(v, str))


def parse_bootstrap(resource_type: str, data: dict) -> BootstrapTable:
    """
    Parse an IANA bootstrap document into a BootstrapTable.

    Bootstrap format:
    {
        "services": [
            [["com", "net"], ["https://rdap.verisign.com/com/v1/"]],
            [["org"], ["https://rdap.publicinterestregistry.org/rdap/"]],
            ...
        ]
    }

    The object-tags registry prefixes each entry with a list of contacts:
    [["contact@example.net"], ["ARIN"], ["https://rdap.arin.net/registry/"]]

    Malformed entries are skipped. DNS labels are lowercased.
    """
    if not isinstance(data, dict):
        data = {}

    entries = []
    services = data.get("services", [])
    if not isinstance(services, list):
        services = []

    for entry in services:
        if not isinstance(entry, list) or len(entry) < 2:
            continue

        contacts: tuple[str, ...] = ()
        if resource_type == "objectTags" and len(entry) >= 3:
            contacts = _string_tuple(entry[0])
            ranges, urls = entry[1], entry[2]
        else:
            ranges, urls = entry[0], entry[1]

        ranges = _string_tuple(ranges)
        if resource_type == "dns":
            ranges = tuple(r.lower() for r in ranges)

        entries.append(BootstrapEntry(
            ranges=ranges,
            urls=_string_tuple(urls),
            contacts=contacts,
        ))

    return BootstrapTable(
        resource_type=resource_type,
        entries=tuple(entries),
        description=str(data.get("description", "")),
        publication=str(data.get("publication", "")),
        version=str(data.get("version", "")),
    )


@dataclass
class BootstrapCache:
    """
    In-memory cache of IANA bootstrap registries, keyed by resource type.

    Args:
        ttl: Seconds an entry stays valid after it was fetched.
        timeout: HTTP timeout for registry downloads.
        clock: Returns the current time in seconds; injectable for tests.
        transport: Optional httpx transport (e.g. httpx.MockTransport).
    """
    ttl: float = DEFAULT_BOOTSTRAP_TTL
    timeout: float = DEFAULT_TIMEOUT
    clock: Callable[[], float] = time.time
    transport: httpx.AsyncBaseTransport | None = None

    _entries: dict[str, _CacheEntry] = field(default_factory=dict, init=False, repr=False)

    async def get(self, resource_type: str) -> BootstrapTable:
        """
        Get the bootstrap table for ``resource_type``, refreshing it from
        IANA if it is missing or expired.

        Raises:
            ValueError: unknown resource type.
            BootstrapUnavailable: the registry could not be fetched.
        """
        if resource_type not in IANA_BOOTSTRAP_URLS:
            raise ValueError(f"Unknown bootstrap resource type: {resource_type}")

        now = self.clock()
        cached = self._entries.get(resource_type)
        if cached and now < cached.expiry:
            return cached.table

        table = await self._fetch(resource_type)

        # Replace the whole entry; concurrent refreshes simply overwrite each other
        self._entries[resource_type] = _CacheEntry(table=table, expiry=now + self.ttl)
        logger.debug("Refreshed %s bootstrap (%d services)", resource_type, len(table))
        return table

    async def _fetch(self, resource_type: str) -> BootstrapTable:
        url = IANA_BOOTSTRAP_URLS[resource_type]
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Failed to fetch %s bootstrap data: %s", resource_type, e)
            raise BootstrapUnavailable(resource_type, str(e)) from e

        if not response.is_success:
            detail = f"HTTP {response.status_code}"
            logger.error("Failed to fetch %s bootstrap data: %s", resource_type, detail)
            raise BootstrapUnavailable(resource_type, detail)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Invalid JSON in %s bootstrap data: %s", resource_type, e)
            raise BootstrapUnavailable(resource_type, "invalid JSON") from e

        return parse_bootstrap(resource_type, data)

    def clear(self) -> None:
        """Drop every cached registry."""
        self._entries.clear()

    def stats(self) -> dict:
        """Get cache statistics: number of entries and when each expires."""
        return {
            "size": len(self._entries),
            "entries": [
                {
                    "type": resource_type,
                    "expiry": datetime.fromtimestamp(entry.expiry, tz=timezone.utc),
                }
                for resource_type, entry in self._entries.items()
            ],
        }


_default_cache: BootstrapCache | None = None


def get_default_cache() -> BootstrapCache:
    """Get the process-wide cache shared by lookups that don't bring their own."""
    global _default_cache
    if _default_cache is None:
        settings = get_settings()
        _default_cache = BootstrapCache(ttl=settings.bootstrap_ttl, timeout=settings.timeout)
    return _default_cache


async def get_supported_tlds(cache: BootstrapCache | None = None) -> list[str]:
    """
    Get list of all TLDs supported by RDAP.

    Returns:
        List of TLD strings, sorted alphabetically.
    """
    table = await (cache or get_default_cache()).get("dns")
    return sorted({tld for entry in table for tld in entry.ranges})
