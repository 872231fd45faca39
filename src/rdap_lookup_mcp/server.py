"""
RDAP Lookup MCP Server

An MCP server for looking up registration data via RDAP:
- Domain names (registrar, dates, statuses, nameservers)
- IP addresses (network, organization, optional geolocation)
- Autonomous system numbers
- Tagged entity handles (e.g. GOGL-ARIN)
"""

import json
import logging

from mcp.server.fastmcp import FastMCP

from . import __version__
from .config import get_settings
from .errors import RDAPLookupError
from .geolocation import geolocate
from .lookup import RDAPLookup
from .rdap_bootstrap import get_default_cache, get_supported_tlds
from .validators import is_private_ip, is_reserved_ip, validate_ip

# Suppress httpx request logging by default (echoes every queried URL)
# Set RDAP_LOOKUP_DEBUG=1 to enable verbose HTTP logging
if not get_settings().debug:
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Server version
VERSION = __version__

# Initialize the MCP server
mcp = FastMCP("rdap-lookup")
mcp._mcp_server.version = VERSION


# =============================================================================
# Helpers
# =============================================================================

def _get_lookup() -> RDAPLookup:
    return RDAPLookup()


def _error(message: str, status: int) -> str:
    return json.dumps({"error": message, "status": status})


async def _run(coro) -> str:
    """Await a lookup and serialize the record, or the error it raised."""
    try:
        record = await coro
    except RDAPLookupError as e:
        logger.info("Lookup failed (%d): %s", e.status_code, e.message)
        return _error(e.message, e.status_code)
    return json.dumps(record.to_dict())


# =============================================================================
# MCP Tools
# =============================================================================

@mcp.tool()
def version() -> str:
    """
    Get the version of the RDAP Lookup MCP server.

    Returns:
        Version string including server name and version number.
    """
    return f"RDAP Lookup MCP Server version {VERSION}"


@mcp.tool()
async def lookup_domain(domain: str) -> str:
    """
    Look up RDAP registration data for a domain name.

    Args:
        domain: Domain name, e.g. "example.com"

    Returns:
        JSON with domainName, registrar, registrar contact details, dnssec,
        registeredOn, expiresOn, lastUpdated, lastTransferred, statuses
        (label + ICANN EPP URL), nameservers, entities, remarks, links and
        rdapServer. On failure: {"error": message, "status": code}.
    """
    if not domain or not domain.strip():
        return _error("Domain name is required.", 400)
    return await _run(_get_lookup().lookup_domain(domain))


@mcp.tool()
async def lookup_ip(address: str, includeLocation: bool = True) -> str:
    """
    Look up the RDAP network registration covering an IP address.

    Args:
        address: IPv4 or IPv6 address (private and reserved addresses are rejected)
        includeLocation: If true, add best-effort geolocation from ip-api.com

    Returns:
        JSON with ip, type (IPv4/IPv6), network (cidr, name, country,
        organization, registrar...), dates, entities, optional location and
        rdapServer. On failure: {"error": message, "status": code}.
    """
    if not address or not address.strip():
        return _error("IP address is required.", 400)
    return await _run(_get_lookup().lookup_ip(address, include_location=includeLocation))


@mcp.tool()
async def lookup_asn(asn: str) -> str:
    """
    Look up RDAP registration data for an autonomous system number.

    Args:
        asn: AS number, with or without "AS" prefix (e.g. "13335" or "AS13335")

    Returns:
        JSON with asn, range (start/end), name, type, status, country,
        organization, registrar, dates, remarks and rdapServer.
        On failure: {"error": message, "status": code}.
    """
    if not asn or not str(asn).strip():
        return _error("ASN number required", 400)
    return await _run(_get_lookup().lookup_asn(asn))


@mcp.tool()
async def lookup_entity(handle: str) -> str:
    """
    Look up an RDAP entity by tagged handle (e.g. "GOGL-ARIN").

    The tag after the last "-" selects the server via IANA's object-tags registry.

    Returns:
        JSON with handle, roles, name, organization, email, phone, url,
        dates, related entities and rdapServer.
        On failure: {"error": message, "status": code}.
    """
    if not handle or not handle.strip():
        return _error("Entity handle is required.", 400)
    return await _run(_get_lookup().lookup_entity(handle))


@mcp.tool()
async def lookup(query: str) -> str:
    """
    Look up any identifier: IP address, AS number, entity handle or domain.

    Args:
        query: The identifier; its kind is detected automatically

    Returns:
        JSON record for the detected kind, or {"error": message, "status": code}.
    """
    if not query or not query.strip():
        return _error("Query is required.", 400)
    return await _run(_get_lookup().lookup(query))


@mcp.tool()
async def geolocate_ip(address: str) -> str:
    """
    Get approximate geolocation for an IP address (ip-api.com, not RDAP data).

    Returns:
        JSON with country, region, city, coordinates, timezone, isp and
        organization. On failure: {"error": message, "status": code}.
    """
    validation = validate_ip(address or "")
    if not validation.is_valid:
        return _error(validation.error, 400)
    if is_private_ip(validation.normalized):
        return _error("Private IP addresses are not supported", 400)
    if is_reserved_ip(validation.normalized):
        return _error("Reserved IP addresses are not supported", 400)
    return await _run(geolocate(validation.normalized))


@mcp.tool()
async def supported_tlds() -> str:
    """
    Get the list of TLDs that have an RDAP server in the IANA bootstrap.

    Returns:
        JSON with a sorted "tlds" list and its "count".
    """
    try:
        tlds = await get_supported_tlds()
    except RDAPLookupError as e:
        return _error(e.message, e.status_code)
    return json.dumps({"tlds": tlds, "count": len(tlds)})


@mcp.tool()
def bootstrap_cache_stats() -> str:
    """
    Show which IANA bootstrap registries are cached and when they expire.

    Returns:
        JSON with "size" and "entries" (type + ISO 8601 expiry).
    """
    stats = get_default_cache().stats()
    return json.dumps({
        "size": stats["size"],
        "entries": [
            {"type": e["type"], "expiry": e["expiry"].isoformat()}
            for e in stats["entries"]
        ],
    })


@mcp.tool()
def clear_bootstrap_cache() -> str:
    """
    Drop all cached IANA bootstrap registries; the next lookup refetches them.

    Returns:
        JSON confirming the cache was cleared.
    """
    get_default_cache().clear()
    return json.dumps({"cleared": True})
