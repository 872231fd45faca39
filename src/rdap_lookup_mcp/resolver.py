"""
Bootstrap resolution: pick the authoritative RDAP server for an identifier.

All resolvers scan the table in order and return the preferred (first) URL
of the first matching entry, or None when nothing matches.
"""

from .rdap_bootstrap import BootstrapTable
from .validators import ASN, DOMAIN, IPV4, IPV6, ip_in_cidr

OBJECT_TAG = "entity"

# Bootstrap registry consulted for each identifier kind
REGISTRY_TYPES = {
    DOMAIN: "dns",
    IPV4: "ipv4",
    IPV6: "ipv6",
    ASN: "asn",
    OBJECT_TAG: "objectTags",
}


def resolve_domain(tld: str, table: BootstrapTable) -> str | None:
    """Find the server for a TLD (without leading dot), e.g. "com"."""
    tld = tld.lower().lstrip(".")
    for entry in table:
        if entry.preferred_url and tld in entry.ranges:
            return entry.preferred_url
    return None


def resolve_ip(ip: str, table: BootstrapTable) -> str | None:
    """
    Find the server whose CIDR prefixes contain ``ip``.

    Malformed prefixes, and prefixes of the other IP version, never match.
    """
    for entry in table:
        if entry.preferred_url and any(ip_in_cidr(ip, cidr) for cidr in entry.ranges):
            return entry.preferred_url
    return None


def _parse_asn_range(token: str) -> tuple[int, int] | None:
    """Parse "1-1876" or "2043" into an inclusive (start, end) pair."""
    try:
        if "-" in token:
            start, end = token.split("-", 1)
            return int(start), int(end)
        number = int(token)
        return number, number
    except ValueError:
        return None


def resolve_asn(asn: int, table: BootstrapTable) -> str | None:
    """Find the server whose AS number ranges include ``asn``."""
    for entry in table:
        if not entry.preferred_url:
            continue
        for token in entry.ranges:
            bounds = _parse_asn_range(token)
            if bounds and bounds[0] <= asn <= bounds[1]:
                return entry.preferred_url
    return None


def resolve_object_tag(tag: str, table: BootstrapTable) -> str | None:
    """Find the server for an entity object tag, e.g. "ARIN" (case-insensitive)."""
    tag = tag.upper()
    for entry in table:
        if entry.preferred_url and any(t.upper() == tag for t in entry.ranges):
            return entry.preferred_url
    return None


def resolve(identifier: str | int, kind: str, table: BootstrapTable) -> str | None:
    """
    Dispatch to the resolver for ``kind``.

    Domains are resolved by their TLD, entities by their object tag; both
    expect that part to be passed as ``identifier``.
    """
    if kind == DOMAIN:
        return resolve_domain(identifier, table)
    if kind in (IPV4, IPV6):
        return resolve_ip(identifier, table)
    if kind == ASN:
        return resolve_asn(int(identifier), table)
    if kind == OBJECT_TAG:
        return resolve_object_tag(identifier, table)
    raise ValueError(f"Unknown identifier kind: {kind}")
