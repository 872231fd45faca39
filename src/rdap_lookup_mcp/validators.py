"""
Identifier validation.

Classifies raw user input as an IPv4/IPv6 address, an autonomous system
number, or a domain name, and produces the canonical form used for bootstrap
resolution and the RDAP query path. Everything here is pure: no I/O.
"""

import ipaddress
import re
from dataclasses import dataclass

import idna

IPV4 = "IPv4"
IPV6 = "IPv6"
ASN = "ASN"
DOMAIN = "domain"

MAX_ASN = 4294967295
RESERVED_ASNS = frozenset({0, 65535, MAX_ASN})

LABEL_PATTERN = re.compile(r"[a-z0-9_-]{1,63}")

PRIVATE_NETWORKS = {
    IPV4: tuple(ipaddress.ip_network(n) for n in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",       # loopback
        "169.254.0.0/16",    # link-local
    )),
    IPV6: tuple(ipaddress.ip_network(n) for n in (
        "fc00::/7",          # unique local
        "fe80::/10",         # link-local
        "::1/128",           # loopback
    )),
}

RESERVED_NETWORKS = {
    IPV4: tuple(ipaddress.ip_network(n) for n in (
        "0.0.0.0/8",             # "this" network
        "224.0.0.0/4",           # multicast
        "240.0.0.0/4",           # future use
        "255.255.255.255/32",    # broadcast
    )),
    IPV6: tuple(ipaddress.ip_network(n) for n in (
        "ff00::/8",              # multicast
        "::/128",                # unspecified
    )),
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one identifier."""

    is_valid: bool
    kind: str | None = None
    normalized: str | int | None = None
    error: str | None = None
    tld: str | None = None

    @classmethod
    def invalid(cls, error: str) -> "ValidationResult":
        return cls(is_valid=False, error=error)


def _parse_ip(ip: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(ip.strip())
    except (ValueError, AttributeError):
        return None


def validate_ip(ip: str) -> ValidationResult:
    """
    Validate and normalize an IP address.

    IPv4 is tried first, then IPv6. IPv6 addresses are returned in their
    compressed canonical form.
    """
    if not isinstance(ip, str):
        return ValidationResult.invalid("Invalid IP address format")

    clean = ip.strip()

    try:
        return ValidationResult(
            is_valid=True, kind=IPV4, normalized=str(ipaddress.IPv4Address(clean))
        )
    except ValueError:
        pass

    try:
        return ValidationResult(
            is_valid=True, kind=IPV6, normalized=str(ipaddress.IPv6Address(clean))
        )
    except ValueError:
        pass

    return ValidationResult.invalid("Invalid IP address format")


def get_ip_version(ip: str) -> str | None:
    """Return "IPv4", "IPv6", or None for anything that is not an address."""
    result = validate_ip(ip)
    return result.kind if result.is_valid else None


def _in_any(ip: str, networks: dict) -> bool:
    addr = _parse_ip(ip) if isinstance(ip, str) else None
    if addr is None:
        return False
    version = IPV4 if addr.version == 4 else IPV6
    return any(addr in network for network in networks[version])


def is_private_ip(ip: str) -> bool:
    """Check if an IP address is in a private, loopback or link-local range."""
    return _in_any(ip, PRIVATE_NETWORKS)


def is_reserved_ip(ip: str) -> bool:
    """Check if an IP address is reserved/special use (multicast, broadcast...)."""
    return _in_any(ip, RESERVED_NETWORKS)


def ip_in_cidr(ip: str, cidr: str) -> bool:
    """
    Check whether ``ip`` falls inside ``cidr``.

    Malformed input on either side, or mixing IP versions, yields False.
    """
    addr = _parse_ip(ip) if isinstance(ip, str) else None
    if addr is None:
        return False
    try:
        network = ipaddress.ip_network(cidr.strip(), strict=False)
    except (ValueError, AttributeError):
        return False
    if network.version != addr.version:
        return False
    return addr in network


def validate_asn(asn: str | int) -> ValidationResult:
    """
    Validate an autonomous system number.

    Accepts an int or a string such as "13335" or "AS13335". AS numbers are
    32-bit; 0, 65535 and 4294967295 are reserved and rejected.
    """
    if isinstance(asn, bool):
        return ValidationResult.invalid("Invalid ASN format")

    if isinstance(asn, int):
        number = asn
    elif isinstance(asn, str):
        text = asn.strip()
        if text[:2].upper() == "AS":
            text = text[2:].strip()
        if not (text.isascii() and text.isdigit()):
            return ValidationResult.invalid("Invalid ASN format")
        number = int(text)
    else:
        return ValidationResult.invalid("Invalid ASN format")

    if number < 0 or number > MAX_ASN:
        return ValidationResult.invalid(f"ASN must be between 0 and {MAX_ASN}")

    if number in RESERVED_ASNS:
        return ValidationResult.invalid("Reserved ASN")

    return ValidationResult(is_valid=True, kind=ASN, normalized=number)


def validate_domain(domain: str) -> ValidationResult:
    """
    Validate a domain name and extract its TLD.

    The name is lowercased, stripped of a trailing dot and encoded per
    IDNA 2008 with UTS #46 mapping, so internationalized names resolve
    against the ASCII entries in the IANA bootstrap file. Deviation
    characters such as "ß" are kept, not folded to "ss".
    """
    if not isinstance(domain, str):
        return ValidationResult.invalid("Domain name is required.")

    name = domain.strip().lower().rstrip(".")
    error = f"'{domain.strip()}' is not a valid domain format."

    if not name or "." not in name:
        return ValidationResult.invalid(error)

    try:
        ascii_name = idna.encode(name, uts46=True).decode("ascii")
    except idna.IDNAError:
        return ValidationResult.invalid(error)

    labels = ascii_name.split(".")
    if not all(LABEL_PATTERN.fullmatch(label) for label in labels):
        return ValidationResult.invalid(error)

    return ValidationResult(
        is_valid=True, kind=DOMAIN, normalized=ascii_name, tld=labels[-1]
    )
