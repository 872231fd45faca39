"""
RDAP Response Normalizer

Maps raw RDAP JSON (domain, IP network, autnum and entity objects) into flat
records that are easy to render. Every field of the input is optional: a
missing or oddly-typed field never raises, it just produces "N/A" (domain
records) or an omitted field (everything else).
"""

import ipaddress
import math
import re
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from email.utils import format_datetime

from .validators import IPV4, IPV6
from .vcard import get_text

NOT_AVAILABLE = "N/A"
EPP_STATUS_URL = "https://icann.org/epp#"


# =============================================================================
# Records
# =============================================================================

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _to_json(value):
    if is_dataclass(value):
        return {
            _camel(f.name): _to_json(getattr(value, f.name))
            for f in fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


class _Record:
    def to_dict(self) -> dict:
        """Convert to a JSON-ready dict with camelCase keys, dropping None fields."""
        return _to_json(self)


@dataclass
class StatusLabel(_Record):
    label: str
    url: str


@dataclass
class EntityDetails(_Record):
    handle: str | None = None
    roles: list[str] = field(default_factory=list)
    name: str | None = None
    email: str | None = None
    organization: str | None = None


@dataclass
class DomainRecord(_Record):
    domain_name: str = NOT_AVAILABLE
    registrar: str = NOT_AVAILABLE
    registrar_url: str | None = None
    registrar_abuse_email: str | None = None
    registrar_abuse_phone: str | None = None
    dnssec: str = "Unsigned"
    registered_on: str = NOT_AVAILABLE
    expires_on: str = NOT_AVAILABLE
    last_updated: str = NOT_AVAILABLE
    last_transferred: str = NOT_AVAILABLE
    statuses: list[StatusLabel] = field(default_factory=list)
    nameservers: list[str] = field(default_factory=list)
    entities: list[EntityDetails] = field(default_factory=list)
    remarks: list[dict] | None = None
    links: list[dict] | None = None
    rdap_server: str | None = None


@dataclass
class NetworkInfo(_Record):
    cidr: str | None = None
    start_address: str | None = None
    end_address: str | None = None
    handle: str | None = None
    name: str | None = None
    type: str | None = None
    country: str | None = None
    status: list[str] | None = None
    organization: str | None = None
    registrar: str | None = None


@dataclass
class GeoLocation(_Record):
    ip: str | None = None
    country: str | None = None
    country_code: str | None = None
    region: str | None = None
    city: str | None = None
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    isp: str | None = None
    organization: str | None = None
    asn: str | None = None
    data_source: str | None = None
    disclaimer: str | None = None


@dataclass
class IPRecord(_Record):
    ip: str
    type: str
    network: NetworkInfo = field(default_factory=NetworkInfo)
    registration_date: str | None = None
    last_changed: str | None = None
    entities: list[EntityDetails] = field(default_factory=list)
    remarks: list[dict] | None = None
    location: GeoLocation | None = None
    rdap_server: str | None = None


@dataclass
class ASNRange(_Record):
    start: int
    end: int


@dataclass
class ASNRecord(_Record):
    asn: int
    range: ASNRange
    handle: str | None = None
    name: str | None = None
    type: str | None = None
    status: list[str] | None = None
    country: str | None = None
    organization: str | None = None
    registrar: str | None = None
    registration_date: str | None = None
    last_changed: str | None = None
    entities: list[EntityDetails] = field(default_factory=list)
    remarks: list[dict] | None = None
    rdap_server: str | None = None


@dataclass
class EntityRecord(_Record):
    handle: str | None = None
    roles: list[str] = field(default_factory=list)
    name: str | None = None
    organization: str | None = None
    email: str | None = None
    phone: str | None = None
    url: str | None = None
    registration_date: str | None = None
    last_changed: str | None = None
    entities: list[EntityDetails] = field(default_factory=list)
    remarks: list[dict] | None = None
    links: list[dict] | None = None
    rdap_server: str | None = None


# =============================================================================
# Shared extraction helpers
# =============================================================================

def _list_of_dicts(value) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _string_list(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _str_or_none(value) -> str | None:
    return value if isinstance(value, str) and value else None


def format_rdap_date(value: str) -> str | None:
    """
    Format an RDAP (RFC 3339) timestamp as an RFC 1123 UTC string.

    "2021-09-19T15:18:19Z" -> "Sun, 19 Sep 2021 15:18:19 GMT". Timestamps
    without an offset are taken as UTC. Unparseable input returns None.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    # Output has second precision
    text = re.sub(r"\.\d+", "", text, count=1)

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def find_event_date(events, action: str) -> str | None:
    """
    Find the formatted date of the first event with ``eventAction == action``.

    Matching events whose date is missing or unparseable are skipped.
    """
    for event in _list_of_dicts(events):
        if event.get("eventAction") == action:
            date = format_rdap_date(event.get("eventDate"))
            if date:
                return date
    return None


def find_last_changed(events) -> str | None:
    """Last change date, from "last changed" or else "last update"."""
    return find_event_date(events, "last changed") or find_event_date(events, "last update")


def format_status(status: str) -> StatusLabel:
    """Pair an EPP status with its ICANN documentation URL."""
    return StatusLabel(
        label=status[:1].upper() + status[1:],
        url=EPP_STATUS_URL + re.sub(r"\s+", "", status.lower()),
    )


def extract_entity(entity: dict) -> EntityDetails:
    """Extract handle, roles, name, email and organization from an entity."""
    return EntityDetails(
        handle=_str_or_none(entity.get("handle")),
        roles=_string_list(entity.get("roles")) or [],
        name=get_text(entity, "fn"),
        email=get_text(entity, "email"),
        organization=get_text(entity, "org"),
    )


def _has_role(entity: dict, role: str) -> bool:
    roles = entity.get("roles")
    return isinstance(roles, list) and role in roles


def find_registrar(entities) -> dict | None:
    """Find the first entity acting as registrar."""
    for entity in _list_of_dicts(entities):
        if _has_role(entity, "registrar"):
            return entity
    return None


def extract_organization(entities) -> str | None:
    """First organization name among the entities, falling back to a full name."""
    for entity in _list_of_dicts(entities):
        if not entity.get("vcardArray"):
            continue
        org = get_text(entity, "org")
        if org:
            return org
        fn = get_text(entity, "fn")
        if fn:
            return fn
    return None


def network_cidr(start: str | None, end: str | None, version: str | None = None) -> str | None:
    """
    Express a start/end address pair as CIDR notation.

    IPv4 prefixes come from the size of the range. IPv6 ranges are always
    shown as start/64, which is a presentation default and not the real
    prefix of the allocation.
    """
    if not start or not end:
        return None

    if version is None:
        version = IPV6 if ":" in start else IPV4

    if version == IPV6:
        return f"{start}/64"

    try:
        size = int(ipaddress.IPv4Address(end)) - int(ipaddress.IPv4Address(start)) + 1
        prefix = math.floor(32 - math.log2(size))
    except ValueError:
        return f"{start}-{end}"
    return f"{start}/{prefix}"


# =============================================================================
# Per object class normalizers
# =============================================================================

def normalize_domain(data: dict, rdap_server: str | None = None) -> DomainRecord:
    """Normalize an RDAP domain object."""
    events = data.get("events")
    entities = _list_of_dicts(data.get("entities"))
    registrar = find_registrar(entities) or {}
    secure_dns = data.get("secureDNS")

    statuses = [format_status(s) for s in _string_list(data.get("status")) or [] if s]
    nameservers = [
        ns["ldhName"]
        for ns in _list_of_dicts(data.get("nameservers"))
        if isinstance(ns.get("ldhName"), str) and ns["ldhName"]
    ]

    return DomainRecord(
        domain_name=_str_or_none(data.get("ldhName")) or NOT_AVAILABLE,
        registrar=get_text(registrar, "fn") or NOT_AVAILABLE,
        registrar_url=get_text(registrar, "url"),
        registrar_abuse_email=get_text(registrar, "email"),
        registrar_abuse_phone=get_text(registrar, "tel"),
        dnssec="Signed" if isinstance(secure_dns, dict) and secure_dns.get("delegationSigned") else "Unsigned",
        registered_on=find_event_date(events, "registration") or NOT_AVAILABLE,
        expires_on=find_event_date(events, "expiration") or NOT_AVAILABLE,
        last_updated=find_last_changed(events) or NOT_AVAILABLE,
        last_transferred=find_event_date(events, "transfer") or NOT_AVAILABLE,
        statuses=statuses,
        nameservers=nameservers,
        entities=[extract_entity(e) for e in entities],
        remarks=_list_of_dicts(data.get("remarks")) or None,
        links=_list_of_dicts(data.get("links")) or None,
        rdap_server=rdap_server,
    )


def normalize_ip(
    data: dict,
    ip: str,
    version: str,
    rdap_server: str | None = None,
) -> IPRecord:
    """Normalize an RDAP ip network object for the queried address."""
    entities = _list_of_dicts(data.get("entities"))
    registrar = find_registrar(entities)
    start = _str_or_none(data.get("startAddress"))
    end = _str_or_none(data.get("endAddress"))

    network = NetworkInfo(
        cidr=network_cidr(start, end, version),
        start_address=start,
        end_address=end,
        handle=_str_or_none(data.get("handle")),
        name=_str_or_none(data.get("name")),
        type=_str_or_none(data.get("type")),
        country=_str_or_none(data.get("country")),
        status=_string_list(data.get("status")),
        organization=extract_organization(entities),
        registrar=extract_organization([registrar]) if registrar else None,
    )

    return IPRecord(
        ip=ip,
        type=version,
        network=network,
        registration_date=find_event_date(data.get("events"), "registration"),
        last_changed=find_last_changed(data.get("events")),
        entities=[extract_entity(e) for e in entities],
        remarks=_list_of_dicts(data.get("remarks")) or None,
        rdap_server=rdap_server,
    )


def normalize_asn(data: dict, asn: int, rdap_server: str | None = None) -> ASNRecord:
    """Normalize an RDAP autnum object for the queried AS number."""
    entities = _list_of_dicts(data.get("entities"))
    registrar = find_registrar(entities)
    start = data.get("startAutnum")
    end = data.get("endAutnum")

    return ASNRecord(
        asn=asn,
        range=ASNRange(
            start=start if isinstance(start, int) and start else asn,
            end=end if isinstance(end, int) and end else asn,
        ),
        handle=_str_or_none(data.get("handle")),
        name=_str_or_none(data.get("name")),
        type=_str_or_none(data.get("type")),
        status=_string_list(data.get("status")),
        country=_str_or_none(data.get("country")),
        organization=extract_organization(entities),
        registrar=extract_organization([registrar]) if registrar else None,
        registration_date=find_event_date(data.get("events"), "registration"),
        last_changed=find_last_changed(data.get("events")),
        entities=[extract_entity(e) for e in entities],
        remarks=_list_of_dicts(data.get("remarks")) or None,
        rdap_server=rdap_server,
    )


def normalize_entity(data: dict, rdap_server: str | None = None) -> EntityRecord:
    """Normalize a top-level RDAP entity object (e.g. an ARIN org handle)."""
    return EntityRecord(
        handle=_str_or_none(data.get("handle")),
        roles=_string_list(data.get("roles")) or [],
        name=get_text(data, "fn"),
        organization=get_text(data, "org"),
        email=get_text(data, "email"),
        phone=get_text(data, "tel"),
        url=get_text(data, "url"),
        registration_date=find_event_date(data.get("events"), "registration"),
        last_changed=find_last_changed(data.get("events")),
        entities=[extract_entity(e) for e in _list_of_dicts(data.get("entities"))],
        remarks=_list_of_dicts(data.get("remarks")) or None,
        links=_list_of_dicts(data.get("links")) or None,
        rdap_server=rdap_server,
    )
