"""
Shared fixtures for the RDAP Lookup MCP test suite.

No test touches the network: every HTTP request goes through an
httpx.MockTransport backed by FakeInternet, which serves canned IANA
bootstrap files and RDAP responses and records what was requested.
"""

import httpx
import pytest

from rdap_lookup_mcp.rdap_bootstrap import IANA_BOOTSTRAP_URLS, BootstrapCache

DNS_BOOTSTRAP = {
    "description": "RDAP bootstrap file for Domain Name System registrations",
    "publication": "2024-05-01T20:00:01Z",
    "version": "1.0",
    "services": [
        [["com", "net"], ["https://rdap.verisign.com/com/v1/"]],
        [["co"], ["https://rdap.nic.co/"]],
        [["org"], ["https://rdap.publicinterestregistry.org/rdap/"]],
        [["xn--p1ai"], ["https://rdap.tcinet.ru/"]],
    ],
}

IPV4_BOOTSTRAP = {
    "description": "RDAP bootstrap file for IPv4 address allocations",
    "publication": "2024-05-01T20:00:01Z",
    "version": "1.0",
    "services": [
        [["not-a-cidr", "1.0.0.0/8", "103.0.0.0/8"], ["https://rdap.apnic.net/"]],
        [["8.0.0.0/8", "192.0.0.0/8"], ["https://rdap.arin.net/registry/", "http://rdap.arin.net/registry/"]],
        [["193.0.0.0/8"], ["https://rdap.db.ripe.net/"]],
    ],
}

IPV6_BOOTSTRAP = {
    "description": "RDAP bootstrap file for IPv6 address allocations",
    "publication": "2024-05-01T20:00:01Z",
    "version": "1.0",
    "services": [
        [["2001:4200::/23"], ["https://rdap.afrinic.net/rdap/"]],
        [["2600::/12"], ["https://rdap.arin.net/registry/"]],
    ],
}

ASN_BOOTSTRAP = {
    "description": "RDAP bootstrap file for Autonomous System Number allocations",
    "publication": "2024-05-01T20:00:01Z",
    "version": "1.0",
    "services": [
        [["1-1876", "1902-2042"], ["https://rdap.arin.net/registry/"]],
        [["2043"], ["https://rdap.db.ripe.net/"]],
        [["13312-15359"], ["https://rdap.arin.net/registry/"]],
    ],
}

OBJECT_TAGS_BOOTSTRAP = {
    "description": "RDAP bootstrap file for service provider object tags",
    "publication": "2024-05-01T20:00:01Z",
    "version": "1.0",
    "services": [
        [["info@arin.net"], ["ARIN"], ["https://rdap.arin.net/registry/"]],
        [["rdap@ripe.net"], ["RIPE"], ["https://rdap.db.ripe.net/"]],
    ],
}

BOOTSTRAP_DOCUMENTS = {
    "dns": DNS_BOOTSTRAP,
    "ipv4": IPV4_BOOTSTRAP,
    "ipv6": IPV6_BOOTSTRAP,
    "asn": ASN_BOOTSTRAP,
    "objectTags": OBJECT_TAGS_BOOTSTRAP,
}

CLOUDFLARE_DOMAIN = {
    "objectClassName": "domain",
    "ldhName": "CLOUDFLARE.COM",
    "events": [
        {"eventAction": "registration", "eventDate": "2009-02-17T22:07:54Z"},
        {"eventAction": "expiration", "eventDate": "2033-02-17T22:07:54Z"},
        {"eventAction": "last changed", "eventDate": "2024-01-09T16:45:28Z"},
    ],
    "entities": [
        {
            "objectClassName": "entity",
            "handle": "1910",
            "roles": ["registrar"],
            "vcardArray": ["vcard", [
                ["version", {}, "text", "4.0"],
                ["fn", {}, "text", "CloudFlare, Inc."],
                ["url", {}, "uri", "https://www.cloudflare.com"],
                ["email", {}, "text", "registrar-abuse@cloudflare.com"],
                ["tel", {"type": "voice"}, "uri", "tel:+1.4153197517"],
            ]],
        },
    ],
    "status": ["client transfer prohibited", "server delete prohibited"],
    "nameservers": [
        {"objectClassName": "nameserver", "ldhName": "NS3.CLOUDFLARE.COM"},
        {"objectClassName": "nameserver", "ldhName": "NS4.CLOUDFLARE.COM"},
    ],
    "secureDNS": {"delegationSigned": True},
}

ARIN_NETWORK = {
    "objectClassName": "ip network",
    "handle": "NET-8-8-8-0-2",
    "startAddress": "8.8.8.0",
    "endAddress": "8.8.8.255",
    "ipVersion": "v4",
    "name": "GOGL",
    "type": "DIRECT ALLOCATION",
    "country": "US",
    "status": ["active"],
    "events": [
        {"eventAction": "registration", "eventDate": "2023-12-28T17:24:33-05:00"},
        {"eventAction": "last changed", "eventDate": "2023-12-28T17:24:56-05:00"},
    ],
    "entities": [
        {
            "handle": "GOGL",
            "roles": ["registrant"],
            "vcardArray": ["vcard", [
                ["version", {}, "text", "4.0"],
                ["fn", {}, "text", "Google LLC"],
                ["kind", {}, "text", "org"],
            ]],
        },
    ],
}

ARIN_AUTNUM = {
    "objectClassName": "autnum",
    "handle": "AS13335",
    "startAutnum": 13335,
    "endAutnum": 13335,
    "name": "CLOUDFLARENET",
    "status": ["active"],
    "events": [
        {"eventAction": "registration", "eventDate": "2010-07-14T18:35:57-04:00"},
        {"eventAction": "last changed", "eventDate": "2017-02-17T18:08:51-05:00"},
    ],
    "entities": [
        {
            "handle": "CLOUD14",
            "roles": ["registrant"],
            "vcardArray": ["vcard", [
                ["version", {}, "text", "4.0"],
                ["fn", {}, "text", "Cloudflare, Inc."],
            ]],
        },
    ],
}


class Clock:
    """A manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _route_key(url) -> str:
    url = httpx.URL(str(url))
    return f"{url.scheme}://{url.host}{url.path}"


class FakeInternet:
    """Routes requests to canned responses and records every request."""

    def __init__(self):
        self.routes: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, json=None, status: int = 200, text: str | None = None,
            exc: Exception | None = None) -> None:
        self.routes[_route_key(url)] = {"json": json, "status": status, "text": text, "exc": exc}

    def requested(self, url: str) -> int:
        """How many times ``url`` was requested (query string ignored)."""
        key = _route_key(url)
        return sum(1 for r in self.requests if _route_key(r.url) == key)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(_route_key(request.url))
        if route is None:
            return httpx.Response(404, json={"errorCode": 404, "title": "Not Found"})
        if route["exc"] is not None:
            raise route["exc"]
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        return httpx.Response(route["status"], json=route["json"])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def internet() -> FakeInternet:
    """A FakeInternet serving all five IANA bootstrap registries."""
    fake = FakeInternet()
    for resource_type, url in IANA_BOOTSTRAP_URLS.items():
        fake.add(url, json=BOOTSTRAP_DOCUMENTS[resource_type])
    return fake


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def cache(internet, clock) -> BootstrapCache:
    return BootstrapCache(clock=clock, transport=internet.transport)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and RDAP_LOOKUP_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "config"))
    for var in ("RDAP_LOOKUP_TIMEOUT", "RDAP_LOOKUP_GEOLOCATION",
                "RDAP_LOOKUP_BOOTSTRAP_TTL", "RDAP_LOOKUP_DEBUG"):
        monkeypatch.delenv(var, raising=False)
