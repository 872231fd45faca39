#!/usr/bin/env python3
"""
Test suite for the RDAP Lookup MCP tools

The tool functions are called directly; lookups run against a fake network
and a private bootstrap cache installed as the process-wide default.

Usage:
    source .venv/bin/activate
    pytest test_server.py
"""

import json

import anyio
import pytest

from conftest import ARIN_AUTNUM, ARIN_NETWORK, CLOUDFLARE_DOMAIN
from rdap_lookup_mcp import __version__, rdap_bootstrap, server
from rdap_lookup_mcp.errors import GeolocationError
from rdap_lookup_mcp.lookup import RDAPLookup
from rdap_lookup_mcp.normalizer import GeoLocation

VERISIGN = "https://rdap.verisign.com/com/v1/"
ARIN = "https://rdap.arin.net/registry/"


def run_sync(fn, *args, **kwargs):
    """Helper to run async tools synchronously for tests."""
    return anyio.run(lambda: fn(*args, **kwargs))


def call(fn, *args, **kwargs) -> dict:
    """Run an async tool and decode its JSON result."""
    return json.loads(run_sync(fn, *args, **kwargs))


@pytest.fixture(autouse=True)
def fake_lookup(monkeypatch, cache, internet):
    internet.add(VERISIGN + "domain/cloudflare.com", json=CLOUDFLARE_DOMAIN)
    internet.add(ARIN + "ip/8.8.8.8", json=ARIN_NETWORK)
    internet.add(ARIN + "autnum/13335", json=ARIN_AUTNUM)
    internet.add(ARIN + "entity/GOGL-ARIN", json={"handle": "GOGL", "roles": ["registrant"]})

    monkeypatch.setattr(rdap_bootstrap, "_default_cache", cache)
    monkeypatch.setattr(
        server,
        "_get_lookup",
        lambda: RDAPLookup(cache=cache, timeout=5.0, geolocation=False, transport=internet.transport),
    )


# =============================================================================
# Server info
# =============================================================================

def test_version_tool():
    assert server.version() == f"RDAP Lookup MCP Server version {__version__}"


def test_tools_are_registered():
    names = {tool.name for tool in anyio.run(server.mcp.list_tools)}
    assert names == {
        "version",
        "lookup_domain",
        "lookup_ip",
        "lookup_asn",
        "lookup_entity",
        "lookup",
        "geolocate_ip",
        "supported_tlds",
        "bootstrap_cache_stats",
        "clear_bootstrap_cache",
    }


# =============================================================================
# Lookup tools
# =============================================================================

def test_lookup_domain_tool():
    result = call(server.lookup_domain, "cloudflare.com")
    assert result["domainName"] == "CLOUDFLARE.COM"
    assert result["registrar"] == "CloudFlare, Inc."
    assert result["registeredOn"] == "Tue, 17 Feb 2009 22:07:54 GMT"
    assert result["rdapServer"] == VERISIGN


def test_lookup_ip_tool_without_location():
    result = call(server.lookup_ip, "8.8.8.8", includeLocation=False)
    assert result["ip"] == "8.8.8.8"
    assert result["network"]["cidr"] == "8.8.8.0/24"
    assert "location" not in result


def test_lookup_asn_tool():
    result = call(server.lookup_asn, "AS13335")
    assert result["asn"] == 13335
    assert result["range"] == {"start": 13335, "end": 13335}


def test_lookup_entity_tool():
    result = call(server.lookup_entity, "GOGL-ARIN")
    assert result["handle"] == "GOGL"
    assert result["rdapServer"] == ARIN


def test_lookup_tool_auto_detects():
    assert call(server.lookup, "AS13335")["asn"] == 13335
    assert call(server.lookup, "cloudflare.com")["domainName"] == "CLOUDFLARE.COM"


# =============================================================================
# Error reporting
# =============================================================================

def test_empty_input_is_rejected():
    assert call(server.lookup_domain, "  ") == {"error": "Domain name is required.", "status": 400}
    assert call(server.lookup_ip, "") == {"error": "IP address is required.", "status": 400}
    assert call(server.lookup_asn, "") == {"error": "ASN number required", "status": 400}
    assert call(server.lookup_entity, "") == {"error": "Entity handle is required.", "status": 400}
    assert call(server.lookup, "") == {"error": "Query is required.", "status": 400}


def test_validation_error_is_reported():
    result = call(server.lookup_ip, "10.0.0.1")
    assert result == {"error": "Private IP addresses are not supported", "status": 400}


def test_no_server_is_reported():
    result = call(server.lookup_domain, "example.zzz")
    assert result["status"] == 404


def test_upstream_status_is_passed_through(internet):
    internet.add(VERISIGN + "domain/missing.com", status=404,
                 json={"errorCode": 404, "description": ["Domain not found"]})
    result = call(server.lookup_domain, "missing.com")
    assert result == {"error": "Domain not found", "status": 404}


def test_bootstrap_failure_is_reported(internet):
    internet.add(rdap_bootstrap.IANA_BOOTSTRAP_URLS["asn"], status=500, json={})
    result = call(server.lookup_asn, "13335")
    assert result == {"error": "Failed to fetch asn bootstrap data", "status": 500}


# =============================================================================
# Geolocation tool
# =============================================================================

def test_geolocate_rejects_bad_addresses():
    assert call(server.geolocate_ip, "nope")["status"] == 400
    assert call(server.geolocate_ip, "192.168.0.1")["error"] == "Private IP addresses are not supported"
    assert call(server.geolocate_ip, "239.1.1.1")["error"] == "Reserved IP addresses are not supported"


def test_geolocate_success(monkeypatch):
    async def fake_geolocate(ip):
        return GeoLocation(ip=ip, city="Mountain View", country_code="US")

    monkeypatch.setattr(server, "geolocate", fake_geolocate)
    result = call(server.geolocate_ip, "8.8.8.8")
    assert result == {"ip": "8.8.8.8", "city": "Mountain View", "countryCode": "US"}


def test_geolocate_failure(monkeypatch):
    async def failing_geolocate(ip):
        raise GeolocationError("quota exceeded")

    monkeypatch.setattr(server, "geolocate", failing_geolocate)
    assert call(server.geolocate_ip, "8.8.8.8") == {"error": "quota exceeded", "status": 502}


# =============================================================================
# Bootstrap cache tools
# =============================================================================

def test_supported_tlds_tool():
    result = call(server.supported_tlds)
    assert result["tlds"] == ["co", "com", "net", "org", "xn--p1ai"]
    assert result["count"] == 5


def test_cache_stats_and_clear(cache):
    assert json.loads(server.bootstrap_cache_stats()) == {"size": 0, "entries": []}

    call(server.lookup_domain, "cloudflare.com")
    stats = json.loads(server.bootstrap_cache_stats())
    assert stats["size"] == 1
    assert stats["entries"][0]["type"] == "dns"
    assert stats["entries"][0]["expiry"].endswith("+00:00")

    assert json.loads(server.clear_bootstrap_cache()) == {"cleared": True}
    assert cache.stats()["size"] == 0
