#!/usr/bin/env python3
"""
CLI tool to look up RDAP registration data for domains, IPs, ASNs and entities.

Usage:
    python check_rdap.py example.com 1.1.1.1 AS13335
    python check_rdap.py --type ip 2606:4700:4700::1111 --no-location
    python check_rdap.py cloudflare.com --json

Environment:
    RDAP_LOOKUP_TIMEOUT - HTTP timeout in seconds (default 15)
"""

import argparse
import asyncio
import json
import sys

from rdap_lookup_mcp.errors import RDAPLookupError
from rdap_lookup_mcp.lookup import RDAPLookup
from rdap_lookup_mcp.normalizer import ASNRecord, DomainRecord, EntityRecord, IPRecord


def format_record(record) -> list[str]:
    """Render a normalized record as human-readable lines."""
    lines = []

    if isinstance(record, DomainRecord):
        lines.append(f"Domain:        {record.domain_name}")
        lines.append(f"Registrar:     {record.registrar}")
        if record.registrar_url:
            lines.append(f"Registrar URL: {record.registrar_url}")
        if record.registrar_abuse_email:
            lines.append(f"Abuse email:   {record.registrar_abuse_email}")
        lines.append(f"DNSSEC:        {record.dnssec}")
        lines.append(f"Registered:    {record.registered_on}")
        lines.append(f"Expires:       {record.expires_on}")
        lines.append(f"Last updated:  {record.last_updated}")
        for status in record.statuses:
            lines.append(f"Status:        {status.label} ({status.url})")
        for ns in record.nameservers:
            lines.append(f"Nameserver:    {ns}")

    elif isinstance(record, IPRecord):
        net = record.network
        lines.append(f"IP:            {record.ip} ({record.type})")
        lines.append(f"Network:       {net.cidr or 'N/A'}")
        lines.append(f"Name:          {net.name or 'N/A'}")
        lines.append(f"Organization:  {net.organization or 'N/A'}")
        lines.append(f"Country:       {net.country or 'N/A'}")
        if record.location:
            loc = record.location
            place = ", ".join(p for p in (loc.city, loc.region, loc.country) if p)
            lines.append(f"Location:      {place or 'N/A'} (via {loc.data_source})")

    elif isinstance(record, ASNRecord):
        lines.append(f"ASN:           AS{record.asn}")
        lines.append(f"Range:         AS{record.range.start} - AS{record.range.end}")
        lines.append(f"Name:          {record.name or 'N/A'}")
        lines.append(f"Organization:  {record.organization or 'N/A'}")
        lines.append(f"Country:       {record.country or 'N/A'}")
        lines.append(f"Registered:    {record.registration_date or 'N/A'}")

    elif isinstance(record, EntityRecord):
        lines.append(f"Handle:        {record.handle or 'N/A'}")
        lines.append(f"Name:          {record.name or 'N/A'}")
        lines.append(f"Organization:  {record.organization or 'N/A'}")
        if record.email:
            lines.append(f"Email:         {record.email}")
        if record.roles:
            lines.append(f"Roles:         {', '.join(record.roles)}")

    lines.append(f"RDAP server:   {record.rdap_server}")
    return lines


async def run(queries: list[str], kind: str, include_location: bool) -> list[tuple[str, object]]:
    """Look up each query; returns (query, record or error) pairs."""
    lookup = RDAPLookup(geolocation=include_location)
    results = []

    for query in queries:
        try:
            if kind == "domain":
                record = await lookup.lookup_domain(query)
            elif kind == "ip":
                record = await lookup.lookup_ip(query)
            elif kind == "asn":
                record = await lookup.lookup_asn(query)
            elif kind == "entity":
                record = await lookup.lookup_entity(query)
            else:
                record = await lookup.lookup(query)
            results.append((query, record))
        except RDAPLookupError as e:
            results.append((query, e))

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Look up RDAP registration data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s example.com
    %(prog)s 1.1.1.1 AS13335 GOGL-ARIN
    %(prog)s --type asn 15169 --json
        """
    )
    parser.add_argument(
        "queries",
        nargs="+",
        help="Domains, IP addresses, AS numbers or entity handles"
    )
    parser.add_argument(
        "--type",
        choices=["auto", "domain", "ip", "asn", "entity"],
        default="auto",
        help="Identifier type (default: detect automatically)"
    )
    parser.add_argument(
        "--no-location",
        action="store_true",
        help="Skip geolocation enrichment for IP lookups"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )

    args = parser.parse_args()

    results = asyncio.run(run(args.queries, args.type, not args.no_location))
    failed = False

    if args.json:
        output = []
        for query, result in results:
            if isinstance(result, RDAPLookupError):
                failed = True
                output.append({"query": query, "error": result.message, "status": result.status_code})
            else:
                output.append(result.to_dict())
        print(json.dumps(output, indent=2))
    else:
        for query, result in results:
            print(f"=== {query}")
            if isinstance(result, RDAPLookupError):
                failed = True
                print(f"[!] ERROR ({result.status_code}): {result.message}")
            else:
                for line in format_record(result):
                    print(f"    {line}")
            print()

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
