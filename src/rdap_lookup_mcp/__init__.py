"""
RDAP Lookup MCP Server

An MCP server for looking up domain, IP address, AS number and entity
registration data via RDAP, using the IANA bootstrap registries to find the
authoritative server.
"""

__version__ = "0.1.0"


def main():
    """Main entry point for the CLI."""
    import sys

    # Handle CLI arguments before importing heavy dependencies
    if "--help" in sys.argv or "-h" in sys.argv:
        print_help()
        sys.exit(0)

    if "--version" in sys.argv or "-V" in sys.argv:
        print(f"rdap-lookup-mcp {__version__}")
        sys.exit(0)

    if "--show-config" in sys.argv:
        show_config()
        sys.exit(0)

    if "--lookup" in sys.argv:
        index = sys.argv.index("--lookup")
        queries = sys.argv[index + 1:]
        if not queries:
            print("Error: --lookup requires at least one identifier", file=sys.stderr)
            sys.exit(2)
        sys.exit(run_lookup(queries))

    configure_logging()

    # Default: run the MCP server
    from .server import mcp
    mcp.run()


def configure_logging():
    """Log to stderr (stdout carries the MCP stdio transport)."""
    import logging
    import sys

    from .config import get_settings

    debug = get_settings().debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def print_help():
    """Print help message."""
    print(f"""rdap-lookup-mcp {__version__}

An MCP server for RDAP lookups of domains, IP addresses, AS numbers and entities.

Usage:
    rdap-lookup-mcp                      Run the MCP server
    rdap-lookup-mcp --lookup QUERY...    Look up identifiers and print JSON
    rdap-lookup-mcp --show-config        Show current configuration
    rdap-lookup-mcp --version            Show version
    rdap-lookup-mcp --help               Show this help

Configuration:
    Works out of the box; no API key is required.

    Settings can be given as environment variables or in the config file
    (see --show-config for its location):
        RDAP_LOOKUP_TIMEOUT         HTTP timeout in seconds (default 15)
        RDAP_LOOKUP_GEOLOCATION     Add ip-api.com location to IP lookups (default true)
        RDAP_LOOKUP_BOOTSTRAP_TTL   Bootstrap cache lifetime in seconds (default 86400)
        RDAP_LOOKUP_DEBUG           Verbose logging, including HTTP requests

Claude Desktop / MCP client setup:
    {{
      "mcpServers": {{
        "rdap-lookup": {{
          "command": "uvx",
          "args": ["rdap-lookup-mcp"]
        }}
      }}
    }}
""")


def show_config():
    """Show current configuration."""
    from .config import DEFAULTS, get_config_file, get_config_source, get_settings

    print("Configuration")
    print("=" * 50)
    print()

    config_file = get_config_file()
    print(f"Config file: {config_file}")
    print(f"  Exists: {config_file.exists()}")
    print()

    settings = get_settings()
    for key in DEFAULTS:
        print(f"{key}: {getattr(settings, key)}")
        print(f"  Source: {get_config_source(key)}")


def run_lookup(queries: list[str]) -> int:
    """Look up each query and print the JSON result. Returns an exit code."""
    import asyncio
    import json

    from .errors import RDAPLookupError
    from .lookup import RDAPLookup

    configure_logging()

    async def _lookup_all() -> int:
        lookup = RDAPLookup()
        failures = 0
        for query in queries:
            try:
                record = await lookup.lookup(query)
                print(json.dumps(record.to_dict(), indent=2))
            except RDAPLookupError as e:
                failures += 1
                print(json.dumps({"query": query, "error": e.message, "status": e.status_code}, indent=2))
        return failures

    return 1 if asyncio.run(_lookup_all()) else 0
