"""
Error types raised by the RDAP lookup flow.

Every error carries a ``status_code`` so callers that speak HTTP (or the MCP
tools, which report it alongside the message) can map failures without
inspecting message text.
"""


class RDAPLookupError(Exception):
    """Base class for all lookup failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RDAPLookupError):
    """Malformed identifier, private/reserved address, or reserved ASN."""

    status_code = 400


class BootstrapUnavailable(RDAPLookupError):
    """The IANA bootstrap registry could not be fetched."""

    def __init__(self, resource_type: str, detail: str | None = None):
        super().__init__(f"Failed to fetch {resource_type} bootstrap data")
        self.resource_type = resource_type
        self.detail = detail


class NoServerFound(RDAPLookupError):
    """The bootstrap table loaded, but no entry covers the identifier."""

    status_code = 404


class UpstreamQueryError(RDAPLookupError):
    """The RDAP server answered with a non-2xx status (or unusable body)."""

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        if upstream_status is not None and 400 <= upstream_status < 600:
            self.status_code = upstream_status


class TransportError(RDAPLookupError):
    """The RDAP server could not be reached (DNS, TLS, timeout...)."""

    def __init__(self, identifier: str, detail: str):
        super().__init__(f"RDAP query failed for {identifier}: {detail}")
        self.identifier = identifier


class GeolocationError(RDAPLookupError):
    """The geolocation service failed. Never fatal to an RDAP lookup."""

    status_code = 502
