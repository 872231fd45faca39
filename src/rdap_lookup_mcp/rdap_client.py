"""
Async RDAP Query Client

Issues a single GET against an authoritative RDAP server and returns the
decoded JSON object, translating failures into the lookup error types.
"""

import logging
from urllib.parse import quote

import httpx

from . import __version__
from .config import DEFAULT_TIMEOUT
from .errors import TransportError, UpstreamQueryError

logger = logging.getLogger(__name__)

USER_AGENT = f"RDAPLookupMCP/{__version__}"
ACCEPT = "application/rdap+json, application/json"

# RDAP object classes and their query path segments
OBJECT_PATHS = ("domain", "ip", "autnum", "entity", "nameserver")


def build_query_url(base_url: str, object_path: str, identifier: str | int) -> str:
    """
    Join a bootstrap base URL, object path and identifier.

    The identifier is percent-encoded as a single path segment; ":" stays
    literal for IPv6 addresses.
    """
    if object_path not in OBJECT_PATHS:
        raise ValueError(f"Unknown RDAP object path: {object_path}")
    if not base_url.endswith("/"):
        base_url += "/"
    return f"{base_url}{object_path}/{quote(str(identifier), safe=':')}"


def _error_message(response: httpx.Response) -> str:
    """
    Extract a human-readable message from an RDAP error response.

    RDAP error bodies carry "title" and "description" (a list of lines per
    RFC 9083, though some servers send a plain string).
    """
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"

    try:
        data = response.json()
    except ValueError:
        return fallback

    if not isinstance(data, dict):
        return fallback

    description = data.get("description")
    if isinstance(description, list):
        description = " ".join(str(line) for line in description if line)
    if isinstance(description, str) and description.strip():
        return description.strip()

    title = data.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()

    return fallback


class RDAPQueryClient:
    """
    Async RDAP client with connection pooling.

    Usage:
        async with RDAPQueryClient() as client:
            data = await client.query("https://rdap.verisign.com/com/v1/", "domain", "example.com")
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "RDAPQueryClient":
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Accept": ACCEPT, "User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def query(self, base_url: str, object_path: str, identifier: str | int) -> dict:
        """
        Query ``{base_url}/{object_path}/{identifier}``.

        Returns:
            The decoded RDAP JSON object.

        Raises:
            UpstreamQueryError: the server answered with a non-2xx status or
                a body that is not a JSON object.
            TransportError: the server could not be reached.
        """
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        url = build_query_url(base_url, object_path, identifier)

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            logger.error("RDAP query failed for %s: timeout", identifier)
            raise TransportError(str(identifier), "Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("RDAP query failed for %s: %s", identifier, e)
            raise TransportError(str(identifier), str(e)[:200] or type(e).__name__) from e

        if not response.is_success:
            message = _error_message(response)
            logger.error("RDAP query failed for %s: %s", identifier, message)
            raise UpstreamQueryError(message, upstream_status=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamQueryError(
                "Invalid JSON in RDAP response", upstream_status=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise UpstreamQueryError(
                "Invalid JSON in RDAP response", upstream_status=response.status_code
            )

        return data


async def query_rdap(
    base_url: str,
    object_path: str,
    identifier: str | int,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """
    Convenience function for a single query without managing client lifecycle.
    """
    async with RDAPQueryClient(timeout=timeout, transport=transport) as client:
        return await client.query(base_url, object_path, identifier)
