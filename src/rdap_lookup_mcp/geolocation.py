"""
IP geolocation enrichment via ip-api.com.

This is not RDAP data: it is a best-effort extra shown next to an IP lookup.
try_geolocate() never raises, so a flaky geolocation service cannot fail
the RDAP result it decorates.
"""

import logging

import httpx

from .config import DEFAULT_TIMEOUT
from .errors import GeolocationError
from .normalizer import GeoLocation
from .rdap_client import USER_AGENT

logger = logging.getLogger(__name__)

GEOLOCATION_API_URL = "http://ip-api.com/json/{ip}"
GEOLOCATION_FIELDS = (
    "status,message,country,countryCode,region,regionName,city,zip,"
    "lat,lon,timezone,isp,org,as,query"
)
DATA_SOURCE = "ip-api.com"
DISCLAIMER = (
    "Geolocation data provided by ip-api.com. This data is not from RDAP "
    "servers and may not be 100% accurate."
)


def _parse_geolocation(data: dict) -> GeoLocation:
    def text(key: str) -> str | None:
        value = data.get(key)
        return value if isinstance(value, str) and value else None

    def number(key: str) -> float | None:
        value = data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    return GeoLocation(
        ip=text("query"),
        country=text("country"),
        country_code=text("countryCode"),
        region=text("regionName"),
        city=text("city"),
        zip_code=text("zip"),
        latitude=number("lat"),
        longitude=number("lon"),
        timezone=text("timezone"),
        isp=text("isp"),
        organization=text("org"),
        asn=text("as"),
        data_source=DATA_SOURCE,
        disclaimer=DISCLAIMER,
    )


async def geolocate(
    ip: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeoLocation:
    """
    Look up the approximate location of an IP address.

    Raises:
        GeolocationError: transport failure, non-2xx status, or the API
            reporting "status": "fail".
    """
    url = GEOLOCATION_API_URL.format(ip=ip)

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(
                url,
                params={"fields": GEOLOCATION_FIELDS},
                headers={"User-Agent": USER_AGENT},
            )
    except httpx.HTTPError as e:
        raise GeolocationError(f"Geolocation lookup failed: {e}") from e

    if not response.is_success:
        raise GeolocationError(f"HTTP {response.status_code}: {response.reason_phrase}")

    try:
        data = response.json()
    except ValueError as e:
        raise GeolocationError("Invalid JSON in geolocation response") from e

    if not isinstance(data, dict):
        raise GeolocationError("Invalid JSON in geolocation response")

    if data.get("status") == "fail":
        raise GeolocationError(data.get("message") or "Geolocation lookup failed")

    return _parse_geolocation(data)


async def try_geolocate(
    ip: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeoLocation | None:
    """Geolocate ``ip``, returning None (and logging) instead of raising."""
    try:
        return await geolocate(ip, timeout=timeout, transport=transport)
    except GeolocationError as e:
        logger.warning("Geolocation lookup error for %s: %s", ip, e)
        return None
