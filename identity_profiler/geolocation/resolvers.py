"""
IP-to-location resolution: local GeoLite2 database with external API fallback.

Candidates are tried in order (MaxMind file, ipwho.is, ipapi.co); the first
non-null record wins. Every failure mode (missing database, unknown IP,
upstream down, malformed body) degrades to None. LocationResolver.resolve()
never raises.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, Sequence

import httpx
import maxminddb

from identity_profiler.geolocation.models import (
    DEFAULT_TIMEZONE,
    UNKNOWN,
    UNKNOWN_COUNTRY_CODE,
    LocationRecord,
    is_private_ip,
    local_placeholder,
)
from identity_profiler.profiler_logging import get_logger

logger = get_logger(__name__)

IPWHOIS_URL = "https://ipwho.is/{ip}"
IPAPI_CO_URL = "https://ipapi.co/{ip}/json/"


class CandidateResolver(Protocol):
    """One lookup backend. Returns None when it cannot answer."""

    name: str

    async def lookup(self, ip: str) -> LocationRecord | None: ...


def _str_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _float_or_zero(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


class MaxMindResolver:
    """
    Local GeoLite2-City lookup. The database is opened once, lazily; a missing
    or unreadable file disables this candidate for the process lifetime.

    GeoLite2-City carries no ISP/ASN data; traits are read when present
    (commercial databases) and default to Unknown otherwise.
    """

    name = "maxmind"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._reader: maxminddb.Reader | None = None
        self._init_attempted = False

    def _open(self) -> maxminddb.Reader | None:
        if self._reader is not None:
            return self._reader
        if self._init_attempted:
            return None
        self._init_attempted = True
        try:
            self._reader = maxminddb.open_database(str(self._db_path))
        except (OSError, maxminddb.InvalidDatabaseError) as e:
            logger.warning(
                "geoip_database_unavailable",
                path=str(self._db_path),
                error=str(e),
                message="Falling back to external APIs; download GeoLite2-City.mmdb for local lookups",
            )
            return None
        logger.info("geoip_database_loaded", path=str(self._db_path))
        return self._reader

    async def lookup(self, ip: str) -> LocationRecord | None:
        reader = self._open()
        if reader is None:
            return None
        try:
            record = reader.get(ip)
        except ValueError:
            # Not a valid IP address
            return None
        if not isinstance(record, dict):
            return None
        return self._to_location(ip, record)

    @staticmethod
    def _to_location(ip: str, record: dict[str, Any]) -> LocationRecord:
        city = (record.get("city") or {}).get("names", {}).get("en")
        subdivisions = record.get("subdivisions") or [{}]
        region = subdivisions[0].get("names", {}).get("en")
        country = record.get("country") or {}
        location = record.get("location") or {}
        traits = record.get("traits") or {}
        return LocationRecord(
            ip=ip,
            city=_str_or(city, UNKNOWN),
            region=_str_or(region, UNKNOWN),
            country=_str_or(country.get("names", {}).get("en"), UNKNOWN),
            country_code=_str_or(country.get("iso_code"), UNKNOWN_COUNTRY_CODE),
            latitude=_float_or_zero(location.get("latitude")),
            longitude=_float_or_zero(location.get("longitude")),
            timezone=_str_or(location.get("time_zone"), DEFAULT_TIMEZONE),
            isp=_str_or(traits.get("isp") or traits.get("organization"), UNKNOWN),
            organization=_str_or(traits.get("organization"), UNKNOWN),
            autonomous_system=_str_or(traits.get("autonomous_system_organization"), UNKNOWN),
        )

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None


class IpWhoIsResolver:
    """https://ipwho.is lookup; body must carry success=true."""

    name = "ipwho.is"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def lookup(self, ip: str) -> LocationRecord | None:
        response = await self._client.get(IPWHOIS_URL.format(ip=ip))
        if not response.is_success:
            return None
        data = response.json()
        if not isinstance(data, dict) or not data.get("success"):
            return None
        connection = data.get("connection") or {}
        timezone = data.get("timezone") or {}
        return LocationRecord(
            ip=_str_or(data.get("ip"), ip),
            city=_str_or(data.get("city"), UNKNOWN),
            region=_str_or(data.get("region"), UNKNOWN),
            country=_str_or(data.get("country"), UNKNOWN),
            country_code=_str_or(data.get("country_code"), UNKNOWN_COUNTRY_CODE),
            latitude=_float_or_zero(data.get("latitude")),
            longitude=_float_or_zero(data.get("longitude")),
            timezone=_str_or(timezone.get("id") if isinstance(timezone, dict) else None, DEFAULT_TIMEZONE),
            isp=_str_or(connection.get("isp") or connection.get("org"), UNKNOWN),
        )


class IpApiCoResolver:
    """https://ipapi.co lookup; body with an 'error' key is a miss."""

    name = "ipapi.co"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def lookup(self, ip: str) -> LocationRecord | None:
        response = await self._client.get(IPAPI_CO_URL.format(ip=ip))
        if not response.is_success:
            return None
        data = response.json()
        if not isinstance(data, dict) or data.get("error"):
            return None
        return LocationRecord(
            ip=_str_or(data.get("ip"), ip),
            city=_str_or(data.get("city"), UNKNOWN),
            region=_str_or(data.get("region"), UNKNOWN),
            country=_str_or(data.get("country_name"), UNKNOWN),
            country_code=_str_or(data.get("country_code"), UNKNOWN_COUNTRY_CODE),
            latitude=_float_or_zero(data.get("latitude")),
            longitude=_float_or_zero(data.get("longitude")),
            timezone=_str_or(data.get("timezone"), DEFAULT_TIMEZONE),
            isp=_str_or(data.get("org"), UNKNOWN),
        )


class ChainResolver:
    """Ordered fallback: first candidate returning a record wins."""

    name = "chain"

    def __init__(self, candidates: Sequence[CandidateResolver]) -> None:
        self._candidates = list(candidates)

    async def lookup(self, ip: str) -> LocationRecord | None:
        for candidate in self._candidates:
            try:
                record = await candidate.lookup(ip)
            except Exception as e:
                logger.debug(
                    "geo_candidate_failed",
                    resolver=candidate.name,
                    ip=ip,
                    error=str(e),
                )
                continue
            if record is not None:
                logger.debug("geo_resolved", resolver=candidate.name, ip=ip, city=record.city)
                return record
        return None


class LocationResolver:
    """
    Entry point used by the presence service.

    resolve(ip) short-circuits private/loopback addresses to the local
    placeholder, otherwise delegates to the candidate chain. Never raises.
    """

    def __init__(
        self,
        chain: CandidateResolver,
        *,
        local_timezone: str = DEFAULT_TIMEZONE,
        http_client: httpx.AsyncClient | None = None,
        maxmind: MaxMindResolver | None = None,
    ) -> None:
        self._chain = chain
        self._local_timezone = local_timezone
        self._http_client = http_client
        self._maxmind = maxmind

    @classmethod
    def from_settings(cls, settings: Any) -> "LocationResolver":
        """Standard chain: GeoLite2 file, then ipwho.is, then ipapi.co."""
        client = httpx.AsyncClient(timeout=settings.geo_http_timeout_sec)
        maxmind = MaxMindResolver(settings.geoip_db_path)
        chain = ChainResolver([maxmind, IpWhoIsResolver(client), IpApiCoResolver(client)])
        return cls(
            chain,
            local_timezone=settings.local_timezone,
            http_client=client,
            maxmind=maxmind,
        )

    async def resolve(self, ip: str) -> LocationRecord | None:
        if is_private_ip(ip):
            return local_placeholder(ip, self._local_timezone)
        try:
            return await self._chain.lookup(ip)
        except Exception as e:
            logger.warning("geo_resolve_failed", ip=ip, error=str(e))
            return None

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
        if self._maxmind is not None:
            self._maxmind.close()
