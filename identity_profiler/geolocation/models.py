"""
Location data model and private-address rules.

LocationRecord is produced by the resolvers and treated as immutable, opaque
data by the presence registry. Private/loopback addresses never reach a
lookup backend: they map to a fixed local-development placeholder.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

UNKNOWN = "Unknown"
UNKNOWN_COUNTRY_CODE = "XX"
DEFAULT_TIMEZONE = "UTC"

# IPv4 private/link-local prefixes (RFC1918 + 169.254/16)
PRIVATE_PREFIXES: tuple[str, ...] = (
    "10.",
    *(f"172.{octet}." for octet in range(16, 32)),
    "192.168.",
    "169.254.",
)
# Literal addresses/markers treated as local
LOCAL_LITERALS = frozenset({"127.0.0.1", "localhost", "unknown", "::1", "::ffff:127.0.0.1"})

LOCAL_CITY = "Local Development"
LOCAL_REGION = "Dev"
LOCAL_COUNTRY = "Localhost"
LOCAL_COUNTRY_CODE = "LC"
LOCAL_LATITUDE = 37.7749
LOCAL_LONGITUDE = -122.4194
LOCAL_ISP = "Local Network"


@dataclass(frozen=True)
class LocationRecord:
    """Resolved location for one IP address."""

    ip: str
    city: str
    region: str
    country: str
    country_code: str
    latitude: float
    longitude: float
    timezone: str
    isp: str
    organization: str | None = None
    autonomous_system: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (camelCase keys); optional fields omitted when unset."""
        out: dict[str, Any] = {
            "ip": self.ip,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "countryCode": self.country_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": self.timezone,
            "isp": self.isp,
        }
        if self.organization is not None:
            out["organization"] = self.organization
        if self.autonomous_system is not None:
            out["autonomousSystem"] = self.autonomous_system
        return out

    @property
    def display_name(self) -> str:
        return f"{self.city}, {self.country}"


def is_private_ip(ip: str) -> bool:
    """True for loopback, RFC1918, link-local and the 'localhost'/'unknown' markers."""
    if ip in LOCAL_LITERALS:
        return True
    return ip.startswith(PRIVATE_PREFIXES)


def local_placeholder(ip: str, timezone: str = DEFAULT_TIMEZONE) -> LocationRecord:
    """Fixed record returned for private/loopback addresses (local development)."""
    return LocationRecord(
        ip=ip,
        city=LOCAL_CITY,
        region=LOCAL_REGION,
        country=LOCAL_COUNTRY,
        country_code=LOCAL_COUNTRY_CODE,
        latitude=LOCAL_LATITUDE,
        longitude=LOCAL_LONGITUDE,
        timezone=timezone,
        isp=LOCAL_ISP,
    )


def client_ip(headers: Mapping[str, str], peer_host: str | None) -> str:
    """
    Client IP for a request/handshake: first X-Forwarded-For hop, else the
    socket peer, else loopback.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return peer_host or "127.0.0.1"
