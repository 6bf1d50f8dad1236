"""
Geolocation package: IP-to-location resolution for connected viewers.
"""

from identity_profiler.geolocation.models import (
    LocationRecord,
    client_ip,
    is_private_ip,
    local_placeholder,
)
from identity_profiler.geolocation.resolvers import (
    ChainResolver,
    IpApiCoResolver,
    IpWhoIsResolver,
    LocationResolver,
    MaxMindResolver,
)

__all__ = [
    "LocationRecord",
    "client_ip",
    "is_private_ip",
    "local_placeholder",
    "ChainResolver",
    "IpApiCoResolver",
    "IpWhoIsResolver",
    "LocationResolver",
    "MaxMindResolver",
]
