"""
Identity Profiler: live viewer presence and signal-fusion profiling.

Tracks concurrently connected viewers over WebSockets (join/leave broadcasts,
heartbeat eviction) and turns client-reported browser signals into an
explainable, bounded profile. Modular layout: geolocation, presence,
analysis engine, API server.
"""

__version__ = "0.1.0"
