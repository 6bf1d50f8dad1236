"""
Core utilities: shared exceptions and cross-cutting concerns.
"""

from identity_profiler.core.exceptions import InvalidSignalBundleError, ProfilerError

__all__ = ["InvalidSignalBundleError", "ProfilerError"]
