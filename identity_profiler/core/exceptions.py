"""
Application-level exceptions.

Domain exceptions with consistent messages for API error handling.
"""

from __future__ import annotations

from typing import Any


class ProfilerError(Exception):
    """Base class for Identity Profiler errors."""


class InvalidSignalBundleError(ProfilerError):
    """
    Raised when an analysis request is not a usable SignalBundle.

    errors: pydantic-style error list (loc, msg, type) for the response/log.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def summary(self) -> str:
        """Short human-readable description: first offending field and reason."""
        if not self.errors:
            return str(self)
        first = self.errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        return f"{self}: {loc} {first.get('msg', '')}".strip()
