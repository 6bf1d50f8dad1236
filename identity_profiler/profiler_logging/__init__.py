"""
Structured logging for Identity Profiler.

JSON logs with timestamp, event_type and viewer context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from identity_profiler.profiler_logging.logger import bind_viewer, get_logger

__all__ = ["bind_viewer", "get_logger"]
