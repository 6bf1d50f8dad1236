"""
Analysis engine: signal bundle in, inferred profile out.
"""

from identity_profiler.analysis_engine.engine import analyze_signals, build_profile, parse_bundle
from identity_profiler.analysis_engine.models import ProfileResult, SignalBundle
from identity_profiler.analysis_engine.signals import MicroSignals, derive_signals

__all__ = [
    "analyze_signals",
    "build_profile",
    "parse_bundle",
    "ProfileResult",
    "SignalBundle",
    "MicroSignals",
    "derive_signals",
]
