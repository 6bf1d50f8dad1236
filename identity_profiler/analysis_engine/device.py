"""
Device value and tier estimate.

Additive model: base value, tiered additions for GPU class, core count,
memory and display, then a multiplier for Apple Silicon. Displayed rounded
to the nearest $100.
"""

from __future__ import annotations

from identity_profiler.analysis_engine.signals import MicroSignals, round_half_up

BASE_DEVICE_VALUE = 400
HIGH_END_GPU_VALUE = 1500
MID_RANGE_GPU_VALUE = 500
CORES_16_VALUE = 600
CORES_8_VALUE = 200
RAM_32_VALUE = 300
RAM_16_VALUE = 100
DISPLAY_4K_VALUE = 400
PRO_DISPLAY_VALUE = 200
APPLE_SILICON_MULTIPLIER = 1.4

TIER_PREMIUM = "premium"
TIER_HIGH_END = "high-end"
TIER_BUDGET = "budget"
TIER_MID_RANGE = "mid-range"


def estimate_device_value(signals: MicroSignals) -> int:
    """Estimated replacement value in USD (unrounded)."""
    value = BASE_DEVICE_VALUE
    if signals.is_high_end:
        value += HIGH_END_GPU_VALUE
    elif signals.is_mid_range:
        value += MID_RANGE_GPU_VALUE
    if signals.cpu_cores >= 16:
        value += CORES_16_VALUE
    elif signals.cpu_cores >= 8:
        value += CORES_8_VALUE
    if signals.ram_gb >= 32:
        value += RAM_32_VALUE
    elif signals.ram_gb >= 16:
        value += RAM_16_VALUE
    if signals.is_4k:
        value += DISPLAY_4K_VALUE
    elif signals.is_professional_screen:
        value += PRO_DISPLAY_VALUE
    if signals.is_apple_silicon:
        value = round_half_up(value * APPLE_SILICON_MULTIPLIER)
    return value


def format_device_value(value: int) -> str:
    """'~$2700' style label, bucketed to the nearest 100."""
    return f"~${round_half_up(value / 100) * 100}"


def device_tier(signals: MicroSignals) -> str:
    if signals.is_high_end:
        return TIER_PREMIUM
    if signals.is_mid_range:
        return TIER_HIGH_END
    if signals.is_integrated:
        return TIER_BUDGET
    return TIER_MID_RANGE
