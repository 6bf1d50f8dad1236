"""
Mental state and lifestyle lanes.

Mood/stress come from interaction anomalies (rage clicks, erratic pointer
movement, tab switching, sustained focus); lifestyle from the client clock
and the tooling signals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from identity_profiler.analysis_engine.rules import Rule, first_match
from identity_profiler.analysis_engine.signals import MicroSignals

# Sustained focus worth calling "deep" (milliseconds)
DEEP_FOCUS_MS = 30000


@dataclass(frozen=True)
class Mood:
    stress_level: str
    current_mood: str


MOOD_TABLE: tuple[tuple[str, Callable[[MicroSignals], bool], Mood], ...] = (
    (
        "frustrated",
        lambda s: s.has_rage_clicks and s.erratic_movements > 10,
        Mood("high", "Frustrated, possibly stuck on something"),
    ),
    (
        "irritated",
        lambda s: s.has_rage_clicks or s.erratic_movements > 5,
        Mood("medium", "Slightly frustrated"),
    ),
    ("multitasking", lambda s: s.is_distracted, Mood("medium", "Scattered, multitasking")),
    (
        "deep_focus",
        lambda s: s.tab_switches < 2 and s.focus_time_ms > DEEP_FOCUS_MS,
        Mood("low", "Deeply focused"),
    ),
)
MOOD_DEFAULT = Mood("low", "Relaxed, curious")


def mood(s: MicroSignals) -> Mood:
    for _name, predicate, result in MOOD_TABLE:
        if predicate(s):
            return result
    return MOOD_DEFAULT


def focus_level(s: MicroSignals) -> str:
    if s.tab_switches < 2:
        return "Highly focused"
    if s.tab_switches < 5:
        return "Moderately focused"
    if s.tab_switches < 10:
        return "Scattered attention"
    return "Very distracted"


def sleep_schedule(s: MicroSignals) -> str:
    if s.is_night_owl:
        return "Night owl (active 11pm-5am)"
    if s.is_early_bird:
        return "Early bird (active 5am-8am)"
    return "Standard schedule"


def work_style(s: MicroSignals) -> str:
    if s.is_night_owl:
        return "Night owl, flexible schedule"
    if s.is_work_hours:
        return "Standard work hours"
    if s.is_weekend:
        return "Weekend browsing"
    return "Flexible schedule"


WORK_LIFE_RULES: tuple[Rule[MicroSignals], ...] = (
    Rule(
        "weekend_work",
        lambda s: s.is_weekend and s.is_work_hours,
        lambda s: (
            "Works weekends (developer crunch or passion project)"
            if s.has_dev_signals
            else "Works weekends (deadline or workaholic)"
            if s.has_productivity_extensions
            else "Works weekends"
        ),
    ),
    Rule(
        "late_night_coder",
        lambda s: s.is_night_owl and s.has_dev_signals,
        "Flexible schedule (late-night coder)",
    ),
    Rule("night_owl", lambda s: s.is_night_owl and not s.has_dev_signals, "Non-traditional schedule"),
)
WORK_LIFE_DEFAULT = "Appears balanced"

TECH_ATTITUDE_RULES: tuple[Rule[MicroSignals], ...] = (
    Rule(
        "expert",
        lambda s: s.has_dev_extensions and s.has_privacy_extensions and s.has_crypto,
        "Expert (developer + privacy + crypto)",
    ),
    Rule(
        "privacy_power_user",
        lambda s: s.has_dev_signals and s.is_privacy_conscious,
        "Power user (tech-savvy + privacy-aware)",
    ),
    Rule("developer", lambda s: s.has_dev_extensions or s.has_dev_signals, "Power user/Developer"),
    Rule(
        "security_conscious",
        lambda s: s.is_privacy_conscious and s.has_password_manager,
        "Security-conscious power user",
    ),
    Rule("privacy_conscious", lambda s: s.is_privacy_conscious, "Privacy-conscious"),
    Rule("crypto", lambda s: s.has_crypto, "Tech-forward (crypto user)"),
    Rule("productivity", lambda s: s.has_productivity_extensions, "Productivity-focused"),
    Rule("dark_reader", lambda s: s.has_dark_reader, "Comfort-focused (uses dark mode)"),
)
TECH_ATTITUDE_DEFAULT = "Standard user"


def work_life_balance(s: MicroSignals) -> str:
    return first_match(WORK_LIFE_RULES, s, WORK_LIFE_DEFAULT)


def tech_attitude(s: MicroSignals) -> str:
    return first_match(TECH_ATTITUDE_RULES, s, TECH_ATTITUDE_DEFAULT)
