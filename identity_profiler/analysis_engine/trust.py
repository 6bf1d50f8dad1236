"""
Human score, fraud risk and confidence.

Human score starts at 100 and fraud risk at 0; both apply fixed additive
penalties/bonuses and are clamped to [0, 100]. Confidence is a weighted sum
over four evidence tiers on top of a base of 35, capped at 92: heuristic
inference from browser signals never reaches certainty.
"""

from __future__ import annotations

from identity_profiler.analysis_engine.signals import MicroSignals

SCORE_MIN = 0
SCORE_MAX = 100

HUMAN_BASE = 100
AUTOMATED_HUMAN_PENALTY = 40
HEADLESS_HUMAN_PENALTY = 30
NO_INTERACTION_PENALTY = 25
CLICKS_BONUS = 5
MOVEMENT_BONUS = 5

FRAUD_BASE = 0
AUTOMATED_FRAUD = 35
HEADLESS_FRAUD = 30
VIRTUAL_MACHINE_FRAUD = 15
DATACENTER_FRAUD = 10

CONFIDENCE_BASE = 35
CONFIDENCE_CAP = 92


def _clamp(value: int, low: int = SCORE_MIN, high: int = SCORE_MAX) -> int:
    return max(low, min(high, value))


def human_score(s: MicroSignals) -> int:
    score = HUMAN_BASE
    if s.is_automated:
        score -= AUTOMATED_HUMAN_PENALTY
    if s.is_headless:
        score -= HEADLESS_HUMAN_PENALTY
    if s.mouse_movements == 0 and s.keystrokes == 0:
        score -= NO_INTERACTION_PENALTY
    if s.total_clicks > 3:
        score += CLICKS_BONUS
    if s.mouse_movements > 100:
        score += MOVEMENT_BONUS
    return _clamp(score)


def fraud_risk(s: MicroSignals) -> int:
    risk = FRAUD_BASE
    if s.is_automated:
        risk += AUTOMATED_FRAUD
    if s.is_headless:
        risk += HEADLESS_FRAUD
    if s.is_virtual_machine:
        risk += VIRTUAL_MACHINE_FRAUD
    if s.is_datacenter:
        risk += DATACENTER_FRAUD
    return _clamp(risk)


def _fingerprint_weight(s: MicroSignals) -> int:
    """Tier 1: binary facts (extensions, GitHub login, wallets)."""
    weight = min(len(s.extensions) * 3, 15)
    if s.has_dev_extensions:
        weight += 10
    if s.has_github:
        weight += 10
    if s.has_crypto:
        weight += 8
    return weight


def _reliable_weight(s: MicroSignals) -> int:
    """Tier 2: concrete tools, social logins, referrer."""
    weight = 0
    if s.has_password_manager:
        weight += 5
    if s.has_writing_extensions:
        weight += 5
    weight += min(s.social_count * 3, 10)
    if s.from_reddit or s.from_hn or s.from_twitter:
        weight += 8
    return weight


def _moderate_weight(s: MicroSignals) -> int:
    """Tier 3: hardware, display, privacy tooling, VPN."""
    weight = 0
    if s.is_high_end or s.is_mid_range:
        weight += 5
    if s.is_professional_screen:
        weight += 3
    if s.is_privacy_conscious:
        weight += 4
    if s.is_using_vpn:
        weight += 3
    return weight


def _behavioral_weight(s: MicroSignals) -> int:
    """Tier 4: interaction counters and session depth."""
    weight = 0
    if s.mouse_movements > 100:
        weight += 3
    if s.keystrokes > 10:
        weight += 2
    if s.has_deep_session:
        weight += 2
    if s.is_returning_visitor:
        weight += 3
    return weight


def confidence(s: MicroSignals) -> int:
    total = (
        CONFIDENCE_BASE
        + _fingerprint_weight(s)
        + _reliable_weight(s)
        + _moderate_weight(s)
        + _behavioral_weight(s)
    )
    return _clamp(total, SCORE_MIN, CONFIDENCE_CAP)
