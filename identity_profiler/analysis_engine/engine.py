"""
Analysis engine entry point.

Responsibilities:
- Validate a raw request body into a SignalBundle
- Derive MicroSignals once and run every rule lane over them
- Assemble the ProfileResult

analyze_signals is pure: same bundle, same result. No logging, no clock,
no I/O; the API layer owns timing and error reporting.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from identity_profiler.analysis_engine import demographics, device, insights, state, trust
from identity_profiler.analysis_engine.models import (
    Lifestyle,
    MentalState,
    PersonalLife,
    ProfileResult,
    SignalBundle,
)
from identity_profiler.analysis_engine.signals import MicroSignals, derive_signals
from identity_profiler.core.exceptions import InvalidSignalBundleError


def parse_bundle(raw: Mapping[str, Any] | SignalBundle) -> SignalBundle:
    """Validate raw JSON-like input; raise InvalidSignalBundleError on bad shape."""
    if isinstance(raw, SignalBundle):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidSignalBundleError("Signal bundle must be a JSON object")
    try:
        return SignalBundle.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidSignalBundleError("Invalid signal bundle", errors=e.errors()) from e


def build_profile(s: MicroSignals) -> ProfileResult:
    bracket = demographics.age_range(demographics.age_score(s))
    income = demographics.income_score(s)
    context = demographics.DemographicContext(
        signals=s,
        income_score=income,
        age_floor=demographics.age_floor(bracket),
    )
    income_label = demographics.income_level(income)
    job = demographics.occupation(context)
    living = demographics.living_arrangement(context)
    current = state.mood(s)

    return ProfileResult(
        human_score=trust.human_score(s),
        fraud_risk=trust.fraud_risk(s),
        device_tier=device.device_tier(s),
        device_value=device.format_device_value(device.estimate_device_value(s)),
        age_range=bracket,
        income_level=income_label,
        occupation=job,
        education=demographics.education(s),
        life_situation=demographics.life_situation(s, living),
        work_style=state.work_style(s),
        personal_life=PersonalLife(
            relationship_status=demographics.relationship_status(context),
            has_children=demographics.has_children(context),
            living_arrangement=living,
            pet_owner=demographics.PET_OWNER_UNKNOWN,
        ),
        mental_state=MentalState(
            current_mood=current.current_mood,
            stress_level=current.stress_level,
            focus_level=state.focus_level(s),
        ),
        lifestyle=Lifestyle(
            sleep_schedule=state.sleep_schedule(s),
            work_life_balance=state.work_life_balance(s),
            tech_attitude=state.tech_attitude(s),
        ),
        interests=insights.build_interests(s),
        creepy_insights=insights.build_insights(
            s, age_range=bracket, income_level=income_label, occupation=job
        ),
        profile_summary=insights.build_summary(s),
        confidence=trust.confidence(s),
    )


def analyze_signals(raw: Mapping[str, Any] | SignalBundle) -> ProfileResult:
    """Validate the bundle and produce the full profile."""
    bundle = parse_bundle(raw)
    return build_profile(derive_signals(bundle))
