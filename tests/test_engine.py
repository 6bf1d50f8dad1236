"""
Tests for the analysis engine: validation, determinism, score bounds and
the rule-table lanes (device, demographics, trust, insights).
"""

from __future__ import annotations

from dataclasses import fields

import pytest

from identity_profiler.analysis_engine import analyze_signals, derive_signals, parse_bundle
from identity_profiler.analysis_engine.insights import MAX_INTERESTS, build_interests
from identity_profiler.analysis_engine.rules import Rule, first_match, match_rule
from identity_profiler.analysis_engine.signals import format_hour, round_half_up
from identity_profiler.core.exceptions import InvalidSignalBundleError


def test_analysis_is_deterministic(bundle):
    """Same bundle in, same profile out."""
    assert analyze_signals(bundle) == analyze_signals(bundle)


def test_baseline_profile(bundle):
    """Modest laptop, no logins, no extensions."""
    result = analyze_signals(bundle)
    assert result.device_tier == "budget"
    assert result.device_value == "~$400"
    assert result.human_score == 100
    assert result.fraud_risk == 0
    assert result.confidence == 40
    assert result.occupation == "Professional (unspecified)"
    assert result.personal_life.pet_owner.startswith("Cannot determine")
    assert result.interests == ["Technology", "Internet culture"]
    assert result.life_situation.startswith("Berlin ")


def test_scores_stay_in_bounds(bundle):
    """Everything switched on still lands inside the documented ranges."""
    bundle["hardware"].update({"gpu": "NVIDIA GeForce RTX 4090", "cpuCores": 32, "ram": 64, "screenWidth": 3840})
    bundle["fingerprints"]["extensionsDetected"] = [
        "React DevTools", "Vue DevTools", "1Password", "Grammarly", "Honey", "uBlock Origin",
        "Notion Web Clipper", "Loom", "Dark Reader", "NordVPN",
    ]
    bundle["socialLogins"] = {"hasAny": True, "services": ["GitHub", "Google", "Reddit", "Twitter", "Facebook"]}
    bundle["crypto"] = {"hasAnyWallet": True, "wallets": ["MetaMask", "Phantom"]}
    bundle["browser"]["referrer"] = "https://news.ycombinator.com/"
    bundle["browser"]["historyLength"] = 60
    bundle["vpn"] = {"likely": True, "timezoneMismatch": True}
    bundle["storage"] = {"quota": 1e9, "used": 5e6}
    result = analyze_signals(bundle)
    assert 0 <= result.human_score <= 100
    assert 0 <= result.fraud_risk <= 100
    assert 0 <= result.confidence <= 92
    assert result.confidence == 92
    assert len(result.interests) == MAX_INTERESTS
    assert len(set(result.interests)) == len(result.interests)


def test_premium_gpu_and_many_cores(bundle):
    bundle["hardware"].update({"gpu": "NVIDIA GeForce RTX 4090", "cpuCores": 16})
    result = analyze_signals(bundle)
    assert result.device_tier == "premium"
    value = int(result.device_value.lstrip("~$"))
    assert value >= 400 + 1500 + 600


def test_apple_silicon_multiplier(bundle):
    bundle["hardware"].update({"gpu": "Apple M2", "cpuCores": 8, "ram": 16})
    # 400 + 500 (mid-range) + 200 (8 cores) + 100 (16GB) = 1200, x1.4 = 1680 -> ~$1700
    assert analyze_signals(bundle).device_value == "~$1700"


def test_bot_scores_lower_than_human(bundle):
    human = analyze_signals(bundle)
    bundle["botDetection"] = {"isAutomated": True, "isHeadless": True}
    bundle["behavioral"]["mouse"].update({"movements": 0, "totalClicks": 0})
    bundle["behavioral"]["typing"]["totalKeystrokes"] = 0
    bot = analyze_signals(bundle)
    assert bot.human_score == 5
    assert bot.fraud_risk == 65
    assert bot.human_score < human.human_score


def test_interaction_raises_human_score_with_same_bot_flags(bundle):
    """Only interaction differs: idle scores below active, fraud risk is unchanged."""
    bundle["botDetection"] = {"isAutomated": True}
    bundle["behavioral"]["mouse"].update({"movements": 150, "totalClicks": 4})
    active = analyze_signals(bundle)
    bundle["behavioral"]["mouse"].update({"movements": 0, "totalClicks": 0})
    bundle["behavioral"]["typing"]["totalKeystrokes"] = 0
    idle = analyze_signals(bundle)
    # 100 - 40 automated - 25 no interaction vs 100 - 40 + 5 clicks + 5 movement
    assert idle.human_score == 35
    assert active.human_score == 70
    assert idle.human_score < active.human_score
    assert idle.fraud_risk == active.fraud_risk == 35


def test_first_match_respects_table_order():
    rules = (
        Rule("negative", lambda n: n < 0, "negative"),
        Rule("big", lambda n: n > 100, lambda n: f"big ({n})"),
        Rule("even", lambda n: n % 2 == 0, "even"),
    )
    assert first_match(rules, -4, default="other") == "negative"
    assert first_match(rules, 200, default="other") == "big (200)"
    assert first_match(rules, 8, default="other") == "even"
    assert first_match(rules, 7, default="other") == "other"
    assert match_rule(rules, 7) is None
    assert [f.name for f in fields(Rule)] == ["name", "predicate", "outcome"]


def test_missing_hardware_rejected(bundle):
    del bundle["hardware"]
    with pytest.raises(InvalidSignalBundleError) as excinfo:
        analyze_signals(bundle)
    assert excinfo.value.errors
    assert "hardware" in excinfo.value.summary()


def test_malformed_values_rejected(bundle):
    bundle["currentTime"]["hour"] = 42
    with pytest.raises(InvalidSignalBundleError):
        analyze_signals(bundle)


def test_non_object_rejected():
    with pytest.raises(InvalidSignalBundleError):
        analyze_signals(["not", "a", "bundle"])


def test_missing_current_time_skips_time_insight(bundle):
    del bundle["currentTime"]
    result = analyze_signals(bundle)
    assert not any(i.startswith("Browsing at") for i in result.creepy_insights)
    assert result.lifestyle.sleep_schedule == "Standard schedule"


def test_time_insight_interpolates_hour_and_city(bundle):
    result = analyze_signals(bundle)
    assert "Browsing at 8pm on a Wednesday from Berlin - evening wind-down time" in result.creepy_insights


def test_active_developer_beats_other_tiers(bundle):
    """GitHub login with DevTools open wins over writing and crypto evidence."""
    bundle["socialLogins"] = {"hasAny": True, "services": ["GitHub"]}
    bundle["botDetection"] = {"devToolsOpen": True}
    bundle["fingerprints"]["extensionsDetected"] = ["Grammarly", "Notion Web Clipper"]
    bundle["crypto"] = {"hasAnyWallet": True, "wallets": ["MetaMask", "Phantom"]}
    assert analyze_signals(bundle).occupation == "Software Developer"


def test_github_without_devtools_and_writing_tool(bundle):
    bundle["socialLogins"] = {"hasAny": True, "services": ["GitHub"]}
    bundle["fingerprints"]["extensionsDetected"] = ["Grammarly"]
    assert analyze_signals(bundle).occupation == "Technical Writer or DevRel"


def test_extension_insights_name_the_tools(bundle):
    bundle["fingerprints"]["extensionsDetected"] = ["React DevTools", "1Password", "Honey"]
    insights = analyze_signals(bundle).creepy_insights
    assert any("React DevTools installed" in i for i in insights)
    assert any("You use 1Password for passwords (premium service" in i for i in insights)
    assert any(i.startswith("Deal hunter detected: Honey.") for i in insights)
    assert insights[-1].startswith("Based on all signals:")


def test_each_insight_rule_fires_once(bundle):
    insights = analyze_signals(bundle).creepy_insights
    assert len(insights) == len(set(insights))


def test_battery_insight_rounds_percent(bundle):
    bundle["hardware"]["battery"] = {"level": 0.125, "charging": False}
    insights = analyze_signals(bundle).creepy_insights
    assert any(i.startswith("Battery at 13% and NOT charging") for i in insights)


def test_camel_and_snake_input_agree(bundle):
    """Bundles may use field names or camelCase aliases."""
    snake = dict(bundle)
    snake["current_time"] = snake.pop("currentTime")
    assert parse_bundle(snake) == parse_bundle(bundle)


def test_wire_output_is_camel_case(bundle):
    wire = analyze_signals(bundle).to_wire()
    for key in ("humanScore", "fraudRisk", "deviceTier", "creepyInsights", "profileSummary"):
        assert key in wire
    assert "workLifeBalance" in wire["lifestyle"]


def test_interest_padding_without_duplicates(bundle):
    bundle["hardware"]["cpuCores"] = 8
    interests = build_interests(derive_signals(parse_bundle(bundle)))
    # Dev signals already contribute "Technology"; padding must not repeat it
    assert interests == ["Technology", "Internet culture"]


def test_helpers():
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert [format_hour(h) for h in (0, 9, 12, 23)] == ["12am", "9am", "12pm", "11pm"]
