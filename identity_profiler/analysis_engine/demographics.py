"""
Demographic estimates: age, income, occupation, education, personal life.

These are heuristics over browser signals, not a trained model. Weights,
bucket thresholds and rule order are fixed; some rules overlap or can never
fire together (e.g. weekend + work-hours) and are kept as-is. Personal-life
estimates are always hedged ("likely", "possibly") and fall back to
CANNOT_DETERMINE when no rule has supporting signal.
"""

from __future__ import annotations

from dataclasses import dataclass

from identity_profiler.analysis_engine.rules import Rule, first_match
from identity_profiler.analysis_engine.signals import MicroSignals

CANNOT_DETERMINE = "Cannot determine from browser data"
PET_OWNER_UNKNOWN = "Cannot determine (no browser signal for this)"

# Ordered (minimum score, label); first threshold met wins
AGE_BRACKETS: tuple[tuple[int, str], ...] = (
    (4, "22-28"),
    (2, "25-32"),
    (0, "28-38"),
)
AGE_BRACKET_DEFAULT = "35-48"

INCOME_BASELINE = 50
INCOME_BRACKETS: tuple[tuple[int, str], ...] = (
    (85, "$150k+/year"),
    (75, "$120k-150k/year"),
    (65, "$85k-120k/year"),
    (50, "$55k-85k/year"),
    (35, "$35k-55k/year"),
)
INCOME_BRACKET_DEFAULT = "$25k-40k/year"


def _bucket(score: int, brackets: tuple[tuple[int, str], ...], default: str) -> str:
    for minimum, label in brackets:
        if score >= minimum:
            return label
    return default


# -----------------------------------------------------------------------------
# Age
# -----------------------------------------------------------------------------


def age_score(s: MicroSignals) -> int:
    """Higher score -> younger bracket."""
    score = 0
    if s.is_night_owl:
        score += 2
    if s.has_crypto:
        score += 2
    if s.has_dev_signals:
        score += 1
    if s.language_count > 2:
        score += 1
    if s.is_high_end and not s.is_quadro:
        score += 1
    if s.is_apple_silicon:
        score -= 1
    if s.is_early_bird:
        score -= 2
    # Returning developer
    if s.is_frequent_visitor and s.has_dev_signals:
        score += 1
    # Facebook-only logins skew older
    if s.has_facebook and not s.has_twitter and not s.has_reddit and not s.has_github:
        score -= 3
    if s.has_reddit and not s.has_facebook:
        score += 2
    # Developers cluster 22-40
    if s.has_github:
        score = max(-1, min(2, score))
    if s.from_hn or s.from_reddit:
        score += 1
    return score


def age_range(score: int) -> str:
    return _bucket(score, AGE_BRACKETS, AGE_BRACKET_DEFAULT)


def age_floor(bracket: str) -> int:
    """Lower bound of an 'NN-MM' bracket."""
    return int(bracket.split("-", 1)[0])


# -----------------------------------------------------------------------------
# Income
# -----------------------------------------------------------------------------


def income_score(s: MicroSignals) -> int:
    score = INCOME_BASELINE
    # Hardware
    if s.is_high_end:
        score += 25
    elif s.is_mid_range:
        score += 10
    elif s.is_integrated:
        score -= 10
    if s.cpu_cores >= 16:
        score += 15
    elif s.cpu_cores >= 8:
        score += 5
    if s.is_professional_screen:
        score += 10
    if s.is_apple_silicon:
        score += 10
    if s.is_4k:
        score += 10
    if s.has_p3:
        score += 5
    # Network
    if s.is_enterprise_isp:
        score += 20
    # Developer / professional tooling
    if s.has_github and s.has_dev_signals:
        score += 15
    if s.has_dev_extensions and not s.has_github:
        score += 10
    if s.has_premium_password_manager:
        score += 10
    if s.has_shopping_extensions:
        score -= 5
    if s.has_productivity_extensions:
        score += 5
    if s.has_screenshot_tools:
        score += 5
    if s.has_vpn_extension:
        score += 5
    # Crypto
    if s.has_crypto and s.wallet_count >= 2:
        score += 10
    elif s.has_crypto:
        score += 5
    return score


def income_level(score: int) -> str:
    return _bucket(score, INCOME_BRACKETS, INCOME_BRACKET_DEFAULT)


@dataclass(frozen=True)
class DemographicContext:
    """Signals plus the scores later rules depend on."""

    signals: MicroSignals
    income_score: int
    age_floor: int


# -----------------------------------------------------------------------------
# Occupation: strongest evidence first
# -----------------------------------------------------------------------------


def _active_developer_title(c: DemographicContext) -> str:
    s = c.signals
    if s.is_apple_silicon and s.is_professional_screen and c.income_score >= 70:
        return "Senior Software Engineer"
    if s.is_high_end or s.cpu_cores >= 12:
        return "Software Engineer"
    return "Software Developer"


OCCUPATION_RULES: tuple[Rule[DemographicContext], ...] = (
    # Tier 1: definitive
    Rule(
        "active_developer",
        lambda c: (c.signals.has_github or c.signals.has_dev_extensions) and c.signals.dev_tools_open,
        _active_developer_title,
    ),
    Rule(
        "dev_extensions_not_coding",
        lambda c: c.signals.has_dev_extensions and not c.signals.dev_tools_open and not c.signals.has_github,
        lambda c: (
            "Technical Product Manager"
            if c.signals.is_writer_or_professional
            else "Tech professional (non-coding role)"
        ),
    ),
    Rule(
        "github_not_coding",
        lambda c: c.signals.has_github and not c.signals.dev_tools_open,
        lambda c: (
            "Technical Writer or DevRel" if c.signals.has_writing_extensions else "Tech PM or Engineering Manager"
        ),
    ),
    # Tier 2: strong
    Rule(
        "writer",
        lambda c: (
            c.signals.has_writing_extensions
            and c.signals.has_productivity_extensions
            and not c.signals.has_dev_signals
        ),
        lambda c: (
            "Content Strategist or Marketing Professional"
            if c.signals.is_professional_screen
            else "Writer or Content Creator"
        ),
    ),
    Rule(
        "creative",
        lambda c: (
            c.signals.is_apple_silicon
            and c.signals.is_professional_screen
            and c.signals.has_p3
            and not c.signals.has_dev_signals
        ),
        lambda c: (
            "Designer or Creative Director"
            if c.signals.has_screenshot_tools
            else "Creative professional (design/media)"
        ),
    ),
    Rule(
        "fast_typing_developer",
        lambda c: c.signals.has_dev_signals and c.signals.is_fast_typist,
        "Software Developer",
    ),
    Rule("tech_professional", lambda c: c.signals.has_dev_signals, "Tech professional (developer/IT)"),
    # Tier 3: moderate
    Rule(
        "multi_wallet_crypto",
        lambda c: c.signals.has_crypto and c.signals.wallet_count >= 2,
        lambda c: "Web3 Developer" if c.signals.has_dev_signals else "Crypto trader/DeFi professional",
    ),
    Rule(
        "crypto_high_end",
        lambda c: c.signals.has_crypto and c.signals.is_high_end,
        "Tech-savvy professional or Trader",
    ),
    Rule("crypto", lambda c: c.signals.has_crypto, "Tech-forward professional"),
    Rule(
        "office_productivity",
        lambda c: c.signals.has_productivity_extensions and c.signals.is_professional_screen,
        "Professional (office/knowledge work)",
    ),
    Rule(
        "privacy_redditor",
        lambda c: c.signals.has_reddit and c.signals.is_privacy_conscious,
        "Tech-adjacent professional",
    ),
    Rule(
        "deep_session_productivity",
        lambda c: c.signals.has_deep_session and c.signals.has_productivity_extensions,
        "Knowledge worker (productivity-focused)",
    ),
    # Tier 4: weak, best guess
    Rule(
        "office_worker",
        lambda c: (
            c.signals.is_work_hours
            and c.signals.is_budget_screen
            and not c.signals.has_crypto
            and not c.signals.has_productivity_extensions
        ),
        "Office worker or Administrative",
    ),
    Rule(
        "student",
        lambda c: c.signals.is_budget_screen and c.signals.is_night_owl and not c.signals.is_work_hours,
        "Student or Early career professional",
    ),
    Rule(
        "knowledge_worker",
        lambda c: c.signals.is_professional_screen or c.signals.cpu_cores >= 8,
        "Knowledge worker",
    ),
)
OCCUPATION_DEFAULT = "Professional (unspecified)"


def occupation(context: DemographicContext) -> str:
    return first_match(OCCUPATION_RULES, context, OCCUPATION_DEFAULT)


def education(s: MicroSignals) -> str:
    if s.has_dev_signals:
        return "CS degree or self-taught developer"
    if s.is_apple_silicon:
        return "College educated, likely creative field"
    return "Unknown"


# -----------------------------------------------------------------------------
# Personal life
# -----------------------------------------------------------------------------

LIVING_RULES: tuple[Rule[DemographicContext], ...] = (
    Rule(
        "homeowner",
        lambda c: c.income_score >= 75 and c.age_floor >= 32,
        "Likely homeowner or upscale renter",
    ),
    Rule(
        "city_renter",
        lambda c: c.income_score >= 60,
        lambda c: f"Renting in {c.signals.city or 'urban area'}",
    ),
)
LIVING_DEFAULT = "Renting apartment or with roommates"

RELATIONSHIP_RULES: tuple[Rule[DemographicContext], ...] = (
    Rule(
        "night_owl_developer",
        lambda c: (
            c.signals.is_night_owl
            and 25 <= c.age_floor < 35
            and c.income_score >= 60
            and c.signals.has_dev_signals
        ),
        "Likely single (night owl developer pattern)",
    ),
    Rule(
        "weekend_work_from_home",
        lambda c: c.signals.is_weekend and c.signals.is_work_hours and c.age_floor >= 30 and c.income_score >= 55,
        "Possibly partnered (weekend work-from-home pattern)",
    ),
    Rule(
        "early_family_routine",
        lambda c: c.signals.is_early_bird and c.age_floor >= 30 and c.income_score >= 55,
        "Likely partnered (early schedule suggests family routine)",
    ),
    Rule(
        "settled_work_hours",
        lambda c: c.signals.is_work_hours and c.age_floor >= 35 and c.income_score >= 50,
        "Statistically likely partnered",
    ),
    Rule(
        "young_night_owl",
        lambda c: c.age_floor < 28 and c.signals.is_night_owl,
        "Likely single (young night owl)",
    ),
    Rule(
        "age_income",
        lambda c: c.age_floor >= 32 and c.income_score >= 55,
        "Possibly partnered",
    ),
)

CHILDREN_RULES: tuple[Rule[DemographicContext], ...] = (
    Rule(
        "weekend_early_riser",
        lambda c: c.signals.is_early_bird and c.signals.is_weekend and 28 <= c.age_floor <= 50,
        "Possible (weekend early riser pattern common with kids)",
    ),
    Rule(
        "free_weekend",
        lambda c: c.signals.is_weekend and c.signals.is_work_hours and not c.signals.is_early_bird,
        "Less likely (free weekend time)",
    ),
    Rule(
        "young_late_hours",
        lambda c: c.signals.is_night_owl and c.age_floor < 30,
        "Unlikely (young + late hours)",
    ),
    Rule(
        "life_stage",
        lambda c: 32 <= c.age_floor <= 45 and c.income_score >= 55 and not c.signals.is_night_owl,
        "Possible (age/income suggests life stage)",
    ),
    Rule(
        "under_25",
        lambda c: c.age_floor < 25,
        "Statistically unlikely (age < 25)",
    ),
)


def living_arrangement(context: DemographicContext) -> str:
    return first_match(LIVING_RULES, context, LIVING_DEFAULT)


def relationship_status(context: DemographicContext) -> str:
    return first_match(RELATIONSHIP_RULES, context, CANNOT_DETERMINE)


def has_children(context: DemographicContext) -> str:
    return first_match(CHILDREN_RULES, context, CANNOT_DETERMINE)


def life_situation(s: MicroSignals, living: str) -> str:
    return f"{s.city or 'Urban'} {living.lower()}"
