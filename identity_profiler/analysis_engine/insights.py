"""
Interest tags, insight strings and the profile summary.

Each builder is a fixed sequence of append-if-signal-present rules. Insight
templates interpolate concrete input values (extension names, screen size,
counts, hour of day, city). Interests are de-duplicated and capped at
MAX_INTERESTS; every insight rule fires at most once per call.
"""

from __future__ import annotations

from identity_profiler.analysis_engine.signals import PAID_PASSWORD_MANAGERS, MicroSignals, round_half_up

MAX_INTERESTS = 6
MIN_INTERESTS = 3
FALLBACK_INTERESTS = ("Technology", "Internet culture")


def _append_unique(items: list[str], *values: str) -> None:
    for value in values:
        if value not in items:
            items.append(value)


def build_interests(s: MicroSignals) -> list[str]:
    interests: list[str] = []
    if s.has_github or s.has_dev_extensions:
        _append_unique(interests, "Software Development")
    if s.has_dev_signals:
        _append_unique(interests, "Technology")
    if s.has_writing_extensions:
        _append_unique(interests, "Writing & Content")
    if s.has_productivity_extensions:
        _append_unique(interests, "Productivity & Organization")
    if s.has_screenshot_tools:
        _append_unique(interests, "Visual communication")
    if s.has_shopping_extensions:
        _append_unique(interests, "Deal hunting", "Online shopping")
    if s.has_privacy_extensions:
        _append_unique(interests, "Digital Privacy & Security")
    if s.has_dark_reader:
        _append_unique(interests, "Accessibility & Comfort")
    if s.has_crypto:
        _append_unique(interests, "Cryptocurrency", "Web3/DeFi")
    if s.is_high_end and s.has_gaming_gpu_brand and not s.has_dev_signals:
        _append_unique(interests, "PC Gaming")
    if s.is_apple_silicon:
        _append_unique(interests, "Apple ecosystem")
    if s.has_reddit:
        _append_unique(interests, "Online communities")
    if s.has_twitter:
        _append_unique(interests, "Current events")
    if s.from_hn:
        _append_unique(interests, "Startups", "Tech news")
    if s.has_productivity_extensions:
        _append_unique(interests, "Web applications")
    if s.has_deep_session:
        _append_unique(interests, "Online research")
    if len(interests) < MIN_INTERESTS:
        _append_unique(interests, *FALLBACK_INTERESTS)
    return interests[:MAX_INTERESTS]


# -----------------------------------------------------------------------------
# Insights
# -----------------------------------------------------------------------------


def _extension_insights(s: MicroSignals) -> list[str]:
    out: list[str] = []
    if s.framework_devtools:
        frameworks = ", ".join(e.replace(" DevTools", "") for e in s.framework_devtools)
        out.append(
            f"Your browser has {frameworks} DevTools installed - you're definitely a developer "
            f"working with {frameworks}. We know your tech stack."
        )
    if s.password_manager:
        premium = " (premium service - you pay for security)" if s.password_manager in PAID_PASSWORD_MANAGERS else ""
        out.append(
            f"You use {s.password_manager} for passwords{premium}. "
            "Security-conscious, but we still know you're here."
        )
    if s.writing_tool:
        out.append(
            f"{s.writing_tool} installed - you write professionally (emails, content, docs). "
            "Writing quality matters to you."
        )
    if s.has_shopping_extensions:
        out.append(
            f"Deal hunter detected: {', '.join(s.shopping_extensions)}. "
            "You comparison shop and never pay full price."
        )
    if s.has_dark_reader:
        out.append(
            "Dark Reader extension - you prefer dark mode everywhere. "
            "Probably spend MANY hours in front of screens (eye strain is real)."
        )
    if s.vpn_extension:
        out.append(
            f"{s.vpn_extension} extension detected - paying for privacy but we still identified you. The irony."
        )
    if s.has_productivity_extensions:
        out.append(
            f"Productivity tools: {', '.join(s.productivity_extensions)}. "
            "You save things \"for later\" - how's that reading list going?"
        )
    return out


def _referrer_insight(s: MicroSignals) -> str | None:
    if s.from_reddit:
        where = "your logged-in account" if s.has_reddit else "a subreddit you browse"
        return f"You came here from Reddit - you're a Redditor, probably clicked a link in {where}."
    if s.from_hn:
        return (
            "Found this via Hacker News - you're part of the tech/startup crowd. "
            "Probably a developer or founder type."
        )
    if s.from_twitter:
        how = "logged into your account" if s.has_twitter else "scrolling your feed"
        return f"Clicked through from Twitter/X - {how} when you saw this."
    if s.from_google:
        return (
            "Google search brought you here - what were you searching for? "
            "We can infer a lot from the fact you searched this topic."
        )
    if s.from_facebook:
        how = "logged in while browsing" if s.has_facebook else "someone shared this in your feed"
        return f"Came from Facebook - {how}."
    if s.is_direct:
        return (
            "Direct visit (no referrer) - either you typed the URL, used a bookmark, "
            "or your browser/VPN is hiding where you came from."
        )
    return None


def _social_insight(s: MicroSignals) -> str | None:
    if s.social_count >= 3:
        return (
            f"You're logged into {s.social_count} services ({', '.join(s.social_services)}) - "
            "we can see your entire online identity map."
        )
    if s.has_github and s.has_google:
        return (
            "Logged into GitHub AND Google - you're definitely a developer. "
            "Probably using Chrome signed in to sync your bookmarks too."
        )
    if s.has_github:
        return (
            "GitHub login detected - you're a developer. "
            "We could infer your public repos, contributions, and coding languages."
        )
    if s.has_facebook and not s.has_twitter and not s.has_reddit:
        return (
            "Only logged into Facebook - demographic tells us you're likely 35+. "
            "The younger crowd moved to other platforms."
        )
    if s.has_reddit:
        return (
            "Reddit login detected - you're part of the internet culture crowd. "
            "What subreddits are you subscribed to?"
        )
    return None


def _vpn_insight(s: MicroSignals) -> str | None:
    if s.is_using_vpn and s.has_timezone_mismatch:
        tail = "Privacy-conscious, but not invisible." if s.is_privacy_conscious else "Trying to hide your location?"
        return (
            f"VPN detected with timezone mismatch - your browser says {s.local_timezone or 'one timezone'} "
            f"but your IP is in {s.network_timezone or 'another'}. {tail}"
        )
    if s.is_using_vpn:
        leak = "WebRTC leaked your real IP" if s.has_webrtc_leak else "we still built this profile"
        return f"VPN/proxy detected - you're trying to hide your real location, but {leak}."
    return None


def _time_insight(s: MicroSignals) -> str | None:
    if s.hour_label is None:
        return None
    if s.is_night_owl:
        context = (
            "developer in the zone, coding late"
            if s.has_github
            else "classic night owl, probably a flexible schedule or insomnia"
        )
    elif s.is_early_bird:
        context = "early riser, either very disciplined or you never went to sleep"
    elif s.is_work_hours:
        context = "during work hours, procrastinating at work?"
    else:
        context = "evening wind-down time"
    place = f" from {s.city}" if s.city else ""
    return f"Browsing at {s.hour_label} on a {s.day_name}{place} - {context}"


def _hardware_insight(s: MicroSignals) -> str:
    if s.is_high_end and s.has_github:
        return (
            f"{s.gpu_label} + GitHub login = serious developer with serious hardware. "
            "This isn't your first $2k+ machine."
        )
    if s.is_high_end:
        return (
            f"Your {s.gpu_label} cost more than many people's monthly rent - "
            "you take your computing seriously."
        )
    screen = f"{s.screen_width}x{s.screen_height}"
    if s.is_budget_screen and s.is_integrated:
        machine = "work laptop" if s.is_work_hours else "budget machine"
        return f"{screen} with integrated graphics - {machine}, you're practical."
    cores = s.cpu_cores or "Your"
    picture = "someone who cares about their setup" if s.is_professional_screen else "a standard user"
    return f"{cores} CPU cores and {screen} display paint a picture of {picture}."


def _behavior_insight(s: MicroSignals) -> str | None:
    if s.has_rage_clicks:
        return (
            f"{s.rage_clicks} rage clicks detected - something frustrated you. "
            "Bad UX? Slow loading? Or just having a day?"
        )
    if s.mouse_movements > 500 and s.total_clicks < 5:
        return (
            f"Lots of mouse movement ({s.mouse_movements}) but few clicks ({s.total_clicks}) - "
            "you're reading carefully, probably skeptical."
        )
    if s.is_distracted:
        tail = "Multitasking at work?" if s.is_work_hours else "Can't focus on one thing."
        return f"{s.tab_switches} tab switches - your attention is scattered. {tail}"
    return None


def _storage_insight(s: MicroSignals) -> str | None:
    # Site-scoped storage: only meaningful for returning visitors
    if s.is_frequent_visitor:
        return f"Returning visitor detected: {s.storage_used_mb}MB cached from previous visits - we remember you."
    if s.is_returning_visitor:
        return "You've been here before - we have cached data from your previous visit(s)."
    return None


def _session_insight(s: MicroSignals) -> str | None:
    if s.is_long_session:
        tail = "All those tab switches suggest scattered focus." if s.is_distracted else "Thorough researcher?"
        return (
            f"Deep session: {s.history_length} navigation entries in this tab - "
            f"you've been exploring for a while. {tail}"
        )
    if s.has_deep_session:
        return (
            f"This tab has {s.history_length} navigation entries this session - "
            "actively browsing, not just a quick visit."
        )
    if s.is_fresh_navigation and s.is_incognito:
        return "Fresh arrival in incognito mode - private browsing detected. Hiding something?"
    if s.is_fresh_navigation and s.is_privacy_conscious:
        return "Clean slate: direct navigation + privacy tools active. You know how to stay low-profile."
    return None


def _battery_insight(s: MicroSignals) -> str | None:
    if s.has_battery:
        percent = round_half_up(s.battery_level * 100)
        if s.battery_level < 0.15 and not s.battery_charging:
            return (
                f"Battery at {percent}% and NOT charging - "
                "either you're mobile right now or you like living dangerously."
            )
        if s.battery_level > 0.95 and s.battery_charging:
            where = "Working from home or office?" if s.is_work_hours else "Your usual spot."
            return f"Battery at {percent}% and plugged in - you're at a desk right now. {where}"
        if not s.battery_charging and s.battery_level > 0.5:
            return f"On battery power ({percent}%) - you're mobile or away from your desk right now."
        return None
    if s.is_high_end:
        return (
            f"Desktop PC (no battery) with {s.gpu_label} - "
            "you have a dedicated setup, this isn't just a laptop."
        )
    return None


def _closing_insight(s: MicroSignals, age_range: str, income_level: str, occupation: str) -> str:
    parts = [f"Based on all signals: ~{age_range} years old, earning {income_level}, {occupation.lower()}."]
    if s.social_count > 0:
        parts.append(f"Active on {', '.join(s.social_services)}.")
    parts.append("Creepy? This is what EVERY website can know.")
    return " ".join(parts)


def build_insights(s: MicroSignals, *, age_range: str, income_level: str, occupation: str) -> list[str]:
    """Ordered insight strings; each rule contributes at most once."""
    insights = _extension_insights(s)
    for rule in (
        _referrer_insight,
        _social_insight,
        _vpn_insight,
        _time_insight,
        _hardware_insight,
        _behavior_insight,
        _storage_insight,
        _session_insight,
        _battery_insight,
    ):
        text = rule(s)
        if text:
            insights.append(text)
    insights.append(_closing_insight(s, age_range, income_level, occupation))
    return insights


def build_summary(s: MicroSignals) -> str:
    """One-paragraph free-text profile summary."""
    if s.has_github:
        who = "A software developer"
    elif s.has_dev_signals:
        who = "A technically sophisticated user"
    else:
        who = "A digital citizen"
    if s.city:
        who = f"{who} in {s.city}"

    if s.from_reddit:
        source = "from Reddit"
    elif s.from_hn:
        source = "from HN"
    elif s.from_twitter:
        source = "from Twitter"
    elif s.from_google:
        source = "via Google search"
    else:
        source = ""
    if source:
        who = f"{who}, arrived {source}"

    social = f"active on {', '.join(s.social_services)}" if s.social_count > 0 else "minimal social presence"
    if s.is_night_owl:
        schedule = "Night owl"
    elif s.is_early_bird:
        schedule = "Early riser"
    else:
        schedule = "Standard hours"

    sentences = [f"{who}, {social}.", f"{schedule}."]
    if s.has_crypto:
        sentences.append("Crypto user.")
    if s.is_using_vpn:
        sentences.append("Using VPN but still identified.")
    sentences.append(
        "Privacy-conscious but fully profiled." if s.is_privacy_conscious else "Leaving clear digital trails."
    )
    return " ".join(sentences)
