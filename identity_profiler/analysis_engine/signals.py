"""
Micro-signal extraction: derived facts computed once from a SignalBundle.

Every scoring lane reads MicroSignals instead of the raw bundle, so each
derived fact ("has developer extensions", "night-owl hour", "arrived from
Reddit", ...) has exactly one definition. Missing optional blocks map to the
no-signal value of every fact that reads them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from identity_profiler.analysis_engine.models import SignalBundle

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# Extension groups (names as reported by the client-side detector)
DEV_EXTENSIONS = (
    "React DevTools", "Vue DevTools", "Redux DevTools", "Angular DevTools", "Svelte DevTools",
    "Apollo DevTools", "Web Developer", "JSON Viewer", "Wappalyzer",
)
FRAMEWORK_DEVTOOLS = (
    "React DevTools", "Vue DevTools", "Redux DevTools", "Angular DevTools", "Svelte DevTools",
    "Apollo DevTools",
)
PASSWORD_MANAGERS = ("LastPass", "1Password", "Bitwarden", "Dashlane", "NordPass", "Keeper", "RoboForm")
PREMIUM_PASSWORD_MANAGERS = ("1Password", "Dashlane", "NordPass", "Keeper")
# Subset called out as paid in the insight text
PAID_PASSWORD_MANAGERS = ("1Password", "Dashlane", "NordPass")
SHOPPING_EXTENSIONS = (
    "Honey", "Rakuten (Ebates)", "Capital One Shopping", "RetailMeNot", "Keepa", "CamelCamelCamel",
)
# Named in the deal-hunter insight
NAMED_SHOPPING_EXTENSIONS = ("Honey", "Rakuten (Ebates)", "Capital One Shopping", "RetailMeNot", "Keepa")
PRIVACY_EXTENSIONS = (
    "uBlock Origin", "AdBlock", "AdBlock Plus", "Privacy Badger", "Ghostery", "DuckDuckGo Privacy",
    "HTTPS Everywhere",
)
WRITING_EXTENSIONS = ("Grammarly", "LanguageTool", "ProWritingAid")
PRODUCTIVITY_EXTENSIONS = (
    "Notion Web Clipper", "Evernote Web Clipper", "Todoist", "Pocket", "Save to Google Drive",
)
VPN_EXTENSIONS = ("NordVPN", "ExpressVPN", "Windscribe")
SCREENSHOT_EXTENSIONS = ("Loom", "Awesome Screenshot", "Lightshot")
DARK_READER = "Dark Reader"

# GPU keyword tiers (matched against the lower-cased renderer string)
HIGH_END_GPUS = (
    "rtx 4090", "rtx 4080", "rtx 3090", "rtx 3080", "rx 7900", "m3 max", "m3 pro", "m2 max", "a100",
    "quadro",
)
MID_RANGE_GPUS = (
    "rtx 4060", "rtx 3060", "rtx 2080", "rtx 2070", "gtx 1080", "gtx 1070", "gtx 1660", "rx 6",
    "rx 7600", "m1", "m2", "m3",
)
INTEGRATED_GPUS = ("intel", "uhd", "hd graphics")
APPLE_SILICON = ("m1", "m2", "m3")

DATACENTER_ISPS = ("amazon", "google cloud", "microsoft", "digitalocean", "cloudflare", "vultr")
ENTERPRISE_ISPS = ("enterprise", "business", "corporate")


def _first(extensions: tuple[str, ...], group: tuple[str, ...]) -> str | None:
    return next((e for e in extensions if e in group), None)


def _only(extensions: tuple[str, ...], group: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(e for e in extensions if e in group)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def round_half_up(value: float) -> int:
    """Round halves up (0.5 -> 1, 2.5 -> 3); inputs here are non-negative."""
    return int(math.floor(value + 0.5))


def format_hour(hour: int) -> str:
    """12-hour clock label: 0 -> 12am, 12 -> 12pm, 15 -> 3pm."""
    if hour < 12:
        return f"{12 if hour == 0 else hour}am"
    if hour == 12:
        return "12pm"
    return f"{hour - 12}pm"


@dataclass(frozen=True)
class MicroSignals:
    """
    Derived signal vector for one analysis request.

    Raw numbers the lanes interpolate into text are carried alongside the
    boolean facts so no lane needs the bundle itself.
    """

    # Extensions
    extensions: tuple[str, ...]
    has_dev_extensions: bool
    framework_devtools: tuple[str, ...]
    has_password_manager: bool
    password_manager: str | None
    has_premium_password_manager: bool
    has_shopping_extensions: bool
    shopping_extensions: tuple[str, ...]
    has_privacy_extensions: bool
    has_writing_extensions: bool
    writing_tool: str | None
    has_productivity_extensions: bool
    productivity_extensions: tuple[str, ...]
    has_dark_reader: bool
    has_vpn_extension: bool
    vpn_extension: str | None
    has_screenshot_tools: bool

    # Hardware
    gpu: str
    """Lower-cased GPU renderer string ('' when unknown)."""
    gpu_label: str
    """First three words of the reported GPU name, for display."""
    is_high_end: bool
    is_mid_range: bool
    is_integrated: bool
    is_apple_silicon: bool
    is_quadro: bool
    has_gaming_gpu_brand: bool
    cpu_cores: int
    ram_gb: float
    screen_width: int
    screen_height: int
    is_professional_screen: bool
    is_budget_screen: bool
    is_4k: bool
    has_battery: bool
    battery_level: float
    battery_charging: bool

    # Time
    hour: int | None
    hour_label: str | None
    day_name: str | None
    is_weekend: bool
    is_night_owl: bool
    is_early_bird: bool
    is_work_hours: bool
    local_timezone: str | None

    # Social logins
    social_services: tuple[str, ...]
    social_count: int
    has_github: bool
    has_facebook: bool
    has_reddit: bool
    has_twitter: bool
    has_google: bool

    # Network / VPN
    city: str | None
    network_timezone: str | None
    is_using_vpn: bool
    has_timezone_mismatch: bool
    has_webrtc_leak: bool
    is_datacenter: bool
    is_enterprise_isp: bool

    # Referrer
    from_google: bool
    from_reddit: bool
    from_twitter: bool
    from_hn: bool
    from_facebook: bool
    is_direct: bool

    # User type
    has_dev_signals: bool
    dev_tools_open: bool
    has_crypto: bool
    wallet_count: int
    language_count: int
    is_privacy_conscious: bool
    is_writer_or_professional: bool

    # Behaviour
    keystrokes: int
    is_fast_typist: bool
    mouse_movements: int
    total_clicks: int
    rage_clicks: int
    erratic_movements: int
    has_rage_clicks: bool
    tab_switches: int
    focus_time_ms: float
    is_distracted: bool

    # Storage / session
    storage_used_mb: int
    is_returning_visitor: bool
    is_frequent_visitor: bool
    history_length: int
    has_deep_session: bool
    is_fresh_navigation: bool
    is_long_session: bool

    # Preferences
    has_p3: bool

    # Bot detection
    is_automated: bool
    is_headless: bool
    is_virtual_machine: bool
    is_incognito: bool


def derive_signals(bundle: SignalBundle) -> MicroSignals:
    """Compute every micro-signal for a validated bundle. Pure; no I/O."""
    hw = bundle.hardware
    browser = bundle.browser
    behavior = bundle.behavioral
    bots = bundle.bot_detection
    tracking = bundle.tracking

    extensions = tuple(bundle.fingerprints.extensions_detected)
    has_dev_extensions = any(e in DEV_EXTENSIONS for e in extensions)
    has_privacy_extensions = any(e in PRIVACY_EXTENSIONS for e in extensions)
    has_writing_extensions = any(e in WRITING_EXTENSIONS for e in extensions)
    has_productivity_extensions = any(e in PRODUCTIVITY_EXTENSIONS for e in extensions)
    has_shopping_extensions = any(e in SHOPPING_EXTENSIONS for e in extensions)
    has_password_manager = any(e in PASSWORD_MANAGERS for e in extensions)

    gpu_raw = hw.gpu or ""
    gpu = gpu_raw.lower()
    is_high_end = _contains_any(gpu, HIGH_END_GPUS)
    is_apple_silicon = _contains_any(gpu, APPLE_SILICON)
    cpu_cores = hw.cpu_cores or 0

    current = bundle.current_time
    hour = current.hour if current else None
    is_weekend = current.is_weekend if current else False
    is_night_owl = hour is not None and (hour >= 23 or hour < 5)
    is_early_bird = hour is not None and 5 <= hour < 8
    is_work_hours = hour is not None and 9 <= hour < 17 and not is_weekend

    services = tuple(bundle.social_logins.services) if bundle.social_logins else ()
    has_github = "GitHub" in services

    vpn = bundle.vpn
    is_using_vpn = vpn.likely if vpn else False

    referrer = (browser.referrer or "").lower()

    has_dev_signals = (
        bots.dev_tools_open
        or "Developer" in browser.user_agent
        or "Canary" in browser.user_agent
        or has_github
        or has_dev_extensions
        or cpu_cores >= 8
    )
    is_privacy_conscious = (
        tracking.ad_blocker
        or tracking.do_not_track
        or tracking.global_privacy_control
        or is_using_vpn
        or has_privacy_extensions
    )

    # navigator.storage.estimate() covers this site only: storage means a returning visitor
    storage_used_mb = round_half_up(bundle.storage.used / 1e6) if bundle.storage.used else 0
    # History length is the current tab's navigation stack
    history_length = browser.history_length

    isp = (bundle.network.isp or "").lower()
    battery = hw.battery
    preferences = bundle.preferences

    return MicroSignals(
        extensions=extensions,
        has_dev_extensions=has_dev_extensions,
        framework_devtools=_only(extensions, FRAMEWORK_DEVTOOLS),
        has_password_manager=has_password_manager,
        password_manager=_first(extensions, PASSWORD_MANAGERS),
        has_premium_password_manager=any(e in PREMIUM_PASSWORD_MANAGERS for e in extensions),
        has_shopping_extensions=has_shopping_extensions,
        shopping_extensions=_only(extensions, NAMED_SHOPPING_EXTENSIONS),
        has_privacy_extensions=has_privacy_extensions,
        has_writing_extensions=has_writing_extensions,
        writing_tool=_first(extensions, WRITING_EXTENSIONS),
        has_productivity_extensions=has_productivity_extensions,
        productivity_extensions=_only(extensions, PRODUCTIVITY_EXTENSIONS),
        has_dark_reader=DARK_READER in extensions,
        has_vpn_extension=any(e in VPN_EXTENSIONS for e in extensions),
        vpn_extension=_first(extensions, VPN_EXTENSIONS),
        has_screenshot_tools=any(e in SCREENSHOT_EXTENSIONS for e in extensions),
        gpu=gpu,
        gpu_label=" ".join(gpu_raw.split(" ")[:3]),
        is_high_end=is_high_end,
        is_mid_range=_contains_any(gpu, MID_RANGE_GPUS),
        is_integrated=_contains_any(gpu, INTEGRATED_GPUS),
        is_apple_silicon=is_apple_silicon,
        is_quadro="quadro" in gpu,
        has_gaming_gpu_brand="rtx" in gpu or "rx" in gpu,
        cpu_cores=cpu_cores,
        ram_gb=hw.ram or 0,
        screen_width=hw.screen_width,
        screen_height=hw.screen_height,
        is_professional_screen=hw.screen_width >= 2560 or hw.pixel_ratio >= 2,
        is_budget_screen=hw.screen_width <= 1600 and hw.screen_height <= 900,
        is_4k=hw.screen_width >= 3840,
        has_battery=battery is not None,
        battery_level=battery.level if battery else 0.0,
        battery_charging=battery.charging if battery else False,
        hour=hour,
        hour_label=format_hour(hour) if hour is not None else None,
        day_name=DAY_NAMES[current.day_of_week] if current else None,
        is_weekend=is_weekend,
        is_night_owl=is_night_owl,
        is_early_bird=is_early_bird,
        is_work_hours=is_work_hours,
        local_timezone=current.local_timezone if current else None,
        social_services=services,
        social_count=len(services),
        has_github=has_github,
        has_facebook="Facebook" in services,
        has_reddit="Reddit" in services,
        has_twitter="Twitter" in services,
        has_google="Google" in services,
        city=bundle.network.city or None,
        network_timezone=bundle.network.timezone or None,
        is_using_vpn=is_using_vpn,
        has_timezone_mismatch=vpn.timezone_mismatch if vpn else False,
        has_webrtc_leak=vpn.webrtc_leak if vpn else False,
        is_datacenter=_contains_any(isp, DATACENTER_ISPS),
        is_enterprise_isp=_contains_any(isp, ENTERPRISE_ISPS),
        from_google="google" in referrer,
        from_reddit="reddit" in referrer,
        from_twitter="twitter" in referrer or "x.com" in referrer,
        from_hn="ycombinator" in referrer or "hackernews" in referrer,
        from_facebook="facebook" in referrer,
        is_direct=not browser.referrer,
        has_dev_signals=has_dev_signals,
        dev_tools_open=bots.dev_tools_open,
        has_crypto=bundle.crypto.has_any_wallet,
        wallet_count=len(bundle.crypto.wallets),
        language_count=len(browser.languages),
        is_privacy_conscious=is_privacy_conscious,
        is_writer_or_professional=has_writing_extensions or has_productivity_extensions,
        keystrokes=behavior.typing.total_keystrokes,
        is_fast_typist=behavior.typing.average_wpm > 60,
        mouse_movements=behavior.mouse.movements,
        total_clicks=behavior.mouse.total_clicks,
        rage_clicks=behavior.mouse.rage_clicks,
        erratic_movements=behavior.mouse.erratic_movements,
        has_rage_clicks=behavior.mouse.rage_clicks > 0,
        tab_switches=behavior.attention.tab_switches,
        focus_time_ms=behavior.attention.focus_time,
        is_distracted=behavior.attention.tab_switches > 10,
        storage_used_mb=storage_used_mb,
        is_returning_visitor=storage_used_mb > 0,
        is_frequent_visitor=storage_used_mb > 1,
        history_length=history_length,
        has_deep_session=history_length > 20,
        is_fresh_navigation=history_length <= 2,
        is_long_session=history_length > 50,
        has_p3=preferences is not None and preferences.color_gamut == "p3",
        is_automated=bots.is_automated,
        is_headless=bots.is_headless,
        is_virtual_machine=bots.is_virtual_machine,
        is_incognito=bots.incognito_mode,
    )
