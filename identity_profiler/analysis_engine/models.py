"""
Data models for analysis engine input and output.

SignalBundle is the client-reported signal set (camelCase on the wire);
hardware and network are mandatory, every other block is optional and
defaults to its no-signal value. ProfileResult is the engine output.
Both are pydantic models so the API boundary validates and serializes them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _SignalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# -----------------------------------------------------------------------------
# SignalBundle (input)
# -----------------------------------------------------------------------------


class Battery(_SignalModel):
    level: float = Field(..., ge=0, le=1, description="Charge level 0-1")
    charging: bool = False


class HardwareSignals(_SignalModel):
    gpu: str | None = None
    gpu_vendor: str | None = None
    cpu_cores: int | None = Field(None, ge=0)
    ram: float | None = Field(None, ge=0, description="Device memory in GB")
    battery: Battery | None = None
    screen_width: int = Field(0, ge=0)
    screen_height: int = Field(0, ge=0)
    pixel_ratio: float = Field(1.0, ge=0)
    touch_support: bool = False
    max_touch_points: int = Field(0, ge=0)
    color_depth: int = 24
    orientation: str = ""


class NetworkSignals(_SignalModel):
    city: str | None = None
    region: str | None = None
    country: str | None = None
    isp: str | None = None
    timezone: str | None = None
    connection_type: str | None = None
    downlink: float | None = None
    rtt: float | None = None


class BrowserSignals(_SignalModel):
    user_agent: str = ""
    language: str = ""
    languages: list[str] = Field(default_factory=list)
    platform: str = ""
    mobile: bool = False
    history_length: int = Field(0, ge=0)
    cookies_enabled: bool = True
    vendor: str = ""
    referrer: str = ""
    pdf_viewer: bool = False
    architecture: str | None = None
    platform_version: str | None = None


class FingerprintSignals(_SignalModel):
    fonts_detected: int = 0
    extensions_detected: list[str] = Field(default_factory=list)
    hardware_family: str | None = None
    webgpu_available: bool = False
    wasm_supported: bool = False
    speech_voices: int = 0
    navigator_props: int = 0
    window_props: int = 0


class SocialLogins(_SignalModel):
    has_any: bool = False
    services: list[str] = Field(default_factory=list)


class VpnSignals(_SignalModel):
    likely: bool = False
    timezone_mismatch: bool = False
    webrtc_leak: bool = False


class Preferences(_SignalModel):
    color_scheme: str = ""
    reduced_motion: bool = False
    color_gamut: str = ""
    hdr_support: bool = False


class BotDetection(_SignalModel):
    is_automated: bool = False
    is_headless: bool = False
    is_virtual_machine: bool = False
    incognito_mode: bool = False
    dev_tools_open: bool = False


class TypingStats(_SignalModel):
    total_keystrokes: int = Field(0, ge=0)
    average_wpm: float = Field(0, ge=0, alias="averageWPM")
    average_hold_time: float = 0


class MouseStats(_SignalModel):
    total_clicks: int = Field(0, ge=0)
    rage_clicks: int = Field(0, ge=0)
    erratic_movements: int = Field(0, ge=0)
    movements: int = Field(0, ge=0)
    total_distance: float = 0
    average_velocity: float = 0


class ScrollStats(_SignalModel):
    scroll_events: int = 0
    max_depth: float = 0
    direction_changes: int = 0


class AttentionStats(_SignalModel):
    tab_switches: int = Field(0, ge=0)
    total_hidden_time: float = 0
    focus_time: float = Field(0, ge=0, description="Milliseconds of sustained focus")


class EmotionStats(_SignalModel):
    engagement: float = 0
    exit_intents: int = 0
    handedness: str | None = None


class BehavioralSignals(_SignalModel):
    typing: TypingStats = Field(default_factory=TypingStats)
    mouse: MouseStats = Field(default_factory=MouseStats)
    scroll: ScrollStats = Field(default_factory=ScrollStats)
    attention: AttentionStats = Field(default_factory=AttentionStats)
    emotions: EmotionStats = Field(default_factory=EmotionStats)


class TrackingProtection(_SignalModel):
    ad_blocker: bool = False
    do_not_track: bool = False
    global_privacy_control: bool = False


class CryptoWallets(_SignalModel):
    has_any_wallet: bool = False
    wallets: list[str] = Field(default_factory=list)


class CurrentTime(_SignalModel):
    hour: int = Field(..., ge=0, le=23)
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    is_weekend: bool = False
    local_timezone: str | None = None


class StorageStats(_SignalModel):
    quota: float = Field(0, ge=0)
    used: float = Field(0, ge=0)
    usage_percent: float | None = None


class SignalBundle(_SignalModel):
    """Structured client-reported signals; read-only input to the engine."""

    hardware: HardwareSignals
    network: NetworkSignals
    browser: BrowserSignals = Field(default_factory=BrowserSignals)
    fingerprints: FingerprintSignals = Field(default_factory=FingerprintSignals)
    social_logins: SocialLogins | None = None
    vpn: VpnSignals | None = None
    preferences: Preferences | None = None
    bot_detection: BotDetection = Field(default_factory=BotDetection)
    behavioral: BehavioralSignals = Field(default_factory=BehavioralSignals)
    tracking: TrackingProtection = Field(default_factory=TrackingProtection)
    crypto: CryptoWallets = Field(default_factory=CryptoWallets)
    current_time: CurrentTime | None = None
    storage: StorageStats = Field(default_factory=StorageStats)


# -----------------------------------------------------------------------------
# ProfileResult (output)
# -----------------------------------------------------------------------------


class PersonalLife(_SignalModel):
    relationship_status: str
    has_children: str
    living_arrangement: str
    pet_owner: str


class MentalState(_SignalModel):
    current_mood: str
    stress_level: str
    focus_level: str


class Lifestyle(_SignalModel):
    sleep_schedule: str
    work_life_balance: str
    tech_attitude: str


class ProfileResult(_SignalModel):
    """Bounded, explainable profile; a pure function of the SignalBundle."""

    human_score: int = Field(..., ge=0, le=100)
    fraud_risk: int = Field(..., ge=0, le=100)
    device_tier: str
    device_value: str
    age_range: str
    income_level: str
    occupation: str
    education: str
    life_situation: str
    work_style: str
    personal_life: PersonalLife
    mental_state: MentalState
    lifestyle: Lifestyle
    interests: list[str] = Field(..., max_length=6)
    creepy_insights: list[str]
    profile_summary: str
    confidence: int = Field(..., ge=0, le=92)

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")
