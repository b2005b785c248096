"""
Configuration Management for tts-relay.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Frozen dataclass configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (ELEVEN_API_KEY, ELEVEN_AUDIO_TTL, etc.)
    2. YAML config file (config/settings.yaml or $TTS_RELAY_SETTINGS)
    3. Defaults class values

The validated SpeechConfig is built once at startup and handed to the
speech service and the storage sweeper. Nothing reads configuration
through a global lookup after that point.

Example settings.yaml:
    elevenlabs:
      api_key: sk-...
      voice_id: 21m00Tcm4TlvDq8ikWAM
      model_id: eleven_multilingual_v2

    storage:
      disk: public
      path: audio
      ttl_minutes: 60

    rate_limit:
      tts_per_minute: 10
      voices_per_minute: 30
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import os
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    A missing API key is the most common cause; the service refuses to
    start rather than fail on the first request.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - ElevenLabs: remote API endpoint, model and voice
        - Voice settings: tuning values sent with every synthesis
        - Storage: disk, path prefix and artifact TTL
        - Rate limiting: per-client request budgets
        - Logging: log level
    """

    # ─────────────────────────────────────────────────────────────────────────
    # ElevenLabs API
    # ─────────────────────────────────────────────────────────────────────────
    BASE_URL = "https://api.elevenlabs.io/v1"
    TIMEOUT_SECONDS = 30
    VOICE_ID = "21m00Tcm4TlvDq8ikWAM"      # Rachel
    MODEL_ID = "eleven_multilingual_v2"

    # ─────────────────────────────────────────────────────────────────────────
    # Voice settings (0.0 - 1.0)
    # ─────────────────────────────────────────────────────────────────────────
    STABILITY = 0.5
    SIMILARITY_BOOST = 0.75
    STYLE = 0.0
    USE_SPEAKER_BOOST = True

    # ─────────────────────────────────────────────────────────────────────────
    # Storage
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_DISK = "public"
    STORAGE_PATH = "audio"
    STORAGE_TTL_MINUTES = 60            # 0 = never expires
    DISKS: Dict[str, Dict[str, Optional[str]]] = {
        "public": {"root": "./storage/public", "url": "/storage"},
        "local": {"root": "./storage/local", "url": None},
    }

    # ─────────────────────────────────────────────────────────────────────────
    # Rate limiting (upstream admission control)
    # ─────────────────────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED = True
    RATE_LIMIT_TTS_PER_MINUTE = 10
    RATE_LIMIT_VOICES_PER_MINUTE = 30
    RATE_LIMIT_WINDOW_SECONDS = 60

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG

    SETTINGS_PATH = "config/settings.yaml"


@dataclass(frozen=True)
class VoiceSettings:
    """Tuning values forwarded to the remote API as ``voice_settings``."""
    stability: float = Defaults.STABILITY
    similarity_boost: float = Defaults.SIMILARITY_BOOST
    style: float = Defaults.STYLE
    use_speaker_boost: bool = Defaults.USE_SPEAKER_BOOST

    def as_dict(self) -> Dict[str, Any]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
        }


@dataclass(frozen=True)
class DiskConfig:
    """A named storage root and the public URL prefix it is served under."""
    name: str
    root: str
    url: Optional[str] = None


@dataclass(frozen=True)
class StorageConfig:
    """
    Where generated audio is written and how long it lives.

    ``ttl_minutes == 0`` disables expiry entirely.
    """
    disk: str = Defaults.STORAGE_DISK
    path: str = Defaults.STORAGE_PATH
    ttl_minutes: int = Defaults.STORAGE_TTL_MINUTES


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client request budgets applied before requests reach the service."""
    enabled: bool = Defaults.RATE_LIMIT_ENABLED
    tts_per_minute: int = Defaults.RATE_LIMIT_TTS_PER_MINUTE
    voices_per_minute: int = Defaults.RATE_LIMIT_VOICES_PER_MINUTE
    window_seconds: int = Defaults.RATE_LIMIT_WINDOW_SECONDS


@dataclass(frozen=True)
class SpeechConfig:
    """
    Validated, immutable configuration for the speech service.

    Usage:
        settings = load_settings()
        config = SpeechConfig.from_settings(settings)
        service = SpeechService(config, disk=build_disk(config))
    """
    api_key: str
    base_url: str = Defaults.BASE_URL
    timeout_seconds: int = Defaults.TIMEOUT_SECONDS
    default_voice_id: str = Defaults.VOICE_ID
    model_id: str = Defaults.MODEL_ID
    voice_settings: VoiceSettings = field(default_factory=VoiceSettings)
    storage: StorageConfig = field(default_factory=StorageConfig)
    disks: Mapping[str, DiskConfig] = field(default_factory=dict)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    @property
    def disk(self) -> DiskConfig:
        """The disk configured for audio artifacts."""
        try:
            return self.disks[self.storage.disk]
        except KeyError:
            raise ConfigValidationError(f"storage.disk '{self.storage.disk}' is not defined") from None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SpeechConfig":
        """
        Create SpeechConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML and environment.

        Returns:
            Validated SpeechConfig instance.

        Raises:
            ConfigValidationError: If the API key is missing or any value
                fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Remote API
        # ─────────────────────────────────────────────────────────────────────
        api_raw = raw.get("elevenlabs", {}) or {}
        api_key = str(api_raw.get("api_key") or "").strip()
        if not api_key:
            raise ConfigValidationError(
                "ElevenLabs API key is not configured. Set ELEVEN_API_KEY in the environment"
            )

        timeout = cls._to_int("elevenlabs.timeout", api_raw.get("timeout", Defaults.TIMEOUT_SECONDS))
        cls._validate_positive("elevenlabs.timeout", timeout)

        vs_raw = api_raw.get("voice_settings", {}) or {}
        voice_settings = VoiceSettings(
            stability=cls._to_float("voice_settings.stability", vs_raw.get("stability", Defaults.STABILITY)),
            similarity_boost=cls._to_float(
                "voice_settings.similarity_boost", vs_raw.get("similarity_boost", Defaults.SIMILARITY_BOOST)
            ),
            style=cls._to_float("voice_settings.style", vs_raw.get("style", Defaults.STYLE)),
            use_speaker_boost=bool(vs_raw.get("use_speaker_boost", Defaults.USE_SPEAKER_BOOST)),
        )
        cls._validate_range("voice_settings.stability", voice_settings.stability, 0.0, 1.0)
        cls._validate_range("voice_settings.similarity_boost", voice_settings.similarity_boost, 0.0, 1.0)
        cls._validate_range("voice_settings.style", voice_settings.style, 0.0, 1.0)

        # ─────────────────────────────────────────────────────────────────────
        # Storage
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        storage = StorageConfig(
            disk=str(storage_raw.get("disk", Defaults.STORAGE_DISK)),
            path=str(storage_raw.get("path", Defaults.STORAGE_PATH)).strip("/"),
            ttl_minutes=cls._to_int("storage.ttl_minutes", storage_raw.get("ttl_minutes", Defaults.STORAGE_TTL_MINUTES)),
        )
        cls._validate_non_negative("storage.ttl_minutes", storage.ttl_minutes)

        disks_raw: Dict[str, Any] = {**Defaults.DISKS, **(raw.get("disks", {}) or {})}
        disks = {
            name: DiskConfig(name=name, root=str(d.get("root")), url=d.get("url"))
            for name, d in disks_raw.items()
        }
        if storage.disk not in disks:
            raise ConfigValidationError(f"storage.disk '{storage.disk}' is not defined")
        # Synthesis returns a public URL for every artifact
        if not disks[storage.disk].url:
            raise ConfigValidationError(f"storage.disk '{storage.disk}' has no public url")

        # ─────────────────────────────────────────────────────────────────────
        # Rate limiting
        # ─────────────────────────────────────────────────────────────────────
        rl_raw = raw.get("rate_limit", {}) or {}
        rate_limit = RateLimitConfig(
            enabled=bool(rl_raw.get("enabled", Defaults.RATE_LIMIT_ENABLED)),
            tts_per_minute=cls._to_int(
                "rate_limit.tts_per_minute", rl_raw.get("tts_per_minute", Defaults.RATE_LIMIT_TTS_PER_MINUTE)
            ),
            voices_per_minute=cls._to_int(
                "rate_limit.voices_per_minute", rl_raw.get("voices_per_minute", Defaults.RATE_LIMIT_VOICES_PER_MINUTE)
            ),
            window_seconds=cls._to_int(
                "rate_limit.window_seconds", rl_raw.get("window_seconds", Defaults.RATE_LIMIT_WINDOW_SECONDS)
            ),
        )
        cls._validate_positive("rate_limit.tts_per_minute", rate_limit.tts_per_minute)
        cls._validate_positive("rate_limit.voices_per_minute", rate_limit.voices_per_minute)
        cls._validate_positive("rate_limit.window_seconds", rate_limit.window_seconds)

        return cls(
            api_key=api_key,
            base_url=str(api_raw.get("base_url", Defaults.BASE_URL)).rstrip("/"),
            timeout_seconds=timeout,
            default_voice_id=str(api_raw.get("voice_id", Defaults.VOICE_ID)),
            model_id=str(api_raw.get("model_id", Defaults.MODEL_ID)),
            voice_settings=voice_settings,
            storage=storage,
            disks=disks,
            rate_limit=rate_limit,
        )

    @staticmethod
    def _to_int(name: str, value: Any) -> int:
        """Convert a raw value (YAML number or env string) to int."""
        if isinstance(value, bool):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}") from None

    @staticmethod
    def _to_float(name: str, value: Any) -> float:
        if isinstance(value, bool):
            raise ConfigValidationError(f"{name} must be a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be a number, got {value!r}") from None

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML and environment.

    This is the raw settings object before validation. Use
    get_speech_config() to get a validated SpeechConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def logging(self) -> Dict[str, Any]:
        """Get the raw logging section."""
        return self.raw.get("logging", {}) or {}

    def get_speech_config(self) -> SpeechConfig:
        """
        Get validated SpeechConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return SpeechConfig.from_settings(self)


# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "ELEVEN_API_KEY": ("elevenlabs", "api_key"),
    "ELEVEN_VOICE_ID": ("elevenlabs", "voice_id"),
    "ELEVEN_API_BASE_URL": ("elevenlabs", "base_url"),
    "ELEVEN_API_TIMEOUT": ("elevenlabs", "timeout"),
    "ELEVEN_MODEL_ID": ("elevenlabs", "model_id"),
    "ELEVEN_AUDIO_TTL": ("storage", "ttl_minutes"),
    "TTS_RELAY_STORAGE_DISK": ("storage", "disk"),
    "TTS_RELAY_STORAGE_PATH": ("storage", "path"),
}


def apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Copy environment overrides into a raw settings dictionary."""
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML configuration file plus the environment.

    A missing file is not an error: the service then runs on defaults and
    environment overrides alone, which is how container deployments are
    usually configured.

    Args:
        path: Path to the YAML file. Defaults to $TTS_RELAY_SETTINGS or
            config/settings.yaml.

    Returns:
        Settings object with loaded configuration.
    """
    p = Path(path or os.getenv("TTS_RELAY_SETTINGS", Defaults.SETTINGS_PATH))

    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    return Settings(raw=apply_env_overrides(raw))
