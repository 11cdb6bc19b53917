"""
Runtime configuration for AgendaGenius.

Values are read from the environment (and a local .env file) exactly once.
The presence of a Gemini API key is the only input that decides whether the
service starts in demo mode.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


@dataclass
class Settings:
    """Process-wide settings."""
    api_key: Optional[str] = None
    gemini_model: str = "gemini-3-pro-preview"
    generation_timeout_s: float = 120.0

    # Demo mode pacing (models latency for UI testing)
    demo_generation_delay_s: float = 2.0
    demo_chat_initial_delay_s: float = 0.6
    demo_chat_chunk_delay_s: float = 0.03
    demo_chat_chunk_size: int = 5

    notification_ttl_s: float = 4.0
    max_upload_bytes: int = 20 * 1024 * 1024
    log_level: str = "INFO"

    @property
    def credential_present(self) -> bool:
        return bool(self.api_key)


def load_settings() -> Settings:
    """Build Settings from the environment."""
    load_dotenv()

    # API_KEY is the legacy name used by the browser build
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None

    settings = Settings(
        api_key=api_key,
        gemini_model=os.getenv("GEMINI_MODEL", Settings.gemini_model),
        generation_timeout_s=_float_env("GENERATION_TIMEOUT_S", Settings.generation_timeout_s),
        demo_generation_delay_s=_float_env("DEMO_GENERATION_DELAY_S", Settings.demo_generation_delay_s),
        demo_chat_initial_delay_s=_float_env("DEMO_CHAT_INITIAL_DELAY_S", Settings.demo_chat_initial_delay_s),
        demo_chat_chunk_delay_s=_float_env("DEMO_CHAT_CHUNK_DELAY_S", Settings.demo_chat_chunk_delay_s),
        demo_chat_chunk_size=_int_env("DEMO_CHAT_CHUNK_SIZE", Settings.demo_chat_chunk_size),
        notification_ttl_s=_float_env("NOTIFICATION_TTL_S", Settings.notification_ttl_s),
        max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", Settings.max_upload_bytes),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
    )

    if not settings.credential_present:
        logger.warning("GEMINI_API_KEY not set - starting in demo mode")

    return settings


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings():
    """Forget the cached settings (used by tests)."""
    global _settings
    _settings = None
