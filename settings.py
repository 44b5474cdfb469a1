"""Runtime settings for the health alert bot.

Everything is read from environment variables. A local .env is loaded first
so scripts work without manually exporting vars; real environment variables
still win.
"""

from __future__ import annotations

import os
from datetime import time
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=False)


PIVOT_LANGUAGE = "en"
DEFAULT_CHUNK_LIMIT = 1500
DEFAULT_TWILIO_WHATSAPP_FROM = "whatsapp:+14155238886"  # Twilio sandbox number


def require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "y"}


# -------------------------
# AI completion (Gemini)
# -------------------------

def get_gemini_api_key() -> str:
    return require_env("GEMINI_API_KEY")


def get_gemini_model() -> str:
    return os.getenv("GEMINI_MODEL", "gemini-2.5-flash")


def get_ai_timeout() -> float:
    return _env_float("AI_TIMEOUT_SECONDS", 30.0)


# -------------------------
# Messaging (Twilio)
# -------------------------

def get_twilio_account_sid() -> str:
    return require_env("TWILIO_ACCOUNT_SID")


def get_twilio_auth_token() -> str:
    return require_env("TWILIO_AUTH_TOKEN")


def get_twilio_whatsapp_from() -> str:
    return os.getenv("TWILIO_WHATSAPP_FROM", DEFAULT_TWILIO_WHATSAPP_FROM)


def get_twilio_timeout() -> float:
    return _env_float("TWILIO_TIMEOUT_SECONDS", 10.0)


def get_chunk_limit() -> int:
    return _env_int("CHUNK_LIMIT", DEFAULT_CHUNK_LIMIT)


# -------------------------
# Translation
# -------------------------

def translation_enabled() -> bool:
    return _env_bool("TRANSLATION_ENABLED", True)


def get_translation_timeout() -> float:
    return _env_float("TRANSLATION_TIMEOUT_SECONDS", 10.0)


# -------------------------
# Government feeds
# -------------------------

def get_feed_timeout() -> float:
    return _env_float("FEED_TIMEOUT_SECONDS", 15.0)


def get_feeds_file() -> Path:
    value = os.getenv("FEEDS_FILE")
    if value:
        return Path(value)
    return Path(__file__).parent / "ingestion" / "feeds.json"


# -------------------------
# Broadcast schedule
# -------------------------

def get_broadcast_time() -> time:
    """Local wall-clock time of the daily broadcast (HH:MM)."""
    raw = os.getenv("BROADCAST_TIME", "09:00")
    hour, _, minute = raw.strip().partition(":")
    return time(hour=int(hour), minute=int(minute or 0))


def get_weekly_broadcast_day() -> int:
    # 0=Monday, 6=Sunday
    return _env_int("WEEKLY_BROADCAST_DAY", 6)


def get_broadcast_concurrency() -> int:
    return max(1, _env_int("BROADCAST_CONCURRENCY", 1))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
