"""
Habita Plan Client — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from habita/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Habita backend
    HABITA_API_URL: str
    HABITA_API_TOKEN: str = ""            # forwarded as a bearer token when set

    # None → httpx transport default
    HTTP_TIMEOUT_SECONDS: float | None = None

    # Plan defaults
    DEFAULT_PLAN_DURATION_DAYS: int = 7

    # "allow" | "reject" — what add does when the assignment key already exists
    DUPLICATE_POLICY: str = "allow"

    # Toast delivery: "log" | "telegram"
    NOTIFIER_PROVIDER: str = "log"

    # Telegram (only needed when NOTIFIER_PROVIDER=telegram)
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: int | None = None

    @field_validator("HABITA_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("HTTP_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_timeout(cls, v: str | float | None) -> float | None:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return float(v)

    @field_validator("DEFAULT_PLAN_DURATION_DAYS", mode="before")
    @classmethod
    def parse_duration(cls, v: str | int) -> int:
        return int(v)

    @field_validator("DUPLICATE_POLICY")
    @classmethod
    def check_duplicate_policy(cls, v: str) -> str:
        v = v.lower()
        if v not in ("allow", "reject"):
            raise ValueError(f"DUPLICATE_POLICY must be 'allow' or 'reject', got {v!r}")
        return v

    @field_validator("TELEGRAM_CHAT_ID", mode="before")
    @classmethod
    def parse_chat_id(cls, v: str | int | None) -> int | None:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    api_url = os.getenv("HABITA_API_URL", "")

    if not api_url or api_url.startswith("your-"):
        print("ERROR: HABITA_API_URL is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        HABITA_API_URL=api_url,
        HABITA_API_TOKEN=os.getenv("HABITA_API_TOKEN", ""),
        HTTP_TIMEOUT_SECONDS=os.getenv("HTTP_TIMEOUT_SECONDS", ""),
        DEFAULT_PLAN_DURATION_DAYS=os.getenv("DEFAULT_PLAN_DURATION_DAYS", "7"),
        DUPLICATE_POLICY=os.getenv("DUPLICATE_POLICY", "allow"),
        NOTIFIER_PROVIDER=os.getenv("NOTIFIER_PROVIDER", "log"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        TELEGRAM_CHAT_ID=os.getenv("TELEGRAM_CHAT_ID", ""),
    )


# Singleton — imported by all other modules as:
#   from habita.config import settings
settings = _load_settings()
