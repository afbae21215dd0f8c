"""
config.py — Environment configuration, read once at startup.

Required env vars (in .env):
    GEMINI_API_KEY=...          # API_KEY is accepted as a fallback

Optional:
    SPOTLIGHT_MODEL=gemini-2.5-flash-image
    TELEGRAM_BOT_TOKEN=...      # required by run_bot.py only
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .client import DEFAULT_MODEL
from .errors import ConfigError


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str = DEFAULT_MODEL
    telegram_token: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        require_bot_token: bool = False,
    ) -> "Settings":
        env = os.environ if env is None else env

        api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY")
        if not api_key:
            raise ConfigError("GEMINI_API_KEY not set in environment / .env")

        token = env.get("TELEGRAM_BOT_TOKEN") or None
        if require_bot_token and not token:
            raise ConfigError("TELEGRAM_BOT_TOKEN not set in environment / .env")

        return cls(
            api_key=api_key,
            model=env.get("SPOTLIGHT_MODEL") or DEFAULT_MODEL,
            telegram_token=token,
        )
