#!/usr/bin/env python3
"""
run_bot.py — Sign Spotlight Telegram Bot entry point.

Usage:
    python run_bot.py

Required env vars (in .env):
    GEMINI_API_KEY=...
    TELEGRAM_BOT_TOKEN=...

Optional:
    SPOTLIGHT_MODEL=gemini-2.5-flash-image
"""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from spotlight.client import SpotlightClient
from spotlight.config import Settings
from spotlight.errors import ConfigError

load_dotenv()

logging.basicConfig(
    format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
    level=logging.INFO,
)
# httpx logs every Telegram poll at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = Settings.from_env(require_bot_token=True)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info("Starting Sign Spotlight Bot (model: %s)...", settings.model)
    logger.info("Polling for updates — press Ctrl+C to stop")

    from bot.telegram_bot import build_app
    client = SpotlightClient(api_key=settings.api_key, model=settings.model)
    app = build_app(token=settings.telegram_token, client=client)
    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
