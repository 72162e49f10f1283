#!/usr/bin/env python3
"""
Court booking bot - process entry point around the runtime application.
"""
from tracking import t

import logging
import sys
from pathlib import Path

if __name__ == "__main__" and __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    __package__ = "botapp"

from botapp.config import load_bot_config
from botapp.runtime import BotApplication
from infrastructure.logging_config import setup_logging
from infrastructure.settings import ConfigurationError, get_settings


def main() -> None:
    """Entry point used by both CLI script and module execution."""
    t('botapp.app.main')

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    setup_logging(production_mode=settings.production_mode)
    logger = logging.getLogger('Main')
    logger.info("=" * 50)
    logger.info("Court Booking Bot (production=%s)", settings.production_mode)
    logger.info("=" * 50)

    try:
        bot = BotApplication(load_bot_config(settings))
    except ConfigurationError as exc:
        logger.error("❌ Configuration error: %s", exc)
        sys.exit(1)

    try:
        logger.info("🚀 Starting bot...")
        bot.run()
    except KeyboardInterrupt:
        logger.info("✅ Stopped by user (Ctrl+C)")
    except Exception as exc:
        logger.error("❌ Error: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
