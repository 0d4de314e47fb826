#!/usr/bin/env python3
"""
Vocabulary Flashcard Trainer
Main application entry point
"""

import asyncio
import logging

from src.bot_handler import BotHandler
from src.config import get_settings


async def main():
    """Main application entry point"""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Starting flashcard trainer...")

    bot_handler = BotHandler(settings)

    try:
        await bot_handler.start()
        logger.info("Bot stopped gracefully")
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutdown requested, stopping bot...")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
