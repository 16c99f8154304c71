"""
Main entry point for the nail salon booking bot.
Supports both polling and webhook modes.
"""

import asyncio
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from auth import add_session_listener
from bot import register_admin_handlers, register_handlers
from bot.admin_handlers import log_session_change
from config import settings
from utils.logging_config import configure_root_logging, setup_logging

WEBHOOK_PATH = "/webhook/telegram"

configure_root_logging()
logger = setup_logging(name=__name__, log_file="bot.log")

# Validate configuration
try:
    settings.validate_all_required()
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    sys.exit(1)

# Initialize bot and dispatcher
bot = Bot(
    token=settings.bot_token,
    default=DefaultBotProperties(parse_mode=ParseMode.HTML),
)

dp = Dispatcher(storage=MemoryStorage())


async def on_startup(bot: Bot) -> None:
    """Configure webhook on startup."""
    if settings.bot_webhook_url:
        webhook_url = f"{settings.bot_webhook_url.rstrip('/')}{WEBHOOK_PATH}"

        await bot.set_webhook(
            url=webhook_url,
            allowed_updates=dp.resolve_used_update_types(),
        )
        logger.info(f"Webhook configured: {webhook_url}")
    else:
        logger.info("Webhook URL not configured, using polling mode")


async def on_shutdown(bot: Bot) -> None:
    """Cleanup on shutdown."""
    if settings.bot_webhook_url:
        await bot.delete_webhook()
        logger.info("Webhook removed")


async def main() -> None:
    """Main async function to run the bot."""
    try:
        logger.info("Starting nail salon booking bot...")

        # Admin commands first so they are not swallowed by free-text booking states
        register_admin_handlers(dp)
        register_handlers(dp)
        logger.info("Handlers registered")

        add_session_listener(log_session_change)

        # Choose webhook or polling mode
        if settings.bot_webhook_url:
            # Webhook mode (production)
            app = web.Application()

            webhook_requests_handler = SimpleRequestHandler(
                dispatcher=dp,
                bot=bot,
            )
            webhook_requests_handler.register(app, path=WEBHOOK_PATH)

            setup_application(app, dp, bot=bot)

            await on_startup(bot)

            logger.info(
                f"Bot webhook server starting on {settings.host}:{settings.port}"
            )
            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(runner, host=settings.host, port=settings.port)
            await site.start()
            try:
                await asyncio.Event().wait()
            finally:
                await runner.cleanup()
        else:
            # Polling mode (development)
            logger.info("Bot is running in polling mode. Press Ctrl+C to stop.")
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())

    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except asyncio.CancelledError:
        logger.info("Bot cancelled")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down...")
        await on_shutdown(bot)

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.error(f"Error closing bot session: {e}", exc_info=True)

        logger.info("Bot shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
