"""Main entry point for the RemindCare bot."""

import logging
import sys

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from remindcare.bot.callbacks import callback_router
from remindcare.bot.handlers import (
    add_command,
    delete_command,
    done_command,
    edit_command,
    help_command,
    list_command,
    search_command,
    start_command,
    stop_command,
    undo_command,
    voice_command,
)
from remindcare.config import Config
from remindcare.db.migrations import run_migrations
from remindcare.db.repository import Repository
from remindcare.engine.manager import ReminderManager
from remindcare.notifications.telegram_gateway import TelegramNotificationGateway
from remindcare.utils.error_handler import error_handler
from remindcare.voice.announcer import VoiceAnnouncer

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


async def startup_recovery(manager: ReminderManager) -> None:
    """Re-create notifications lost when the process last stopped."""
    total = 0
    for user_id in await manager.store.list_user_ids():
        total += await manager.reconcile(user_id)
    logger.info(f"Startup recovery complete ({total} reminder(s) rescheduled)")


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    await run_migrations(Config.DATABASE_PATH)

    repo = Repository(Config.DATABASE_PATH, voice_enabled_default=Config.VOICE_ENABLED_DEFAULT)
    await repo.connect()

    gateway = TelegramNotificationGateway(application.job_queue, tz=Config.TIMEZONE)
    await gateway.init()

    announcer = VoiceAnnouncer(application.bot, rate=Config.VOICE_RATE, volume=Config.VOICE_VOLUME)

    manager = ReminderManager(repo, gateway, announcer, tz=Config.TIMEZONE)
    manager.attach()

    application.bot_data["repo"] = repo
    application.bot_data["gateway"] = gateway
    application.bot_data["announcer"] = announcer
    application.bot_data["manager"] = manager

    await startup_recovery(manager)

    logger.info("RemindCare initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    manager: ReminderManager | None = application.bot_data.get("manager")
    if manager:
        manager.detach()

    gateway: TelegramNotificationGateway | None = application.bot_data.get("gateway")
    if gateway:
        await gateway.shutdown()

    announcer: VoiceAnnouncer | None = application.bot_data.get("announcer")
    if announcer:
        await announcer.close()

    repo: Repository | None = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("RemindCare shut down")


def main() -> None:
    """Start the bot."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("add", add_command))
    application.add_handler(CommandHandler("edit", edit_command))
    application.add_handler(CommandHandler("list", list_command))
    application.add_handler(CommandHandler("search", search_command))
    application.add_handler(CommandHandler("done", done_command))
    application.add_handler(CommandHandler("undo", undo_command))
    application.add_handler(CommandHandler("delete", delete_command))
    application.add_handler(CommandHandler("stop", stop_command))
    application.add_handler(CommandHandler("voice", voice_command))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)

    logger.info("Starting RemindCare bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
