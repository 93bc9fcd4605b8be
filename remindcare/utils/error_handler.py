"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.ext import ContextTypes

from remindcare.utils.errors import (
    NotificationError,
    ReminderNotFound,
    RemindCareError,
    StoreError,
)

logger = logging.getLogger(__name__)


def user_message_for(error: BaseException | None) -> str:
    """A human-readable explanation of an error for the user."""
    if isinstance(error, NotificationError):
        return f"🔕 {error.message}\n\nYour reminders may need to be saved again."
    if isinstance(error, ReminderNotFound):
        return f"❌ {error.message}"
    if isinstance(error, StoreError):
        return "💾 I couldn't reach your saved reminders.\n\nPlease try again in a moment."
    if isinstance(error, RemindCareError):
        return f"❌ {error.message}"

    text = str(error)
    if "Timeout" in text or "Timed out" in text:
        return "⏱️ Request timed out.\n\nPlease try again in a moment."
    if "Network" in text:
        return "🌐 Network error.\n\nPlease check your connection and try again."
    return (
        "😅 Oops! Something went wrong.\n\n"
        "The error has been logged. Please try again or use /help for assistance."
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised by handlers and tell the user something went wrong."""
    error = context.error

    if isinstance(error, RemindCareError):
        logger.warning(f"{type(error).__name__} while handling an update: {error.message}")
    else:
        tb_string = "".join(traceback.format_exception(None, error, error.__traceback__))
        logger.error(f"Exception while handling an update:\n{tb_string}")

    if isinstance(update, Update) and update.effective_message:
        try:
            await update.effective_message.reply_text(user_message_for(error))
        except Exception as e:
            logger.error(f"Failed to send error message to user: {e}")
