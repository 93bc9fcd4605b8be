"""Command handlers."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from remindcare.bot.formatters import (
    format_help_message,
    format_list_view,
    format_reminder,
    format_welcome_message,
)
from remindcare.bot.keyboards import reminder_actions_keyboard
from remindcare.db.models import ListFilter
from remindcare.engine.manager import ReminderManager
from remindcare.parser.command import parse_add_args, parse_edit_args, parse_type
from remindcare.utils.errors import RemindCareError

logger = logging.getLogger(__name__)


def _manager(context: ContextTypes.DEFAULT_TYPE) -> ReminderManager:
    return context.bot_data["manager"]


def _args_text(context: ContextTypes.DEFAULT_TYPE) -> str:
    return " ".join(context.args or [])


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.effective_user or not update.message:
        return

    manager = _manager(context)
    user_id = update.effective_user.id

    # Save the default preference so the user is known to startup reconciliation
    enabled = await manager.store.get_voice_enabled(user_id)
    await manager.store.set_voice_enabled(user_id, enabled)
    logger.info(f"User {user_id} started the bot")

    await update.message.reply_html(format_welcome_message())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <title> | <date> | <time> [| type] [| days] [| voice prompt]."""
    if not update.effective_user or not update.message:
        return

    manager = _manager(context)
    try:
        data = parse_add_args(_args_text(context), manager.tz)
        reminder = await manager.create(update.effective_user.id, data)
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    await update.message.reply_html(
        "✓ Reminder set!\n\n" + format_reminder(reminder, manager.tz),
        reply_markup=reminder_actions_keyboard(reminder.id, reminder.is_completed),
    )


async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <id> field=value; field=value."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) < 2:
        await update.message.reply_text("Usage: /edit <id> title=...; time=HH:MM; date=YYYY-MM-DD")
        return

    manager = _manager(context)
    user_id = update.effective_user.id
    try:
        reminder = await manager.resolve(user_id, context.args[0])
        patch = parse_edit_args(" ".join(context.args[1:]), manager.tz)
        reminder = await manager.edit(user_id, reminder.id, patch)
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    await update.message.reply_html(
        "✎ Reminder updated\n\n" + format_reminder(reminder, manager.tz),
        reply_markup=reminder_actions_keyboard(reminder.id, reminder.is_completed),
    )


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list [all] [type] - reminders grouped by day."""
    if not update.effective_user or not update.message:
        return

    list_filter = ListFilter()
    manager = _manager(context)
    try:
        for arg in context.args or []:
            if arg.lower() == "all":
                list_filter.include_completed = True
            else:
                list_filter.type = parse_type(arg)
        groups = await manager.list_view(update.effective_user.id, list_filter)
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    await update.message.reply_html(format_list_view(groups, manager.tz))


async def search_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /search <text> - match title or description."""
    if not update.effective_user or not update.message:
        return

    text = _args_text(context).strip()
    if not text:
        await update.message.reply_text("Usage: /search <text>")
        return

    manager = _manager(context)
    try:
        groups = await manager.list_view(
            update.effective_user.id, ListFilter(include_completed=True, search_text=text)
        )
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    if not groups:
        await update.message.reply_text(f"No reminders match '{text}'.")
        return
    await update.message.reply_html(format_list_view(groups, manager.tz))


async def _set_completed(update: Update, context: ContextTypes.DEFAULT_TYPE, completed: bool) -> None:
    if not update.effective_user or not update.message:
        return

    command = "done" if completed else "undo"
    if not context.args or len(context.args) != 1:
        await update.message.reply_text(f"Usage: /{command} <reminder_id>")
        return

    manager = _manager(context)
    user_id = update.effective_user.id
    try:
        reminder = await manager.resolve(user_id, context.args[0])
        reminder = await manager.toggle_completion(user_id, reminder.id, completed)
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    if completed:
        await update.message.reply_html(f"✓ Marked as completed: <b>{escape(reminder.title)}</b>")
    else:
        await update.message.reply_html(f"↺ Marked as active: <b>{escape(reminder.title)}</b>")


async def done_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <id> command."""
    await _set_completed(update, context, True)


async def undo_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /undo <id> command."""
    await _set_completed(update, context, False)


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <id> command."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /delete <reminder_id>")
        return

    manager = _manager(context)
    user_id = update.effective_user.id
    try:
        reminder = await manager.resolve(user_id, context.args[0])
        await manager.delete(user_id, reminder.id)
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    await update.message.reply_html(f"🗑 Deleted: <b>{escape(reminder.title)}</b>")


async def stop_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stop <id> - silence a ringing reminder."""
    if not update.effective_user or not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /stop <reminder_id>")
        return

    manager = _manager(context)
    try:
        reminder = await manager.resolve(update.effective_user.id, context.args[0])
    except RemindCareError as e:
        await update.message.reply_text(f"❌ {e.message}")
        return

    manager.stop_active(reminder.id, update.effective_user.id)
    await update.message.reply_text("🔇 Notification stopped")


async def voice_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /voice on|off."""
    if not update.effective_user or not update.message:
        return

    manager = _manager(context)
    user_id = update.effective_user.id

    if not context.args:
        enabled = await manager.store.get_voice_enabled(user_id)
        await update.message.reply_text(
            f"Voice reading is {'on' if enabled else 'off'}. Use /voice on or /voice off."
        )
        return

    choice = context.args[0].lower()
    if choice not in ("on", "off"):
        await update.message.reply_text("Usage: /voice on|off")
        return

    await manager.store.set_voice_enabled(user_id, choice == "on")
    if choice == "off":
        manager.announcer.stop(user_id)
    await update.message.reply_text(f"🔊 Voice reading turned {choice}")
