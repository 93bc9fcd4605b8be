"""Callback query handlers for inline buttons."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from remindcare.bot.keyboards import confirm_delete_keyboard
from remindcare.engine.manager import ReminderManager
from remindcare.notifications.telegram_gateway import TelegramNotificationGateway
from remindcare.utils.errors import RemindCareError

logger = logging.getLogger(__name__)


async def handle_ack_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, notification_id: str
) -> None:
    """'Got it' on a fired notification: report the user's response."""
    query = update.callback_query
    gateway: TelegramNotificationGateway = context.bot_data["gateway"]

    event = gateway.pending_event(notification_id)
    handled = await gateway.respond(notification_id)
    if not handled or event is None:
        await query.answer("This reminder was already handled.")
        return

    if query.message:
        await query.message.edit_text(
            f"✓ <b>Acknowledged:</b> {escape(event.title)}",
            parse_mode="HTML",
        )
    await query.answer("✓ Got it")


async def handle_stop_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, notification_id: str
) -> None:
    """'Stop' on a fired notification: silence it without acknowledging."""
    query = update.callback_query
    gateway: TelegramNotificationGateway = context.bot_data["gateway"]
    manager: ReminderManager = context.bot_data["manager"]

    event = gateway.pending_event(notification_id)
    reminder_id = event.payload.get("reminderId") if event else None
    if reminder_id:
        manager.stop_active(reminder_id, update.effective_user.id)
    else:
        manager.announcer.stop(update.effective_user.id)

    await query.answer("🔇 Notification stopped")


async def handle_completion_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, reminder_id: str, completed: bool
) -> None:
    """'Done' / 'Mark active' buttons."""
    query = update.callback_query
    manager: ReminderManager = context.bot_data["manager"]

    try:
        reminder = await manager.toggle_completion(update.effective_user.id, reminder_id, completed)
    except RemindCareError as e:
        await query.answer(e.message)
        return

    if query.message:
        if completed:
            text = f"✓ <b>Completed:</b> <s>{escape(reminder.title)}</s>"
        else:
            text = f"↺ <b>Active again:</b> {escape(reminder.title)}"
        await query.message.edit_text(text, parse_mode="HTML")

    await query.answer("Marked as completed" if completed else "Marked as active")


async def handle_delete_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, reminder_id: str
) -> None:
    """Confirmed delete."""
    query = update.callback_query
    manager: ReminderManager = context.bot_data["manager"]

    try:
        reminder = await manager.get(update.effective_user.id, reminder_id)
        await manager.delete(update.effective_user.id, reminder_id)
    except RemindCareError as e:
        await query.answer(e.message)
        return

    if query.message:
        await query.message.edit_text(
            f"🗑 <b>Deleted:</b> {escape(reminder.title)}", parse_mode="HTML"
        )
    await query.answer("Reminder deleted")


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query or not update.effective_user:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    action, _, arg = data.partition(":")

    if action == "ack":
        await handle_ack_callback(update, context, arg)

    elif action == "stop":
        await handle_stop_callback(update, context, arg)

    elif action == "done":
        await handle_completion_callback(update, context, arg, True)

    elif action == "undo":
        await handle_completion_callback(update, context, arg, False)

    elif action == "delete_confirm":
        if query.message:
            await query.message.edit_reply_markup(reply_markup=confirm_delete_keyboard(arg))
        await query.answer("Delete this reminder?")

    elif action == "delete":
        await handle_delete_callback(update, context, arg)

    elif action == "cancel":
        if query.message:
            await query.message.edit_reply_markup(reply_markup=None)
        await query.answer("Cancelled")

    else:
        logger.warning(f"Unknown callback action: {data}")
        await query.answer("Unknown action")
