"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def notification_keyboard(notification_id: str) -> InlineKeyboardMarkup:
    """Keyboard for fired notifications: acknowledge, or just silence."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✓ Got it", callback_data=f"ack:{notification_id}"),
                InlineKeyboardButton("🔇 Stop", callback_data=f"stop:{notification_id}"),
            ]
        ]
    )


def reminder_actions_keyboard(reminder_id: str, is_completed: bool) -> InlineKeyboardMarkup:
    """Keyboard for a reminder detail view: Done/Undo, Delete."""
    toggle = (
        InlineKeyboardButton("↺ Mark active", callback_data=f"undo:{reminder_id}")
        if is_completed
        else InlineKeyboardButton("✓ Done", callback_data=f"done:{reminder_id}")
    )
    return InlineKeyboardMarkup(
        [
            [
                toggle,
                InlineKeyboardButton("🗑 Delete", callback_data=f"delete_confirm:{reminder_id}"),
            ]
        ]
    )


def confirm_delete_keyboard(reminder_id: str) -> InlineKeyboardMarkup:
    """Keyboard for delete confirmation: Confirm, Cancel."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✓ Delete", callback_data=f"delete:{reminder_id}"),
                InlineKeyboardButton("✗ Cancel", callback_data=f"cancel:{reminder_id}"),
            ]
        ]
    )
