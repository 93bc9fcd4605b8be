"""Message text formatters."""

from datetime import datetime
from html import escape
from zoneinfo import ZoneInfo

from remindcare.db.models import DateGroup, Reminder, ReminderListItem, ReminderType
from remindcare.engine.recurrence import get_next_occurrence
from remindcare.engine.scheduling import alert_cue
from remindcare.notifications.gateway import NotificationEvent
from remindcare.utils.constants import REMINDER_TYPE_INFO, SHORT_ID_LENGTH, WEEKDAYS
from remindcare.utils.time_utils import format_day_heading, format_relative_time, from_utc


def short_id(reminder: Reminder) -> str:
    return reminder.id[:SHORT_ID_LENGTH]


def type_icon(reminder_type: str) -> str:
    info = REMINDER_TYPE_INFO.get(reminder_type)
    return info.icon if info else "🔔"


def describe_schedule(reminder: Reminder, tz: str) -> str:
    """When a reminder fires, in words."""
    local = from_utc(reminder.date_time, tz)
    at = local.strftime("%I:%M %p")

    if reminder.type == ReminderType.DAILY:
        return f"Every day at {at}"
    if reminder.type == ReminderType.WEEKLY:
        days = ", ".join(WEEKDAYS[day][0] for day in reminder.weekdays)
        return f"Every {days} at {at}"
    return local.strftime("%b %d, %Y at %I:%M %p")


def format_notification_message(event: NotificationEvent) -> str:
    """Text of a fired notification, headed by the alert for its type."""
    reminder_type = event.payload.get("type", "once")
    cue = alert_cue(reminder_type)
    icon = type_icon(reminder_type)
    return f"<b>{cue.banner}</b>\n{icon} <b>{escape(event.title)}</b>\n\n{escape(event.body)}"


def format_reminder(reminder: Reminder, tz: str, now: datetime | None = None) -> str:
    """Format a reminder as a message."""
    if now is None:
        now = datetime.now(ZoneInfo("UTC"))

    info = REMINDER_TYPE_INFO[reminder.type.value]
    lines = [f"{info.icon} <b>{escape(reminder.title)}</b> (ID: <code>{short_id(reminder)}</code>)"]
    lines.append(f"📅 {describe_schedule(reminder, tz)}")

    if reminder.type.is_recurring:
        next_at = get_next_occurrence(reminder, tz, now)
        if next_at is not None:
            lines.append(f"⏰ Next: {next_at.strftime('%a, %b %d at %I:%M %p')}")
    elif not reminder.is_completed:
        if reminder.date_time < now:
            lines.append(f"⚠️ Overdue ({format_relative_time(reminder.date_time, now)})")
        else:
            lines.append(f"⏰ {format_relative_time(reminder.date_time, now)}")

    lines.append(f"🏷 {info.label}")

    if reminder.description:
        lines.append(f"\n{escape(reminder.description)}")
    if reminder.voice_prompt:
        lines.append(f"🔊 “{escape(reminder.voice_prompt)}”")
    if reminder.is_completed:
        lines.append("\n✓ Completed")

    return "\n".join(lines)


def _format_item(item: ReminderListItem, tz: str) -> str:
    reminder = item.reminder
    local = from_utc(reminder.date_time, tz)
    icon = type_icon(reminder.type.value)
    title = escape(reminder.title)
    if reminder.is_completed:
        title = f"<s>{title}</s>"

    line = f"{icon} {local.strftime('%I:%M %p')} {title} <code>{short_id(reminder)}</code>"
    if item.is_active:
        line += " 🔴 ringing"
    elif item.is_past and not reminder.is_completed and not reminder.type.is_recurring:
        line += " ⚠️ Overdue"
    if reminder.type == ReminderType.WEEKLY:
        line += " (" + ", ".join(WEEKDAYS[day][0] for day in reminder.weekdays) + ")"
    elif reminder.type == ReminderType.DAILY:
        line += " (daily)"
    if reminder.type.is_recurring and item.next_fire_at is not None:
        # next_fire_at is already local to tz
        line += f" · next {item.next_fire_at.strftime('%a %I:%M %p')}"
    return line


def format_list_view(groups: list[DateGroup], tz: str, now: datetime | None = None) -> str:
    """Format grouped reminders, one heading per date."""
    if not groups:
        return "You have no reminders here. Use /add to create one."

    if now is None:
        now = datetime.now(ZoneInfo("UTC"))
    today = from_utc(now, tz).date()

    count = sum(len(group.items) for group in groups)
    lines = [f"<b>Your Reminders ({count})</b>"]
    for group in groups:
        lines.append(f"\n<b>{format_day_heading(group.day, today)}</b>")
        lines.extend(_format_item(item, tz) for item in group.items)

    return "\n".join(lines)


def format_welcome_message() -> str:
    return (
        "👋 <b>Welcome to RemindCare!</b>\n\n"
        "I'll remind you about medication, appointments and everything else, "
        "and read reminders aloud if you like.\n\n"
        "Try: <code>/add Take pills | 2026-03-01 | 08:00 | medication</code>\n\n"
        "Use /help to see everything I can do."
    )


def format_help_message() -> str:
    return (
        "<b>RemindCare Commands</b>\n\n"
        "<b>Reminders</b>\n"
        "/add &lt;title&gt; | &lt;YYYY-MM-DD&gt; | &lt;HH:MM&gt; [| type] [| days] [| voice prompt]\n"
        "   type: once, daily, weekly, medication, appointment\n"
        "   days (weekly): mon,wed,fri\n"
        "/edit &lt;id&gt; title=...; time=HH:MM; date=YYYY-MM-DD; type=...; days=...; "
        "description=...; voice=...\n"
        "/list [all] [type] - Show reminders grouped by day\n"
        "/search &lt;text&gt; - Find reminders\n"
        "/done &lt;id&gt; - Mark completed\n"
        "/undo &lt;id&gt; - Mark active again\n"
        "/delete &lt;id&gt; - Delete a reminder\n"
        "/stop &lt;id&gt; - Silence a ringing reminder\n\n"
        "<b>Settings</b>\n"
        "/voice on|off - Read reminders aloud\n\n"
        "IDs are the short codes shown next to each reminder."
    )
