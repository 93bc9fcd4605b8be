"""Tests for message formatting and inline keyboards."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from remindcare.bot.formatters import (
    describe_schedule,
    format_list_view,
    format_notification_message,
    format_reminder,
)
from remindcare.bot.keyboards import notification_keyboard, reminder_actions_keyboard
from remindcare.db.models import DateGroup, Reminder, ReminderListItem, ReminderType
from remindcare.notifications.gateway import NotificationEvent
from remindcare.utils.error_handler import user_message_for
from remindcare.utils.errors import (
    NotificationError,
    ReminderNotFound,
    StoreError,
    ValidationError,
)

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def make_reminder(**kwargs) -> Reminder:
    values = dict(
        id="0123456789abcdef",
        user_id=1,
        title="Call <Mom>",
        date_time=datetime(2026, 3, 15, 18, 0, tzinfo=UTC),
        type=ReminderType.ONCE,
    )
    values.update(kwargs)
    return Reminder(**values)


def test_describe_schedule():
    assert describe_schedule(make_reminder(type=ReminderType.DAILY), "UTC") == "Every day at 06:00 PM"
    weekly = make_reminder(type=ReminderType.WEEKLY, weekdays=[1, 5])
    assert describe_schedule(weekly, "UTC") == "Every Mon, Fri at 06:00 PM"


def test_format_reminder_escapes_and_shortens_id():
    text = format_reminder(make_reminder(), "UTC", NOW)

    assert "Call &lt;Mom&gt;" in text
    assert "<code>01234567</code>" in text
    assert "in 6 hours" in text


def test_format_list_view_headings_and_ringing_marker():
    today_item = ReminderListItem(make_reminder(), is_active=True, is_past=False, next_fire_at=None)
    old_item = ReminderListItem(
        make_reminder(id="feedfacecafe", title="Old", is_completed=True,
                      date_time=datetime(2026, 3, 14, 9, 0, tzinfo=UTC)),
        is_active=False,
        is_past=True,
        next_fire_at=None,
    )
    groups = [
        DateGroup(date(2026, 3, 15), [today_item]),
        DateGroup(date(2026, 3, 14), [old_item]),
    ]

    text = format_list_view(groups, "UTC", NOW)

    assert "Your Reminders (2)" in text
    assert text.index("Today") < text.index("Yesterday")
    assert "🔴 ringing" in text
    assert "<s>Old</s>" in text


def test_format_reminder_marks_overdue_and_shows_next_fire():
    missed = make_reminder(date_time=datetime(2026, 3, 15, 9, 0, tzinfo=UTC))
    assert "⚠️ Overdue (3 hours ago)" in format_reminder(missed, "UTC", NOW)

    done = make_reminder(date_time=datetime(2026, 3, 15, 9, 0, tzinfo=UTC), is_completed=True)
    assert "Overdue" not in format_reminder(done, "UTC", NOW)

    # Anchor date is long past; the next weekly run is Monday
    weekly = make_reminder(
        type=ReminderType.WEEKLY,
        weekdays=[1],
        date_time=datetime(2026, 3, 2, 8, 0, tzinfo=UTC),
    )
    text = format_reminder(weekly, "UTC", NOW)
    assert "⏰ Next: Mon, Mar 16 at 08:00 AM" in text
    assert "Overdue" not in text


def test_format_list_view_overdue_and_next_fire_markers():
    missed = ReminderListItem(
        make_reminder(id="aaaaaaaa1111", title="Missed",
                      date_time=datetime(2026, 3, 15, 9, 0, tzinfo=UTC)),
        is_active=False,
        is_past=True,
        next_fire_at=None,
    )
    daily = ReminderListItem(
        make_reminder(id="bbbbbbbb2222", title="Walk", type=ReminderType.DAILY,
                      date_time=datetime(2026, 3, 15, 7, 0, tzinfo=UTC)),
        is_active=False,
        is_past=True,
        next_fire_at=datetime(2026, 3, 16, 7, 0, tzinfo=UTC),
    )

    text = format_list_view([DateGroup(date(2026, 3, 15), [daily, missed])], "UTC", NOW)
    missed_line = next(line for line in text.splitlines() if "Missed" in line)
    walk_line = next(line for line in text.splitlines() if "Walk" in line)

    assert "⚠️ Overdue" in missed_line
    assert "Overdue" not in walk_line
    assert "(daily) · next Mon 07:00 AM" in walk_line


def test_notification_message_carries_alert_banner():
    def event(reminder_type):
        return NotificationEvent("n1", "Pills & water", "Take them", {"type": reminder_type})

    assert format_notification_message(event("medication")).startswith("<b>💊 MEDICATION</b>\n")
    assert format_notification_message(event("appointment")).startswith("<b>🏥 APPOINTMENT</b>\n")
    text = format_notification_message(event("daily"))
    assert text.startswith("<b>🔔 REMINDER</b>\n")
    assert "🔁 <b>Pills &amp; water</b>" in text


def test_format_empty_list_view():
    assert "/add" in format_list_view([], "UTC", NOW)


def test_keyboards_carry_ids():
    [[ack, stop]] = notification_keyboard("abc").inline_keyboard
    assert (ack.callback_data, stop.callback_data) == ("ack:abc", "stop:abc")

    [[toggle, delete]] = reminder_actions_keyboard("r1", is_completed=True).inline_keyboard
    assert toggle.callback_data == "undo:r1"
    assert delete.callback_data == "delete_confirm:r1"


def test_user_message_for_errors():
    assert user_message_for(ValidationError("title required")) == "❌ title required"
    assert user_message_for(NotificationError("platform refused")).startswith("🔕 platform refused")
    assert "saved reminders" in user_message_for(StoreError("disk full"))
    assert user_message_for(ReminderNotFound("abc")) == "❌ reminder abc not found"
    assert "Something went wrong" in user_message_for(RuntimeError("boom"))
