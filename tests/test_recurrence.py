"""Tests for next-fire computation."""

from datetime import datetime
from zoneinfo import ZoneInfo

from remindcare.db.models import Reminder, ReminderType
from remindcare.engine.recurrence import get_next_occurrence

UTC = ZoneInfo("UTC")
# A Sunday
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def make_reminder(**kwargs) -> Reminder:
    values = dict(id="r1", user_id=1, title="Test", date_time=datetime(2026, 1, 5, 9, 30, tzinfo=UTC), type=ReminderType.DAILY)
    values.update(kwargs)
    return Reminder(**values)


def test_daily_later_today():
    reminder = make_reminder(date_time=datetime(2026, 1, 5, 18, 0, tzinfo=UTC))
    assert get_next_occurrence(reminder, "UTC", NOW) == datetime(2026, 3, 1, 18, 0, tzinfo=UTC)


def test_daily_already_passed_today_is_tomorrow():
    reminder = make_reminder()
    assert get_next_occurrence(reminder, "UTC", NOW) == datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


def test_weekly_next_selected_weekday():
    # Wednesday and Friday
    reminder = make_reminder(type=ReminderType.WEEKLY, weekdays=[3, 5])
    assert get_next_occurrence(reminder, "UTC", NOW) == datetime(2026, 3, 4, 9, 30, tzinfo=UTC)


def test_weekly_sunday_later_today():
    reminder = make_reminder(
        type=ReminderType.WEEKLY, weekdays=[7], date_time=datetime(2026, 1, 5, 20, 0, tzinfo=UTC)
    )
    assert get_next_occurrence(reminder, "UTC", NOW) == datetime(2026, 3, 1, 20, 0, tzinfo=UTC)


def test_once_in_future_and_past():
    future = make_reminder(type=ReminderType.ONCE, date_time=datetime(2026, 3, 2, 8, 0, tzinfo=UTC))
    past = make_reminder(type=ReminderType.ONCE, date_time=datetime(2026, 2, 2, 8, 0, tzinfo=UTC))

    assert get_next_occurrence(future, "UTC", NOW) == future.date_time
    assert get_next_occurrence(past, "UTC", NOW) is None


def test_completed_never_fires():
    assert get_next_occurrence(make_reminder(is_completed=True), "UTC", NOW) is None


def test_daily_in_other_timezone():
    # 14:30 UTC is 09:30 in New York (EST); NOW is 07:00 there
    reminder = make_reminder(date_time=datetime(2026, 1, 5, 14, 30, tzinfo=UTC))

    result = get_next_occurrence(reminder, "America/New_York", NOW)

    assert result.hour == 9 and result.minute == 30
    assert result == datetime(2026, 3, 1, 14, 30, tzinfo=UTC)
