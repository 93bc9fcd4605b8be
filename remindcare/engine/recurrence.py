"""Next-fire computation for reminder schedules."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.rrule import DAILY, WEEKLY, rrule, weekday

from remindcare.db.models import Reminder, ReminderType
from remindcare.utils.time_utils import from_utc


def build_rule(hour: int, minute: int, weekdays: list[int] | None, start: datetime) -> rrule:
    """Daily rule at hour:minute, or weekly on the given 1-7 weekdays."""
    if weekdays:
        return rrule(
            WEEKLY,
            dtstart=start,
            byweekday=[weekday(day - 1) for day in weekdays],
            byhour=hour,
            byminute=minute,
            bysecond=0,
        )
    return rrule(DAILY, dtstart=start, byhour=hour, byminute=minute, bysecond=0)


def get_next_occurrence(reminder: Reminder, tz: str, now: datetime | None = None) -> datetime | None:
    """When the reminder fires next, in tz, or None if it never will again.

    Completed reminders never fire. One-shot reminders fire once at their
    date_time; recurring ones fire on every matching day, at the hour and
    minute of date_time.
    """
    if now is None:
        now = datetime.now(ZoneInfo(tz))
    now = from_utc(now, tz) if now.tzinfo is not None else now.replace(tzinfo=ZoneInfo(tz))

    if reminder.is_completed:
        return None

    local = from_utc(reminder.date_time, tz)

    if not reminder.type.is_recurring:
        return local if local > now else None

    weekdays = reminder.weekdays if reminder.type == ReminderType.WEEKLY else None
    if reminder.type == ReminderType.WEEKLY and not weekdays:
        return None

    # Start a day back so an occurrence later today is still found
    start = (now - timedelta(days=1)).replace(second=0, microsecond=0)
    rule = build_rule(local.hour, local.minute, weekdays, start)
    return rule.after(now)
