"""Time and timezone utilities."""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo


def to_utc(dt: datetime, tz: str) -> datetime:
    """Convert a datetime to UTC, treating naive values as local to tz."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt.astimezone(ZoneInfo("UTC"))


def from_utc(dt: datetime, tz: str) -> datetime:
    """Convert a UTC datetime to the given timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo(tz))


def combine_local(day: date, time_of_day: time, tz: str) -> datetime:
    """Combine a calendar date and a time of day into an aware datetime in tz.

    Seconds and microseconds are dropped; reminders fire on the minute.
    """
    time_of_day = time_of_day.replace(second=0, microsecond=0, tzinfo=None)
    return datetime.combine(day, time_of_day).replace(tzinfo=ZoneInfo(tz))


def iso_weekday_to_cron(weekday: int) -> int:
    """Map 1-7 (Mon-Sun) to the cron convention 0-6 (Sun-Sat)."""
    if not 1 <= weekday <= 7:
        raise ValueError(f"Weekday out of range: {weekday}")
    return weekday % 7


def format_relative_time(dt: datetime, now: datetime | None = None) -> str:
    """Format a datetime relative to now.

    Examples:
        "in 5 minutes"
        "in 2 hours"
        "tomorrow"
        "2 days ago"
    """
    if now is None:
        now = datetime.now(ZoneInfo("UTC"))

    total_seconds = (dt - now).total_seconds()

    if total_seconds < 0:
        abs_seconds = abs(total_seconds)
        if abs_seconds < 3600:
            minutes = int(abs_seconds / 60)
            return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
        elif abs_seconds < 86400:
            hours = int(abs_seconds / 3600)
            return f"{hours} hour{'s' if hours != 1 else ''} ago"
        else:
            days = int(abs_seconds / 86400)
            return f"{days} day{'s' if days != 1 else ''} ago"
    else:
        if total_seconds < 3600:
            minutes = int(total_seconds / 60)
            return f"in {minutes} minute{'s' if minutes != 1 else ''}"
        elif total_seconds < 86400:
            hours = int(total_seconds / 3600)
            return f"in {hours} hour{'s' if hours != 1 else ''}"
        elif total_seconds < 172800:  # 2 days
            return "tomorrow"
        else:
            days = int(total_seconds / 86400)
            return f"in {days} days"


def format_day_heading(day: date, today: date) -> str:
    """Heading for a group of reminders on one calendar date."""
    delta = (day - today).days
    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    return day.strftime("%a, %b %d, %Y")
