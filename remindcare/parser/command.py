"""Parsing of /add and /edit command arguments."""

import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from remindcare.db.models import ReminderInput, ReminderPatch, ReminderType
from remindcare.utils.errors import ValidationError

DATE_PATTERN = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$')
TIME_PATTERN = re.compile(r'^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$', re.IGNORECASE)

# 1-7 = Monday-Sunday
WEEKDAY_NAMES = {
    'monday': 1, 'mon': 1,
    'tuesday': 2, 'tue': 2, 'tues': 2,
    'wednesday': 3, 'wed': 3,
    'thursday': 4, 'thu': 4, 'thur': 4, 'thurs': 4,
    'friday': 5, 'fri': 5,
    'saturday': 6, 'sat': 6,
    'sunday': 7, 'sun': 7,
}

WEEKDAY_GROUPS = {
    'weekdays': [1, 2, 3, 4, 5],
    'weekends': [6, 7],
    'everyday': [1, 2, 3, 4, 5, 6, 7],
}

TYPE_ALIASES = {
    'once': ReminderType.ONCE,
    'one-time': ReminderType.ONCE,
    'daily': ReminderType.DAILY,
    'weekly': ReminderType.WEEKLY,
    'medication': ReminderType.MEDICATION,
    'medicine': ReminderType.MEDICATION,
    'meds': ReminderType.MEDICATION,
    'appointment': ReminderType.APPOINTMENT,
    'appt': ReminderType.APPOINTMENT,
}

EDIT_FIELDS = {'title', 'description', 'date', 'time', 'type', 'days', 'voice', 'color'}


def parse_date(text: str, timezone: str) -> date:
    """YYYY-MM-DD, 'today' or 'tomorrow'."""
    text = text.strip().lower()
    today = datetime.now(ZoneInfo(timezone)).date()
    if text == 'today':
        return today
    if text == 'tomorrow':
        return today + timedelta(days=1)

    match = DATE_PATTERN.match(text)
    if not match:
        raise ValidationError(f"Couldn't read the date '{text}'. Use YYYY-MM-DD.")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        raise ValidationError(f"'{text}' is not a valid date")


def parse_time(text: str) -> time:
    """HH:MM (24-hour), or 8am / 8:30 pm."""
    match = TIME_PATTERN.match(text.strip())
    if not match:
        raise ValidationError(f"Couldn't read the time '{text.strip()}'. Use HH:MM.")

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or '').lower()

    if meridiem:
        if not 1 <= hour <= 12:
            raise ValidationError(f"'{text.strip()}' is not a valid time")
        hour = hour % 12 + (12 if meridiem == 'pm' else 0)
    elif match.group(2) is None:
        raise ValidationError(f"Couldn't read the time '{text.strip()}'. Use HH:MM.")

    if hour > 23 or minute > 59:
        raise ValidationError(f"'{text.strip()}' is not a valid time")
    return time(hour, minute)


def parse_type(text: str) -> ReminderType:
    reminder_type = TYPE_ALIASES.get(text.strip().lower())
    if reminder_type is None:
        choices = ", ".join(t.value for t in ReminderType)
        raise ValidationError(f"Unknown reminder type '{text.strip()}'. Choose one of: {choices}")
    return reminder_type


def parse_weekdays(text: str) -> list[int]:
    """Comma or space separated day names, or weekdays/weekends/everyday."""
    text = text.strip().lower()
    if text in WEEKDAY_GROUPS:
        return list(WEEKDAY_GROUPS[text])

    days = set()
    for token in re.split(r'[,\s]+', text):
        if not token:
            continue
        day = WEEKDAY_NAMES.get(token)
        if day is None:
            raise ValidationError(f"Unknown day '{token}'")
        days.add(day)
    return sorted(days)


def parse_add_args(text: str, timezone: str) -> ReminderInput:
    """Parse `<title> | <date> | <time> [| type] [| days] [| voice prompt]`.

    The days part is only expected for weekly reminders; for other types the
    fifth part is the voice prompt.
    """
    parts = [part.strip() for part in text.split('|')]
    if len(parts) < 3:
        raise ValidationError(
            "Usage: /add <title> | <YYYY-MM-DD> | <HH:MM> [| type] [| days] [| voice prompt]"
        )

    title, date_text, time_text, *rest = parts
    reminder_type = parse_type(rest.pop(0)) if rest and rest[0] else ReminderType.ONCE

    weekdays: list[int] = []
    if reminder_type == ReminderType.WEEKLY and rest:
        weekdays = parse_weekdays(rest.pop(0))

    voice_prompt = ' | '.join(rest).strip() or None

    return ReminderInput(
        title=title,
        date=parse_date(date_text, timezone),
        time=parse_time(time_text),
        type=reminder_type,
        weekdays=weekdays,
        voice_prompt=voice_prompt,
    )


def parse_edit_args(text: str, timezone: str) -> ReminderPatch:
    """Parse `field=value; field=value` pairs into a patch."""
    patch = ReminderPatch()
    assignments = [part.strip() for part in text.split(';') if part.strip()]
    if not assignments:
        raise ValidationError("Nothing to change. Example: /edit <id> title=Call Mom; time=18:00")

    for assignment in assignments:
        name, sep, value = assignment.partition('=')
        name = name.strip().lower()
        value = value.strip()
        if not sep or name not in EDIT_FIELDS:
            fields = ", ".join(sorted(EDIT_FIELDS))
            raise ValidationError(f"Can't change '{assignment}'. Fields: {fields}")

        if name == 'title':
            patch.title = value
        elif name == 'description':
            patch.description = value
        elif name == 'date':
            patch.date = parse_date(value, timezone)
        elif name == 'time':
            patch.time = parse_time(value)
        elif name == 'type':
            patch.type = parse_type(value)
        elif name == 'days':
            patch.weekdays = parse_weekdays(value)
        elif name == 'voice':
            patch.voice_prompt = value
        elif name == 'color':
            patch.color = value

    return patch
