"""Validation and notification planning for reminders."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from remindcare.db.models import Reminder, ReminderType
from remindcare.utils.constants import (
    ALERT_CUES,
    AlertCue,
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_VOICE_PROMPT_LENGTH,
    REMINDER_TYPE_INFO,
)
from remindcare.utils.errors import ValidationError
from remindcare.utils.time_utils import from_utc


@dataclass
class RegistrationPlan:
    """One notification to schedule for a reminder.

    One-shot plans carry `when`; recurring plans carry hour/minute and, for
    weekly reminders, the weekday.
    """

    recurring: bool
    when: datetime | None = None
    hour: int = 0
    minute: int = 0
    weekday: int | None = None


def normalize_weekdays(weekdays: list[int]) -> list[int]:
    """Sorted, de-duplicated weekdays, each checked to be 1-7."""
    result = sorted(set(weekdays))
    for day in result:
        if not 1 <= day <= 7:
            raise ValidationError(f"invalid weekday {day}")
    return result


def validate_reminder(reminder: Reminder, now: datetime, require_future: bool = True) -> None:
    """Check a reminder before any notification or store call is made.

    Raises ValidationError on the first problem found. The future-date rule
    applies to one-time reminders only, and only when require_future is set.
    """
    if not reminder.title or not reminder.title.strip():
        raise ValidationError("title required")
    if len(reminder.title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"title must be at most {MAX_TITLE_LENGTH} characters")
    if reminder.description and len(reminder.description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    if reminder.voice_prompt and len(reminder.voice_prompt) > MAX_VOICE_PROMPT_LENGTH:
        raise ValidationError(f"voice prompt must be at most {MAX_VOICE_PROMPT_LENGTH} characters")

    if reminder.type == ReminderType.WEEKLY:
        if not reminder.weekdays:
            raise ValidationError("weekdays required")
        normalize_weekdays(reminder.weekdays)

    if require_future and reminder.type == ReminderType.ONCE and reminder.date_time <= now:
        raise ValidationError("date must be future")


def notification_body(reminder: Reminder) -> str:
    """Description, or the default line for the reminder's type."""
    if reminder.description:
        return reminder.description
    return REMINDER_TYPE_INFO[reminder.type.value].default_body


def alert_cue(reminder_type: str | None) -> AlertCue:
    """The alert a fired reminder of this type raises. Unknown types get the default."""
    info = REMINDER_TYPE_INFO.get(reminder_type or "")
    return ALERT_CUES[info.alert if info else "default"]


def notification_payload(reminder: Reminder) -> dict[str, Any]:
    """Opaque data attached to every registration of a reminder."""
    return {
        "reminderId": reminder.id,
        "userId": reminder.user_id,
        "type": reminder.type.value,
        "voicePrompt": reminder.voice_prompt,
    }


def plan_registrations(reminder: Reminder, tz: str) -> list[RegistrationPlan]:
    """The notifications a reminder needs, one per firing occasion."""
    local = from_utc(reminder.date_time, tz)

    if reminder.type == ReminderType.DAILY:
        return [RegistrationPlan(recurring=True, hour=local.hour, minute=local.minute)]

    if reminder.type == ReminderType.WEEKLY:
        return [
            RegistrationPlan(recurring=True, hour=local.hour, minute=local.minute, weekday=day)
            for day in normalize_weekdays(reminder.weekdays)
        ]

    # once, medication, appointment
    return [RegistrationPlan(recurring=False, when=reminder.date_time)]
