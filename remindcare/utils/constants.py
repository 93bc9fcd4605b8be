"""Constants and default values."""

from dataclasses import dataclass


@dataclass
class ReminderTypeInfo:
    """Display metadata for a reminder type."""

    label: str
    icon: str
    color: str
    default_body: str
    alert: str = "default"


@dataclass
class AlertCue:
    """How a fired reminder announces itself, in the chat and out loud."""

    banner: str
    spoken: str


REMINDER_TYPE_INFO = {
    "once": ReminderTypeInfo("One-time", "🔔", "#6A7BFF", "It's time for your reminder!"),
    "daily": ReminderTypeInfo("Daily", "🔁", "#FF7A6A", "It's time for your daily reminder!"),
    "weekly": ReminderTypeInfo("Weekly", "📅", "#7AFFCF", "It's time for your weekly reminder!"),
    "medication": ReminderTypeInfo("Medication", "💊", "#FC76FF", "It's time for your medication!", "medication"),
    "appointment": ReminderTypeInfo("Appointment", "🏥", "#FFB347", "It's time for your appointment!", "appointment"),
}

# Medication and appointment reminders have their own alert; the rest share one
ALERT_CUES = {
    "medication": AlertCue("💊 MEDICATION", "Medication reminder."),
    "appointment": AlertCue("🏥 APPOINTMENT", "Appointment reminder."),
    "default": AlertCue("🔔 REMINDER", "Reminder."),
}

DEFAULT_COLOR = "#6A7BFF"

# 1-7 = Monday-Sunday
WEEKDAYS = {
    1: ("Mon", "Monday"),
    2: ("Tue", "Tuesday"),
    3: ("Wed", "Wednesday"),
    4: ("Thu", "Thursday"),
    5: ("Fri", "Friday"),
    6: ("Sat", "Saturday"),
    7: ("Sun", "Sunday"),
}

# Limits
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_VOICE_PROMPT_LENGTH = 500

# Reminder ids are shown to users as this many leading hex characters
SHORT_ID_LENGTH = 8
