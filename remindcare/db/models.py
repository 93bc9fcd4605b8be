"""Data models."""

from dataclasses import dataclass, field
import datetime as dt
from enum import Enum


class ReminderType(str, Enum):
    """How a reminder repeats, and which alert it raises."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MEDICATION = "medication"
    APPOINTMENT = "appointment"

    @property
    def is_recurring(self) -> bool:
        return self in (ReminderType.DAILY, ReminderType.WEEKLY)


@dataclass
class NotificationRegistration:
    """One scheduled entry in the notification gateway."""

    notification_id: str
    weekday: int | None = None  # 1-7 (Mon-Sun), weekly reminders only

    def to_dict(self) -> dict:
        return {"notificationId": self.notification_id, "weekday": self.weekday}

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationRegistration":
        return cls(notification_id=data["notificationId"], weekday=data.get("weekday"))


@dataclass
class Reminder:
    """A user-defined alert, fired through notifications and optionally read aloud."""

    id: str
    user_id: int
    title: str
    date_time: dt.datetime  # aware; stored as UTC
    type: ReminderType
    description: str | None = None
    weekdays: list[int] = field(default_factory=list)
    is_completed: bool = False
    notifications: list[NotificationRegistration] = field(default_factory=list)
    voice_prompt: str | None = None
    color: str = ""
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    @property
    def notification_ids(self) -> list[str]:
        return [n.notification_id for n in self.notifications]


@dataclass
class ReminderInput:
    """What a user submits to create a reminder."""

    title: str
    date: dt.date
    time: dt.time
    type: ReminderType = ReminderType.ONCE
    description: str | None = None
    weekdays: list[int] = field(default_factory=list)
    voice_prompt: str | None = None
    color: str | None = None


@dataclass
class ReminderPatch:
    """Fields to change on an existing reminder. None means unchanged."""

    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    type: ReminderType | None = None
    weekdays: list[int] | None = None
    voice_prompt: str | None = None
    color: str | None = None


@dataclass
class ListFilter:
    """Filters for the reminder list view."""

    include_completed: bool = False
    type: ReminderType | None = None
    search_text: str = ""


@dataclass
class ReminderListItem:
    """A reminder as shown in the list view."""

    reminder: Reminder
    is_active: bool = False  # notification currently ringing
    is_past: bool = False
    next_fire_at: dt.datetime | None = None


@dataclass
class DateGroup:
    """Reminders falling on one calendar date."""

    day: dt.date
    items: list[ReminderListItem] = field(default_factory=list)
