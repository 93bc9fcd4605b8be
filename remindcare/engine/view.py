"""Reminder list view: filtering, grouping by date, group ordering."""

from collections.abc import Iterable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from remindcare.db.models import DateGroup, ListFilter, Reminder, ReminderListItem
from remindcare.engine.recurrence import get_next_occurrence
from remindcare.utils.time_utils import from_utc


def filter_reminders(reminders: Iterable[Reminder], list_filter: ListFilter) -> list[Reminder]:
    """Apply completion, type, then search filters, keeping input order."""
    search = list_filter.search_text.strip().lower()
    result = []
    for reminder in reminders:
        if reminder.is_completed and not list_filter.include_completed:
            continue
        if list_filter.type is not None and reminder.type != list_filter.type:
            continue
        if search:
            in_title = search in reminder.title.lower()
            in_description = bool(reminder.description) and search in reminder.description.lower()
            if not (in_title or in_description):
                continue
        result.append(reminder)
    return result


def order_days(days: Iterable[date], today: date) -> list[date]:
    """Today first, then future days ascending, then past days ascending."""
    days = set(days)
    future = sorted(d for d in days if d > today)
    past = sorted(d for d in days if d < today)
    return ([today] if today in days else []) + future + past


def build_list_view(
    reminders: Iterable[Reminder],
    active_ids: Iterable[str],
    list_filter: ListFilter,
    tz: str,
    now: datetime | None = None,
) -> list[DateGroup]:
    """Group the filtered reminders by local calendar date.

    Reminders keep the order they came in within each group.
    """
    if now is None:
        now = datetime.now(ZoneInfo(tz))
    today = from_utc(now, tz).date()
    active = set(active_ids)

    groups: dict[date, DateGroup] = {}
    for reminder in filter_reminders(reminders, list_filter):
        day = from_utc(reminder.date_time, tz).date()
        group = groups.setdefault(day, DateGroup(day=day))
        group.items.append(
            ReminderListItem(
                reminder=reminder,
                is_active=reminder.id in active,
                is_past=reminder.date_time < now,
                next_fire_at=get_next_occurrence(reminder, tz, now),
            )
        )

    return [groups[day] for day in order_days(groups, today)]
