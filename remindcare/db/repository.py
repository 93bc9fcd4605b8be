"""Database repository - all SQL queries."""

import functools
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo

import aiosqlite

from remindcare.db.models import NotificationRegistration, Reminder, ReminderType
from remindcare.utils.errors import ReminderNotFound, StoreError

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def _store_errors(func):
    """Re-raise database driver errors as StoreError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except aiosqlite.Error as e:
            logger.error(f"{func.__name__} failed: {e}")
            raise StoreError(f"Could not access reminders: {e}") from e

    return wrapper


def _to_db_time(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="seconds")


class Repository:
    """Reminder store and user preferences backed by SQLite."""

    def __init__(self, db_path: Path, voice_enabled_default: bool = True):
        self.db_path = db_path
        self.voice_enabled_default = voice_enabled_default
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        try:
            self._db = await aiosqlite.connect(self.db_path)
        except aiosqlite.Error as e:
            raise StoreError(f"Could not open database: {e}") from e
        self._db.row_factory = aiosqlite.Row
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise StoreError("Database not connected")
        return self._db

    # Reminder operations

    @_store_errors
    async def save_reminder(self, user_id: int, reminder: Reminder) -> Reminder:
        """Insert a new reminder. The id is chosen by the caller."""
        async with self.db.execute(
            """
            INSERT INTO reminders (
                id, user_id, title, description, date_time, type, weekdays,
                is_completed, notifications, voice_prompt, color
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                reminder.id,
                user_id,
                reminder.title,
                reminder.description,
                _to_db_time(reminder.date_time),
                reminder.type.value,
                json.dumps(reminder.weekdays),
                1 if reminder.is_completed else 0,
                json.dumps([n.to_dict() for n in reminder.notifications]),
                reminder.voice_prompt,
                reminder.color,
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        logger.info(f"Saved reminder {reminder.id} for user {user_id}")
        return self._row_to_reminder(row)

    @_store_errors
    async def list_reminders(self, user_id: int) -> List[Reminder]:
        """All reminders of a user, earliest first."""
        async with self.db.execute(
            "SELECT * FROM reminders WHERE user_id = ? ORDER BY date_time, created_at",
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    @_store_errors
    async def get_reminder(self, user_id: int, reminder_id: str) -> Reminder:
        """Get a reminder by ID."""
        async with self.db.execute(
            "SELECT * FROM reminders WHERE user_id = ? AND id = ?",
            (user_id, reminder_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            raise ReminderNotFound(reminder_id)
        return self._row_to_reminder(row)

    @_store_errors
    async def find_reminders_by_prefix(self, user_id: int, prefix: str) -> List[Reminder]:
        """Reminders whose id starts with prefix."""
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        async with self.db.execute(
            "SELECT * FROM reminders WHERE user_id = ? AND id LIKE ? ESCAPE '\\' ORDER BY date_time",
            (user_id, f"{escaped}%"),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_reminder(row) for row in rows]

    @_store_errors
    async def update_reminder(self, user_id: int, reminder: Reminder) -> Reminder:
        """Write every mutable field of a reminder."""
        async with self.db.execute(
            """
            UPDATE reminders SET
                title = ?,
                description = ?,
                date_time = ?,
                type = ?,
                weekdays = ?,
                is_completed = ?,
                notifications = ?,
                voice_prompt = ?,
                color = ?,
                updated_at = strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now')
            WHERE user_id = ? AND id = ?
            RETURNING *
            """,
            (
                reminder.title,
                reminder.description,
                _to_db_time(reminder.date_time),
                reminder.type.value,
                json.dumps(reminder.weekdays),
                1 if reminder.is_completed else 0,
                json.dumps([n.to_dict() for n in reminder.notifications]),
                reminder.voice_prompt,
                reminder.color,
                user_id,
                reminder.id,
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        if row is None:
            raise ReminderNotFound(reminder.id)
        return self._row_to_reminder(row)

    @_store_errors
    async def delete_reminder(self, user_id: int, reminder_id: str) -> None:
        """Delete a reminder."""
        cursor = await self.db.execute(
            "DELETE FROM reminders WHERE user_id = ? AND id = ?", (user_id, reminder_id)
        )
        await self.db.commit()
        if cursor.rowcount == 0:
            raise ReminderNotFound(reminder_id)
        logger.info(f"Deleted reminder {reminder_id} for user {user_id}")

    @_store_errors
    async def list_user_ids(self) -> List[int]:
        """Every user that owns a reminder or has saved preferences."""
        async with self.db.execute(
            """
            SELECT user_id FROM reminders
            UNION
            SELECT user_id FROM user_preferences
            ORDER BY user_id
            """
        ) as cursor:
            rows = await cursor.fetchall()
            return [row["user_id"] for row in rows]

    # Preference operations

    @_store_errors
    async def get_voice_enabled(self, user_id: int) -> bool:
        """Whether fired reminders are read aloud for this user."""
        async with self.db.execute(
            "SELECT voice_enabled FROM user_preferences WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return self.voice_enabled_default
        return bool(row["voice_enabled"])

    @_store_errors
    async def set_voice_enabled(self, user_id: int, enabled: bool) -> None:
        """Save the voice-reading preference."""
        await self.db.execute(
            """
            INSERT INTO user_preferences (user_id, voice_enabled) VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET voice_enabled = excluded.voice_enabled
            """,
            (user_id, 1 if enabled else 0),
        )
        await self.db.commit()

    # Helper methods

    def _row_to_reminder(self, row: aiosqlite.Row) -> Reminder:
        """Convert a database row to a Reminder object."""
        return Reminder(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            date_time=datetime.fromisoformat(row["date_time"]),
            type=ReminderType(row["type"]),
            weekdays=json.loads(row["weekdays"]),
            is_completed=bool(row["is_completed"]),
            notifications=[
                NotificationRegistration.from_dict(n) for n in json.loads(row["notifications"])
            ],
            voice_prompt=row["voice_prompt"],
            color=row["color"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
