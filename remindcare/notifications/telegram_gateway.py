"""Notification gateway that delivers reminders as Telegram messages."""

import logging
import uuid
from datetime import datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from telegram.error import TelegramError
from telegram.ext import CallbackContext, Job, JobQueue

from remindcare.bot.formatters import format_notification_message
from remindcare.bot.keyboards import notification_keyboard
from remindcare.notifications.gateway import EventKind, NotificationEvent, NotificationGateway
from remindcare.utils.errors import NotificationError
from remindcare.utils.time_utils import iso_weekday_to_cron

logger = logging.getLogger(__name__)

ALL_DAYS = tuple(range(7))


class TelegramNotificationGateway(NotificationGateway):
    """Schedules notifications on the bot's JobQueue.

    The chat to notify is taken from payload["userId"]. Jobs live in memory,
    so registrations do not survive a restart; the reminder manager's
    reconcile() re-creates them on startup.
    """

    def __init__(self, job_queue: JobQueue, tz: str = "UTC"):
        super().__init__()
        self.job_queue = job_queue
        self.tz = tz
        self._jobs: dict[str, Job] = {}
        self._one_shot: set[str] = set()
        # Fired notifications waiting for the user to respond
        self._pending: dict[str, NotificationEvent] = {}

    async def shutdown(self) -> None:
        for job in self._jobs.values():
            job.schedule_removal()
        self._jobs.clear()
        self._one_shot.clear()
        self._pending.clear()
        await super().shutdown()

    async def schedule_once(
        self, title: str, body: str, when: datetime, payload: dict[str, Any]
    ) -> str:
        now = datetime.now(ZoneInfo(self.tz))
        if when.tzinfo is None:
            when = when.replace(tzinfo=ZoneInfo(self.tz))
        if when <= now:
            logger.warning(f"Notification time {when} is in the past, adjusting to now + 1 minute")
            when = now + timedelta(minutes=1)

        notification_id = uuid.uuid4().hex
        try:
            job = self.job_queue.run_once(
                self._fire,
                when=when,
                data={"title": title, "body": body, "payload": dict(payload)},
                name=notification_id,
                chat_id=self._chat_id(payload),
            )
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Could not schedule notification: {e}") from e

        self._jobs[notification_id] = job
        self._one_shot.add(notification_id)
        logger.info(f"Scheduled notification {notification_id} at {when.isoformat()}")
        return notification_id

    async def schedule_recurring(
        self,
        title: str,
        body: str,
        hour: int,
        minute: int,
        weekday: int | None,
        payload: dict[str, Any],
    ) -> str:
        notification_id = uuid.uuid4().hex
        try:
            days = ALL_DAYS if weekday is None else (iso_weekday_to_cron(weekday),)
            job = self.job_queue.run_daily(
                self._fire,
                time=time(hour, minute, tzinfo=ZoneInfo(self.tz)),
                days=days,
                data={"title": title, "body": body, "payload": dict(payload)},
                name=notification_id,
                chat_id=self._chat_id(payload),
            )
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Could not schedule recurring notification: {e}") from e

        self._jobs[notification_id] = job
        logger.info(
            f"Scheduled recurring notification {notification_id} at {hour:02d}:{minute:02d}"
            + (f" on weekday {weekday}" if weekday is not None else " daily")
        )
        return notification_id

    async def cancel(self, notification_id: str) -> None:
        self._pending.pop(notification_id, None)
        self._one_shot.discard(notification_id)
        job = self._jobs.pop(notification_id, None)
        if job is None:
            logger.debug(f"Cancel of unknown notification {notification_id} ignored")
            return
        try:
            job.schedule_removal()
        except Exception as e:
            raise NotificationError(f"Could not cancel notification: {e}") from e
        logger.info(f"Cancelled notification {notification_id}")

    async def list_scheduled(self) -> list[str]:
        return [nid for nid, job in self._jobs.items() if not job.removed]

    def pending_event(self, notification_id: str) -> NotificationEvent | None:
        """The fired notification with this id, if the user has not responded yet."""
        return self._pending.get(notification_id)

    async def respond(self, notification_id: str) -> bool:
        """Record the user's response to a fired notification.

        Returns False if the notification is not waiting for a response.
        """
        event = self._pending.pop(notification_id, None)
        if event is None:
            return False
        await self.dispatch(EventKind.RESPONSE, event)
        return True

    async def _fire(self, context: CallbackContext) -> None:
        """Job callback: send the notification and report it as received."""
        job = context.job
        notification_id = job.name
        event = NotificationEvent(
            notification_id=notification_id,
            title=job.data["title"],
            body=job.data["body"],
            payload=dict(job.data["payload"]),
        )

        if notification_id in self._one_shot:
            self._one_shot.discard(notification_id)
            self._jobs.pop(notification_id, None)
        self._pending[notification_id] = event

        try:
            await context.bot.send_message(
                chat_id=job.chat_id,
                text=format_notification_message(event),
                parse_mode="HTML",
                reply_markup=notification_keyboard(notification_id),
            )
        except TelegramError as e:
            logger.error(f"Failed to deliver notification {notification_id}: {e}")

        await self.dispatch(EventKind.RECEIVED, event)

    @staticmethod
    def _chat_id(payload: dict[str, Any]) -> int:
        user_id = payload.get("userId")
        if user_id is None:
            raise NotificationError("Notification payload has no userId")
        return int(user_id)
