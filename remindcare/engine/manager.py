"""Reminder manager: keeps reminders and their notifications in step.

Every reminder owns one notification registration per firing occasion: one
for one-time, medication and appointment reminders, one for daily reminders,
and one per selected weekday for weekly reminders. Edits and completions
cancel the old registrations before scheduling new ones, and the stored
record is only updated once the new registrations exist.

Reminder ids are generated here rather than by the store, so every
registration carries its final reminderId from the start.
"""

import asyncio
import dataclasses
import logging
import uuid
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from remindcare.db.models import (
    DateGroup,
    ListFilter,
    NotificationRegistration,
    Reminder,
    ReminderInput,
    ReminderPatch,
    ReminderType,
)
from remindcare.db.repository import Repository
from remindcare.engine.scheduling import (
    RegistrationPlan,
    alert_cue,
    normalize_weekdays,
    notification_body,
    notification_payload,
    plan_registrations,
    validate_reminder,
)
from remindcare.engine.view import build_list_view
from remindcare.notifications.gateway import (
    EventKind,
    NotificationEvent,
    NotificationGateway,
    Subscription,
)
from remindcare.utils.constants import DEFAULT_COLOR, REMINDER_TYPE_INFO
from remindcare.utils.errors import (
    NotificationError,
    ReminderNotFound,
    RemindCareError,
    StoreError,
    ValidationError,
)
from remindcare.utils.time_utils import combine_local, from_utc, to_utc
from remindcare.voice.announcer import VoiceAnnouncer

logger = logging.getLogger(__name__)


def type_color(reminder_type: ReminderType) -> str:
    info = REMINDER_TYPE_INFO.get(reminder_type.value)
    return info.color if info else DEFAULT_COLOR


class ReminderManager:
    """Creates, edits, completes and deletes reminders for any user."""

    def __init__(
        self,
        store: Repository,
        gateway: NotificationGateway,
        announcer: VoiceAnnouncer,
        tz: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.announcer = announcer
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(ZoneInfo(tz)))
        # Reminders whose notification is ringing and not yet acknowledged
        self.active_ids: set[str] = set()
        self._subscriptions: list[Subscription] = []

    def _now(self) -> datetime:
        return self._clock()

    # Lifecycle

    def attach(self) -> None:
        """Start handling the gateway's received and response events."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self.gateway.add_listener(EventKind.RECEIVED, self.on_notification_received),
            self.gateway.add_listener(EventKind.RESPONSE, self.on_notification_response),
        ]

    def detach(self) -> None:
        for subscription in self._subscriptions:
            self.gateway.remove_listener(subscription)
        self._subscriptions = []

    # Operations

    async def create(self, user_id: int, data: ReminderInput) -> Reminder:
        """Validate, schedule and persist a new reminder."""
        reminder_type = ReminderType(data.type)
        local = combine_local(data.date, data.time, self.tz)
        reminder = Reminder(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=(data.title or "").strip(),
            description=(data.description or "").strip() or None,
            date_time=to_utc(local, self.tz),
            type=reminder_type,
            weekdays=list(data.weekdays) if reminder_type == ReminderType.WEEKLY else [],
            voice_prompt=(data.voice_prompt or "").strip() or None,
            color=data.color or type_color(reminder_type),
        )
        validate_reminder(reminder, self._now())
        reminder.weekdays = normalize_weekdays(reminder.weekdays)

        reminder.notifications = await self._register(reminder)
        try:
            saved = await self.store.save_reminder(user_id, reminder)
        except StoreError:
            await self._cancel_quietly(reminder.notifications)
            raise

        logger.info(
            f"Created {saved.type.value} reminder {saved.id} for user {user_id} "
            f"with {len(saved.notifications)} notification(s)"
        )
        return saved

    async def edit(self, user_id: int, reminder_id: str, patch: ReminderPatch) -> Reminder:
        """Apply a patch, then re-schedule the reminder's notifications."""
        current = await self.store.get_reminder(user_id, reminder_id)
        updated = self._apply_patch(current, patch)
        validate_reminder(updated, self._now(), require_future=not updated.is_completed)
        updated.weekdays = normalize_weekdays(updated.weekdays)

        await self._cancel_all(current.notifications)
        updated.notifications = []
        if not updated.is_completed and self._has_future_occasion(updated):
            updated.notifications = await self._register(updated)

        saved = await self.store.update_reminder(user_id, updated)
        logger.info(f"Edited reminder {reminder_id} for user {user_id}")
        return saved

    async def toggle_completion(self, user_id: int, reminder_id: str, completed: bool) -> Reminder:
        """Mark a reminder completed or active again.

        Completing cancels every notification. Re-activating schedules them
        again, except for a one-shot reminder whose time has passed, which
        stays silent.
        """
        reminder = await self.store.get_reminder(user_id, reminder_id)

        if completed and not reminder.is_completed:
            await self._cancel_all(reminder.notifications)
            reminder.notifications = []
        elif not completed and reminder.is_completed:
            if self._has_future_occasion(reminder):
                reminder.notifications = await self._register(reminder)

        reminder.is_completed = completed
        saved = await self.store.update_reminder(user_id, reminder)
        self._release(user_id, reminder_id)
        logger.info(f"Reminder {reminder_id} marked {'completed' if completed else 'active'}")
        return saved

    async def delete(self, user_id: int, reminder_id: str) -> None:
        """Cancel a reminder's notifications, then remove it."""
        reminder = await self.store.get_reminder(user_id, reminder_id)
        await self._cancel_all(reminder.notifications)
        await self.store.delete_reminder(user_id, reminder_id)
        self._release(user_id, reminder_id)

    def stop_active(self, reminder_id: str, user_id: int | None = None) -> None:
        """Silence a ringing reminder without changing it.

        Without a user_id every pending read-out is dropped.
        """
        self.active_ids.discard(reminder_id)
        self.announcer.stop(user_id)

    async def get(self, user_id: int, reminder_id: str) -> Reminder:
        return await self.store.get_reminder(user_id, reminder_id)

    async def resolve(self, user_id: int, id_prefix: str) -> Reminder:
        """Find a reminder from the leading characters of its id."""
        id_prefix = id_prefix.strip().lower()
        if not id_prefix:
            raise ValidationError("reminder id required")

        matches = await self.store.find_reminders_by_prefix(user_id, id_prefix)
        for reminder in matches:
            if reminder.id == id_prefix:
                return reminder
        if not matches:
            raise ReminderNotFound(id_prefix)
        if len(matches) > 1:
            raise ValidationError(f"id {id_prefix} matches {len(matches)} reminders, type more of it")
        return matches[0]

    async def list_view(self, user_id: int, list_filter: ListFilter | None = None) -> list[DateGroup]:
        """The user's reminders, filtered and grouped by date."""
        reminders = await self.store.list_reminders(user_id)
        return build_list_view(
            reminders, self.active_ids, list_filter or ListFilter(), self.tz, self._now()
        )

    async def reconcile(self, user_id: int) -> int:
        """Re-create notifications that are missing from the gateway.

        Scheduled notifications do not outlive the process, so this runs on
        startup. One-shot reminders whose time has passed get their stale ids
        cleared instead. Returns how many reminders were repaired.
        """
        live = set(await self.gateway.list_scheduled())
        repaired = 0

        for reminder in await self.store.list_reminders(user_id):
            if reminder.is_completed:
                continue

            ids = reminder.notification_ids
            future = self._has_future_occasion(reminder)
            expected = len(plan_registrations(reminder, self.tz)) if future else 0
            if len(ids) == expected and all(i in live for i in ids):
                continue

            try:
                await self._cancel_quietly(reminder.notifications)
                reminder.notifications = await self._register(reminder) if future else []
                await self.store.update_reminder(user_id, reminder)
            except RemindCareError as e:
                logger.error(f"Could not reconcile reminder {reminder.id}: {e.message}")
                continue
            repaired += 1

        if repaired:
            logger.info(f"Reconciled {repaired} reminder(s) for user {user_id}")
        return repaired

    # Notification events

    async def on_notification_received(self, event: NotificationEvent) -> None:
        """Mark the reminder as ringing and read it aloud if the user wants that."""
        reminder_id = event.payload.get("reminderId")
        if not reminder_id:
            return

        self.active_ids.add(reminder_id)

        user_id = event.payload.get("userId")
        if user_id is None or not await self.store.get_voice_enabled(user_id):
            return

        cue = alert_cue(event.payload.get("type"))
        text = event.payload.get("voicePrompt") or f"{event.title}. {event.body}"
        await self.announcer.speak(f"{cue.spoken} {text}", user_id)

    async def on_notification_response(self, event: NotificationEvent) -> None:
        """The user acknowledged a notification: silence it, complete one-time reminders."""
        reminder_id = event.payload.get("reminderId")
        if not reminder_id:
            return

        user_id = event.payload.get("userId")
        self.active_ids.discard(reminder_id)
        self.announcer.stop(user_id)

        if event.payload.get("type") == ReminderType.ONCE.value and user_id is not None:
            await self.toggle_completion(user_id, reminder_id, True)

    # Helpers

    def _release(self, user_id: int, reminder_id: str) -> None:
        if reminder_id in self.active_ids:
            self.active_ids.discard(reminder_id)
            self.announcer.stop(user_id)

    def _has_future_occasion(self, reminder: Reminder) -> bool:
        return reminder.type.is_recurring or reminder.date_time > self._now()

    def _apply_patch(self, current: Reminder, patch: ReminderPatch) -> Reminder:
        local = from_utc(current.date_time, self.tz)
        new_type = ReminderType(patch.type) if patch.type is not None else current.type

        if patch.date is not None or patch.time is not None:
            local = combine_local(
                patch.date if patch.date is not None else local.date(),
                patch.time if patch.time is not None else local.time(),
                self.tz,
            )

        weekdays = list(patch.weekdays) if patch.weekdays is not None else list(current.weekdays)
        if new_type != ReminderType.WEEKLY:
            weekdays = []

        color = current.color
        if patch.color:
            color = patch.color
        elif new_type != current.type and current.color in ("", type_color(current.type)):
            color = type_color(new_type)

        return dataclasses.replace(
            current,
            title=patch.title.strip() if patch.title is not None else current.title,
            description=(
                patch.description.strip() or None if patch.description is not None else current.description
            ),
            date_time=to_utc(local, self.tz),
            type=new_type,
            weekdays=weekdays,
            voice_prompt=(
                patch.voice_prompt.strip() or None if patch.voice_prompt is not None else current.voice_prompt
            ),
            color=color,
            notifications=list(current.notifications),
        )

    async def _schedule(self, plan: RegistrationPlan, title: str, body: str, payload: dict) -> str:
        if plan.recurring:
            return await self.gateway.schedule_recurring(
                title, body, plan.hour, plan.minute, plan.weekday, payload
            )
        return await self.gateway.schedule_once(title, body, plan.when, payload)

    async def _register(self, reminder: Reminder) -> list[NotificationRegistration]:
        """Schedule every notification the reminder needs.

        Weekday registrations are independent and issued together. If any of
        them fails, the ones that succeeded are cancelled before the error is
        raised, so no partial set is left behind.
        """
        plans = plan_registrations(reminder, self.tz)
        title = reminder.title
        body = notification_body(reminder)
        payload = notification_payload(reminder)

        results = await asyncio.gather(
            *(self._schedule(plan, title, body, payload) for plan in plans),
            return_exceptions=True,
        )

        registrations = []
        failures = []
        for plan, result in zip(plans, results):
            # CancelledError comes back as a result too
            if isinstance(result, BaseException):
                failures.append(result)
            else:
                registrations.append(NotificationRegistration(result, plan.weekday))

        if failures:
            await self._cancel_quietly(registrations)
            logger.error(
                f"{len(failures)} of {len(plans)} notifications failed for reminder {reminder.id}: "
                f"{failures[0]}"
            )
            raise NotificationError(
                f"Could not schedule notifications for '{reminder.title}'. Please try again."
            ) from failures[0]

        return registrations

    async def _cancel_all(self, registrations: list[NotificationRegistration]) -> None:
        for registration in registrations:
            await self.gateway.cancel(registration.notification_id)

    async def _cancel_quietly(self, registrations: list[NotificationRegistration]) -> None:
        """Best-effort cancel used while recovering from another failure."""
        for registration in registrations:
            try:
                await self.gateway.cancel(registration.notification_id)
            except NotificationError as e:
                logger.warning(f"Could not cancel notification {registration.notification_id}: {e.message}")
