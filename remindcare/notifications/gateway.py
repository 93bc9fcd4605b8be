"""Notification gateway contract and listener registry.

A gateway schedules platform notifications and reports two kinds of events
back to the application: a notification was *received* (it fired), and the
user *responded* to it (tapped it, acknowledged it). Both events carry the
payload that was attached when the notification was scheduled.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    RECEIVED = "received"
    RESPONSE = "response"


@dataclass
class NotificationEvent:
    """A fired notification, with the payload it was scheduled with."""

    notification_id: str
    title: str
    body: str
    payload: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[NotificationEvent], Awaitable[None]]


@dataclass(frozen=True)
class Subscription:
    kind: EventKind
    listener: Listener


class NotificationGateway(ABC):
    """Schedules notifications and delivers their events to listeners.

    Implementations raise NotificationError when a platform call fails.
    """

    def __init__(self) -> None:
        self._listeners: dict[EventKind, list[Listener]] = {kind: [] for kind in EventKind}
        self._started = False

    async def init(self) -> None:
        """Start delivering events."""
        self._started = True
        logger.info(f"{type(self).__name__} started")

    async def shutdown(self) -> None:
        """Stop delivering events and drop every listener."""
        self._started = False
        for listeners in self._listeners.values():
            listeners.clear()
        logger.info(f"{type(self).__name__} shut down")

    @property
    def started(self) -> bool:
        return self._started

    @abstractmethod
    async def schedule_once(
        self, title: str, body: str, when: datetime, payload: dict[str, Any]
    ) -> str:
        """Schedule a single notification at an absolute time. Returns its id."""

    @abstractmethod
    async def schedule_recurring(
        self,
        title: str,
        body: str,
        hour: int,
        minute: int,
        weekday: int | None,
        payload: dict[str, Any],
    ) -> str:
        """Schedule a repeating notification.

        weekday is 1-7 (Mon-Sun) for a weekly repeat, or None to repeat daily.
        """

    @abstractmethod
    async def cancel(self, notification_id: str) -> None:
        """Cancel a scheduled notification. Unknown ids are ignored."""

    @abstractmethod
    async def list_scheduled(self) -> list[str]:
        """Ids of every notification still scheduled."""

    # Listeners

    def add_listener(self, kind: EventKind, listener: Listener) -> Subscription:
        self._listeners[kind].append(listener)
        return Subscription(kind, listener)

    def remove_listener(self, subscription: Subscription) -> None:
        listeners = self._listeners[subscription.kind]
        if subscription.listener in listeners:
            listeners.remove(subscription.listener)

    async def dispatch(self, kind: EventKind, event: NotificationEvent) -> None:
        """Deliver an event to every listener of its kind.

        A failing listener is logged and does not stop delivery to the rest.
        """
        if not self._started:
            logger.warning(f"Dropping {kind.value} event for {event.notification_id}: gateway not started")
            return

        for listener in list(self._listeners[kind]):
            try:
                await listener(event)
            except Exception as e:
                logger.error(
                    f"Listener failed on {kind.value} event for notification "
                    f"{event.notification_id}: {e}",
                    exc_info=True,
                )
