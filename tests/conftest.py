"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from remindcare.db.migrations import run_migrations
from remindcare.db.repository import Repository
from remindcare.engine.manager import ReminderManager
from remindcare.notifications.gateway import NotificationGateway
from remindcare.utils.errors import NotificationError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=ZoneInfo("UTC"))
USER_ID = 4242


class FakeGateway(NotificationGateway):
    """Records every call; fails on request."""

    def __init__(self, log: list | None = None):
        super().__init__()
        self.log = log if log is not None else []
        self.scheduled: dict[str, dict] = {}
        self.fail_weekdays: set[int] = set()
        self.cancelled_weekdays: set[int] = set()
        self.fail_once = False
        self.fail_cancel = False
        self._counter = 0

    def _next_id(self) -> str:
        self._counter += 1
        return f"n{self._counter}"

    async def schedule_once(self, title, body, when, payload):
        if self.fail_once:
            raise NotificationError("platform refused")
        nid = self._next_id()
        self.log.append(("schedule_once", nid))
        self.scheduled[nid] = {
            "title": title, "body": body, "when": when, "payload": dict(payload),
        }
        return nid

    async def schedule_recurring(self, title, body, hour, minute, weekday, payload):
        if weekday in self.fail_weekdays:
            raise NotificationError("platform refused")
        if weekday in self.cancelled_weekdays:
            raise asyncio.CancelledError()
        nid = self._next_id()
        self.log.append(("schedule_recurring", nid))
        self.scheduled[nid] = {
            "title": title, "body": body, "hour": hour, "minute": minute,
            "weekday": weekday, "payload": dict(payload),
        }
        return nid

    async def cancel(self, notification_id):
        if self.fail_cancel:
            raise NotificationError("platform refused")
        self.log.append(("cancel", notification_id))
        self.scheduled.pop(notification_id, None)

    async def list_scheduled(self):
        return list(self.scheduled)

    def calls(self, name: str) -> list[str]:
        return [nid for call, nid in self.log if call == name]


class FakeAnnouncer:
    """Stands in for VoiceAnnouncer without a speech engine."""

    def __init__(self):
        self.spoken: list[str] = []
        self.chats: list[int] = []
        self.stopped: list[int | None] = []
        self._speaking = False

    @property
    def stops(self) -> int:
        return len(self.stopped)

    async def speak(self, text: str, chat_id: int) -> None:
        self.spoken.append(text)
        self.chats.append(chat_id)
        self._speaking = True

    def stop(self, chat_id: int | None = None) -> None:
        self.stopped.append(chat_id)
        self._speaking = False

    def is_speaking(self, chat_id: int | None = None) -> bool:
        return self._speaking


@pytest.fixture
async def repo(tmp_path):
    db_path = tmp_path / "remindcare.db"
    await run_migrations(db_path)
    repository = Repository(db_path)
    await repository.connect()
    yield repository
    await repository.close()


@pytest.fixture
def call_log():
    return []


@pytest.fixture
async def gateway(call_log):
    fake = FakeGateway(call_log)
    await fake.init()
    yield fake
    await fake.shutdown()


@pytest.fixture
def announcer():
    return FakeAnnouncer()


@pytest.fixture
def manager(repo, gateway, announcer):
    reminder_manager = ReminderManager(repo, gateway, announcer, tz="UTC", clock=lambda: NOW)
    reminder_manager.attach()
    yield reminder_manager
    reminder_manager.detach()
