"""Tests for schema versioning."""

import aiosqlite
import pytest

from remindcare.db.migrations import LATEST_VERSION, get_schema_version, run_migrations
from remindcare.utils.errors import StoreError


async def test_fresh_database_reaches_latest_version(tmp_path):
    db_path = tmp_path / "fresh.db"

    assert await run_migrations(db_path) == LATEST_VERSION

    async with aiosqlite.connect(db_path) as db:
        assert await get_schema_version(db) == LATEST_VERSION
        async with db.execute("SELECT name FROM sqlite_master WHERE type = 'table'") as cursor:
            tables = {row[0] for row in await cursor.fetchall()}
    assert {"reminders", "user_preferences"} <= tables


async def test_running_twice_keeps_data(tmp_path):
    db_path = tmp_path / "twice.db"
    await run_migrations(db_path)
    async with aiosqlite.connect(db_path) as db:
        await db.execute("INSERT INTO user_preferences (user_id, voice_enabled) VALUES (1, 0)")
        await db.commit()

    assert await run_migrations(db_path) == LATEST_VERSION

    async with aiosqlite.connect(db_path) as db:
        async with db.execute("SELECT COUNT(*) FROM user_preferences") as cursor:
            assert (await cursor.fetchone())[0] == 1


async def test_newer_database_is_refused(tmp_path):
    db_path = tmp_path / "future.db"
    async with aiosqlite.connect(db_path) as db:
        await db.execute(f"PRAGMA user_version = {LATEST_VERSION + 1}")
        await db.commit()

    with pytest.raises(StoreError, match="newer"):
        await run_migrations(db_path)
