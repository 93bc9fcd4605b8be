"""Versioned schema setup for the reminder database.

The applied version is kept in SQLite's `user_version` pragma. Each entry in
MIGRATIONS is a SQL script in this package that brings the schema up to its
version; scripts run in order and only once.
"""

import logging
from pathlib import Path

import aiosqlite

from remindcare.utils.errors import StoreError

logger = logging.getLogger(__name__)

MIGRATIONS: list[tuple[int, str]] = [
    (1, "schema.sql"),
]

LATEST_VERSION = MIGRATIONS[-1][0]


async def get_schema_version(db: aiosqlite.Connection) -> int:
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
    return row[0] if row else 0


async def _apply(db: aiosqlite.Connection, version: int, script: str) -> None:
    sql = (Path(__file__).parent / script).read_text()
    await db.executescript(sql)
    # PRAGMA does not take bound parameters
    await db.execute(f"PRAGMA user_version = {int(version)}")
    await db.commit()
    logger.info(f"Applied schema version {version} ({script})")


async def run_migrations(db_path: Path) -> int:
    """Bring the database at db_path up to the latest schema version.

    Returns the version the database is at afterwards. A database written by
    a newer release is refused rather than modified.
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            current = await get_schema_version(db)
            if current > LATEST_VERSION:
                raise StoreError(
                    f"Database schema version {current} is newer than supported ({LATEST_VERSION})"
                )

            for version, script in MIGRATIONS:
                if version > current:
                    await _apply(db, version, script)
                    current = version
    except aiosqlite.Error as e:
        logger.error(f"Migration of {db_path} failed: {e}")
        raise StoreError(f"Could not prepare the reminder database: {e}") from e

    logger.info(f"Database at {db_path} is at schema version {current}")
    return current
