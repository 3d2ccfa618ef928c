"""Versioned schema migrations applied once at startup.

Migrations live in the ``tgcd.sql`` package as ``V<version>__<name>.sql``.
Applied versions are recorded in ``tgcd_schema_history``; a session-level
advisory lock serializes replicas that start at the same time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from importlib import resources

import asyncpg
import structlog

from tgcd.domain.errors import MigrationError

logger = structlog.get_logger(__name__)

# Fixed advisory lock id for schema migrations; must not collide with other
# advisory locks taken against the same database.
MIGRATION_LOCK_ID = 7_461_637_100

MIGRATION_FILE_RE = re.compile(r"^V(?P<version>\d+)__(?P<name>\w+)\.sql$")

CREATE_HISTORY_TABLE = """
    CREATE TABLE IF NOT EXISTS tgcd_schema_history(
        version INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
"""


@dataclass(frozen=True, slots=True)
class Migration:
    version: int
    name: str
    sql: str


def load_migrations(package: str = "tgcd.sql") -> list[Migration]:
    """Read every migration file in ``package``, sorted by version."""
    migrations: dict[int, Migration] = {}
    for entry in resources.files(package).iterdir():
        if not entry.name.endswith(".sql"):
            continue
        match = MIGRATION_FILE_RE.match(entry.name)
        if match is None:
            raise MigrationError(f"malformed migration file name: {entry.name}")
        version = int(match["version"])
        if version in migrations:
            raise MigrationError(f"duplicate migration version: {version}")
        migrations[version] = Migration(version, match["name"], entry.read_text(encoding="utf-8"))
    return [migrations[v] for v in sorted(migrations)]


async def acquire_migration_lock(conn: asyncpg.Connection) -> None:
    """Block until this session holds the migration advisory lock."""
    await conn.execute("SELECT pg_advisory_lock($1)", MIGRATION_LOCK_ID)


async def release_migration_lock(conn: asyncpg.Connection) -> bool:
    """Release the migration advisory lock held by this session."""
    return await conn.fetchval("SELECT pg_advisory_unlock($1)", MIGRATION_LOCK_ID) is True


async def run_migrations(pool: asyncpg.Pool, migrations: list[Migration] | None = None) -> list[int]:
    """Apply pending migrations and return the versions applied by this call."""
    if migrations is None:
        migrations = load_migrations()

    applied: list[int] = []
    async with pool.acquire() as conn:
        await acquire_migration_lock(conn)
        try:
            await conn.execute(CREATE_HISTORY_TABLE)
            done = {row["version"] for row in await conn.fetch("SELECT version FROM tgcd_schema_history")}
            for migration in migrations:
                if migration.version in done:
                    continue
                logger.info("applying migration", version=migration.version, name=migration.name)
                async with conn.transaction():
                    await conn.execute(migration.sql)
                    await conn.execute(
                        "INSERT INTO tgcd_schema_history(version, name) VALUES ($1, $2)",
                        migration.version,
                        migration.name,
                    )
                applied.append(migration.version)
        finally:
            await release_migration_lock(conn)

    logger.info("schema up to date", applied=applied, total=len(migrations))
    return applied
