"""Schema migrations, applied from ``migrations/*.sql`` on startup.

Files apply in name order, each in its own transaction, and are recorded in
``schema_migrations`` with a checksum. Editing a file that has already been
applied stops startup. An advisory lock serialises replicas that start at the
same time.
"""
from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

import asyncpg  # type: ignore[import-untyped]
import structlog
from aiohttp import web

from webhook_relay.settings import Settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

# arbitrary constant shared by every replica of this service
_ADVISORY_LOCK_ID = 0x5745_4248_4F4F_4B

_HISTORY_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version text PRIMARY KEY,
    checksum text NOT NULL,
    applied_at timestamptz NOT NULL DEFAULT now()
)
"""


@dataclass(frozen=True)
class Migration:
    version: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode("utf-8")).hexdigest()


def load_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[Migration]:
    return [
        Migration(version=path.stem, sql=path.read_text(encoding="utf-8"))
        for path in sorted(migrations_dir.glob("*.sql"))
    ]


async def apply_migrations(conn: asyncpg.Connection, migrations: list[Migration]) -> int:
    """Apply what is pending; returns how many files ran."""
    await conn.execute(_HISTORY_DDL)
    await conn.execute("SELECT pg_advisory_lock($1)", _ADVISORY_LOCK_ID)
    try:
        rows = await conn.fetch("SELECT version, checksum FROM schema_migrations")
        applied = {row["version"]: row["checksum"] for row in rows}

        pending = []
        for migration in migrations:
            recorded = applied.get(migration.version)
            if recorded is None:
                pending.append(migration)
            elif recorded != migration.checksum:
                raise RuntimeError(
                    f"Checksum mismatch for {migration.version}: applied file was edited"
                )

        for migration in pending:
            logger.info("migration_applying", version=migration.version)
            async with conn.transaction():
                await conn.execute(migration.sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, checksum) VALUES ($1, $2)",
                    migration.version,
                    migration.checksum,
                )
        return len(pending)
    finally:
        await conn.execute("SELECT pg_advisory_unlock($1)", _ADVISORY_LOCK_ID)


async def _connect(dsn: str, *, attempts: int = 5, delay: float = 2.0) -> asyncpg.Connection:
    """The database container may still be starting; retry a few times."""
    for attempt in range(1, attempts + 1):
        try:
            return await asyncpg.connect(dsn)
        except (OSError, asyncpg.exceptions.CannotConnectNowError) as exc:
            if attempt == attempts:
                raise
            logger.warning("migration_connect_retry", attempt=attempt, error=str(exc))
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")


def create_migration_runner(
    settings: Settings,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> Callable[[web.Application], Awaitable[None]]:
    """Startup hook applying migrations before the pool opens."""

    async def run_migrations(_app: web.Application) -> None:
        migrations = load_migrations(migrations_dir)
        conn = await _connect(str(settings.database_url))
        try:
            count = await apply_migrations(conn, migrations)
        finally:
            await conn.close()
        logger.info("migrations_applied", count=count, known=len(migrations))

    return run_migrations
