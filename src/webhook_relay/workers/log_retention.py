"""Worker: purge log rows older than the retention window."""
from __future__ import annotations

from datetime import datetime, timedelta

from aiohttp import web

from webhook_relay.storage.backends import get_storage


def create_log_retention_task(retention_days: int):
    """Build a task deleting log rows received more than ``retention_days`` ago."""

    async def purge_expired_logs(app: web.Application, now: datetime) -> str | None:
        cutoff = now - timedelta(days=retention_days)
        purged = await get_storage(app).logs.delete_older_than(cutoff)
        return f"purged={purged}" if purged else None

    return purge_expired_logs
