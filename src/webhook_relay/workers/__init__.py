"""Background workers for webhook-relay.

Each worker module builds an async task function compatible with
:class:`webhook_relay.worker.WorkerTask`.
"""
from __future__ import annotations

from webhook_relay.settings import Settings
from webhook_relay.worker import BackgroundWorker, WorkerTask
from webhook_relay.workers.log_retention import create_log_retention_task


def create_worker(settings: Settings) -> BackgroundWorker | None:
    """Aggregate the tasks enabled by settings; None when there is nothing to run."""
    tasks: list[WorkerTask] = []
    if settings.log_retention_days:
        tasks.append(
            WorkerTask(
                name="log_retention",
                fn=create_log_retention_task(settings.log_retention_days),
            )
        )
    if not tasks:
        return None
    return BackgroundWorker(interval_seconds=settings.worker_interval_seconds, tasks=tasks)


__all__ = ["create_worker"]
