"""Periodic in-process background worker.

Register ``worker.start`` with ``app.on_startup`` and ``worker.stop`` with
``app.on_cleanup``. Stopping lets the sweep in progress finish (bounded by
``stop_timeout_seconds``) instead of cancelling it mid-query.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence

import structlog
from aiohttp import web

logger = structlog.get_logger(__name__)

# (app, now in UTC) -> optional summary, logged when non-empty
TaskFn = Callable[[web.Application, datetime], Awaitable[str | None]]


@dataclass
class WorkerTask:
    name: str
    fn: TaskFn


@dataclass
class BackgroundWorker:
    """Runs every task once per interval; a failing task does not affect the others."""

    interval_seconds: float = 60.0
    tasks: Sequence[WorkerTask] = field(default_factory=list)
    stop_timeout_seconds: float = 10.0
    _stopping: asyncio.Event | None = field(default=None, init=False, repr=False)
    _runner: asyncio.Task | None = field(default=None, init=False, repr=False)

    async def start(self, app: web.Application) -> None:
        self._stopping = asyncio.Event()
        self._runner = asyncio.create_task(self._run(app), name="background-worker")
        logger.info(
            "background_worker_started",
            interval_seconds=self.interval_seconds,
            tasks=[t.name for t in self.tasks],
        )

    async def stop(self, app: web.Application) -> None:
        if self._runner is None or self._stopping is None:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(self._runner, timeout=self.stop_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("background_worker_stop_timeout")
        finally:
            self._runner = None
        logger.info("background_worker_stopped")

    async def run_once(self, app: web.Application, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        for task in self.tasks:
            try:
                summary = await task.fn(app, now)
            except Exception:
                logger.exception("background_task_failed", task=task.name)
                continue
            if summary:
                logger.info("background_task_completed", task=task.name, summary=summary)

    async def _run(self, app: web.Application) -> None:
        assert self._stopping is not None
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self.run_once(app)
