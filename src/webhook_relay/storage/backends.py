"""Storage wiring: which repositories and payload store an app instance uses."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import asyncpg  # type: ignore[import-untyped]
import structlog
from aiohttp import web
from redis import asyncio as redis

from webhook_relay.db.pool import close_pool, create_pool
from webhook_relay.repositories import (
    EndpointRepository,
    EndpointStore,
    InMemoryDatabase,
    InMemoryEndpointRepository,
    InMemoryUserRepository,
    InMemoryWebhookLogRepository,
    UserRepository,
    UserStore,
    WebhookLogRepository,
    WebhookLogStore,
)
from webhook_relay.settings import Settings
from webhook_relay.storage.payloads import CachePayloadStore, InlinePayloadStore, PayloadStore

logger = structlog.get_logger(__name__)

STORAGE_KEY = "webhook_relay.storage"

AppHook = Callable[[web.Application], Awaitable[None]]


@dataclass
class StorageBackends:
    users: UserStore
    endpoints: EndpointStore
    logs: WebhookLogStore
    payloads: PayloadStore
    # connections owned by this instance, released on cleanup
    pool: asyncpg.Pool | None = None
    redis: Any = None
    _closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list)

    async def close(self) -> None:
        for closer in self._closers:
            await closer()
        self._closers.clear()


def build_payload_store(settings: Settings, client: Any) -> PayloadStore:
    if settings.payload_storage == "cache":
        return CachePayloadStore(client, ttl_seconds=settings.payload_ttl_seconds)
    return InlinePayloadStore()


def build_memory_storage(settings: Settings, *, redis_client: Any = None) -> StorageBackends:
    db = InMemoryDatabase()
    return StorageBackends(
        users=InMemoryUserRepository(db),
        endpoints=InMemoryEndpointRepository(db),
        logs=InMemoryWebhookLogRepository(db),
        payloads=build_payload_store(settings, redis_client),
        redis=redis_client,
    )


async def build_storage(settings: Settings) -> StorageBackends:
    """Open the connections the settings ask for."""
    redis_client = None
    if settings.payload_storage == "cache":
        if settings.redis_url:
            redis_client = redis.from_url(settings.redis_url)
            logger.info("redis_client_connected", url=settings.redis_url.split("@")[-1])
        else:
            logger.warning("redis_url_missing", payload_storage=settings.payload_storage)

    if settings.storage_backend == "memory":
        storage = build_memory_storage(settings, redis_client=redis_client)
    else:
        pool = await create_pool(settings)
        storage = StorageBackends(
            users=UserRepository(pool),
            endpoints=EndpointRepository(pool),
            logs=WebhookLogRepository(pool),
            payloads=build_payload_store(settings, redis_client),
            pool=pool,
            redis=redis_client,
        )
        storage._closers.append(lambda: close_pool(pool))

    if redis_client is not None:
        storage._closers.append(redis_client.aclose)
    return storage


def create_storage_hooks(settings: Settings) -> tuple[AppHook, AppHook]:
    """Create on_startup / on_cleanup hooks that own the storage lifecycle."""

    async def init_storage(app: web.Application) -> None:
        app[STORAGE_KEY] = await build_storage(settings)

    async def close_storage(app: web.Application) -> None:
        storage = app.get(STORAGE_KEY)
        if storage is not None:
            await storage.close()

    return init_storage, close_storage


def get_storage(app: web.Application) -> StorageBackends:
    storage = app.get(STORAGE_KEY)
    if storage is None:
        raise RuntimeError("Storage not initialized. Register the storage startup hook first.")
    return storage
