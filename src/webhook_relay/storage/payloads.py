"""Payload stores for captured webhook requests.

Two strategies sit behind one interface:

- inline: the snapshot is written into the log row itself (no expiry).
- cache: the snapshot goes to Redis under a generated key with a TTL and
  the log row keeps only the key. The row can outlive the cache entry, in
  which case :meth:`PayloadStore.load` returns ``None``.

Key format: ``webhook:{uuid4 hex}``
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from webhook_relay.core.exceptions import PayloadStoreError
from webhook_relay.domain.models import PayloadReference

logger = structlog.get_logger(__name__)


class PayloadStore(ABC):
    """Abstract interface for payload storage."""

    @abstractmethod
    async def save(self, snapshot: dict[str, Any]) -> PayloadReference:
        """Store a snapshot and return the reference to persist on the log row."""

    @abstractmethod
    async def load(self, reference: PayloadReference) -> dict[str, Any] | None:
        """Resolve a reference; ``None`` when the payload is gone."""


class InlinePayloadStore(PayloadStore):
    """Keeps the snapshot on the log row."""

    async def save(self, snapshot: dict[str, Any]) -> PayloadReference:
        return PayloadReference(inline=snapshot)

    async def load(self, reference: PayloadReference) -> dict[str, Any] | None:
        return reference.inline


class CachePayloadStore(PayloadStore):
    """Redis-backed store with a fixed retention window.

    A missing client is a deployment problem, not a process-wide one: each
    operation that needs the cache fails with :class:`PayloadStoreError`.
    """

    def __init__(
        self,
        redis: Redis | None,
        *,
        ttl_seconds: int,
        key_prefix: str = "webhook",
    ):
        self._redis = redis
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _make_key(self) -> str:
        return f"{self._key_prefix}:{uuid4().hex}"

    def _client(self) -> Redis:
        if self._redis is None:
            raise PayloadStoreError("Redis not configured")
        return self._redis

    async def save(self, snapshot: dict[str, Any]) -> PayloadReference:
        client = self._client()
        key = self._make_key()
        try:
            await client.set(key, json.dumps(snapshot), ex=self._ttl_seconds)
        except (RedisError, OSError) as exc:
            raise PayloadStoreError() from exc
        logger.debug("payload_cached", key=key, ttl_seconds=self._ttl_seconds)
        return PayloadReference(key=key)

    async def load(self, reference: PayloadReference) -> dict[str, Any] | None:
        if reference.key is None:
            # rows written while the deployment used inline storage
            return reference.inline
        client = self._client()
        try:
            value = await client.get(reference.key)
        except (RedisError, OSError) as exc:
            raise PayloadStoreError() from exc
        if value is None:
            logger.debug("payload_expired", key=reference.key)
            return None
        value_str = value.decode() if isinstance(value, bytes) else value
        try:
            return json.loads(value_str)
        except json.JSONDecodeError:
            logger.warning("payload_corrupt", key=reference.key)
            return None
