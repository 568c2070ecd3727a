"""In-memory repositories for local development and tests.

They honour the same contracts as the asyncpg repositories, including the
unique constraints and the owner scoping. Every mutation completes without
awaiting, so no locking is needed on a single event loop.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from webhook_relay.core.exceptions import DuplicateError
from webhook_relay.domain.models import Endpoint, User, WebhookLog


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class InMemoryDatabase:
    """Shared tables so endpoint deletion can cascade to logs."""

    users: dict[UUID, User] = field(default_factory=dict)
    endpoints: dict[UUID, Endpoint] = field(default_factory=dict)
    logs: dict[UUID, WebhookLog] = field(default_factory=dict)
    # insertion counter breaks timestamp ties in newest-first listings
    _sequence: itertools.count = field(default_factory=itertools.count)
    order: dict[UUID, int] = field(default_factory=dict)

    def stamp(self, row_id: UUID) -> None:
        self.order[row_id] = next(self._sequence)


class InMemoryUserRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def create(self, username: str, password_hash: str) -> User:
        if any(u.username == username for u in self._db.users.values()):
            raise DuplicateError("users_username_key")
        user = User(id=uuid4(), username=username, password_hash=password_hash, created_at=_utcnow())
        self._db.users[user.id] = user
        self._db.stamp(user.id)
        return user

    async def get_by_username(self, username: str) -> User | None:
        return next((u for u in self._db.users.values() if u.username == username), None)


class InMemoryEndpointRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def create(
        self,
        *,
        user_id: UUID,
        path: str,
        line_channel_secret: str,
        description: str,
    ) -> Endpoint:
        if any(e.path == path for e in self._db.endpoints.values()):
            raise DuplicateError("webhook_endpoints_path_key")
        endpoint = Endpoint(
            id=uuid4(),
            user_id=user_id,
            path=path,
            line_channel_secret=line_channel_secret,
            description=description,
            created_at=_utcnow(),
        )
        self._db.endpoints[endpoint.id] = endpoint
        self._db.stamp(endpoint.id)
        return endpoint

    async def list_by_owner(self, user_id: UUID) -> list[Endpoint]:
        owned = [e for e in self._db.endpoints.values() if e.user_id == user_id]
        return sorted(owned, key=lambda e: (e.created_at, self._db.order[e.id]), reverse=True)

    async def find_active_by_path(self, path: str) -> Endpoint | None:
        return next(
            (e for e in self._db.endpoints.values() if e.path == path and e.is_active),
            None,
        )

    async def delete(self, endpoint_id: UUID, user_id: UUID) -> bool:
        endpoint = self._db.endpoints.get(endpoint_id)
        if endpoint is None or endpoint.user_id != user_id:
            return False
        del self._db.endpoints[endpoint_id]
        for log_id in [k for k, v in self._db.logs.items() if v.endpoint_id == endpoint_id]:
            del self._db.logs[log_id]
        return True

    async def set_active(
        self, endpoint_id: UUID, user_id: UUID, is_active: bool
    ) -> Endpoint | None:
        endpoint = self._db.endpoints.get(endpoint_id)
        if endpoint is None or endpoint.user_id != user_id:
            return None
        updated = endpoint.model_copy(update={"is_active": is_active})
        self._db.endpoints[endpoint_id] = updated
        return updated


class InMemoryWebhookLogRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def create(
        self,
        *,
        endpoint_id: UUID,
        method: str,
        payload: dict[str, Any] | None,
        log_key: str | None,
    ) -> WebhookLog:
        log = WebhookLog(
            id=uuid4(),
            endpoint_id=endpoint_id,
            method=method,
            received_at=_utcnow(),
            payload=payload,
            log_key=log_key,
        )
        self._db.logs[log.id] = log
        self._db.stamp(log.id)
        return log

    async def list_by_endpoint(self, endpoint_id: UUID, *, limit: int = 50) -> list[WebhookLog]:
        rows = [log for log in self._db.logs.values() if log.endpoint_id == endpoint_id]
        rows.sort(key=lambda log: (log.received_at, self._db.order[log.id]), reverse=True)
        return rows[:limit]

    async def delete_older_than(self, cutoff: datetime) -> int:
        expired = [k for k, v in self._db.logs.items() if v.received_at < cutoff]
        for log_id in expired:
            del self._db.logs[log_id]
        return len(expired)
