"""Storage contracts implemented by the asyncpg and in-memory repositories."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from webhook_relay.domain.models import Endpoint, User, WebhookLog


class UserStore(Protocol):
    async def create(self, username: str, password_hash: str) -> User: ...

    async def get_by_username(self, username: str) -> User | None: ...


class EndpointStore(Protocol):
    async def create(
        self,
        *,
        user_id: UUID,
        path: str,
        line_channel_secret: str,
        description: str,
    ) -> Endpoint: ...

    async def list_by_owner(self, user_id: UUID) -> list[Endpoint]: ...

    async def find_active_by_path(self, path: str) -> Endpoint | None: ...

    async def delete(self, endpoint_id: UUID, user_id: UUID) -> bool: ...

    async def set_active(
        self, endpoint_id: UUID, user_id: UUID, is_active: bool
    ) -> Endpoint | None: ...


class WebhookLogStore(Protocol):
    async def create(
        self,
        *,
        endpoint_id: UUID,
        method: str,
        payload: dict[str, Any] | None,
        log_key: str | None,
    ) -> WebhookLog: ...

    async def list_by_endpoint(self, endpoint_id: UUID, *, limit: int) -> list[WebhookLog]: ...

    async def delete_older_than(self, cutoff: datetime) -> int: ...
