"""Webhook endpoint repository."""
from __future__ import annotations

from uuid import UUID

from asyncpg import Pool, Record  # type: ignore[import-untyped]

from webhook_relay.domain.models import Endpoint
from webhook_relay.repositories.base import BaseRepository

_ENDPOINT_COLUMNS = "id, user_id, path, line_channel_secret, description, is_active, created_at"


class EndpointRepository(BaseRepository):
    """Every mutation is scoped by owner in SQL, not only in handlers."""

    def __init__(self, pool: Pool):
        super().__init__(pool)

    @staticmethod
    def _to_model(record: Record) -> Endpoint:
        return Endpoint.model_validate(dict(record))

    async def create(
        self,
        *,
        user_id: UUID,
        path: str,
        line_channel_secret: str,
        description: str,
    ) -> Endpoint:
        record = await self._fetchrow(
            f"""
            INSERT INTO webhook_endpoints (user_id, path, line_channel_secret, description)
            VALUES ($1, $2, $3, $4)
            RETURNING {_ENDPOINT_COLUMNS}
            """,
            user_id,
            path,
            line_channel_secret,
            description,
        )
        assert record is not None
        return self._to_model(record)

    async def list_by_owner(self, user_id: UUID) -> list[Endpoint]:
        records = await self._fetch(
            f"""
            SELECT {_ENDPOINT_COLUMNS}
            FROM webhook_endpoints
            WHERE user_id = $1
            ORDER BY created_at DESC
            """,
            user_id,
        )
        return [self._to_model(r) for r in records]

    async def find_active_by_path(self, path: str) -> Endpoint | None:
        record = await self._fetchrow(
            f"""
            SELECT {_ENDPOINT_COLUMNS}
            FROM webhook_endpoints
            WHERE path = $1 AND is_active = true
            """,
            path,
        )
        return self._to_model(record) if record else None

    async def delete(self, endpoint_id: UUID, user_id: UUID) -> bool:
        result = await self._execute(
            "DELETE FROM webhook_endpoints WHERE id = $1 AND user_id = $2",
            endpoint_id,
            user_id,
        )
        return result != "DELETE 0"

    async def set_active(
        self, endpoint_id: UUID, user_id: UUID, is_active: bool
    ) -> Endpoint | None:
        record = await self._fetchrow(
            f"""
            UPDATE webhook_endpoints
            SET is_active = $3
            WHERE id = $1 AND user_id = $2
            RETURNING {_ENDPOINT_COLUMNS}
            """,
            endpoint_id,
            user_id,
            is_active,
        )
        return self._to_model(record) if record else None
