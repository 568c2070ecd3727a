"""Webhook log repository (append-only)."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from asyncpg import Pool, Record  # type: ignore[import-untyped]

from webhook_relay.domain.models import WebhookLog
from webhook_relay.repositories.base import BaseRepository

_LOG_COLUMNS = "id, endpoint_id, method, received_at, payload, log_key"


class WebhookLogRepository(BaseRepository):
    def __init__(self, pool: Pool):
        super().__init__(pool)

    @staticmethod
    def _to_model(record: Record) -> WebhookLog:
        return WebhookLog.model_validate(WebhookLogRepository._normalize(dict(record)))

    @staticmethod
    def _normalize(payload: dict[str, Any]) -> dict[str, Any]:
        value = payload.get("payload")
        if isinstance(value, str):
            payload["payload"] = json.loads(value)
        return payload

    async def create(
        self,
        *,
        endpoint_id: UUID,
        method: str,
        payload: dict[str, Any] | None,
        log_key: str | None,
    ) -> WebhookLog:
        payload_json = json.dumps(payload) if payload is not None else None
        record = await self._fetchrow(
            f"""
            INSERT INTO webhook_logs (endpoint_id, method, payload, log_key)
            VALUES ($1, $2, $3::json, $4)
            RETURNING {_LOG_COLUMNS}
            """,
            endpoint_id,
            method,
            payload_json,
            log_key,
        )
        assert record is not None
        return self._to_model(record)

    async def list_by_endpoint(self, endpoint_id: UUID, *, limit: int = 50) -> list[WebhookLog]:
        records = await self._fetch(
            f"""
            SELECT {_LOG_COLUMNS}
            FROM webhook_logs
            WHERE endpoint_id = $1
            ORDER BY received_at DESC
            LIMIT $2
            """,
            endpoint_id,
            limit,
        )
        return [self._to_model(r) for r in records]

    async def delete_older_than(self, cutoff: datetime) -> int:
        result = await self._execute(
            "DELETE FROM webhook_logs WHERE received_at < $1",
            cutoff,
        )
        # asyncpg returns the command tag, e.g. "DELETE 12"
        return int(result.split()[-1]) if result else 0
