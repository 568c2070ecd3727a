"""Log retrieval joining log rows with their stored payloads."""
from __future__ import annotations

import asyncio
from uuid import UUID

from webhook_relay.core.exceptions import ForbiddenError
from webhook_relay.domain.dto import LogEntryResponse
from webhook_relay.repositories import WebhookLogStore
from webhook_relay.services.endpoints import EndpointRegistry
from webhook_relay.storage.payloads import PayloadStore


class LogService:
    def __init__(
        self,
        registry: EndpointRegistry,
        logs: WebhookLogStore,
        payloads: PayloadStore,
        *,
        page_size: int = 50,
    ):
        self._registry = registry
        self._logs = logs
        self._payloads = payloads
        self._page_size = page_size

    async def list_logs(self, endpoint_id: UUID, caller_user_id: UUID) -> list[LogEntryResponse]:
        # ownership is checked before any log row is read
        endpoint = await self._registry.get_owned(endpoint_id, caller_user_id)
        if endpoint is None:
            raise ForbiddenError("Access denied")

        rows = await self._logs.list_by_endpoint(endpoint.id, limit=self._page_size)
        payloads = await asyncio.gather(*(self._payloads.load(row.reference) for row in rows))
        return [LogEntryResponse.from_log(row, data) for row, data in zip(rows, payloads)]
