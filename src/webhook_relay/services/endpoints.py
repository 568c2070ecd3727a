"""Endpoint registry: user-owned webhook addresses."""
from __future__ import annotations

import secrets
from uuid import UUID

import structlog

from webhook_relay.core.exceptions import DuplicateError, InternalError, ValidationError
from webhook_relay.domain.models import Endpoint
from webhook_relay.repositories import EndpointStore

logger = structlog.get_logger(__name__)

PATH_INSERT_ATTEMPTS = 3


def generate_path(length: int = 10) -> str:
    """Random URL-safe token of exactly ``length`` characters."""
    # token_urlsafe(n) yields ~1.3 chars per byte, always at least `length`
    return secrets.token_urlsafe(length)[:length]


class EndpointRegistry:
    def __init__(self, endpoints: EndpointStore, *, path_length: int = 10):
        self._endpoints = endpoints
        self._path_length = path_length

    async def create(
        self, owner_id: UUID, channel_secret: str, description: str | None = None
    ) -> Endpoint:
        if not channel_secret:
            raise ValidationError("LINE Channel Secret required")
        for attempt in range(1, PATH_INSERT_ATTEMPTS + 1):
            path = generate_path(self._path_length)
            try:
                endpoint = await self._endpoints.create(
                    user_id=owner_id,
                    path=path,
                    line_channel_secret=channel_secret,
                    description=description or "",
                )
            except DuplicateError:
                logger.warning("endpoint_path_collision", attempt=attempt)
                continue
            logger.info("endpoint_created", endpoint_id=str(endpoint.id), user_id=str(owner_id))
            return endpoint
        raise InternalError("Failed to create endpoint")

    async def list_by_owner(self, owner_id: UUID) -> list[Endpoint]:
        return await self._endpoints.list_by_owner(owner_id)

    async def get_owned(self, endpoint_id: UUID, owner_id: UUID) -> Endpoint | None:
        """Resolve an endpoint only through the caller's own listing."""
        endpoints = await self._endpoints.list_by_owner(owner_id)
        return next((e for e in endpoints if e.id == endpoint_id), None)

    async def find_by_path(self, path: str) -> Endpoint | None:
        return await self._endpoints.find_active_by_path(path)

    async def delete(self, endpoint_id: UUID, owner_id: UUID) -> None:
        """Delete if owned; otherwise silently do nothing."""
        deleted = await self._endpoints.delete(endpoint_id, owner_id)
        if deleted:
            logger.info("endpoint_deleted", endpoint_id=str(endpoint_id))

    async def set_active(
        self, endpoint_id: UUID, owner_id: UUID, is_active: bool
    ) -> Endpoint | None:
        return await self._endpoints.set_active(endpoint_id, owner_id, is_active)
