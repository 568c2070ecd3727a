"""Pydantic models representing key domain entities."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    id: UUID
    username: str
    password_hash: str
    created_at: datetime


class Endpoint(BaseModel):
    id: UUID
    user_id: UUID
    path: str
    line_channel_secret: str
    description: str = ""
    is_active: bool = True
    created_at: datetime


class PayloadReference(BaseModel):
    """Pointer from a log row to its captured request.

    Exactly one of ``inline`` / ``key`` is set by the store that produced it.
    """

    inline: dict[str, Any] | None = None
    key: str | None = None


class WebhookLog(BaseModel):
    id: UUID
    endpoint_id: UUID
    method: str
    received_at: datetime
    payload: dict[str, Any] | None = None
    log_key: str | None = None

    @property
    def reference(self) -> PayloadReference:
        return PayloadReference(inline=self.payload, key=self.log_key)


class SessionClaims(BaseModel):
    id: UUID
    username: str
