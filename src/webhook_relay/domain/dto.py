"""Data Transfer Objects."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from webhook_relay.domain.models import Endpoint, User, WebhookLog


class CredentialsRequest(BaseModel):
    """Login / registration request."""

    username: str = ""
    password: str = ""


class UserResponse(BaseModel):
    id: str
    username: str

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        return cls(id=str(user.id), username=user.username)


class EndpointCreateRequest(BaseModel):
    """Endpoint creation request, in the dashboard's camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    line_channel_secret: str = Field(default="", alias="lineChannelSecret")
    description: str | None = Field(default=None, max_length=1000)


class EndpointUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    is_active: bool = Field(alias="isActive")


class EndpointResponse(BaseModel):
    """Endpoint as exposed over the API; the channel secret is never included."""

    id: str
    user_id: str
    path: str
    description: str
    is_active: bool
    created_at: str

    @classmethod
    def from_endpoint(cls, endpoint: "Endpoint") -> "EndpointResponse":
        return cls(
            id=str(endpoint.id),
            user_id=str(endpoint.user_id),
            path=endpoint.path,
            description=endpoint.description,
            is_active=endpoint.is_active,
            created_at=endpoint.created_at.isoformat(),
        )


class LogEntryResponse(BaseModel):
    id: str
    method: str
    received_at: str
    data: dict[str, Any] | None = None

    @classmethod
    def from_log(cls, log: "WebhookLog", data: dict[str, Any] | None) -> "LogEntryResponse":
        return cls(
            id=str(log.id),
            method=log.method,
            received_at=log.received_at.isoformat(),
            data=data,
        )
