"""Repository package exports."""

from webhook_relay.repositories.endpoints import EndpointRepository
from webhook_relay.repositories.inmemory import (
    InMemoryDatabase,
    InMemoryEndpointRepository,
    InMemoryUserRepository,
    InMemoryWebhookLogRepository,
)
from webhook_relay.repositories.interfaces import EndpointStore, UserStore, WebhookLogStore
from webhook_relay.repositories.logs import WebhookLogRepository
from webhook_relay.repositories.users import UserRepository

__all__ = [
    "EndpointRepository",
    "EndpointStore",
    "InMemoryDatabase",
    "InMemoryEndpointRepository",
    "InMemoryUserRepository",
    "InMemoryWebhookLogRepository",
    "UserRepository",
    "UserStore",
    "WebhookLogRepository",
    "WebhookLogStore",
]
