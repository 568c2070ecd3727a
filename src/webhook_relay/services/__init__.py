"""Service layer exports."""

from webhook_relay.services.auth import AuthService
from webhook_relay.services.endpoints import EndpointRegistry
from webhook_relay.services.ingestion import WebhookIngestionService
from webhook_relay.services.logs import LogService
from webhook_relay.services.sessions import SessionManager

__all__ = [
    "AuthService",
    "EndpointRegistry",
    "LogService",
    "SessionManager",
    "WebhookIngestionService",
]
