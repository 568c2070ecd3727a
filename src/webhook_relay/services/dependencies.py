"""Shared dependency providers for aiohttp handlers."""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from aiohttp import web

from webhook_relay.core.exceptions import UnauthorizedError
from webhook_relay.domain.models import SessionClaims
from webhook_relay.services import (
    AuthService,
    EndpointRegistry,
    LogService,
    SessionManager,
    WebhookIngestionService,
)
from webhook_relay.settings import Settings
from webhook_relay.storage.backends import get_storage

TService = TypeVar("TService")

SETTINGS_KEY = "webhook_relay.settings"
SESSIONS_KEY = "webhook_relay.sessions"

_AUTH_SERVICE_KEY = "auth_service"
_REGISTRY_KEY = "endpoint_registry"
_INGESTION_SERVICE_KEY = "ingestion_service"
_LOG_SERVICE_KEY = "log_service"
_CURRENT_USER_KEY = "current_user"


def get_settings(request: web.Request) -> Settings:
    return request.app[SETTINGS_KEY]


def get_session_manager(request: web.Request) -> SessionManager:
    return request.app[SESSIONS_KEY]


async def require_current_user(request: web.Request) -> SessionClaims:
    """Validate the session cookie and cache the claims on the request."""
    cached = request.get(_CURRENT_USER_KEY)
    if cached is not None:
        return cached
    sessions = get_session_manager(request)
    token = request.cookies.get(sessions.cookie_name)
    if not token:
        raise UnauthorizedError("Not authenticated")
    claims = sessions.validate(token)
    if claims is None:
        raise UnauthorizedError("Invalid token")
    request[_CURRENT_USER_KEY] = claims
    return claims


async def _get_or_create_service(
    request: web.Request,
    cache_key: str,
    builder: Callable[[web.Request], Awaitable[TService]],
) -> TService:
    service = request.get(cache_key)
    if service is None:
        service = await builder(request)
        request[cache_key] = service
    return service


async def get_auth_service(request: web.Request) -> AuthService:
    async def builder(req: web.Request) -> AuthService:
        storage = get_storage(req.app)
        return AuthService(storage.users, bcrypt_rounds=get_settings(req).bcrypt_rounds)

    return await _get_or_create_service(request, _AUTH_SERVICE_KEY, builder)


async def get_endpoint_registry(request: web.Request) -> EndpointRegistry:
    async def builder(req: web.Request) -> EndpointRegistry:
        storage = get_storage(req.app)
        return EndpointRegistry(
            storage.endpoints, path_length=get_settings(req).endpoint_path_length
        )

    return await _get_or_create_service(request, _REGISTRY_KEY, builder)


async def get_ingestion_service(request: web.Request) -> WebhookIngestionService:
    async def builder(req: web.Request) -> WebhookIngestionService:
        storage = get_storage(req.app)
        registry = await get_endpoint_registry(req)
        return WebhookIngestionService(registry, storage.logs, storage.payloads)

    return await _get_or_create_service(request, _INGESTION_SERVICE_KEY, builder)


async def get_log_service(request: web.Request) -> LogService:
    async def builder(req: web.Request) -> LogService:
        storage = get_storage(req.app)
        registry = await get_endpoint_registry(req)
        return LogService(
            registry,
            storage.logs,
            storage.payloads,
            page_size=get_settings(req).log_page_size,
        )

    return await _get_or_create_service(request, _LOG_SERVICE_KEY, builder)
