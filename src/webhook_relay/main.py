"""aiohttp application entrypoint."""
from __future__ import annotations

from aiohttp import web
from aiohttp_cors import ResourceOptions, setup as cors_setup

from webhook_relay.api.router import setup_routes
from webhook_relay.db.migrations import create_migration_runner
from webhook_relay.logging_config import configure_logging
from webhook_relay.middleware.errors import error_middleware
from webhook_relay.middleware.trace import create_trace_middleware
from webhook_relay.services.dependencies import SESSIONS_KEY, SETTINGS_KEY
from webhook_relay.services.sessions import SessionManager
from webhook_relay.settings import Settings, get_settings
from webhook_relay.storage.backends import STORAGE_KEY, StorageBackends, create_storage_hooks
from webhook_relay.workers import create_worker

_ALLOWED_HEADERS = (
    "Accept",
    "Content-Type",
    "X-Trace-Id",
    "X-Request-Id",
)

_EXPOSED_HEADERS = (
    "X-Trace-Id",
    "X-Request-Id",
)


def create_app(settings: Settings, *, storage: StorageBackends | None = None) -> web.Application:
    """Create the aiohttp application.

    When ``storage`` is given the app uses it as-is and does not own its
    lifecycle; otherwise connections are opened on startup from settings.
    """
    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[SESSIONS_KEY] = SessionManager(settings)

    # Trace middleware first so it sees the response the error middleware builds
    app.middlewares.append(create_trace_middleware(settings.app_name))
    app.middlewares.append(error_middleware)

    cors = cors_setup(
        app,
        defaults={
            origin: ResourceOptions(
                allow_credentials=True,
                expose_headers=_EXPOSED_HEADERS,
                allow_headers=_ALLOWED_HEADERS,
                allow_methods=("GET", "POST", "PATCH", "DELETE", "OPTIONS"),
            )
            for origin in settings.cors_allowed_origins
        },
    )

    async def healthcheck(_request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "service": settings.app_name, "env": settings.env})

    app.router.add_get("/health", healthcheck)
    setup_routes(app)

    if storage is not None:
        app[STORAGE_KEY] = storage
    else:
        if settings.storage_backend == "postgres":
            app.on_startup.append(create_migration_runner(settings))
        init_storage, close_storage = create_storage_hooks(settings)
        app.on_startup.append(init_storage)
        app.on_cleanup.append(close_storage)

    worker = create_worker(settings)
    if worker is not None:
        app.on_startup.append(worker.start)
        app.on_cleanup.insert(0, worker.stop)

    for route in list(app.router.routes()):
        cors.add(route)

    return app


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    web.run_app(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
