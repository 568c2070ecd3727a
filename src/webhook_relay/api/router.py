"""API router composition for aiohttp."""
from __future__ import annotations

from aiohttp import web

from webhook_relay.api.routes import auth, endpoints, logs, webhook

ROUTE_MODULES = [
    auth,
    endpoints,
    logs,
    webhook,
]

# The dashboard calls everything under /api; platforms call /webhook/... directly.
ROUTE_PREFIXES = ("", "/api")


def setup_routes(app: web.Application) -> None:
    """Attach domain routes to the aiohttp application under every prefix."""
    for prefix in ROUTE_PREFIXES:
        for module in ROUTE_MODULES:
            for route in module.routes:
                assert isinstance(route, web.RouteDef)
                app.router.add_route(route.method, prefix + route.path, route.handler, **route.kwargs)
