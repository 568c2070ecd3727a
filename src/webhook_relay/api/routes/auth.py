"""Authentication routes: register, login, logout, me."""
from __future__ import annotations

from aiohttp import web

from webhook_relay.api.utils import parse_model, read_json
from webhook_relay.domain.dto import CredentialsRequest, UserResponse
from webhook_relay.services.dependencies import (
    get_auth_service,
    get_session_manager,
    require_current_user,
)

routes = web.RouteTableDef()


@routes.post("/register")
async def register(request: web.Request):
    req = parse_model(CredentialsRequest, await read_json(request))
    auth_service = await get_auth_service(request)
    user = await auth_service.register(req.username, req.password)

    sessions = get_session_manager(request)
    response = web.json_response(
        {"user": UserResponse.from_user(user).model_dump()},
        status=201,
    )
    sessions.set_cookie(response, sessions.issue(user))
    return response


@routes.post("/login")
async def login(request: web.Request):
    req = parse_model(CredentialsRequest, await read_json(request))
    auth_service = await get_auth_service(request)
    user = await auth_service.login(req.username, req.password)

    sessions = get_session_manager(request)
    response = web.json_response({"user": UserResponse.from_user(user).model_dump()})
    sessions.set_cookie(response, sessions.issue(user))
    return response


@routes.post("/logout")
async def logout(request: web.Request):
    """Clear the session cookie; the token itself stays valid until expiry."""
    response = web.json_response({"message": "Logged out"})
    get_session_manager(request).clear_cookie(response)
    return response


@routes.get("/me")
async def me(request: web.Request):
    claims = await require_current_user(request)
    return web.json_response({"user": {"id": str(claims.id), "username": claims.username}})
