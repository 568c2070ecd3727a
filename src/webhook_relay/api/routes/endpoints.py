"""Webhook endpoint CRUD for the signed-in user."""
from __future__ import annotations

from aiohttp import web

from webhook_relay.api.utils import parse_model, parse_uuid, read_json
from webhook_relay.core.exceptions import NotFoundError, ValidationError
from webhook_relay.domain.dto import EndpointCreateRequest, EndpointResponse, EndpointUpdateRequest
from webhook_relay.services.dependencies import get_endpoint_registry, require_current_user

routes = web.RouteTableDef()


@routes.get("/endpoints")
async def list_endpoints(request: web.Request):
    user = await require_current_user(request)
    registry = await get_endpoint_registry(request)
    endpoints = await registry.list_by_owner(user.id)
    return web.json_response(
        {"endpoints": [EndpointResponse.from_endpoint(e).model_dump() for e in endpoints]}
    )


@routes.post("/endpoints")
async def create_endpoint(request: web.Request):
    user = await require_current_user(request)
    dto = parse_model(EndpointCreateRequest, await read_json(request))
    registry = await get_endpoint_registry(request)
    endpoint = await registry.create(user.id, dto.line_channel_secret, dto.description)
    return web.json_response(
        {"endpoint": EndpointResponse.from_endpoint(endpoint).model_dump()},
        status=201,
    )


@routes.patch("/endpoints")
async def update_endpoint(request: web.Request):
    user = await require_current_user(request)
    dto = parse_model(EndpointUpdateRequest, await read_json(request))
    registry = await get_endpoint_registry(request)
    endpoint = await registry.set_active(dto.id, user.id, dto.is_active)
    if endpoint is None:
        raise NotFoundError("Endpoint not found")
    return web.json_response({"endpoint": EndpointResponse.from_endpoint(endpoint).model_dump()})


@routes.delete("/endpoints")
async def delete_endpoint(request: web.Request):
    user = await require_current_user(request)
    body = await read_json(request)
    if not body.get("id"):
        raise ValidationError("Endpoint ID required")
    endpoint_id = parse_uuid(body["id"], "endpoint ID")
    registry = await get_endpoint_registry(request)
    await registry.delete(endpoint_id, user.id)
    return web.json_response({"message": "Endpoint deleted"})
