"""Log retrieval."""
from __future__ import annotations

from aiohttp import web

from webhook_relay.api.utils import parse_uuid
from webhook_relay.core.exceptions import ValidationError
from webhook_relay.services.dependencies import get_log_service, require_current_user

routes = web.RouteTableDef()


@routes.get("/logs")
async def list_logs(request: web.Request):
    user = await require_current_user(request)
    raw_endpoint_id = request.rel_url.query.get("endpointId")
    if not raw_endpoint_id:
        raise ValidationError("Endpoint ID required")
    endpoint_id = parse_uuid(raw_endpoint_id, "endpoint ID")
    service = await get_log_service(request)
    entries = await service.list_logs(endpoint_id, user.id)
    return web.json_response({"logs": [entry.model_dump() for entry in entries]})
