"""Inbound webhook ingress."""
from __future__ import annotations

from aiohttp import web

from webhook_relay.services.dependencies import get_ingestion_service
from webhook_relay.services.ingestion import InboundWebhook, IngestOutcome

routes = web.RouteTableDef()


@routes.post("/webhook/{path:.*}")
async def receive_webhook(request: web.Request):
    # Read raw bytes first: the signature covers the body exactly as sent.
    raw_body = await request.read()
    inbound = InboundWebhook(
        path=request.match_info.get("path", ""),
        method=request.method,
        raw_body=raw_body,
        headers=dict(request.headers),
        query=dict(request.rel_url.query),
    )
    service = await get_ingestion_service(request)
    result = await service.ingest(inbound)
    if result.outcome is IngestOutcome.VERIFICATION:
        return web.json_response({"message": "Verification successful"})
    return web.json_response({"message": "Webhook received"})
