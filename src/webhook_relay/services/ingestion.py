"""Webhook ingestion pipeline.

Per inbound call: resolve path -> resolve active endpoint -> require
signature -> verify signature -> skip verification pings -> persist.
Each failing step raises the matching error from the relay taxonomy; there
are no retries.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

import structlog

from webhook_relay.core.exceptions import (
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from webhook_relay.domain.models import WebhookLog
from webhook_relay.repositories import WebhookLogStore
from webhook_relay.services import signature
from webhook_relay.services.endpoints import EndpointRegistry
from webhook_relay.storage.payloads import PayloadStore

logger = structlog.get_logger(__name__)

# Same message for "never existed" and "deactivated".
ENDPOINT_NOT_FOUND = "Webhook endpoint not found"


@dataclass(frozen=True)
class InboundWebhook:
    """Framework-independent view of one inbound call."""

    path: str
    method: str
    raw_body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        return next((v for k, v in self.headers.items() if k.lower() == lowered), None)


class IngestOutcome(str, Enum):
    VERIFICATION = "verification"
    LOGGED = "logged"


@dataclass(frozen=True)
class IngestResult:
    outcome: IngestOutcome
    log: WebhookLog | None = None


def is_verification_ping(body: Any) -> bool:
    """LINE checks connectivity by sending a signed ``{"events": []}``."""
    if not isinstance(body, dict):
        return False
    events = body.get("events")
    return isinstance(events, list) and len(events) == 0


class WebhookIngestionService:
    def __init__(
        self,
        registry: EndpointRegistry,
        logs: WebhookLogStore,
        payloads: PayloadStore,
    ):
        self._registry = registry
        self._logs = logs
        self._payloads = payloads

    async def ingest(self, inbound: InboundWebhook) -> IngestResult:
        path = inbound.path.strip("/")
        if not path:
            raise NotFoundError("Webhook path not found")

        endpoint = await self._registry.find_by_path(path)
        if endpoint is None:
            logger.info("webhook_endpoint_unknown", webhook_path=path)
            raise NotFoundError(ENDPOINT_NOT_FOUND)

        signature_header = inbound.header(signature.SIGNATURE_HEADER)
        if not signature_header:
            raise ValidationError("Missing LINE signature")

        if not signature.verify(endpoint.line_channel_secret, signature_header, inbound.raw_body):
            logger.warning("webhook_signature_invalid", endpoint_id=str(endpoint.id))
            raise UnauthorizedError("Invalid LINE signature")

        try:
            body = json.loads(inbound.raw_body) if inbound.raw_body else None
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValidationError("Invalid JSON payload") from exc

        if is_verification_ping(body):
            logger.info("webhook_verification", endpoint_id=str(endpoint.id))
            return IngestResult(outcome=IngestOutcome.VERIFICATION)

        snapshot = {
            "method": inbound.method,
            "headers": dict(inbound.headers),
            "body": body,
            "query": dict(inbound.query),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        reference = await self._payloads.save(snapshot)
        try:
            log = await self._logs.create(
                endpoint_id=endpoint.id,
                method=inbound.method,
                payload=reference.inline,
                log_key=reference.key,
            )
        except StorageError:
            logger.error(
                "webhook_log_write_failed",
                endpoint_id=str(endpoint.id),
                log_key=reference.key,
                exc_info=True,
            )
            raise
        logger.info("webhook_logged", endpoint_id=str(endpoint.id), log_id=str(log.id))
        return IngestResult(outcome=IngestOutcome.LOGGED, log=log)
