"""Helper utilities for API handlers."""
from __future__ import annotations

from typing import Any, TypeVar
from uuid import UUID

from aiohttp import web
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from webhook_relay.core.exceptions import ValidationError

TModel = TypeVar("TModel", bound=BaseModel)


async def read_json(request: web.Request) -> dict[str, Any]:
    """Parse a JSON object body; an empty body reads as ``{}``."""
    if not request.can_read_body:
        return {}
    try:
        data = await request.json()
    except ValueError as exc:
        raise ValidationError("Invalid JSON payload") from exc
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def parse_model(model: type[TModel], data: dict[str, Any]) -> TModel:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid {location}: {first['msg']}") from exc


def parse_uuid(value: Any, label: str) -> UUID:
    try:
        return UUID(value if isinstance(value, str) else str(value))
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"Invalid {label}") from exc
