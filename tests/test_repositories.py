"""asyncpg repository tests with a mocked pool (no database required)."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from webhook_relay.core.exceptions import DuplicateError, StorageError
from webhook_relay.db.migrations import load_migrations
from webhook_relay.repositories import EndpointRepository, UserRepository, WebhookLogRepository


def _pool_with(conn: AsyncMock) -> MagicMock:
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool


def _endpoint_row(**overrides):
    row = {
        "id": uuid4(),
        "user_id": uuid4(),
        "path": "abcdefghij",
        "line_channel_secret": "topsecret",
        "description": "",
        "is_active": True,
        "created_at": datetime.now(timezone.utc),
    }
    row.update(overrides)
    return row


def _log_row(**overrides):
    row = {
        "id": uuid4(),
        "endpoint_id": uuid4(),
        "method": "POST",
        "received_at": datetime.now(timezone.utc),
        "payload": None,
        "log_key": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_unique_violation_maps_to_duplicate_error():
    violation = asyncpg.exceptions.UniqueViolationError("duplicate key")
    violation.constraint_name = "webhook_endpoints_path_key"
    conn = AsyncMock()
    conn.fetchrow.side_effect = violation

    repo = EndpointRepository(_pool_with(conn))
    with pytest.raises(DuplicateError) as exc_info:
        await repo.create(
            user_id=uuid4(), path="abcdefghij", line_channel_secret="s", description=""
        )
    assert exc_info.value.field == "webhook_endpoints_path_key"


@pytest.mark.asyncio
async def test_driver_failure_maps_to_storage_error():
    conn = AsyncMock()
    conn.fetchrow.side_effect = asyncpg.exceptions.PostgresConnectionError("gone")

    repo = UserRepository(_pool_with(conn))
    with pytest.raises(StorageError):
        await repo.get_by_username("alice")


@pytest.mark.asyncio
async def test_pool_acquire_failure_maps_to_storage_error():
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.side_effect = ConnectionRefusedError()

    with pytest.raises(StorageError):
        await UserRepository(pool).get_by_username("alice")


@pytest.mark.asyncio
async def test_find_active_by_path_filters_inactive_in_sql():
    conn = AsyncMock()
    conn.fetchrow.return_value = None

    assert await EndpointRepository(_pool_with(conn)).find_active_by_path("abc") is None
    query, path = conn.fetchrow.call_args.args
    assert "is_active = true" in query
    assert path == "abc"


@pytest.mark.asyncio
async def test_endpoint_mutations_are_owner_scoped():
    conn = AsyncMock()
    conn.execute.return_value = "DELETE 0"
    conn.fetchrow.return_value = None
    repo = EndpointRepository(_pool_with(conn))
    endpoint_id, owner_id = uuid4(), uuid4()

    assert await repo.delete(endpoint_id, owner_id) is False
    query, *args = conn.execute.call_args.args
    assert "user_id = $2" in query
    assert args == [endpoint_id, owner_id]

    conn.execute.return_value = "DELETE 1"
    assert await repo.delete(endpoint_id, owner_id) is True

    assert await repo.set_active(endpoint_id, owner_id, False) is None
    query, *args = conn.fetchrow.call_args.args
    assert "user_id = $2" in query
    assert args == [endpoint_id, owner_id, False]


@pytest.mark.asyncio
async def test_list_by_owner_orders_newest_first():
    row = _endpoint_row()
    conn = AsyncMock()
    conn.fetch.return_value = [row]

    endpoints = await EndpointRepository(_pool_with(conn)).list_by_owner(row["user_id"])
    assert [e.id for e in endpoints] == [row["id"]]
    assert "ORDER BY created_at DESC" in conn.fetch.call_args.args[0]


@pytest.mark.asyncio
async def test_log_create_serializes_inline_payload():
    snapshot = {"method": "POST", "body": {"events": [{"type": "message"}]}}
    conn = AsyncMock()
    conn.fetchrow.return_value = _log_row(payload=json.dumps(snapshot))
    endpoint_id = uuid4()

    log = await WebhookLogRepository(_pool_with(conn)).create(
        endpoint_id=endpoint_id, method="POST", payload=snapshot, log_key=None
    )
    _, *args = conn.fetchrow.call_args.args
    assert args[0] == endpoint_id
    assert json.loads(args[2]) == snapshot
    assert args[3] is None
    assert log.payload == snapshot
    assert log.reference.inline == snapshot


@pytest.mark.asyncio
async def test_log_payload_with_nul_character_round_trips():
    snapshot = {"method": "POST", "body": {"events": [{"type": "message", "text": "a\x00b"}]}}
    conn = AsyncMock()

    async def echo_row(query, endpoint_id, method, payload, log_key):
        return _log_row(endpoint_id=endpoint_id, method=method, payload=payload, log_key=log_key)

    conn.fetchrow.side_effect = echo_row

    log = await WebhookLogRepository(_pool_with(conn)).create(
        endpoint_id=uuid4(), method="POST", payload=snapshot, log_key=None
    )
    query, *args = conn.fetchrow.call_args.args
    assert "jsonb" not in query
    assert "\\u0000" in args[2]
    assert log.payload == snapshot


def test_log_payload_column_is_json():
    [*_, latest] = load_migrations()
    assert "payload TYPE json " in latest.sql


@pytest.mark.asyncio
async def test_log_create_with_cache_key_stores_no_payload():
    conn = AsyncMock()
    conn.fetchrow.return_value = _log_row(log_key="webhook:abc")

    log = await WebhookLogRepository(_pool_with(conn)).create(
        endpoint_id=uuid4(), method="POST", payload=None, log_key="webhook:abc"
    )
    _, *args = conn.fetchrow.call_args.args
    assert args[2] is None
    assert log.reference.key == "webhook:abc"


@pytest.mark.asyncio
async def test_list_by_endpoint_applies_limit():
    conn = AsyncMock()
    conn.fetch.return_value = [_log_row(), _log_row()]
    endpoint_id = uuid4()

    logs = await WebhookLogRepository(_pool_with(conn)).list_by_endpoint(endpoint_id, limit=50)
    assert len(logs) == 2
    query, *args = conn.fetch.call_args.args
    assert "ORDER BY received_at DESC" in query
    assert args == [endpoint_id, 50]


@pytest.mark.asyncio
async def test_delete_older_than_parses_command_tag():
    conn = AsyncMock()
    conn.execute.return_value = "DELETE 12"
    cutoff = datetime.now(timezone.utc)

    assert await WebhookLogRepository(_pool_with(conn)).delete_older_than(cutoff) == 12
    assert conn.execute.call_args.args[1] == cutoff
