"""Inbound webhook API tests."""
import asyncio
import json

import pytest

from webhook_relay.main import create_app
from webhook_relay.services.signature import sign
from webhook_relay.storage.backends import build_memory_storage

from tests.utils import create_endpoint, register, signed_body


async def _logs(client, endpoint_id):
    response = await client.get("/logs", params={"endpointId": endpoint_id})
    assert response.status == 200
    return (await response.json())["logs"]


@pytest.mark.asyncio
async def test_end_to_end_flow(service_client):
    """Register, create an endpoint, verify with LINE, then receive an event."""
    response = await register(service_client, "alice", "secret1")
    assert response.status == 201
    duplicate = await register(service_client, "alice", "secret1")
    assert duplicate.status == 400

    endpoint = await create_endpoint(service_client, secret="topsecret")
    path = endpoint["path"]
    assert len(path) >= 10

    body, headers = signed_body("topsecret", {"events": []})
    response = await service_client.post(f"/webhook/{path}", data=body, headers=headers)
    assert response.status == 200
    assert (await response.json()) == {"message": "Verification successful"}
    assert await _logs(service_client, endpoint["id"]) == []

    event = {"destination": "U1", "events": [{"type": "message"}]}
    body, headers = signed_body("topsecret", event)
    response = await service_client.post(f"/webhook/{path}", data=body, headers=headers)
    assert response.status == 200
    assert (await response.json()) == {"message": "Webhook received"}

    logs = await _logs(service_client, endpoint["id"])
    assert len(logs) == 1
    assert logs[0]["method"] == "POST"
    assert logs[0]["received_at"]
    assert logs[0]["data"]["body"]["events"] == [{"type": "message"}]
    assert logs[0]["data"]["method"] == "POST"
    assert logs[0]["data"]["timestamp"]


@pytest.mark.asyncio
async def test_snapshot_keeps_headers_and_query(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    body, headers = signed_body("topsecret", {"events": [{"type": "follow"}]})
    headers["X-Custom"] = "kept"
    response = await service_client.post(
        f"/webhook/{endpoint['path']}?source=line", data=body, headers=headers
    )
    assert response.status == 200

    [log] = await _logs(service_client, endpoint["id"])
    assert log["data"]["query"] == {"source": "line"}
    assert log["data"]["headers"]["X-Custom"] == "kept"


@pytest.mark.asyncio
async def test_signature_covers_raw_bytes(service_client):
    """Whitespace differences matter: the body is verified as sent."""
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    raw = b'{ "events" : [ {"type": "message"} ] }'
    _, headers = signed_body("topsecret", json.loads(raw))
    response = await service_client.post(f"/webhook/{endpoint['path']}", data=raw, headers=headers)
    assert response.status == 401

    headers["X-Line-Signature"] = sign("topsecret", raw)
    response = await service_client.post(f"/webhook/{endpoint['path']}", data=raw, headers=headers)
    assert response.status == 200


@pytest.mark.asyncio
async def test_missing_signature(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    response = await service_client.post(
        f"/webhook/{endpoint['path']}", json={"events": [{"type": "message"}]}
    )
    assert response.status == 400
    assert (await response.json()) == {"error": "Missing LINE signature"}
    assert await _logs(service_client, endpoint["id"]) == []


@pytest.mark.asyncio
async def test_invalid_signature(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    body, headers = signed_body("wrong-secret", {"events": [{"type": "message"}]})
    response = await service_client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 401
    assert (await response.json()) == {"error": "Invalid LINE signature"}
    assert await _logs(service_client, endpoint["id"]) == []


@pytest.mark.asyncio
async def test_undecodable_signature_header_is_unauthorized(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    body = json.dumps({"events": [{"type": "message"}]}).encode()
    request = (
        f"POST /webhook/{endpoint['path']} HTTP/1.1\r\n"
        f"Host: {service_client.host}:{service_client.port}\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {len(body)}\r\n"
        "Connection: close\r\n"
    ).encode("ascii") + b"X-Line-Signature: \xff\xfe\r\n\r\n" + body

    reader, writer = await asyncio.open_connection(service_client.host, service_client.port)
    try:
        writer.write(request)
        await writer.drain()
        status_line = await reader.readline()
    finally:
        writer.close()
        await writer.wait_closed()

    assert status_line.split()[1] == b"401"
    assert await _logs(service_client, endpoint["id"]) == []


@pytest.mark.asyncio
async def test_invalid_signature_on_verification_ping(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    body, headers = signed_body("wrong-secret", {"events": []})
    response = await service_client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 401


@pytest.mark.asyncio
async def test_unknown_path(service_client):
    body, headers = signed_body("topsecret", {"events": []})
    response = await service_client.post("/webhook/doesnotexist", data=body, headers=headers)
    assert response.status == 404
    assert (await response.json()) == {"error": "Webhook endpoint not found"}


@pytest.mark.asyncio
async def test_empty_path(service_client):
    body, headers = signed_body("topsecret", {"events": []})
    response = await service_client.post("/webhook/", data=body, headers=headers)
    assert response.status == 404
    assert (await response.json()) == {"error": "Webhook path not found"}


@pytest.mark.asyncio
async def test_signed_invalid_json(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    raw = b"{not json"
    response = await service_client.post(
        f"/webhook/{endpoint['path']}",
        data=raw,
        headers={"X-Line-Signature": sign("topsecret", raw)},
    )
    assert response.status == 400
    assert (await response.json()) == {"error": "Invalid JSON payload"}


@pytest.mark.asyncio
async def test_webhook_needs_no_session(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)
    service_client.session.cookie_jar.clear()

    body, headers = signed_body("topsecret", {"events": [{"type": "message"}]})
    response = await service_client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 200


@pytest.mark.asyncio
async def test_webhook_under_api_prefix(service_client):
    await register(service_client)
    endpoint = await create_endpoint(service_client)

    body, headers = signed_body("topsecret", {"events": [{"type": "message"}]})
    response = await service_client.post(
        f"/api/webhook/{endpoint['path']}", data=body, headers=headers
    )
    assert response.status == 200
    assert len(await _logs(service_client, endpoint["id"])) == 1


@pytest.mark.asyncio
async def test_cache_mode_stores_key_on_log_row(cache_client, cache_storage, fake_redis):
    await register(cache_client)
    endpoint = await create_endpoint(cache_client)

    body, headers = signed_body("topsecret", {"events": [{"type": "message"}]})
    response = await cache_client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 200

    [key] = list(fake_redis.values)
    assert key.startswith("webhook:")
    assert fake_redis.ttls[key] == 604800

    [log] = await _logs(cache_client, endpoint["id"])
    assert log["data"]["body"]["events"] == [{"type": "message"}]


@pytest.mark.asyncio
async def test_cache_mode_without_redis_fails_generically(aiohttp_client, cache_settings):
    client = await aiohttp_client(
        create_app(cache_settings, storage=build_memory_storage(cache_settings))
    )
    await register(client)
    endpoint = await create_endpoint(client)

    body, headers = signed_body("topsecret", {"events": [{"type": "message"}]})
    response = await client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 500
    assert (await response.json()) == {"error": "Internal server error"}

    # the verification ping never touches the payload store
    body, headers = signed_body("topsecret", {"events": []})
    response = await client.post(f"/webhook/{endpoint['path']}", data=body, headers=headers)
    assert response.status == 200
