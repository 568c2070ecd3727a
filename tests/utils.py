from __future__ import annotations

import json
from typing import Any

from webhook_relay.services.signature import sign


class FakeRedis:
    """Just enough of ``redis.asyncio.Redis`` for the cache payload store."""

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.ttls: dict[str, int | None] = {}

    async def set(self, name: str, value: str, ex: int | None = None) -> bool:
        self.values[name] = value.encode("utf-8")
        self.ttls[name] = ex
        return True

    async def get(self, name: str) -> bytes | None:
        return self.values.get(name)

    def expire(self, name: str) -> None:
        self.values.pop(name, None)

    def expire_all(self) -> None:
        self.values.clear()


def signed_body(secret: str, payload: Any) -> tuple[bytes, dict[str, str]]:
    """Serialize ``payload`` once and sign exactly those bytes."""
    body = json.dumps(payload).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "X-Line-Signature": sign(secret, body),
    }
    return body, headers


async def register(client, username: str = "alice", password: str = "secret1"):
    return await client.post("/register", json={"username": username, "password": password})


async def login(client, username: str = "alice", password: str = "secret1"):
    return await client.post("/login", json={"username": username, "password": password})


async def create_endpoint(client, secret: str = "topsecret", description: str = "") -> dict:
    resp = await client.post(
        "/endpoints",
        json={"lineChannelSecret": secret, "description": description},
    )
    assert resp.status == 201
    return (await resp.json())["endpoint"]
