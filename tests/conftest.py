"""Pytest configuration and fixtures."""
import pytest

from webhook_relay.main import create_app
from webhook_relay.settings import Settings
from webhook_relay.storage.backends import build_memory_storage

from tests.utils import FakeRedis

TEST_JWT_SECRET = "test-only-jwt-secret-0123456789abcdef"


def make_settings(**overrides) -> Settings:
    values = {
        "storage_backend": "memory",
        "jwt_secret": TEST_JWT_SECRET,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def storage(settings):
    return build_memory_storage(settings)


@pytest.fixture
async def service_client(aiohttp_client, settings, storage):
    """Client for the full app backed by in-memory storage, inline payloads."""
    app = create_app(settings, storage=storage)
    return await aiohttp_client(app)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache_settings():
    return make_settings(payload_storage="cache", redis_url="redis://cache.invalid:6379/0")


@pytest.fixture
def cache_storage(cache_settings, fake_redis):
    return build_memory_storage(cache_settings, redis_client=fake_redis)


@pytest.fixture
async def cache_client(aiohttp_client, cache_settings, cache_storage):
    """Client whose payloads live in the (fake) Redis cache."""
    app = create_app(cache_settings, storage=cache_storage)
    return await aiohttp_client(app)
