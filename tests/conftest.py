import os

# Module-level settings are built on import of delivery_api.main
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-signing-session-tokens")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid

import httpx
import jwt
import pytest
import pytest_asyncio
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from delivery_api.main import create_app
from delivery_api.models import document_models
from tests.factories import TEST_SECRET, make_settings


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with Beanie bound to it."""
    client = AsyncMongoMockClient()
    database = client[f"test_{uuid.uuid4().hex}"]
    await init_beanie(database=database, document_models=document_models)
    yield database


@pytest.fixture
def settings():
    return make_settings()


@pytest_asyncio.fixture
async def make_client(db):
    """Factory for API clients on apps built with custom settings."""
    clients = []

    async def factory(**overrides) -> httpx.AsyncClient:
        app = create_app(make_settings(**overrides), init_database=False)
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def client(make_client):
    return await make_client()


@pytest.fixture
def decode_token():
    def decode(token: str) -> dict:
        return jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    return decode
