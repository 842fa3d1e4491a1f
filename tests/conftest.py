"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment before importing app
os.environ["TESTING"] = "1"
os.environ["MOCK_OAUTH_ENABLED"] = "1"
os.environ["FITAUTH_ENV_FILE"] = "/nonexistent/fitauth.env"
os.environ["API_URL"] = "http://test"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["GOOGLE_AUTHORIZATION_ENDPOINT"] = "https://accounts.example.test/o/oauth2/v2/auth"
os.environ["GOOGLE_TOKEN_ENDPOINT"] = "https://oauth2.example.test/token"
os.environ["OAUTH_REDIRECT_URI"] = "http://test/"
os.environ["OAUTH_SCOPE"] = "openid email https://www.googleapis.com/auth/fitness.activity.read"

from fitauth.main import app  # noqa: E402
from fitauth.metrics import reset_metrics  # noqa: E402

TOKEN_ENDPOINT = os.environ["GOOGLE_TOKEN_ENDPOINT"]
CLIENT_SECRET = os.environ["GOOGLE_CLIENT_SECRET"]


class FakePipeline:
    """Buffered commands executed against a FakeValkey."""

    def __init__(self, store: "FakeValkey"):
        self._store = store
        self._commands: list[tuple[str, str]] = []

    def get(self, key: str) -> "FakePipeline":
        self._commands.append(("get", key))
        return self

    def delete(self, key: str) -> "FakePipeline":
        self._commands.append(("delete", key))
        return self

    async def execute(self) -> list:
        results = [await getattr(self._store, name)(key) for name, key in self._commands]
        self._commands = []
        return results


class FakeValkey:
    """In-memory stand-in for the subset of redis.asyncio.Redis we use."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


@pytest.fixture
def fake_valkey():
    """Patch the Valkey client with an in-memory store."""
    store = FakeValkey()

    async def mock_get_valkey():
        return store

    with patch("fitauth.valkey.get_valkey", mock_get_valkey):
        yield store


@pytest.fixture(autouse=True)
def clean_app_state():
    reset_metrics()
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(fake_valkey: FakeValkey) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client against the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
