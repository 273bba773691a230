"""
Shared pytest fixtures for signin-service tests.

- FakeClock + InMemorySessionStore for expiry without sleeping
- FakeOAuth standing in for the Authlib Google client
- httpx AsyncClient bound to the app over ASGI
"""

import os
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
from authlib.integrations.starlette_client import OAuthError
from starlette.responses import RedirectResponse

# settings are read at import time
os.environ.setdefault("SIGNIN_SESSION_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("SIGNIN_GOOGLE_CLIENT_ID", "test-client-id")

from signin.errors import StoreUnavailable  # noqa: E402
from signin.main import create_app  # noqa: E402
from signin.session_store import InMemorySessionStore  # noqa: E402
from signin.sessions import SessionManager  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FailingStore(InMemorySessionStore):
    """Store whose every round trip fails like an unreachable Redis."""

    async def set(self, key, value, ttl_seconds):
        raise StoreUnavailable("redis SET failed: connection refused")

    async def get(self, key):
        raise StoreUnavailable("redis GET failed: connection refused")

    async def delete(self, key):
        raise StoreUnavailable("redis DEL failed: connection refused")

    async def ping(self):
        raise StoreUnavailable("redis PING failed: connection refused")


class FakeGoogleClient:
    """Mimics the slice of authlib's StarletteOAuth2App the routes use."""

    def __init__(self) -> None:
        self.userinfo: Dict[str, Any] = {
            "email": "a@x.com",
            "name": "A",
            "picture": "https://pics.example/a.png",
        }
        self.userinfo_status = 200
        self.exchange_error: Optional[Exception] = None
        self.redirect_uris = []

    async def authorize_redirect(self, request, redirect_uri=None, **kwargs):
        self.redirect_uris.append(redirect_uri)
        return RedirectResponse(
            f"https://accounts.example/o/oauth2/auth?redirect_uri={redirect_uri}",
            status_code=302,
        )

    async def authorize_access_token(self, request, **kwargs):
        if self.exchange_error is not None:
            raise self.exchange_error
        return {"access_token": "access-123", "token_type": "Bearer"}

    async def get(self, url, token=None, **kwargs):
        req = httpx.Request("GET", f"https://www.googleapis.com/{url}")
        return httpx.Response(self.userinfo_status, json=self.userinfo, request=req)


class FakeOAuth:
    def __init__(self) -> None:
        self.google = FakeGoogleClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def manager(memory_store):
    return SessionManager(memory_store, ttl_seconds=3600)


@pytest.fixture
def mock_store():
    """AsyncMock store for asserting the exact store calls."""
    store = AsyncMock()
    store.set = AsyncMock(return_value=None)
    store.get = AsyncMock(return_value=None)
    store.delete = AsyncMock(return_value=None)
    store.ping = AsyncMock(return_value=None)
    store.close = AsyncMock(return_value=None)
    return store


@pytest.fixture
def fake_oauth():
    return FakeOAuth()


@pytest.fixture
def app(memory_store, fake_oauth):
    return create_app(store=memory_store, oauth=fake_oauth)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def oauth_error():
    return OAuthError(error="invalid_grant", description="bad code")
