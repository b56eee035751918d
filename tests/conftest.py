"""
tests/conftest.py -- Shared test fixtures for the identity service.

This module provides:
  - settings / hasher / store / directory / issuer / authenticator:
    unit-level fixtures over a private in-memory SQLite store
  - api_client: TestClient over the real app with an isolated store and a
    Bearer token for a pre-created user
  - cookie_client: the same, with the app configured for the cookie strategy

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

BCRYPT_ROUNDS is lowered to the bcrypt minimum so the suite does not spend
seconds per hash. Production keeps the default work factor of 12.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any app import so get_settings() never refuses to start.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, attach_services
from auth.authentication import AuthenticationFlow
from auth.directory import UserDirectory
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings
from tests.helpers import VALID_CNPJ, make_settings


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def directory(store: UserStore, hasher: PasswordHasher) -> UserDirectory:
    return UserDirectory(store, hasher)


@pytest.fixture
def issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(settings)


@pytest.fixture
def authenticator(store: UserStore, hasher: PasswordHasher, issuer: TokenIssuer) -> AuthenticationFlow:
    return AuthenticationFlow(store, hasher, issuer)


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, user_store: UserStore):
    """Return a lifespan that wires the test store instead of the configured database."""

    @asynccontextmanager
    async def test_lifespan(app):
        attach_services(app, settings, user_store)
        yield

    return test_lifespan


def _client_with_owner(request, settings: Settings) -> Generator[tuple[TestClient, str, str], None, None]:
    db_name = request.module.__name__.replace(".", "_")
    user_store = UserStore(f"sqlite:///file:test_identity_{db_name}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(settings, user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        owner = client.app.state.directory.create(
            name="Owner",
            document=VALID_CNPJ,
            email="owner@example.com",
            password="ownerpass123",
        )
        token = client.app.state.authenticator.authenticate("owner@example.com", "ownerpass123")
        yield client, token, owner.id

    user_store.close()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    A user with email "owner@example.com" / password "ownerpass123" and
    document VALID_CNPJ exists before the first test of the module runs.
    """
    yield from _client_with_owner(request, make_settings())


@pytest.fixture(scope="module")
def cookie_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Same as api_client, but the app authenticates with the access_token cookie."""
    yield from _client_with_owner(request, make_settings(auth_default_strategy="cookie"))
