"""
tests/conftest.py -- Shared test fixtures for AuthGate.

This module provides:
  - FakeIdentityProvider: in-memory IdentityProvider double that records every
    call and can be told to fail a given operation with a ProviderError
  - store / provider / coordinator: unit-test fixtures over an in-memory DB
  - api_client: TestClient whose lifespan is patched to use the fakes

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The COGNITO_* env vars must be set before any api/ or core/ import so
get_settings() can build Settings -- those fields have no defaults.
LOGIN_RATE_LIMIT is read when the routes are imported, so it is set low here
and api_client resets the limiter counters for every test.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set required settings before any project import.
os.environ.setdefault("COGNITO_ACCESS_KEY_ID", "test-access-key")
os.environ.setdefault("COGNITO_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("COGNITO_REGION", "us-east-1")
os.environ.setdefault("COGNITO_CLIENT_ID", "test-client-id")
os.environ.setdefault("COGNITO_DOMAIN", "auth.example.com")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "5/minute")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.coordinator import AuthFlowCoordinator
from auth.errors import ProviderError
from auth.models import (
    AuthChallenge,
    AuthenticationResult,
    MFAAssociation,
    SignupResult,
    VerificationResult,
)
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Identity provider double
# ---------------------------------------------------------------------------

TOKENS = AuthenticationResult(
    access_token="access-token-value",
    id_token="id-token-value",
    refresh_token="refresh-token-value",
    expires_in=3600,
    token_type="Bearer",
)


class FakeIdentityProvider:
    """Records calls as (operation, *args) tuples; fails operations listed in .errors.

    Default responses describe the happy path: unconfirmed signup, login with
    no challenge, SUCCESS on MFA verification, tokens on challenge response
    and refresh.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.errors: dict[str, ProviderError] = {}
        self.signup_result = SignupResult(user_sub="sub-0001", user_confirmed=False)
        self.challenge = AuthChallenge(authentication_result=TOKENS)
        self.association = MFAAssociation(secret_code="SECRET-FROM-ASSOCIATE", session="session-after-associate")
        self.verification = VerificationResult(status="SUCCESS", session="session-after-verify")
        self.tokens: AuthenticationResult | None = TOKENS
        self.closed = False

    def fail(self, operation: str, name: str, message: str = "provider said no") -> None:
        self.errors[operation] = ProviderError(name, message)

    def calls_to(self, operation: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == operation]

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.errors:
            raise self.errors[operation]

    def create_account(self, email, password):
        self._record("create_account", email, password)
        return self.signup_result

    def confirm_account(self, email, code):
        self._record("confirm_account", email, code)

    def authenticate(self, email, password):
        self._record("authenticate", email, password)
        return self.challenge

    def associate_mfa(self, session):
        self._record("associate_mfa", session)
        return self.association

    def verify_mfa(self, session, code):
        self._record("verify_mfa", session, code)
        return self.verification

    def respond_to_challenge(self, email, session, code):
        self._record("respond_to_challenge", email, session, code)
        return self.tokens

    def resend_code(self, email):
        self._record("resend_code", email)

    def initiate_password_reset(self, email):
        self._record("initiate_password_reset", email)

    def confirm_password_reset(self, email, code, new_password):
        self._record("confirm_password_reset", email, code, new_password)

    def refresh(self, refresh_token):
        self._record("refresh", refresh_token)
        return self.tokens

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def coordinator(provider: FakeIdentityProvider, store: UserStore) -> AuthFlowCoordinator:
    return AuthFlowCoordinator(provider, store)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(provider: FakeIdentityProvider, user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the fake provider and an isolated store into app.state so no boto3
    client is ever created.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.identity_provider = provider
        app.state.coordinator = AuthFlowCoordinator(provider, user_store)
        yield
        provider.close()

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, FakeIdentityProvider, UserStore], None, None]:
    """Yield (client, provider, store) backed by a fresh shared-memory DB per test."""
    provider = FakeIdentityProvider()
    user_store = UserStore(f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(provider, user_store)
    limiter.reset()

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, provider, user_store

    user_store.close()
