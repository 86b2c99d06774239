"""
Shared fixtures: in-memory SQLite store, token issuer, resolver, and a
TestClient wired to a fake Google connector.
"""

from typing import List

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from auth.jwt import TokenIssuer
from config.settings import Settings
from connectors.base import BaseConnector
from core.errors import AuthError
from core.identity_resolver import IdentityResolver
from database.session import build_engine, build_session_factory, init_models
from database.user_store import UserStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PLACEHOLDER_DOMAIN = "phone.test.invalid"


def make_settings(**overrides) -> Settings:
    values = dict(
        jwt_secret="test-jwt-secret",
        session_secret="test-session-secret",
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        google_callback_url="http://api.test/api/auth/google/callback",
        frontend_url="http://frontend.test",
        placeholder_email_domain=PLACEHOLDER_DOMAIN,
        database_url=TEST_DATABASE_URL,
        _env_file=None,
    )
    values.update(overrides)
    return Settings(**values)


class FakeGoogleConnector(BaseConnector):
    """Stands in for Google: every code / token maps to ``self.email``."""

    def __init__(self, email: str = "driver@example.com") -> None:
        self.email = email
        self.codes: List[str] = []

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def scopes(self) -> List[str]:
        return ["profile", "email"]

    def get_auth_url(self, state: str) -> str:
        return f"https://accounts.example.test/auth?state={state}"

    async def verify_authorization_code(self, code: str) -> str:
        self.codes.append(code)
        if code == "bad-code":
            raise AuthError("oauth verification failed")
        return self.email

    async def verify_access_token(self, claimed_email: str, access_token: str) -> str:
        if access_token == "invalid":
            raise AuthError("oauth verification failed")
        if claimed_email.strip().lower() != self.email:
            raise AuthError("token mismatch")
        return self.email


# ── Store-level fixtures ───────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session():
    engine = build_engine(TEST_DATABASE_URL)
    await init_models(engine)
    factory = build_session_factory(engine)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer("test-jwt-secret")


@pytest.fixture
def resolver(db_session, issuer) -> IdentityResolver:
    return IdentityResolver(
        UserStore(db_session),
        issuer,
        placeholder_domain=PLACEHOLDER_DOMAIN,
        token_ttl=3600,
    )


# ── HTTP fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def google() -> FakeGoogleConnector:
    return FakeGoogleConnector()


@pytest.fixture
def client(settings, google):
    from main import create_app

    app = create_app(settings)
    app.state.google_connector = google
    with TestClient(app) as test_client:
        yield test_client


def register_payload(**overrides) -> dict:
    payload = {
        "firstName": "Asha",
        "lastName": "Rao",
        "phone": "9990001111",
        "password": "secret1",
        "state": "KA",
        "city": "BLR",
        "pincode": "560001",
    }
    payload.update(overrides)
    return payload
