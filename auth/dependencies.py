"""
FastAPI dependencies for authentication.

Everything here reads the immutable ``Settings`` stored on
``app.state`` by ``main.create_app``; nothing reads the environment
per request.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import TokenIssuer
from config.settings import Settings
from connectors.base import BaseConnector
from connectors.google import GoogleConnector
from core.errors import AuthError
from core.identity_resolver import IdentityResolver
from database.models import User
from database.session import get_db_session
from database.user_store import UserStore

_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    """
    Process-wide issuer, built on first use.

    Raises ``ConfigError`` while the signing secret is missing, before
    the route body runs.
    """
    issuer = getattr(request.app.state, "token_issuer", None)
    if issuer is None:
        issuer = TokenIssuer.from_settings(request.app.state.settings)
        request.app.state.token_issuer = issuer
    return issuer


def get_google_connector(request: Request) -> BaseConnector:
    connector = getattr(request.app.state, "google_connector", None)
    if connector is None:
        connector = GoogleConnector.from_settings(request.app.state.settings)
        request.app.state.google_connector = connector
    return connector


def get_identity_resolver(
    session: AsyncSession = Depends(db_session),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> IdentityResolver:
    return IdentityResolver(
        UserStore(session),
        issuer,
        placeholder_domain=settings.placeholder_email_domain,
        token_ttl=settings.token_ttl_seconds,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> User:
    """
    Extract and verify the Bearer token, returning the authenticated
    ``User``.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("missing bearer token")
    claims = issuer.verify(credentials.credentials)
    return await resolver.get_user(claims.get("sub", ""))
