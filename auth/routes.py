"""
Auth API routes — register, login, Google OAuth, session.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from auth.dependencies import (
    get_current_user,
    get_google_connector,
    get_identity_resolver,
    get_settings,
)
from auth.schemas import GooglePhoneAuthRequest, LoginRequest, RegisterRequest, user_json
from auth.state import create_state, verify_state
from config.settings import Settings
from connectors.base import BaseConnector
from core.errors import AuthError, ValidationError
from core.identity_resolver import (
    IdentityResolver,
    PendingRegistration,
    RegistrationInput,
)
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

NOT_REGISTERED_MESSAGE = "User not registered. Please complete registration."


def _frontend_redirect(settings: Settings, page: str, **params: str) -> RedirectResponse:
    base = settings.frontend_url.rstrip("/")
    return RedirectResponse(
        url=f"{base}/{page}?{urlencode(params)}",
        status_code=status.HTTP_302_FOUND,
    )


# ── Local credentials ──────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> JSONResponse:
    """Register a new user and return a token."""
    result = await resolver.register(RegistrationInput(**req.model_dump()))
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": "User registered successfully",
            "token": result.token,
            "user": user_json(result.user),
        },
    )


@router.post("/login")
async def login(
    req: LoginRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> JSONResponse:
    """Login with phone + password."""
    result = await resolver.login_local(req.phone, req.password)
    return JSONResponse(
        content={
            "message": "Login successful",
            "token": result.token,
            "user": user_json(result.user),
        },
    )


@router.get("/session")
async def session(user: User = Depends(get_current_user)) -> JSONResponse:
    """Return the user behind the bearer token."""
    return JSONResponse(content={"user": user_json(user)})


# ── Google OAuth (browser redirect) ────────────────────────────────────


@router.get("/google")
async def google_login(
    connector: BaseConnector = Depends(get_google_connector),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    state = create_state(settings.state_secret())
    return RedirectResponse(
        url=connector.get_auth_url(state),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    connector: BaseConnector = Depends(get_google_connector),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Google redirects here after consent.

    Known account → frontend login page with a token.
    Unknown account → frontend registration page with the verified email.
    Any OAuth failure → frontend registration page with a message.
    """
    try:
        if error or not code or not state:
            raise AuthError("oauth verification failed")
        verify_state(settings.state_secret(), state)
        email = await connector.verify_authorization_code(code)
    except AuthError as exc:
        logger.warning("%s callback rejected: %s", connector.provider_name, exc.message)
        return _frontend_redirect(settings, "register", message=exc.message)

    outcome = await resolver.resolve_oauth_identity(email)
    if isinstance(outcome, PendingRegistration):
        return _frontend_redirect(
            settings, "register", message=NOT_REGISTERED_MESSAGE, email=outcome.email,
        )
    return _frontend_redirect(
        settings, "login", token=outcome.token, email=outcome.user.email,
    )


# ── Google OAuth (mobile access-token exchange) ────────────────────────


@router.post("/google-phone-auth")
async def google_phone_auth(
    req: GooglePhoneAuthRequest,
    connector: BaseConnector = Depends(get_google_connector),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Verify a Google access token obtained by the mobile app.

    201 with a 30-day token when the account exists, 202 with the email
    when the client should continue to registration.
    """
    if not (req.email or "").strip() or not (req.access_token or "").strip():
        raise ValidationError("email and accessToken are required")

    email = await connector.verify_access_token(req.email, req.access_token.strip())
    outcome = await resolver.resolve_oauth_identity(
        email, ttl=settings.phone_auth_token_ttl_seconds,
    )
    if isinstance(outcome, PendingRegistration):
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"message": NOT_REGISTERED_MESSAGE, "email": outcome.email},
        )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": "Google login successful",
            "token": outcome.token,
            "user": user_json(outcome.user),
        },
    )
