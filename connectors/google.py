"""
GoogleConnector — OAuth2 identity verification against Google.

Two entry points:
  • the browser redirect flow (consent URL → callback with ``code``)
  • the mobile "phone auth" flow, where the app already holds a Google
    access token and we only introspect it
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings
from connectors.base import BaseConnector
from core.errors import AuthError, ConfigError

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
_GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


def _is_unverified(info: Dict[str, Any]) -> bool:
    flag = info.get("email_verified")
    return flag is False or (isinstance(flag, str) and flag.lower() == "false")


class GoogleConnector(BaseConnector):
    """OAuth2 connector for Google sign-in."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleConnector":
        connector = cls(
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_callback_url,
            timeout=settings.oauth_timeout_seconds,
        )
        if not connector.is_configured():
            raise ConfigError("Google OAuth is not configured")
        return connector

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def scopes(self) -> List[str]:
        return ["profile", "email"]

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def verify_authorization_code(self, code: str) -> str:
        """Exchange auth code for tokens, then read the account email."""
        try:
            async with self._client() as client:
                # 1. Exchange code for tokens
                token_resp = await client.post(
                    _GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "redirect_uri": self._redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                token_resp.raise_for_status()
                token_data = token_resp.json()

                # 2. Fetch user info to get the email
                headers = {"Authorization": f"Bearer {token_data['access_token']}"}
                user_resp = await client.get(_GOOGLE_USERINFO_URL, headers=headers)
                user_resp.raise_for_status()
                user_info = user_resp.json()
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Google code exchange failed: %s", exc)
            raise AuthError("oauth verification failed") from exc

        email = user_info.get("email")
        if not email or _is_unverified(user_info):
            logger.warning("Google account has no verified email")
            raise AuthError("oauth verification failed")
        return email.lower()

    async def verify_access_token(self, claimed_email: str, access_token: str) -> str:
        """Introspect an access token and check it belongs to ``claimed_email``."""
        try:
            async with self._client() as client:
                resp = await client.get(
                    _GOOGLE_TOKENINFO_URL,
                    params={"access_token": access_token},
                )
                resp.raise_for_status()
                info = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Google token introspection failed: %s", exc)
            raise AuthError("oauth verification failed") from exc

        email = (info.get("email") or "").lower()
        if not email or _is_unverified(info):
            raise AuthError("oauth verification failed")
        if email != claimed_email.strip().lower():
            raise AuthError("token mismatch")
        return email
