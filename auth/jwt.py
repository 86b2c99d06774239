"""
JWT creation and verification.

Tokens are HS256 JWTs carrying ``sub`` (the user id) plus ``email`` or
``phone``. The signing secret comes from ``Settings.jwt_secret``; an
issuer cannot be built without one.
"""

from __future__ import annotations

import time
from typing import Any, Dict

from jose import JWTError, jwt

from config.settings import Settings
from core.errors import AuthError, ConfigError


class TokenIssuer:
    """Signs and verifies time-bounded identity tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ConfigError("JWT_SECRET is not configured")
        self._secret = secret
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(settings.jwt_secret, settings.jwt_algorithm)

    def issue(self, claims: Dict[str, Any], ttl: int) -> str:
        """Sign ``claims`` with an expiry ``ttl`` seconds from now."""
        if "sub" not in claims:
            raise ValueError("claims must include 'sub'")
        now = int(time.time())
        payload = {k: v for k, v in claims.items() if v is not None}
        payload["sub"] = str(payload["sub"])
        payload.update({"iat": now, "exp": now + ttl})
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify the signature and expiry and return the claims.

        Raises ``AuthError`` (401) on invalid or expired tokens.
        """
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthError("invalid or expired token") from exc
