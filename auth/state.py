"""
Signed OAuth ``state`` values (CSRF protection for the Google redirect flow).

A state is ``base64(json) + "." + hmac`` with a short expiry; nothing
is stored server-side.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode

from core.errors import AuthError, ConfigError

STATE_TTL_SECONDS = 600


def _sign(secret: str, raw: bytes) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()[:32]


def create_state(secret: str, ttl: int = STATE_TTL_SECONDS) -> str:
    """Create an opaque state string carrying a nonce and an expiry."""
    if not secret:
        raise ConfigError("SESSION_SECRET is not configured")
    payload = {"nonce": secrets.token_urlsafe(16), "exp": int(time.time()) + ttl}
    raw = json.dumps(payload).encode()
    return urlsafe_b64encode(raw).decode() + "." + _sign(secret, raw)


def verify_state(secret: str, state: str) -> None:
    """Raise ``AuthError`` unless ``state`` was issued by us and is unexpired."""
    if not secret:
        raise ConfigError("SESSION_SECRET is not configured")
    try:
        encoded, sig = state.split(".", 1)
        raw = urlsafe_b64decode(encoded.encode())
        payload = json.loads(raw)
    except ValueError as exc:
        raise AuthError("invalid oauth state") from exc
    if not hmac.compare_digest(sig, _sign(secret, raw)):
        raise AuthError("invalid oauth state")
    if payload.get("exp", 0) < time.time():
        raise AuthError("oauth state expired")
