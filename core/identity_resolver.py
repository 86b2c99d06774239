"""
IdentityResolver — decides whether an account exists, creates accounts,
and issues tokens for the register / login / OAuth flows.

The resolver never touches HTTP; routes build one per request around a
``UserStore`` bound to that request's DB session.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional, Union

from auth.jwt import TokenIssuer
from auth.password import hash_password, password_too_long, verify_password
from core.errors import AuthError, ConflictError, StoreError, ValidationError
from database.models import User
from database.user_store import UserStore

logger = logging.getLogger(__name__)

REF_ID_PREFIX = "NETTS"
REF_ID_LENGTH = 7
REF_ID_ALPHABET = string.ascii_uppercase + string.digits
REF_ID_MAX_ATTEMPTS = 5


def generate_ref_id() -> str:
    """``NETTS`` followed by 7 random uppercase alphanumerics."""
    suffix = "".join(secrets.choice(REF_ID_ALPHABET) for _ in range(REF_ID_LENGTH))
    return f"{REF_ID_PREFIX}{suffix}"


def placeholder_email(phone: str, domain: str) -> str:
    return f"{phone}@{domain}"


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim; blank becomes ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class RegistrationInput:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str


@dataclass(frozen=True)
class PendingRegistration:
    """A verified external email with no local account yet."""

    email: str


class IdentityResolver:
    def __init__(
        self,
        store: UserStore,
        issuer: TokenIssuer,
        *,
        placeholder_domain: str,
        token_ttl: int = 3600,
    ) -> None:
        self._store = store
        self._issuer = issuer
        self._placeholder_domain = placeholder_domain.lower()
        self._token_ttl = token_ttl

    # ── Registration ───────────────────────────────────────────────────

    async def register(self, data: RegistrationInput) -> AuthResult:
        required = {
            "first_name": _clean(data.first_name),
            "last_name": _clean(data.last_name),
            "state": _clean(data.state),
            "city": _clean(data.city),
            "pincode": _clean(data.pincode),
        }
        if not all(required.values()):
            raise ValidationError("missing required fields")

        email = _clean(data.email)
        phone = _clean(data.phone)
        password = _clean(data.password)
        if email is not None:
            email = email.lower()

        if email is None and phone is None:
            raise ValidationError("identifier required")
        if phone is not None and email is None and password is None:
            raise ValidationError("password required for phone-only registration")
        if email is not None and email.endswith("@" + self._placeholder_domain):
            raise ValidationError("email domain is reserved")
        if password is not None and password_too_long(password):
            raise ValidationError("password too long")

        if email is not None and await self._store.get_by_email(email) is not None:
            raise ConflictError("email taken")
        if phone is not None and await self._store.get_by_phone(phone) is not None:
            raise ConflictError("phone taken")

        if email is None:
            email = placeholder_email(phone, self._placeholder_domain)

        user = await self._store.create_user(
            **required,
            email=email,
            phone=phone,
            password=hash_password(password) if password else "",
            ref_id=await self._unique_ref_id(),
            coins=0,
        )
        await self._store.commit()
        logger.info("Registered user %s (ref %s)", user.id, user.ref_id)

        token = self._issuer.issue({"sub": user.id, "email": user.email}, self._token_ttl)
        return AuthResult(user=user, token=token)

    async def _unique_ref_id(self) -> str:
        for _ in range(REF_ID_MAX_ATTEMPTS):
            candidate = generate_ref_id()
            if not await self._store.ref_id_exists(candidate):
                return candidate
            logger.warning("refId collision on %s, retrying", candidate)
        raise StoreError("could not allocate a unique refId")

    # ── Local login ────────────────────────────────────────────────────

    async def login_local(self, phone: Optional[str], password: Optional[str]) -> AuthResult:
        phone = _clean(phone)
        if phone is None or not password:
            raise ValidationError("phone and password required")

        user = await self._store.get_by_phone(phone)
        if user is None:
            raise AuthError("not found", status_code=400)
        if not user.has_local_credentials:
            raise AuthError("no local credentials", status_code=400)
        try:
            matches = verify_password(password.strip(), user.password)
        except ValueError as exc:
            logger.error("Stored password hash for %s is malformed", user.id)
            raise StoreError("malformed password hash") from exc
        if not matches:
            raise AuthError("bad credentials", status_code=400)

        logger.info("Local login: %s", user.id)
        token = self._issuer.issue({"sub": user.id, "phone": user.phone}, self._token_ttl)
        return AuthResult(user=user, token=token)

    # ── OAuth ──────────────────────────────────────────────────────────

    async def resolve_oauth_identity(
        self,
        verified_email: str,
        ttl: Optional[int] = None,
    ) -> Union[AuthResult, PendingRegistration]:
        """
        Map a provider-verified email onto an account.

        Returns ``PendingRegistration`` when no account exists; nothing is
        written and no token is issued in that case.
        """
        email = verified_email.strip().lower()
        user = await self._store.get_by_email(email)
        if user is None:
            logger.info("OAuth identity has no account yet")
            return PendingRegistration(email=email)

        token = self._issuer.issue(
            {"sub": user.id, "email": user.email},
            ttl if ttl is not None else self._token_ttl,
        )
        logger.info("OAuth login: %s", user.id)
        return AuthResult(user=user, token=token)

    # ── Session ────────────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> User:
        user = await self._store.get_by_id(user_id)
        if user is None:
            raise AuthError("invalid or expired token")
        return user
