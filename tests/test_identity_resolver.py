"""
Tests for the IdentityResolver against an in-memory SQLite store.
"""

import re
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from core.errors import AuthError, ConflictError, StoreError, ValidationError
from core.identity_resolver import (
    AuthResult,
    PendingRegistration,
    RegistrationInput,
    generate_ref_id,
    placeholder_email,
)
from database.models import User

from conftest import PLACEHOLDER_DOMAIN

REF_ID_PATTERN = re.compile(r"^NETTS[A-Z0-9]{7}$")


def _input(**overrides) -> RegistrationInput:
    values = dict(
        first_name="A",
        last_name="B",
        phone="9990001111",
        password="secret1",
        state="KA",
        city="BLR",
        pincode="560001",
    )
    values.update(overrides)
    return RegistrationInput(**values)


async def _user_count(session) -> int:
    result = await session.execute(select(func.count()).select_from(User))
    return result.scalar_one()


class TestRefId:
    def test_format(self):
        for _ in range(50):
            assert REF_ID_PATTERN.match(generate_ref_id())

    def test_placeholder_email(self):
        assert placeholder_email("9990001111", "x.invalid") == "9990001111@x.invalid"


class TestRegister:
    @pytest.mark.asyncio
    async def test_phone_only_registration(self, resolver, issuer):
        result = await resolver.register(_input())

        user = result.user
        assert user.phone == "9990001111"
        assert user.email == f"9990001111@{PLACEHOLDER_DOMAIN}"
        assert user.coins == 0
        assert REF_ID_PATTERN.match(user.ref_id)
        assert user.password.startswith("$2b$")

        claims = issuer.verify(result.token)
        assert claims["sub"] == str(user.id)
        assert claims["email"] == user.email
        assert claims["exp"] - claims["iat"] == 3600

    @pytest.mark.asyncio
    async def test_placeholder_email_is_deterministic(self, resolver):
        first = await resolver.register(_input(phone=" 8880002222 "))
        assert first.user.email == placeholder_email("8880002222", PLACEHOLDER_DOMAIN)

    @pytest.mark.asyncio
    async def test_email_only_without_password(self, resolver):
        result = await resolver.register(
            _input(phone=None, password=None, email="  Driver@Example.COM ")
        )
        assert result.user.email == "driver@example.com"
        assert result.user.phone is None
        assert result.user.password == ""
        assert not result.user.has_local_credentials

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["first_name", "last_name", "state", "city", "pincode"])
    async def test_missing_required_field(self, resolver, db_session, field):
        with pytest.raises(ValidationError, match="missing required fields"):
            await resolver.register(_input(**{field: "   "}))
        assert await _user_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_missing_fields_checked_before_identifiers(self, resolver):
        with pytest.raises(ValidationError, match="missing required fields"):
            await resolver.register(_input(first_name=None, phone=None, email=None))

    @pytest.mark.asyncio
    async def test_identifier_required(self, resolver):
        with pytest.raises(ValidationError, match="identifier required"):
            await resolver.register(_input(phone="  ", email=""))

    @pytest.mark.asyncio
    async def test_phone_only_requires_password(self, resolver):
        with pytest.raises(ValidationError, match="password required"):
            await resolver.register(_input(password="   "))

    @pytest.mark.asyncio
    async def test_placeholder_domain_is_reserved(self, resolver):
        with pytest.raises(ValidationError, match="reserved"):
            await resolver.register(
                _input(phone=None, email=f"someone@{PLACEHOLDER_DOMAIN}")
            )

    @pytest.mark.asyncio
    async def test_duplicate_email(self, resolver, db_session):
        await resolver.register(_input(phone=None, email="a@example.com"))
        with pytest.raises(ConflictError, match="email taken"):
            await resolver.register(_input(phone="7770003333", email="A@example.com"))
        assert await _user_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, resolver, db_session):
        await resolver.register(_input())
        with pytest.raises(ConflictError, match="phone taken"):
            await resolver.register(_input(email="new@example.com"))
        assert await _user_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_ref_id_collision_retries(self, resolver):
        first = await resolver.register(_input())
        taken = first.user.ref_id
        with patch(
            "core.identity_resolver.generate_ref_id",
            side_effect=[taken, "NETTSABCDEFG"],
        ):
            second = await resolver.register(_input(phone="7770003333"))
        assert second.user.ref_id == "NETTSABCDEFG"

    @pytest.mark.asyncio
    async def test_ref_id_exhaustion(self, resolver):
        first = await resolver.register(_input())
        with patch(
            "core.identity_resolver.generate_ref_id",
            return_value=first.user.ref_id,
        ):
            with pytest.raises(StoreError):
                await resolver.register(_input(phone="7770003333"))

    @pytest.mark.asyncio
    async def test_password_too_long(self, resolver, db_session):
        with pytest.raises(ValidationError, match="password too long"):
            await resolver.register(_input(password="x" * 100))
        assert await _user_count(db_session) == 0


class TestLoginLocal:
    @pytest.mark.asyncio
    async def test_success(self, resolver, issuer):
        registered = await resolver.register(_input())
        result = await resolver.login_local("9990001111", "secret1")

        claims = issuer.verify(result.token)
        assert claims["sub"] == str(registered.user.id)
        assert claims["phone"] == "9990001111"

    @pytest.mark.asyncio
    async def test_wrong_password(self, resolver):
        await resolver.register(_input())
        with pytest.raises(AuthError, match="bad credentials") as exc:
            await resolver.login_local("9990001111", "nope")
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_overlong_password_is_bad_credentials(self, resolver):
        await resolver.register(_input())
        with pytest.raises(AuthError, match="bad credentials"):
            await resolver.login_local("9990001111", "y" * 100)

    @pytest.mark.asyncio
    async def test_malformed_stored_hash(self, resolver, db_session):
        registered = await resolver.register(_input())
        registered.user.password = "not-a-bcrypt-hash"
        await db_session.commit()
        with pytest.raises(StoreError):
            await resolver.login_local("9990001111", "secret1")

    @pytest.mark.asyncio
    async def test_unknown_phone(self, resolver):
        with pytest.raises(AuthError, match="not found"):
            await resolver.login_local("1112223333", "secret1")

    @pytest.mark.asyncio
    async def test_oauth_only_account(self, resolver):
        await resolver.register(
            _input(phone="9990001111", password=None, email="g@example.com")
        )
        with pytest.raises(AuthError, match="no local credentials"):
            await resolver.login_local("9990001111", "anything")

    @pytest.mark.asyncio
    async def test_missing_input(self, resolver):
        with pytest.raises(ValidationError):
            await resolver.login_local(None, "secret1")
        with pytest.raises(ValidationError):
            await resolver.login_local("9990001111", "")


class TestResolveOAuthIdentity:
    @pytest.mark.asyncio
    async def test_unknown_email_is_pending_and_writes_nothing(self, resolver, db_session):
        outcome = await resolver.resolve_oauth_identity("New@Example.com")
        assert outcome == PendingRegistration(email="new@example.com")
        assert await _user_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_known_email_issues_token(self, resolver, issuer):
        registered = await resolver.register(_input(email="g@example.com"))
        outcome = await resolver.resolve_oauth_identity("g@example.com", ttl=120)

        assert isinstance(outcome, AuthResult)
        assert outcome.user.id == registered.user.id
        claims = issuer.verify(outcome.token)
        assert claims["sub"] == str(registered.user.id)
        assert claims["exp"] - claims["iat"] == 120


class TestGetUser:
    @pytest.mark.asyncio
    async def test_unknown_id(self, resolver):
        with pytest.raises(AuthError):
            await resolver.get_user("00000000-0000-0000-0000-000000000000")

    @pytest.mark.asyncio
    async def test_malformed_id(self, resolver):
        with pytest.raises(AuthError):
            await resolver.get_user("not-a-uuid")
