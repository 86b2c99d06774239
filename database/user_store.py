"""
UserStore — the credential store the identity flow reads and writes.

Wraps one ``AsyncSession``. Lookups are by unique key; the single write
path (``create_user``) translates constraint violations into
``ConflictError`` and every other driver failure into ``StoreError``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, StoreError
from database.models import User

logger = logging.getLogger(__name__)


def _to_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return uuid.UUID(value) if isinstance(value, str) else value


class UserStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _first(self, stmt) -> Optional[User]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("User lookup failed")
            raise StoreError(f"user lookup failed: {exc}") from exc
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._first(select(User).where(User.email == email))

    async def get_by_phone(self, phone: str) -> Optional[User]:
        return await self._first(select(User).where(User.phone == phone))

    async def get_by_id(self, user_id: str | uuid.UUID) -> Optional[User]:
        try:
            uid = _to_uuid(user_id)
        except ValueError:
            return None
        return await self._first(select(User).where(User.id == uid))

    async def ref_id_exists(self, ref_id: str) -> bool:
        return await self._first(select(User).where(User.ref_id == ref_id)) is not None

    async def create_user(self, **fields: Any) -> User:
        """Insert a user and flush so unique constraints are checked now."""
        user = User(**fields)
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            logger.info("User insert rejected by unique constraint: %s", exc.orig)
            raise ConflictError("account already exists") from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("User insert failed")
            raise StoreError(f"user insert failed: {exc}") from exc
        return user

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError("account already exists") from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Commit failed")
            raise StoreError(f"commit failed: {exc}") from exc
