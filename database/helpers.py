"""
Database helper functions for the admin reports and dealership records.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.errors import StoreError
from database.models import Dealership, PreBooking, User

logger = logging.getLogger(__name__)


def start_of_today(now: Optional[datetime] = None) -> datetime:
    """Midnight (UTC) of the current day."""
    now = now or datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


async def list_users(session: AsyncSession) -> List[User]:
    try:
        result = await session.execute(select(User).order_by(User.created_at.asc()))
    except SQLAlchemyError as exc:
        logger.exception("Listing users failed")
        raise StoreError(str(exc)) from exc
    return list(result.scalars().all())


async def list_bookings(
    session: AsyncSession,
    limit: Optional[int] = None,
    newest_first: bool = False,
) -> List[PreBooking]:
    """Bookings with their user eagerly loaded."""
    order = PreBooking.created_at.desc() if newest_first else PreBooking.created_at.asc()
    stmt = select(PreBooking).options(selectinload(PreBooking.user)).order_by(order)
    if limit is not None:
        stmt = stmt.limit(limit)
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Listing bookings failed")
        raise StoreError(str(exc)) from exc
    return list(result.scalars().all())


async def count_rows(
    session: AsyncSession,
    model: type,
    since: Optional[datetime] = None,
) -> int:
    """Row count for ``model``, optionally restricted to ``created_at >= since``."""
    stmt = select(func.count()).select_from(model)
    if since is not None:
        stmt = stmt.where(model.created_at >= since)
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Counting %s failed", model.__tablename__)
        raise StoreError(str(exc)) from exc
    return int(result.scalar_one())


async def create_dealership(session: AsyncSession, data: Dict[str, Any]) -> Dealership:
    dealership = Dealership(**data)
    session.add(dealership)
    try:
        await session.flush()
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Creating dealership failed")
        raise StoreError(str(exc)) from exc
    return dealership
