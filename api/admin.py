"""
Admin reporting routes — users, bookings, dashboard counters.

Route prefix: /admin
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database.helpers import count_rows, list_bookings, list_users, start_of_today
from database.models import PreBooking, User
from database.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])

RECENT_BOOKINGS_LIMIT = 5


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _full_name(user: User) -> str:
    return f"{user.first_name} {user.last_name}"


def _user_row(user: User) -> Dict[str, Any]:
    return {
        "name": _full_name(user),
        "email": user.email,
        "phone": user.phone,
        "location": f"{user.city}, {user.state} - {user.pincode}",
        "referralCode": user.ref_id,
        "coinBalance": user.coins,
        "registrationDate": _iso(user.created_at),
    }


def _booking_row(booking: PreBooking) -> Dict[str, Any]:
    return {
        "bookingId": str(booking.id),
        "manufacturer": booking.manufacturer,
        "model": booking.model,
        "battery": booking.battery,
        "user": f"{_full_name(booking.user)} ({booking.user.email})",
        "date": _iso(booking.created_at),
    }


def _recent_booking(booking: PreBooking) -> Dict[str, Any]:
    return {
        "id": str(booking.id),
        "manufacturer": booking.manufacturer,
        "model": booking.model,
        "battery": booking.battery,
        "createdAt": _iso(booking.created_at),
        "user": {
            "firstName": booking.user.first_name,
            "lastName": booking.user.last_name,
            "email": booking.user.email,
        },
    }


@router.get("/users")
async def admin_users(session: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    """All registered users, flattened for the admin table."""
    users = await list_users(session)
    return {"users": [_user_row(u) for u in users]}


@router.get("/bookings")
async def admin_bookings(session: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    bookings = await list_bookings(session)
    return {"bookings": [_booking_row(b) for b in bookings]}


@router.get("/dashboard")
async def admin_dashboard(session: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    """Headline counters plus the five most recent bookings."""
    today = start_of_today()
    recent = await list_bookings(session, limit=RECENT_BOOKINGS_LIMIT, newest_first=True)
    return {
        "totalUsers": await count_rows(session, User),
        "totalBookings": await count_rows(session, PreBooking),
        "newUsersToday": await count_rows(session, User, since=today),
        "newBookingsToday": await count_rows(session, PreBooking, since=today),
        "recentBookings": [_recent_booking(b) for b in recent],
    }
