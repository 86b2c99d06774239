"""
SQLAlchemy ORM models for users, pre-bookings and dealerships.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(32), unique=True, nullable=True)
    # bcrypt hash, empty for OAuth-only accounts
    password = Column(String(255), nullable=False, default="")
    state = Column(String(128), nullable=False)
    city = Column(String(128), nullable=False)
    pincode = Column(String(16), nullable=False)
    ref_id = Column(String(12), unique=True, nullable=False)
    coins = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    bookings = relationship("PreBooking", back_populates="user", cascade="all, delete-orphan")

    @property
    def has_local_credentials(self) -> bool:
        return bool(self.password)


class PreBooking(Base):
    __tablename__ = "pre_bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    manufacturer = Column(String(128), nullable=False)
    model = Column(String(128), nullable=False)
    battery = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    user = relationship("User", back_populates="bookings")

    __table_args__ = (
        Index("idx_pre_bookings_created", "created_at"),
    )


class Dealership(Base):
    __tablename__ = "dealerships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company = Column(String(255), nullable=False)
    phno = Column(String(32), nullable=False)
    email = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
