"""
Request / response schemas for the auth routes.

JSON bodies use camelCase (``firstName``, ``accessToken``); attributes
stay snake_case.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class RegisterRequest(CamelModel):
    # All optional here; IdentityResolver owns the validation order.
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None


class LoginRequest(CamelModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class GooglePhoneAuthRequest(CamelModel):
    email: Optional[str] = None
    access_token: Optional[str] = None


class UserOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    state: str
    city: str
    pincode: str
    ref_id: str
    coins: int
    created_at: datetime


def user_json(user) -> dict:
    """Public JSON view of a ``User`` row (no password hash)."""
    return UserOut.model_validate(user).model_dump(by_alias=True, mode="json")
