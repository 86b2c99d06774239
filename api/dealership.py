"""
Dealership creation route.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database.helpers import create_dealership
from database.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dealership"])


class DealershipRequest(BaseModel):
    company: str = Field(..., min_length=1, max_length=255)
    phno: str = Field(..., min_length=1, max_length=32)
    email: str = Field(..., min_length=3, max_length=255)
    address: str = Field(..., min_length=1)
    description: Optional[str] = None


@router.post("/dealership", status_code=status.HTTP_201_CREATED)
async def create_dealership_route(
    req: DealershipRequest,
    session: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    dealership = await create_dealership(session, req.model_dump())
    logger.info("Created dealership %s (%s)", dealership.company, dealership.id)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "id": str(dealership.id),
            "company": dealership.company,
            "phno": dealership.phno,
            "email": dealership.email,
            "address": dealership.address,
            "description": dealership.description,
            "createdAt": dealership.created_at.isoformat(),
        },
    )
