"""
Solo Parent Backend: Admin Account Routes
==========================================
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.common import ERROR_RESPONSES
from soloparent.schemas.records import AdminCreateRequest, AdminOut, AdminUpdateRequest
from soloparent.services.admin_service import admin_service

router = APIRouter(prefix="/api", tags=["Admins"])


@router.get("/admins", response_model=List[AdminOut])
async def list_admins(db: AsyncSession = Depends(get_db_session)):
    return await admin_service.list_admins(db)


@router.post(
    "/admins",
    response_model=AdminOut,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_admin(body: AdminCreateRequest, db: AsyncSession = Depends(get_db_session)):
    return await admin_service.create_admin(db, body.email, body.password, body.barangay)


@router.put("/admins/{admin_id}", response_model=AdminOut, responses=ERROR_RESPONSES)
async def update_admin(
    admin_id: int, body: AdminUpdateRequest, db: AsyncSession = Depends(get_db_session)
):
    """Password is only changed when a non-empty one is sent."""
    return await admin_service.update_admin(
        db, admin_id, body.email, body.barangay, password=body.password
    )
