"""
Solo Parent Backend: ID Card and Announcement Routes
=====================================================

Images arrive as base64 data URIs and are stored through the blob storage
collaborator; an unreachable or misconfigured store answers 502.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.common import ERROR_RESPONSES, ErrorResponse
from soloparent.schemas.records import (
    AnnouncementCreate,
    AnnouncementOut,
    IdCardResponse,
    IdCardUpload,
)
from soloparent.services.media_service import media_service

router = APIRouter(prefix="/api", tags=["Media"])

_UPLOAD_ERRORS = {
    **ERROR_RESPONSES,
    502: {"description": "Image storage failed", "model": ErrorResponse},
}


@router.post("/id-cards", response_model=IdCardResponse, responses=_UPLOAD_ERRORS)
async def upload_id_card(body: IdCardUpload, db: AsyncSession = Depends(get_db_session)) -> IdCardResponse:
    """Idempotent: an existing card for the user and case is returned as is."""
    result = await media_service.upload_id_card(
        db, body.user_id, body.code_id, body.front_image, body.back_image
    )
    return IdCardResponse(
        front_url=result["frontUrl"],
        back_url=result["backUrl"],
        message=result["message"],
        is_existing=result["isExisting"],
    )


@router.post(
    "/announcements",
    response_model=AnnouncementOut,
    status_code=status.HTTP_201_CREATED,
    responses=_UPLOAD_ERRORS,
)
async def create_announcement(body: AnnouncementCreate, db: AsyncSession = Depends(get_db_session)):
    return await media_service.create_announcement(
        db,
        title=body.title,
        description=body.description,
        link=body.link,
        image_base64=body.image_base64,
        end_date=body.end_date,
    )


@router.get("/announcements", response_model=List[AnnouncementOut])
async def list_announcements(db: AsyncSession = Depends(get_db_session)):
    """Announcements already published and not yet expired, newest first."""
    return await media_service.active_announcements(db)
