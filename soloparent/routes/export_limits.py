"""
Solo Parent Backend: Export Limit Routes
=========================================
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.common import ERROR_RESPONSES, MessageResponse
from soloparent.schemas.records import ExportIncrement
from soloparent.services.export_limit_service import export_limit_service

router = APIRouter(prefix="/api", tags=["Export Limits"])


@router.get("/export-limit/{admin_id}")
async def get_export_limit(admin_id: int, db: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    return await export_limit_service.get(db, admin_id)


@router.post("/export-limit/{admin_id}/increment", responses=ERROR_RESPONSES)
async def increment_export(
    admin_id: int, body: ExportIncrement, db: AsyncSession = Depends(get_db_session)
) -> Dict[str, Any]:
    return await export_limit_service.increment(db, admin_id, body.type)


@router.get("/export-limits", response_model=List[Dict[str, Any]])
async def list_export_limits(db: AsyncSession = Depends(get_db_session)):
    return await export_limit_service.list_all(db)


@router.post("/export-limits/reset-all", response_model=MessageResponse)
async def reset_all_export_limits(db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await export_limit_service.reset(db)
    return MessageResponse(message="All export limits reset successfully")


@router.post("/export-limits/{admin_id}/reset", response_model=MessageResponse)
async def reset_export_limit(admin_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await export_limit_service.reset(db, admin_id)
    return MessageResponse(message="Export limit reset successfully")
