"""
Solo Parent Backend: Child Request Routes
==========================================

Submission and the two review stages: the barangay admin endorses or
declines, then the superadmin approves (the child joins the family members)
or declines.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.common import ERROR_RESPONSES, MessageResponse
from soloparent.schemas.records import ChildRequestCreate
from soloparent.services.child_request_service import child_request_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Child Requests"])


@router.post(
    "/child-requests",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def submit_child_request(
    body: ChildRequestCreate, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await child_request_service.submit(
        db,
        code_id=body.code_id,
        first_name=body.first_name,
        last_name=body.last_name,
        birthdate=body.birthdate,
        educational_attainment=body.educational_attainment,
        middle_name=body.middle_name,
        suffix=body.suffix,
        age=body.age,
    )
    return MessageResponse(message="Child request submitted.")


@router.get("/child-requests", response_model=List[Dict[str, Any]])
async def list_child_requests(
    code_id: Optional[str] = Query(default=None),
    barangay: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
):
    return await child_request_service.list_requests(db, code_id=code_id, barangay=barangay)


@router.post("/child-requests/{request_id}/approve", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def barangay_approve(request_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await child_request_service.barangay_approve(db, request_id)
    return MessageResponse(message="Child request endorsed to the MSWDO.")


@router.post("/child-requests/{request_id}/decline", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def barangay_decline(request_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await child_request_service.barangay_decline(db, request_id)
    return MessageResponse(message="Child request declined.")


@router.post(
    "/child-requests/{request_id}/superadmin-approve",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def superadmin_approve(request_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await child_request_service.superadmin_approve(db, request_id)
    return MessageResponse(message="Child request approved.")


@router.post(
    "/child-requests/{request_id}/superadmin-decline",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def superadmin_decline(request_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await child_request_service.superadmin_decline(db, request_id)
    return MessageResponse(message="Child request declined.")
