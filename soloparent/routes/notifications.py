"""
Solo Parent Backend: Notification Routes
=========================================

Inboxes for the three audiences:
    users        /api/notifications/{user_id}, follow-ups, child-request notices
    admins       /api/admin-notifications?barangay=...
    superadmins  /api/superadmin-notifications
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session, row_to_dict
from soloparent.schemas.common import ERROR_RESPONSES, MarkReadRequest, MessageResponse
from soloparent.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])


# ── User Inbox ────────────────────────────────────────────────────────────
@router.get("/notifications/{user_id}", response_model=List[Dict[str, Any]])
async def user_inbox(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return await notification_service.user_inbox(db, user_id)


@router.put("/notifications/{user_id}/read", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def mark_user_read(
    user_id: int, body: MarkReadRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    count = await notification_service.mark_user_read(db, user_id, body.type)
    return MessageResponse(message=f"{count} notification(s) marked as read")


@router.put("/notifications/{user_id}/read-all", response_model=MessageResponse)
async def mark_all_user_read(user_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    count = await notification_service.mark_all_user_read(db, user_id)
    return MessageResponse(message=f"{count} notification(s) marked as read")


# ── Follow-up Documents ───────────────────────────────────────────────────
@router.get("/follow-up-notifications/{user_id}", response_model=List[Dict[str, Any]])
async def list_follow_ups(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return [row_to_dict(row) for row in await notification_service.list_follow_ups(db, user_id)]


@router.put(
    "/follow-up-notifications/{notification_id}/read",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def mark_follow_up_read(
    notification_id: int, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await notification_service.mark_follow_up_read(db, notification_id)
    return MessageResponse(message="Notification marked as read")


@router.put("/follow-up-notifications/user/{user_id}/read-all", response_model=MessageResponse)
async def mark_all_follow_ups_read(
    user_id: int, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    count = await notification_service.mark_all_follow_ups_read(db, user_id)
    return MessageResponse(message=f"{count} notification(s) marked as read")


# ── Child Request Notices ─────────────────────────────────────────────────
@router.get("/user-childrequest/{user_id}", response_model=List[Dict[str, Any]])
async def list_child_request_notices(user_id: int, db: AsyncSession = Depends(get_db_session)):
    rows = await notification_service.list_child_request_notices(db, user_id)
    return [row_to_dict(row) for row in rows]


@router.put("/user-childrequest/{user_id}/read-all", response_model=MessageResponse)
async def mark_all_child_request_notices_read(
    user_id: int, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    count = await notification_service.mark_all_child_request_notices_read(db, user_id)
    return MessageResponse(message=f"{count} notification(s) marked as read")


# ── Admin Inbox ───────────────────────────────────────────────────────────
@router.get("/admin-notifications", response_model=List[Dict[str, Any]])
async def list_admin_notifications(
    barangay: str = Query(min_length=1), db: AsyncSession = Depends(get_db_session)
):
    return [row_to_dict(row) for row in await notification_service.list_admin(db, barangay)]


@router.delete("/admin-notifications", response_model=MessageResponse)
async def clear_admin_notifications(
    barangay: str = Query(min_length=1), db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    count = await notification_service.clear_admin(db, barangay)
    return MessageResponse(message=f"{count} notification(s) cleared")


@router.put(
    "/admin-notifications/{notification_id}/read",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def mark_admin_read(
    notification_id: int, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await notification_service.mark_admin_read(db, notification_id)
    return MessageResponse(message="Notification marked as read")


# ── Superadmin Inbox ──────────────────────────────────────────────────────
@router.get("/superadmin-notifications", response_model=List[Dict[str, Any]])
async def list_superadmin_notifications(db: AsyncSession = Depends(get_db_session)):
    return [row_to_dict(row) for row in await notification_service.list_superadmin(db)]


@router.delete("/superadmin-notifications", response_model=MessageResponse)
async def clear_superadmin_notifications(db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    count = await notification_service.clear_superadmin(db)
    return MessageResponse(message=f"{count} notification(s) cleared")


@router.put(
    "/superadmin-notifications/{notification_id}/read",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def mark_superadmin_read(
    notification_id: int, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await notification_service.mark_superadmin_read(db, notification_id)
    return MessageResponse(message="Notification marked as read")
