"""
Solo Parent Backend: Event Routes
==================================

Scheduling (create / update / archive with the one-hour gap rule), listing
with per-account read flags, attendance and ratings.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from soloparent.schemas.events import (
    AttendanceCheck,
    EventOut,
    EventPayload,
    RatingOut,
    RatingRequest,
    UserRef,
)
from soloparent.services.event_service import EventInput, event_service, event_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Events"])

_SCHEDULING_ERRORS = {
    **ERROR_RESPONSES,
    409: {"description": "Less than one hour from another event that day", "model": ErrorResponse},
}


def _event_input(body: EventPayload) -> EventInput:
    return EventInput(
        title=body.title,
        start_date=body.start_date,
        start_time=body.start_time,
        end_time=body.end_time,
        image=body.image,
        description=body.description,
        location=body.location,
        status=body.status,
        visibility=body.visibility,
        barangay=body.barangay,
    )


@router.get("/events", response_model=List[EventOut], responses=ERROR_RESPONSES)
async def list_events(
    user_id: int = Query(alias="userId"),
    role: str = Query(default="user", pattern="^(user|superadmin)$"),
    db: AsyncSession = Depends(get_db_session),
):
    """Events visible to one account, with its read flag."""
    return await event_service.list_for_user(db, user_id, role=role)


@router.get("/events/all", response_model=List[EventOut])
async def list_all_events(
    user_id: Optional[int] = Query(default=None, alias="userId"),
    db: AsyncSession = Depends(get_db_session),
):
    return await event_service.list_all(db, user_id=user_id)


@router.post(
    "/events",
    response_model=EventOut,
    status_code=status.HTTP_201_CREATED,
    responses=_SCHEDULING_ERRORS,
)
async def create_event(body: EventPayload, db: AsyncSession = Depends(get_db_session)):
    event = await event_service.create(db, _event_input(body))
    return event_to_dict(event)


@router.put("/events/{event_id}", response_model=EventOut, responses=_SCHEDULING_ERRORS)
async def update_event(
    event_id: int, body: EventPayload, db: AsyncSession = Depends(get_db_session)
):
    event = await event_service.update(db, event_id, _event_input(body))
    return event_to_dict(event)


@router.delete("/events/{event_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def archive_event(event_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    """Events are archived, never deleted."""
    await event_service.archive(db, event_id)
    return MessageResponse(message="Event archived")


@router.post("/events/{event_id}/read", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def mark_event_read(
    event_id: int, body: UserRef, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await event_service.mark_read(db, event_id, body.user_id)
    return MessageResponse(message="Event marked as read")


# ── Attendance ────────────────────────────────────────────────────────────
@router.get("/events/{event_id}/attendees", response_model=List[Dict[str, Any]])
async def list_attendees(event_id: int, db: AsyncSession = Depends(get_db_session)):
    return await event_service.attendees(db, event_id)


@router.post("/events/{event_id}/attendees", response_model=List[Dict[str, Any]], responses=ERROR_RESPONSES)
async def add_attendee(event_id: int, body: UserRef, db: AsyncSession = Depends(get_db_session)):
    """Only Verified users can attend; returns the updated attendee list."""
    return await event_service.add_attendee(db, event_id, body.user_id)


@router.post("/events/check-attendance")
async def check_attendance(
    body: AttendanceCheck, db: AsyncSession = Depends(get_db_session)
) -> Dict[str, bool]:
    return {"attended": await event_service.check_attendance(db, body.event_id, body.user_id)}


# ── Ratings ───────────────────────────────────────────────────────────────
@router.post("/events/{event_id}/ratings", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def rate_event(
    event_id: int, body: RatingRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await event_service.rate(db, event_id, body.user_id, body.rating)
    return MessageResponse(message="Rating saved")


@router.get("/events/{event_id}/ratings", response_model=List[RatingOut])
async def list_ratings(event_id: int, db: AsyncSession = Depends(get_db_session)):
    return await event_service.ratings(db, event_id)
