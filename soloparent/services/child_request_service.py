"""
Solo Parent Backend: Child Requests
====================================

What:  Requests by a Verified solo parent to add a dependent to their case.
How:   Two-stage review. The barangay admin endorses or declines; an
       endorsed request then waits for the superadmin (MSWDO).

    submit ──▶ Pending ──barangay approve──▶ Approved, case → Pending Request
                  │                              │
                  └──barangay decline──▶ deleted ├──superadmin approve──▶ family member added, deleted
                                                 └──superadmin decline──▶ deleted
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import row_to_dict
from soloparent.exceptions import NotFoundError, ValidationError
from soloparent.models.records import ChildRequest
from soloparent.models.user import FamilyMember, IdentifyingInformation, User
from soloparent.services.notification_service import notification_service
from soloparent.services.retry import run_with_lock_retry
from soloparent.services.workflow import (
    TransitionContext,
    TransitionOutcome,
    WorkflowEvent,
    workflow_service,
)

logger = logging.getLogger(__name__)

NEW_CHILD_REQUEST_MESSAGE = "A new child request has been submitted by a user in your barangay."
BARANGAY_DECLINED_MESSAGE = "Sorry that your barangay admin has declined your request."


def family_member_name(request: ChildRequest) -> str:
    """'First Middle Last Suffix' with absent parts skipped."""
    parts = [request.first_name, request.middle_name, request.last_name, request.suffix]
    return " ".join(part.strip() for part in parts if part and part.strip())


class ChildRequestService:

    async def submit(
        self,
        db: AsyncSession,
        code_id: str,
        first_name: str,
        last_name: str,
        birthdate: Optional[date],
        educational_attainment: str,
        middle_name: Optional[str] = None,
        suffix: Optional[str] = None,
        age: Optional[int] = None,
    ) -> ChildRequest:
        if not (code_id and first_name and last_name and birthdate and educational_attainment):
            raise ValidationError("Missing required fields.")

        user = (await db.execute(select(User).where(User.code_id == code_id))).scalars().first()
        if user is None:
            raise NotFoundError(resource="user", resource_id=code_id)
        barangay = (
            await db.execute(
                select(IdentifyingInformation.barangay).where(
                    IdentifyingInformation.code_id == code_id
                )
            )
        ).scalar()

        request = ChildRequest(
            code_id=code_id,
            first_name=first_name,
            middle_name=middle_name,
            last_name=last_name,
            suffix=suffix,
            birthdate=birthdate,
            age=age,
            educational_attainment=educational_attainment,
            barangay=barangay,
            status="Pending",
        )
        db.add(request)
        if barangay:
            await notification_service.notify_admin(
                db,
                barangay=barangay,
                notif_type="new_child_request",
                message=NEW_CHILD_REQUEST_MESSAGE,
                user_id=user.id,
            )
        await db.flush()
        logger.info("Child request %d submitted for case %s", request.id, code_id)
        return request

    async def list_requests(
        self, db: AsyncSession, code_id: Optional[str] = None, barangay: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        query = select(ChildRequest)
        if code_id:
            query = query.where(ChildRequest.code_id == code_id)
        if barangay:
            query = query.where(ChildRequest.barangay == barangay)
        query = query.order_by(ChildRequest.requested_at.desc(), ChildRequest.id.desc())
        return [row_to_dict(row) for row in (await db.execute(query)).scalars().all()]

    # ── Review ────────────────────────────────────────────────────────────
    async def _request_and_user(self, db: AsyncSession, request_id: int, lock: bool = True):
        request = await db.get(ChildRequest, request_id)
        if request is None:
            raise NotFoundError(resource="child request", resource_id=request_id)
        query = select(User).where(User.code_id == request.code_id)
        if lock:
            query = query.with_for_update()
        user = (await db.execute(query)).scalars().first()
        if user is None:
            raise NotFoundError(resource="user", resource_id=request.code_id)
        return request, user

    async def barangay_approve(self, db: AsyncSession, request_id: int) -> TransitionOutcome:
        async def unit(session: AsyncSession) -> TransitionOutcome:
            request, user = await self._request_and_user(session, request_id)
            request.status = "Approved"
            return await workflow_service.apply(
                session,
                user,
                WorkflowEvent.CHILD_REQUEST_ENDORSED,
                TransitionContext(barangay=request.barangay or "Unknown"),
            )

        return await run_with_lock_retry(db, unit, operation="approving the child request")

    async def barangay_decline(self, db: AsyncSession, request_id: int) -> None:
        request, user = await self._request_and_user(db, request_id, lock=False)
        await notification_service.notify_child_request(db, user.id, BARANGAY_DECLINED_MESSAGE)
        await db.delete(request)
        await db.flush()
        logger.info("Child request %d declined by barangay", request_id)

    async def superadmin_approve(self, db: AsyncSession, request_id: int) -> TransitionOutcome:
        """Adds the child to the case's family members, then removes the request."""

        async def unit(session: AsyncSession) -> TransitionOutcome:
            request, user = await self._request_and_user(session, request_id)
            session.add(
                FamilyMember(
                    code_id=request.code_id,
                    family_member_name=family_member_name(request),
                    age=request.age,
                    educational_attainment=request.educational_attainment,
                    birthdate=request.birthdate,
                )
            )
            outcome = await workflow_service.apply(session, user, WorkflowEvent.CHILD_REQUEST_APPROVED)
            await session.delete(request)
            return outcome

        return await run_with_lock_retry(db, unit, operation="approving the child request")

    async def superadmin_decline(self, db: AsyncSession, request_id: int) -> TransitionOutcome:
        async def unit(session: AsyncSession) -> TransitionOutcome:
            request, user = await self._request_and_user(session, request_id)
            outcome = await workflow_service.apply(session, user, WorkflowEvent.CHILD_REQUEST_REJECTED)
            await session.delete(request)
            return outcome

        return await run_with_lock_retry(db, unit, operation="declining the child request")


child_request_service = ChildRequestService()
