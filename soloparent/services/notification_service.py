"""
Solo Parent Backend: Notification Service
==========================================

What:  Writers that append inbox rows as side effects of workflow
       transitions, and the readers / mark-as-read operations behind the
       notification endpoints.
How:   Writers only `add` + `flush`; the caller's transaction decides whether
       the row survives. Mark-as-read paths lock the unread rows with
       FOR UPDATE and run through the retry-on-lock combinator.

Idempotency:
    Writers called with `once=True` insert only when the user has no unread
    row of the same kind (same table and same message). Calling the accept
    transition twice therefore leaves one unread acceptance.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.exceptions import NotFoundError, ValidationError
from soloparent.models.notification import (
    AcceptedUser,
    AdminNotification,
    DeclinedUser,
    FollowUpDocument,
    SuperadminNotification,
    TerminatedUser,
    UserChildRequestNotice,
    UserRemark,
)
from soloparent.services.retry import run_with_lock_retry

logger = logging.getLogger(__name__)

REMARKS_NOTICE = (
    "Your application is currently under investigation. Kindly proceed to your "
    "designated SPO to complete the necessary compliance requirements. You are "
    "given 5 to 7 working days to comply."
)
RENEWED_MESSAGE = "You have renewed"

# Inbox type → table holding it
_USER_INBOX_MODELS: Dict[str, Type[Any]] = {
    "application_accepted": AcceptedUser,
    "renewal_accepted": AcceptedUser,
    "application_declined": DeclinedUser,
    "application_terminated": TerminatedUser,
    "application_remarks": UserRemark,
}


class NotificationService:
    """
    Notification writers and inbox operations for all three audiences.

    Responsibilities:
        - user inbox: accepted / declined / terminated / remarks rows
        - follow-up document notices and child-request notices
        - admin (per barangay) and superadmin inboxes
    """

    # ── Writers ───────────────────────────────────────────────────────────
    async def notify_accepted(
        self, db: AsyncSession, user_id: int, message: str, once: bool = False
    ) -> bool:
        if once and await self._has_unread(db, AcceptedUser, user_id, AcceptedUser.message == message):
            return False
        db.add(AcceptedUser(user_id=user_id, message=message, is_read=False))
        await db.flush()
        return True

    async def notify_declined(
        self, db: AsyncSession, user_id: int, remarks: str, once: bool = False
    ) -> bool:
        if once and await self._has_unread(db, DeclinedUser, user_id):
            return False
        db.add(DeclinedUser(user_id=user_id, remarks=remarks, is_read=False))
        await db.flush()
        return True

    async def notify_terminated(
        self, db: AsyncSession, user_id: int, message: str, once: bool = False
    ) -> bool:
        if once and await self._has_unread(db, TerminatedUser, user_id):
            return False
        db.add(TerminatedUser(user_id=user_id, message=message, is_read=False))
        await db.flush()
        return True

    async def add_remark(
        self,
        db: AsyncSession,
        user_id: int,
        code_id: str,
        remarks: str,
        admin_id: Optional[int] = None,
        superadmin_id: Optional[int] = None,
    ) -> UserRemark:
        remark = UserRemark(
            user_id=user_id,
            code_id=code_id,
            remarks=remarks,
            admin_id=admin_id,
            superadmin_id=superadmin_id,
            is_read=False,
        )
        db.add(remark)
        await db.flush()
        return remark

    async def notify_follow_up(self, db: AsyncSession, user_id: int, message: str) -> None:
        db.add(FollowUpDocument(user_id=user_id, message=message, is_read=False))
        await db.flush()

    async def notify_child_request(self, db: AsyncSession, user_id: int, message: str) -> None:
        db.add(UserChildRequestNotice(user_id=user_id, message_accepted=message, is_read=False))
        await db.flush()

    async def notify_admin(
        self,
        db: AsyncSession,
        barangay: Optional[str],
        notif_type: str,
        message: str,
        user_id: Optional[int] = None,
    ) -> None:
        db.add(
            AdminNotification(
                user_id=user_id,
                barangay=barangay,
                notif_type=notif_type,
                message=message,
                is_read=False,
            )
        )
        await db.flush()

    async def notify_superadmin(
        self,
        db: AsyncSession,
        notif_type: str,
        message: str,
        user_id: Optional[int] = None,
    ) -> None:
        db.add(
            SuperadminNotification(
                user_id=user_id, notif_type=notif_type, message=message, is_read=False
            )
        )
        await db.flush()

    async def _has_unread(self, db: AsyncSession, model: Type[Any], user_id: int, *criteria) -> bool:
        result = await db.execute(
            select(model.id)
            .where(model.user_id == user_id, model.is_read.is_(False), *criteria)
            .limit(1)
        )
        return result.first() is not None

    # ── User Inbox ────────────────────────────────────────────────────────
    async def user_inbox(self, db: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
        """
        Merge the four user-facing tables into one list, newest first.

        Each item: {id, type, message, created_at, is_read}.
        """
        items: List[Dict[str, Any]] = []

        for row in (await db.execute(select(AcceptedUser).where(AcceptedUser.user_id == user_id))).scalars():
            notif_type = "renewal_accepted" if row.message == RENEWED_MESSAGE else "application_accepted"
            items.append(self._item(row.id, notif_type, row.message, row.accepted_at, row.is_read))

        for row in (await db.execute(select(DeclinedUser).where(DeclinedUser.user_id == user_id))).scalars():
            message = f"Your application has been declined. Remarks: {row.remarks}"
            items.append(self._item(row.id, "application_declined", message, row.declined_at, row.is_read))

        for row in (await db.execute(select(TerminatedUser).where(TerminatedUser.user_id == user_id))).scalars():
            items.append(
                self._item(row.id, "application_terminated", row.message, row.terminated_at, row.is_read)
            )

        for row in (await db.execute(select(UserRemark).where(UserRemark.user_id == user_id))).scalars():
            items.append(self._item(row.id, "application_remarks", REMARKS_NOTICE, row.remarks_at, row.is_read))

        items.sort(key=lambda item: (item["created_at"], item["id"]), reverse=True)
        return items

    @staticmethod
    def _item(item_id: int, notif_type: str, message: str, created_at: datetime, is_read: bool) -> Dict[str, Any]:
        return {
            "id": item_id,
            "type": notif_type,
            "message": message,
            "created_at": created_at,
            "is_read": bool(is_read),
        }

    async def mark_user_read(self, db: AsyncSession, user_id: int, notif_type: str) -> int:
        """Mark every unread row of one inbox type as read; returns the row count."""
        model = _USER_INBOX_MODELS.get(notif_type)
        if model is None:
            raise ValidationError(f"Invalid notification type: {notif_type}", field="type")

        async def unit(session: AsyncSession) -> int:
            return await self._mark_rows_read(session, model, user_id)

        return await run_with_lock_retry(db, unit, operation="marking notifications as read")

    async def mark_all_user_read(self, db: AsyncSession, user_id: int) -> int:
        models = (AcceptedUser, DeclinedUser, TerminatedUser, UserRemark)

        async def unit(session: AsyncSession) -> int:
            total = 0
            for model in models:
                total += await self._mark_rows_read(session, model, user_id)
            return total

        return await run_with_lock_retry(db, unit, operation="marking notifications as read")

    @staticmethod
    async def _mark_rows_read(db: AsyncSession, model: Type[Any], user_id: int) -> int:
        result = await db.execute(
            select(model)
            .where(model.user_id == user_id, model.is_read.is_(False))
            .with_for_update()
        )
        rows = list(result.scalars())
        for row in rows:
            row.is_read = True
        await db.flush()
        return len(rows)

    # ── Follow-up Documents ───────────────────────────────────────────────
    async def list_follow_ups(self, db: AsyncSession, user_id: int) -> List[FollowUpDocument]:
        result = await db.execute(
            select(FollowUpDocument)
            .where(FollowUpDocument.user_id == user_id)
            .order_by(FollowUpDocument.accepted_at.desc(), FollowUpDocument.id.desc())
        )
        return list(result.scalars())

    async def mark_follow_up_read(self, db: AsyncSession, notification_id: int) -> None:
        row = await db.get(FollowUpDocument, notification_id)
        if row is None:
            raise NotFoundError(resource="notification", resource_id=notification_id)
        row.is_read = True
        await db.flush()

    async def mark_all_follow_ups_read(self, db: AsyncSession, user_id: int) -> int:
        async def unit(session: AsyncSession) -> int:
            return await self._mark_rows_read(session, FollowUpDocument, user_id)

        return await run_with_lock_retry(db, unit, operation="marking notifications as read")

    # ── Child Request Notices ─────────────────────────────────────────────
    async def list_child_request_notices(
        self, db: AsyncSession, user_id: int
    ) -> List[UserChildRequestNotice]:
        result = await db.execute(
            select(UserChildRequestNotice)
            .where(UserChildRequestNotice.user_id == user_id)
            .order_by(UserChildRequestNotice.created_at.desc(), UserChildRequestNotice.id.desc())
        )
        return list(result.scalars())

    async def mark_all_child_request_notices_read(self, db: AsyncSession, user_id: int) -> int:
        async def unit(session: AsyncSession) -> int:
            return await self._mark_rows_read(session, UserChildRequestNotice, user_id)

        return await run_with_lock_retry(db, unit, operation="marking notifications as read")

    # ── Admin Inbox ───────────────────────────────────────────────────────
    async def list_admin(self, db: AsyncSession, barangay: str) -> List[AdminNotification]:
        result = await db.execute(
            select(AdminNotification)
            .where(AdminNotification.barangay == barangay)
            .order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
        )
        return list(result.scalars())

    async def clear_admin(self, db: AsyncSession, barangay: str) -> int:
        result = await db.execute(
            delete(AdminNotification).where(AdminNotification.barangay == barangay)
        )
        return result.rowcount or 0

    async def mark_admin_read(self, db: AsyncSession, notification_id: int) -> None:
        row = await db.get(AdminNotification, notification_id)
        if row is None:
            raise NotFoundError(resource="notification", resource_id=notification_id)
        row.is_read = True
        await db.flush()

    # ── Superadmin Inbox ──────────────────────────────────────────────────
    async def list_superadmin(self, db: AsyncSession) -> List[SuperadminNotification]:
        result = await db.execute(
            select(SuperadminNotification).order_by(
                SuperadminNotification.created_at.desc(), SuperadminNotification.id.desc()
            )
        )
        return list(result.scalars())

    async def clear_superadmin(self, db: AsyncSession) -> int:
        result = await db.execute(delete(SuperadminNotification))
        return result.rowcount or 0

    async def mark_superadmin_read(self, db: AsyncSession, notification_id: int) -> None:
        row = await db.get(SuperadminNotification, notification_id)
        if row is None:
            raise NotFoundError(resource="notification", resource_id=notification_id)
        row.is_read = True
        await db.flush()


notification_service = NotificationService()
