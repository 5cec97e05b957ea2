"""
Notification Service Tests
===========================

What we test:
    ✅ once=True writers skip while an unread row of the same kind exists
    ✅ The user inbox merges four tables, typed and newest first
    ✅ Mark-as-read per type and for everything; unknown types are rejected
    ✅ Admin inboxes are scoped by barangay
"""

from datetime import datetime

import pytest

from soloparent.exceptions import NotFoundError, ValidationError
from soloparent.models.notification import AcceptedUser, DeclinedUser, TerminatedUser, UserRemark
from soloparent.services.notification_service import (
    REMARKS_NOTICE,
    RENEWED_MESSAGE,
    NotificationService,
)


class TestWriters:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_once_skips_duplicate_unread(self, session):
        assert await self.service.notify_accepted(session, 1, "Accepted", once=True) is True
        assert await self.service.notify_accepted(session, 1, "Accepted", once=True) is False
        assert await self.service.notify_accepted(session, 1, "Renewed", once=True) is True

    @pytest.mark.asyncio
    async def test_once_writes_again_after_read(self, session):
        await self.service.notify_declined(session, 1, "Incomplete", once=True)
        await self.service.mark_user_read(session, 1, "application_declined")

        assert await self.service.notify_declined(session, 1, "Incomplete", once=True) is True


class TestUserInbox:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_inbox_merges_tables_newest_first(self, seed, session):
        await seed.save(
            AcceptedUser(user_id=1, message="Your application has been accepted.", accepted_at=datetime(2030, 1, 1)),
            DeclinedUser(user_id=1, remarks="Blurred ITR", declined_at=datetime(2030, 1, 2)),
            AcceptedUser(user_id=1, message=RENEWED_MESSAGE, accepted_at=datetime(2030, 1, 3)),
            UserRemark(user_id=1, code_id="SP-0001", remarks="Check income", remarks_at=datetime(2030, 1, 4)),
            TerminatedUser(user_id=1, message="Your account has been terminated.", terminated_at=datetime(2030, 1, 5)),
            AcceptedUser(user_id=2, message="Someone else", accepted_at=datetime(2030, 1, 6)),
        )

        inbox = await self.service.user_inbox(session, 1)

        assert [item["type"] for item in inbox] == [
            "application_terminated",
            "application_remarks",
            "renewal_accepted",
            "application_declined",
            "application_accepted",
        ]
        assert inbox[1]["message"] == REMARKS_NOTICE
        assert inbox[3]["message"] == "Your application has been declined. Remarks: Blurred ITR"
        assert all(item["is_read"] is False for item in inbox)

    @pytest.mark.asyncio
    async def test_mark_one_type_read(self, seed, session):
        await seed.save(
            AcceptedUser(user_id=1, message="a"),
            AcceptedUser(user_id=1, message="b"),
            DeclinedUser(user_id=1, remarks="c"),
        )

        assert await self.service.mark_user_read(session, 1, "application_accepted") == 2

        unread = [item["type"] for item in await self.service.user_inbox(session, 1) if not item["is_read"]]
        assert unread == ["application_declined"]

    @pytest.mark.asyncio
    async def test_mark_all_read(self, seed, session):
        await seed.save(
            AcceptedUser(user_id=1, message="a"),
            TerminatedUser(user_id=1, message="b"),
            UserRemark(user_id=1, code_id="SP-0001", remarks="c"),
        )

        assert await self.service.mark_all_user_read(session, 1) == 3
        assert await self.service.mark_all_user_read(session, 1) == 0

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, session):
        with pytest.raises(ValidationError):
            await self.service.mark_user_read(session, 1, "application_lost")


class TestStaffInboxes:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_admin_inbox_is_per_barangay(self, session):
        await self.service.notify_admin(session, "San Roque", "new_solo_parent", "one")
        await self.service.notify_admin(session, "Poblacion", "new_solo_parent", "two")

        rows = await self.service.list_admin(session, "San Roque")
        assert [row.message for row in rows] == ["one"]

        assert await self.service.clear_admin(session, "San Roque") == 1
        assert [row.message for row in await self.service.list_admin(session, "Poblacion")] == ["two"]

    @pytest.mark.asyncio
    async def test_superadmin_mark_read(self, session):
        await self.service.notify_superadmin(session, "remarks", "Check case")
        row = (await self.service.list_superadmin(session))[0]

        await self.service.mark_superadmin_read(session, row.id)

        assert row.is_read is True
        with pytest.raises(NotFoundError):
            await self.service.mark_superadmin_read(session, 999)
