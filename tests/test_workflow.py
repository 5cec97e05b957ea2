"""
Case Workflow Tests
====================

What we test:
    ✅ Transition resolution: specific entries win over ANY, undefined pairs are rejected
    ✅ Side effects of a transition (inbox rows, admin notices, pending mail)
    ✅ Idempotent acceptance notice
    ✅ Status recomputation from required documents (missing / pending / rejected / complete)
    ✅ Admin status update, renewal decisions and remarks
    ✅ Mail dispatch after commit, with failure reported instead of raised
"""

import pytest
from sqlalchemy import func, select

from soloparent.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from soloparent.models.notification import (
    AcceptedUser,
    AdminNotification,
    SuperadminNotification,
    TerminatedUser,
    UserRemark,
)
from soloparent.models.user import User
from soloparent.services.document_registry import DocumentType
from soloparent.services.mail_service import MailKind
from soloparent.services.workflow import (
    TRANSITIONS,
    UserStatus,
    WorkflowEvent,
    WorkflowService,
    resolve_transition,
)

SINGLE_PARENT_DOCUMENTS = (
    DocumentType.PSA,
    DocumentType.ITR,
    DocumentType.MED_CERT,
    DocumentType.CENOMAR,
)


async def count(session, model, *criteria):
    return (await session.execute(select(func.count()).select_from(model).where(*criteria))).scalar()


class TestResolveTransition:

    def test_every_event_has_a_transition(self):
        covered = {event for _, event in TRANSITIONS}
        assert covered == set(WorkflowEvent)

    def test_specific_entry_wins_over_any(self):
        transition = resolve_transition("Verified", WorkflowEvent.DOCUMENTS_APPROVED)
        assert transition.target is UserStatus.VERIFIED
        assert transition.effects == ()

    def test_incomplete_case_verifies_with_admin_notice(self):
        transition = resolve_transition("Incomplete", WorkflowEvent.DOCUMENTS_APPROVED)
        assert transition.target is UserStatus.VERIFIED
        assert len(transition.effects) == 1

    def test_any_entry_applies_to_other_statuses(self):
        transition = resolve_transition("Pending Remarks", WorkflowEvent.TERMINATE)
        assert transition.target is UserStatus.TERMINATED

    def test_legacy_status_only_matches_any(self):
        assert resolve_transition("Archived", WorkflowEvent.TERMINATE).target is UserStatus.TERMINATED
        with pytest.raises(InvalidTransitionError):
            resolve_transition("Archived", WorkflowEvent.REINSTATE)

    @pytest.mark.parametrize(
        "status, event",
        [
            ("Verified", WorkflowEvent.REINSTATE),
            ("Pending", WorkflowEvent.FIRST_LOGIN),
            ("Terminated", WorkflowEvent.FLAG_REMARKS),
            ("Verified", WorkflowEvent.CLEAR_REMARKS),
            ("Terminated", WorkflowEvent.DOCUMENTS_APPROVED),
            ("Pending Remarks", WorkflowEvent.DOCUMENTS_INCOMPLETE),
            ("Renewal", WorkflowEvent.DOCUMENTS_INCOMPLETE),
            ("Declined", WorkflowEvent.DOCUMENTS_APPROVED),
        ],
    )
    def test_undefined_pairs_are_rejected(self, status, event):
        with pytest.raises(InvalidTransitionError) as exc_info:
            resolve_transition(status, event)
        assert exc_info.value.context == {"current_status": status, "event": event.value}


class TestApply:

    def setup_method(self):
        self.service = WorkflowService()

    @pytest.mark.asyncio
    async def test_approve_sets_status_and_queues_mail(self, seed, session):
        seeded = await seed.user(status="Pending")
        user = await session.get(User, seeded.id)

        outcome = await self.service.apply(session, user, WorkflowEvent.APPROVE)

        assert user.status == "Created"
        assert outcome.previous == "Pending"
        assert outcome.current is UserStatus.CREATED
        assert len(outcome.mail) == 1
        assert outcome.mail[0].to == "maria@example.com"
        assert outcome.mail[0].kind is MailKind.STATUS
        assert outcome.mail[0].data["status"] == "Accepted"
        assert outcome.mail[0].data["name"] == "Maria"

    @pytest.mark.asyncio
    async def test_acceptance_notice_is_written_once(self, seed, session):
        seeded = await seed.user(status="Pending")
        user = await session.get(User, seeded.id)

        await self.service.apply(session, user, WorkflowEvent.APPROVE)
        await self.service.apply(session, user, WorkflowEvent.APPROVE)

        assert await count(session, AcceptedUser, AcceptedUser.user_id == user.id) == 1

    @pytest.mark.asyncio
    async def test_terminate_notifies_user_and_barangay(self, seed, session):
        seeded = await seed.user(status="Verified")
        user = await session.get(User, seeded.id)

        outcome = await self.service.apply(session, user, WorkflowEvent.TERMINATE)

        assert outcome.current is UserStatus.TERMINATED
        assert await count(session, TerminatedUser, TerminatedUser.user_id == user.id) == 1
        notice = (await session.execute(select(AdminNotification))).scalars().one()
        assert notice.barangay == "San Roque"
        assert notice.notif_type == "terminated"
        assert notice.message == (
            "Maria Santos from your barangay has not been cleared and is now "
            "disqualified as a solo parent after the review."
        )
        assert [pending.kind for pending in outcome.mail] == [MailKind.TERMINATION]

    @pytest.mark.asyncio
    async def test_first_login_from_created(self, seed, session):
        seeded = await seed.user(status="Created")
        user = await session.get(User, seeded.id)

        outcome = await self.service.apply(session, user, WorkflowEvent.FIRST_LOGIN)

        assert outcome.current is UserStatus.VERIFIED
        notice = (await session.execute(select(AdminNotification))).scalars().one()
        assert notice.message == "Maria Santos is a new solo parent in your barangay."


class TestRecomputeStatus:

    def setup_method(self):
        self.service = WorkflowService()

    @pytest.mark.asyncio
    async def test_all_required_approved_verifies(self, seed, session):
        await seed.user(status="Pending", civil_status="single")
        for document_type in SINGLE_PARENT_DOCUMENTS:
            await seed.document(document_type, status="Approved")

        result = await self.service.recompute_status(session, "SP-0001")

        assert result.status == "Verified"
        assert result.previous_status == "Pending"
        assert result.all_documents_submitted is True
        assert result.has_pending_documents is False
        assert [doc["documentType"] for doc in result.documents] == ["psa", "itr", "med_cert", "cenomar"]

    @pytest.mark.asyncio
    async def test_missing_document_is_incomplete(self, seed, session):
        await seed.user(status="Pending", civil_status="widowed")
        for document_type in (DocumentType.PSA, DocumentType.ITR, DocumentType.MED_CERT, DocumentType.MARRIAGE):
            await seed.document(document_type, status="Approved")

        result = await self.service.recompute_status(session, "SP-0001")

        assert result.status == "Incomplete"
        assert result.all_documents_submitted is False
        assert result.documents[-1] == {
            "documentType": "death_cert",
            "tableName": "death_cert_documents",
            "displayName": "Death Certificate",
            "status": "Missing",
        }

    @pytest.mark.asyncio
    async def test_pending_document_is_incomplete_but_submitted(self, seed, session):
        await seed.user(status="Pending", civil_status="single")
        for document_type in SINGLE_PARENT_DOCUMENTS[:-1]:
            await seed.document(document_type, status="Approved")
        await seed.document(DocumentType.CENOMAR, status="Pending")

        result = await self.service.recompute_status(session, "SP-0001")

        assert result.status == "Incomplete"
        assert result.all_documents_submitted is True
        assert result.has_pending_documents is True

    @pytest.mark.asyncio
    async def test_rejected_document_counts_as_not_submitted(self, seed, session):
        await seed.user(status="Pending", civil_status=None)
        await seed.document(DocumentType.PSA, status="Approved")
        await seed.document(DocumentType.ITR, status="Rejected")
        await seed.document(DocumentType.MED_CERT, status="Approved")

        result = await self.service.recompute_status(session, "SP-0001")

        assert result.status == "Incomplete"
        assert result.all_documents_submitted is False
        assert result.has_pending_documents is False

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self, seed, session):
        await seed.user(status="Pending", civil_status="single")
        for document_type in SINGLE_PARENT_DOCUMENTS:
            await seed.document(document_type, status="Approved")

        first = await self.service.recompute_status(session, "SP-0001")
        second = await self.service.recompute_status(session, "SP-0001")

        assert first.status == second.status == "Verified"
        assert second.previous_status == "Verified"
        assert await count(session, AdminNotification) == 1

    @pytest.mark.asyncio
    async def test_unknown_case(self, session):
        with pytest.raises(NotFoundError):
            await self.service.recompute_status(session, "SP-9999")

    @pytest.mark.asyncio
    async def test_approving_last_document_verifies_case(self, seed, session):
        await seed.user(status="Incomplete", civil_status=None)
        await seed.document(DocumentType.PSA, status="Approved")
        await seed.document(DocumentType.ITR, status="Approved")
        await seed.document(DocumentType.MED_CERT, status="Pending")

        document, recomputed = await self.service.review_document(
            session, "SP-0001", DocumentType.MED_CERT, "Approved"
        )

        assert document["status"] == "Approved"
        assert recomputed.status == "Verified"

    @pytest.mark.asyncio
    async def test_terminated_case_is_not_verified_by_documents(self, seed, session):
        await seed.user(status="Terminated", civil_status=None)
        await seed.document(DocumentType.PSA, status="Approved")
        await seed.document(DocumentType.ITR, status="Approved")
        await seed.document(DocumentType.MED_CERT, status="Pending")

        document, recomputed = await self.service.review_document(
            session, "SP-0001", DocumentType.MED_CERT, "Approved"
        )

        assert document["status"] == "Approved"
        assert recomputed.status == "Terminated"
        assert recomputed.previous_status == "Terminated"
        assert recomputed.changed is False
        user = (await session.execute(select(User).where(User.code_id == "SP-0001"))).scalars().one()
        assert user.status == "Terminated"
        assert await count(session, AcceptedUser) == 0
        assert await count(session, AdminNotification) == 0

    @pytest.mark.asyncio
    async def test_pending_remarks_case_is_not_demoted(self, seed, session):
        await seed.user(status="Pending Remarks", civil_status=None)
        await seed.document(DocumentType.PSA, status="Pending")
        await seed.document(DocumentType.ITR, status="Pending")

        _, recomputed = await self.service.review_document(
            session, "SP-0001", DocumentType.PSA, "Approved"
        )

        assert recomputed.status == "Pending Remarks"
        assert recomputed.changed is False
        assert recomputed.has_pending_documents is True
        user = (await session.execute(select(User).where(User.code_id == "SP-0001"))).scalars().one()
        assert user.status == "Pending Remarks"

    @pytest.mark.asyncio
    async def test_verified_case_with_pending_document_becomes_incomplete(self, seed, session):
        await seed.user(status="Verified", civil_status=None)
        await seed.document(DocumentType.PSA, status="Approved")
        await seed.document(DocumentType.ITR, status="Pending")
        await seed.document(DocumentType.MED_CERT, status="Approved")

        result = await self.service.recompute_status(session, "SP-0001")

        assert result.status == "Incomplete"
        assert result.changed is True

    @pytest.mark.asyncio
    async def test_rejecting_document_skips_recompute(self, seed, session):
        await seed.user(status="Pending", civil_status=None)
        await seed.document(DocumentType.PSA, status="Pending")

        document, recomputed = await self.service.review_document(
            session, "SP-0001", DocumentType.PSA, "Rejected", rejection_reason="Blurred scan"
        )

        assert document["rejectionReason"] == "Blurred scan"
        assert recomputed is None


class TestStatusOperations:

    def setup_method(self):
        self.service = WorkflowService()

    @pytest.mark.asyncio
    async def test_update_status_can_approve_every_document(self, seed, session):
        await seed.user(status="Pending")
        await seed.document(DocumentType.PSA, status="Pending")
        await seed.document(DocumentType.ITR, status="Rejected")

        outcome = await self.service.update_status(
            session, "SP-0001", "Created", approve_documents=True, approval="approved"
        )

        assert outcome.current is UserStatus.CREATED
        rows = (await session.execute(select(DocumentType.PSA.model))).scalars().all()
        rows += (await session.execute(select(DocumentType.ITR.model))).scalars().all()
        assert {row.status for row in rows} == {"Approved"}
        user = (await session.execute(select(User))).scalars().one()
        assert user.approval == "approved"

    @pytest.mark.asyncio
    async def test_update_status_rejects_unknown_status(self, session):
        with pytest.raises(ValidationError):
            await self.service.update_status(session, "SP-0001", "Terminated")

    @pytest.mark.asyncio
    async def test_declined_renewal_drops_barangay_certificate(self, seed, session):
        seeded = await seed.user(status="Renewal")
        await seed.document(DocumentType.BARANGAY_CERT, status="Pending")

        outcome = await self.service.decide_renewal(session, seeded.id, "Declined", remarks="Expired")

        assert outcome.current is UserStatus.DECLINED
        assert await count(session, DocumentType.BARANGAY_CERT.model) == 0

    @pytest.mark.asyncio
    async def test_approved_renewal_approves_certificate(self, seed, session):
        seeded = await seed.user(status="Renewal")
        await seed.document(DocumentType.BARANGAY_CERT, status="Pending")

        outcome = await self.service.decide_renewal(session, seeded.id, "Verified")

        assert outcome.current is UserStatus.VERIFIED
        row = (await session.execute(select(DocumentType.BARANGAY_CERT.model))).scalars().one()
        assert row.status == "Approved"
        assert [pending.kind for pending in outcome.mail] == [MailKind.RENEWAL_STATUS]

    @pytest.mark.asyncio
    async def test_flag_remarks_records_remark_and_notifies_superadmin(self, seed, session):
        admin = await seed.admin()
        await seed.user(status="Verified")

        outcome = await self.service.flag_remarks(
            session, "SP-0001", "Income above threshold", admin_id=admin.id
        )

        assert outcome.current is UserStatus.PENDING_REMARKS
        remark = (await session.execute(select(UserRemark))).scalars().one()
        assert remark.remarks == "Income above threshold"
        assert remark.admin_id == admin.id
        notice = (await session.execute(select(SuperadminNotification))).scalars().one()
        assert notice.message == "From Barangay San Roque: Maria has pending remarks."

    @pytest.mark.asyncio
    async def test_flag_remarks_requires_verified_case(self, seed, session):
        await seed.user(status="Terminated")
        with pytest.raises(InvalidTransitionError):
            await self.service.flag_remarks(session, "SP-0001", "Late compliance")

    @pytest.mark.asyncio
    async def test_flag_remarks_requires_text(self, session):
        with pytest.raises(ValidationError):
            await self.service.flag_remarks(session, "SP-0001", "   ")


class TestDispatchMail:

    def setup_method(self):
        self.service = WorkflowService()

    @pytest.mark.asyncio
    async def test_no_mail_effects(self, seed, session, mail):
        seeded = await seed.user(status="Verified")
        user = await session.get(User, seeded.id)
        outcome = await self.service.apply(session, user, WorkflowEvent.DOCUMENTS_INCOMPLETE)

        assert await self.service.dispatch_mail(outcome) is None
        mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivery_reported(self, seed, session, mail):
        seeded = await seed.user(status="Pending")
        outcome = await self.service.update_status(session, "SP-0001", "Declined", remarks="Incomplete ITR")

        assert await self.service.dispatch_mail(outcome) is True
        mail.send.assert_awaited_once_with(
            seeded.email, "status", {"name": "Maria", "remarks": "Incomplete ITR", "status": "Declined"}
        )

    @pytest.mark.asyncio
    async def test_failed_send_does_not_raise(self, seed, session, mail):
        await seed.user(status="Pending")
        mail.send.return_value = False

        outcome = await self.service.update_status(session, "SP-0001", "Created")

        assert await self.service.dispatch_mail(outcome) is False
        user = (await session.execute(select(User))).scalars().one()
        assert user.status == "Created"
