"""
Solo Parent Backend: Case Status Workflow
==========================================

What:  The state machine behind `users.status` and every operation that
       moves a case through it.
How:   `TRANSITIONS` maps (source status | ANY, event) to a target status
       plus a tuple of side effects. `WorkflowService.apply` is the only
       code that writes the status column: it resolves the transition,
       sets the status, performs the notification effects in the caller's
       transaction and returns the mail effects for dispatch after commit.

Lifecycle:

    Pending ──APPROVE──▶ Created ──FIRST_LOGIN──▶ Verified ◀──REINSTATE── Terminated
       │                                            │  ▲                      ▲
       └──DECLINE──▶ Declined          FLAG_REMARKS │  │ CLEAR_REMARKS        │
                                                    ▼  │                      │
                                              Pending Remarks ──UPHOLD_REMARKS┘

    Document review drives DOCUMENTS_APPROVED (→ Verified) and
    DOCUMENTS_INCOMPLETE (→ Incomplete) through recompute_status(), for
    Pending, Created, Incomplete and Verified cases only.
    Renewal and child-request events follow the table below.

Resolution: an entry for the case's exact status wins over an ANY entry;
a pair with neither raises InvalidTransitionError (409).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from soloparent.models.user import IdentifyingInformation, User
from soloparent.services.document_registry import DocumentType, required_documents
from soloparent.services.document_service import document_service, document_to_dict
from soloparent.services.mail_service import MailKind, mail_service
from soloparent.services.notification_service import notification_service
from soloparent.services.retry import run_with_lock_retry

logger = logging.getLogger(__name__)


class UserStatus(str, Enum):
    PENDING = "Pending"
    CREATED = "Created"
    VERIFIED = "Verified"
    DECLINED = "Declined"
    RENEWAL = "Renewal"
    PENDING_REMARKS = "Pending Remarks"
    TERMINATED = "Terminated"
    INCOMPLETE = "Incomplete"
    PENDING_REQUEST = "Pending Request"


class WorkflowEvent(str, Enum):
    APPROVE = "approve"
    VERIFY = "verify"
    DECLINE = "decline"
    MARK_RENEWAL = "mark_renewal"
    FIRST_LOGIN = "first_login"
    DOCUMENTS_APPROVED = "documents_approved"
    DOCUMENTS_INCOMPLETE = "documents_incomplete"
    TERMINATE = "terminate"
    REINSTATE = "reinstate"
    FLAG_REMARKS = "flag_remarks"
    CLEAR_REMARKS = "clear_remarks"
    UPHOLD_REMARKS = "uphold_remarks"
    RENEWAL_APPROVED = "renewal_approved"
    RENEWAL_RETURNED = "renewal_returned"
    RENEWAL_DECLINED = "renewal_declined"
    CHILD_REQUEST_ENDORSED = "child_request_endorsed"
    CHILD_REQUEST_APPROVED = "child_request_approved"
    CHILD_REQUEST_REJECTED = "child_request_rejected"


ANY = "*"


# ── Side Effects ──────────────────────────────────────────────────────────
class NoticeTable(str, Enum):
    ACCEPTED = "accepted_users"
    DECLINED = "declined_users"
    TERMINATED = "terminated_users"
    CHILD_REQUEST = "user_childrequest"


@dataclass(frozen=True)
class UserNotice:
    """
    Row in a user-facing table.

    message=None takes the transition's remarks (or `fallback`); the notice
    is skipped when neither is available. once=True inserts only when no
    unread row of the same kind exists.
    """

    table: NoticeTable
    message: Optional[str] = None
    fallback: Optional[str] = None
    once: bool = False


@dataclass(frozen=True)
class AdminNotice:
    notif_type: str
    template: str


@dataclass(frozen=True)
class SuperadminNotice:
    notif_type: str
    template: str


@dataclass(frozen=True)
class RemarkRecord:
    """Row in user_remarks carrying the transition's remarks."""


@dataclass(frozen=True)
class MailEffect:
    kind: MailKind
    status: Optional[str] = None


Effect = Union[UserNotice, AdminNotice, SuperadminNotice, RemarkRecord, MailEffect]


@dataclass(frozen=True)
class Transition:
    target: UserStatus
    effects: Tuple[Effect, ...] = ()


ACCEPTED_MESSAGE = "Your application has been accepted."
RENEWAL_DUE_MESSAGE = "Your ID has expired. Please submit your renewal application."
TERMINATED_MESSAGE = "Your account has been terminated."
REACTIVATED_MESSAGE = "Your account has been reactivated."
REVERIFIED_MESSAGE = "Your account has been verified."
RENEWAL_APPROVED_MESSAGE = "Your renewal has been approved by a superadmin"
CHILD_REQUEST_ENDORSED_MESSAGE = (
    "Your child request has been accepted by your barangay and is now waiting "
    "for approval from the MSWDO."
)
CHILD_REQUEST_APPROVED_MESSAGE = "Your child request has been approved by the MSWDO."
CHILD_REQUEST_REJECTED_MESSAGE = "Sorry, your child request has been declined by the MSWDO."

NEW_SOLO_PARENT_TEMPLATE = "{name} is a new solo parent in your barangay."
TERMINATED_TEMPLATE = (
    "{name} from your barangay has not been cleared and is now disqualified "
    "as a solo parent after the review."
)
REMARKS_TEMPLATE = "From Barangay {barangay}: {first_name} has pending remarks."
CHILD_REQUEST_TEMPLATE = "A child request has been approved from barangay {barangay}."

_ACCEPTED_ONCE = UserNotice(NoticeTable.ACCEPTED, ACCEPTED_MESSAGE, once=True)
_NEW_SOLO_PARENT = AdminNotice("new_solo_parent", NEW_SOLO_PARENT_TEMPLATE)

TRANSITIONS: Dict[Tuple[Union[UserStatus, str], WorkflowEvent], Transition] = {
    (ANY, WorkflowEvent.APPROVE): Transition(
        UserStatus.CREATED, (_ACCEPTED_ONCE, MailEffect(MailKind.STATUS, "Accepted"))
    ),
    (ANY, WorkflowEvent.VERIFY): Transition(
        UserStatus.VERIFIED, (_ACCEPTED_ONCE, MailEffect(MailKind.STATUS, "Accepted"))
    ),
    (ANY, WorkflowEvent.DECLINE): Transition(
        UserStatus.DECLINED,
        (UserNotice(NoticeTable.DECLINED, once=True), MailEffect(MailKind.STATUS, "Declined")),
    ),
    (ANY, WorkflowEvent.MARK_RENEWAL): Transition(
        UserStatus.RENEWAL, (UserNotice(NoticeTable.ACCEPTED, RENEWAL_DUE_MESSAGE, once=True),)
    ),
    (UserStatus.CREATED, WorkflowEvent.FIRST_LOGIN): Transition(
        UserStatus.VERIFIED, (_NEW_SOLO_PARENT,)
    ),
    (UserStatus.PENDING, WorkflowEvent.DOCUMENTS_APPROVED): Transition(
        UserStatus.VERIFIED, (_NEW_SOLO_PARENT,)
    ),
    (UserStatus.CREATED, WorkflowEvent.DOCUMENTS_APPROVED): Transition(
        UserStatus.VERIFIED, (_NEW_SOLO_PARENT,)
    ),
    (UserStatus.INCOMPLETE, WorkflowEvent.DOCUMENTS_APPROVED): Transition(
        UserStatus.VERIFIED, (_NEW_SOLO_PARENT,)
    ),
    (UserStatus.VERIFIED, WorkflowEvent.DOCUMENTS_APPROVED): Transition(UserStatus.VERIFIED),
    (UserStatus.PENDING, WorkflowEvent.DOCUMENTS_INCOMPLETE): Transition(UserStatus.INCOMPLETE),
    (UserStatus.CREATED, WorkflowEvent.DOCUMENTS_INCOMPLETE): Transition(UserStatus.INCOMPLETE),
    (UserStatus.INCOMPLETE, WorkflowEvent.DOCUMENTS_INCOMPLETE): Transition(UserStatus.INCOMPLETE),
    (UserStatus.VERIFIED, WorkflowEvent.DOCUMENTS_INCOMPLETE): Transition(UserStatus.INCOMPLETE),
    (ANY, WorkflowEvent.TERMINATE): Transition(
        UserStatus.TERMINATED,
        (
            UserNotice(NoticeTable.TERMINATED, TERMINATED_MESSAGE),
            AdminNotice("terminated", TERMINATED_TEMPLATE),
            MailEffect(MailKind.TERMINATION),
        ),
    ),
    (UserStatus.TERMINATED, WorkflowEvent.REINSTATE): Transition(
        UserStatus.VERIFIED,
        (
            UserNotice(NoticeTable.ACCEPTED, REACTIVATED_MESSAGE),
            AdminNotice("cleared", NEW_SOLO_PARENT_TEMPLATE),
            MailEffect(MailKind.REVERIFICATION),
        ),
    ),
    (UserStatus.VERIFIED, WorkflowEvent.FLAG_REMARKS): Transition(
        UserStatus.PENDING_REMARKS,
        (
            RemarkRecord(),
            SuperadminNotice("remarks", REMARKS_TEMPLATE),
            MailEffect(MailKind.REVOKE),
        ),
    ),
    (UserStatus.PENDING_REMARKS, WorkflowEvent.CLEAR_REMARKS): Transition(
        UserStatus.VERIFIED, (UserNotice(NoticeTable.ACCEPTED, REVERIFIED_MESSAGE),)
    ),
    (UserStatus.PENDING_REMARKS, WorkflowEvent.UPHOLD_REMARKS): Transition(
        UserStatus.TERMINATED, (UserNotice(NoticeTable.TERMINATED, TERMINATED_MESSAGE),)
    ),
    (ANY, WorkflowEvent.RENEWAL_APPROVED): Transition(
        UserStatus.VERIFIED,
        (
            UserNotice(NoticeTable.ACCEPTED, fallback=RENEWAL_APPROVED_MESSAGE),
            MailEffect(MailKind.RENEWAL_STATUS, "Accepted"),
        ),
    ),
    (ANY, WorkflowEvent.RENEWAL_RETURNED): Transition(
        UserStatus.RENEWAL, (MailEffect(MailKind.RENEWAL_STATUS, "Declined"),)
    ),
    (ANY, WorkflowEvent.RENEWAL_DECLINED): Transition(
        UserStatus.DECLINED, (UserNotice(NoticeTable.DECLINED),)
    ),
    (ANY, WorkflowEvent.CHILD_REQUEST_ENDORSED): Transition(
        UserStatus.PENDING_REQUEST,
        (
            UserNotice(NoticeTable.CHILD_REQUEST, CHILD_REQUEST_ENDORSED_MESSAGE),
            SuperadminNotice("child_request_approved", CHILD_REQUEST_TEMPLATE),
        ),
    ),
    (ANY, WorkflowEvent.CHILD_REQUEST_APPROVED): Transition(
        UserStatus.VERIFIED, (UserNotice(NoticeTable.CHILD_REQUEST, CHILD_REQUEST_APPROVED_MESSAGE),)
    ),
    (ANY, WorkflowEvent.CHILD_REQUEST_REJECTED): Transition(
        UserStatus.VERIFIED, (UserNotice(NoticeTable.CHILD_REQUEST, CHILD_REQUEST_REJECTED_MESSAGE),)
    ),
}


def _validate_transitions() -> None:
    covered = {event for _, event in TRANSITIONS}
    missing = [event.value for event in WorkflowEvent if event not in covered]
    if missing:
        raise RuntimeError(f"Workflow events without a transition: {missing}")
    for (source, event), transition in TRANSITIONS.items():
        if source != ANY and not isinstance(source, UserStatus):
            raise RuntimeError(f"Invalid source {source!r} for {event.value}")
        if not isinstance(transition.target, UserStatus):
            raise RuntimeError(f"Invalid target {transition.target!r} for {event.value}")


_validate_transitions()


def resolve_transition(current: Optional[str], event: WorkflowEvent) -> Transition:
    """
    Look up the transition for a case in `current` status.

    Statuses outside UserStatus (legacy rows) only match ANY entries.

    Raises:
        InvalidTransitionError: neither a specific nor an ANY entry exists.
    """
    try:
        status: Optional[UserStatus] = UserStatus(current)
    except ValueError:
        status = None

    if status is not None and (status, event) in TRANSITIONS:
        return TRANSITIONS[(status, event)]
    if (ANY, event) in TRANSITIONS:
        return TRANSITIONS[(ANY, event)]
    raise InvalidTransitionError(current=str(current), event=event.value)


# ── Outcomes ──────────────────────────────────────────────────────────────
@dataclass
class TransitionContext:
    remarks: Optional[str] = None
    admin_id: Optional[int] = None
    superadmin_id: Optional[int] = None
    barangay: Optional[str] = None
    first_name: Optional[str] = None
    full_name: Optional[str] = None


@dataclass(frozen=True)
class PendingMail:
    to: str
    kind: MailKind
    data: Dict[str, Any]


@dataclass(frozen=True)
class TransitionOutcome:
    user_id: int
    event: WorkflowEvent
    previous: Optional[str]
    current: UserStatus
    mail: Tuple[PendingMail, ...] = ()


@dataclass(frozen=True)
class RecomputeResult:
    status: str
    previous_status: Optional[str]
    all_documents_submitted: bool
    has_pending_documents: bool
    documents: List[Dict[str, Any]] = field(default_factory=list)
    changed: bool = False


# Status accepted by update_status → event
STATUS_UPDATE_EVENTS: Dict[str, WorkflowEvent] = {
    UserStatus.CREATED.value: WorkflowEvent.APPROVE,
    UserStatus.VERIFIED.value: WorkflowEvent.VERIFY,
    UserStatus.DECLINED.value: WorkflowEvent.DECLINE,
    UserStatus.RENEWAL.value: WorkflowEvent.MARK_RENEWAL,
}

# Superadmin renewal decision → event
RENEWAL_DECISION_EVENTS: Dict[str, WorkflowEvent] = {
    UserStatus.VERIFIED.value: WorkflowEvent.RENEWAL_APPROVED,
    UserStatus.RENEWAL.value: WorkflowEvent.RENEWAL_RETURNED,
    UserStatus.DECLINED.value: WorkflowEvent.RENEWAL_DECLINED,
}


class WorkflowService:
    """
    Applies workflow events to cases.

    Notification effects join the caller's transaction. Mail effects are
    returned in the outcome and sent by `dispatch_mail` once the transaction
    has committed; a failed send never undoes a transition.
    """

    # ── Core ──────────────────────────────────────────────────────────────
    async def apply(
        self,
        db: AsyncSession,
        user: User,
        event: WorkflowEvent,
        context: Optional[TransitionContext] = None,
    ) -> TransitionOutcome:
        transition = resolve_transition(user.status, event)
        ctx = await self._complete_context(db, user, context or TransitionContext())

        previous = user.status
        user.status = transition.target.value
        await db.flush()

        mail: List[PendingMail] = []
        for effect in transition.effects:
            await self._perform(db, user, effect, ctx, mail)

        logger.info(
            "User %s: %s → %s (%s)", user.id, previous, transition.target.value, event.value
        )
        return TransitionOutcome(
            user_id=user.id,
            event=event,
            previous=previous,
            current=transition.target,
            mail=tuple(mail),
        )

    async def _complete_context(
        self, db: AsyncSession, user: User, ctx: TransitionContext
    ) -> TransitionContext:
        if ctx.barangay and ctx.first_name and ctx.full_name:
            return ctx
        profile = await self.profile(db, user.code_id)
        if profile is not None:
            ctx.barangay = ctx.barangay or profile.barangay
            ctx.first_name = ctx.first_name or profile.first_name
            ctx.full_name = ctx.full_name or f"{profile.first_name} {profile.last_name}"
        fallback_name = user.name or user.email
        ctx.first_name = ctx.first_name or fallback_name
        ctx.full_name = ctx.full_name or fallback_name
        return ctx

    async def _perform(
        self,
        db: AsyncSession,
        user: User,
        effect: Effect,
        ctx: TransitionContext,
        mail: List[PendingMail],
    ) -> None:
        template_values = {
            "name": ctx.full_name,
            "first_name": ctx.first_name,
            "barangay": ctx.barangay,
        }

        if isinstance(effect, UserNotice):
            message = effect.message or ctx.remarks or effect.fallback
            if not message:
                return
            if effect.table is NoticeTable.ACCEPTED:
                await notification_service.notify_accepted(db, user.id, message, once=effect.once)
            elif effect.table is NoticeTable.DECLINED:
                await notification_service.notify_declined(db, user.id, message, once=effect.once)
            elif effect.table is NoticeTable.TERMINATED:
                await notification_service.notify_terminated(db, user.id, message, once=effect.once)
            else:
                await notification_service.notify_child_request(db, user.id, message)

        elif isinstance(effect, AdminNotice):
            await notification_service.notify_admin(
                db,
                barangay=ctx.barangay,
                notif_type=effect.notif_type,
                message=effect.template.format(**template_values),
                user_id=user.id,
            )

        elif isinstance(effect, SuperadminNotice):
            await notification_service.notify_superadmin(
                db,
                notif_type=effect.notif_type,
                message=effect.template.format(**template_values),
                user_id=user.id,
            )

        elif isinstance(effect, RemarkRecord):
            await notification_service.add_remark(
                db,
                user_id=user.id,
                code_id=user.code_id,
                remarks=ctx.remarks or "",
                admin_id=ctx.admin_id,
                superadmin_id=ctx.superadmin_id,
            )

        elif isinstance(effect, MailEffect):
            data: Dict[str, Any] = {"name": ctx.first_name, "remarks": ctx.remarks}
            if effect.status:
                data["status"] = effect.status
            mail.append(PendingMail(to=user.email, kind=effect.kind, data=data))

    async def dispatch_mail(self, outcome: TransitionOutcome) -> Optional[bool]:
        """
        Send the mail effects of a committed transition.

        Returns None when the transition had no mail, otherwise whether every
        message was delivered.
        """
        if not outcome.mail:
            return None
        delivered = True
        for pending in outcome.mail:
            sent = await mail_service.send(pending.to, pending.kind.value, pending.data)
            delivered = delivered and sent
        return delivered

    async def transition_user(
        self,
        db: AsyncSession,
        user_id: int,
        event: WorkflowEvent,
        context: Optional[TransitionContext] = None,
        operation: str = "updating user status",
    ) -> TransitionOutcome:
        """Lock one user row, apply `event` and commit, retrying on lock errors."""

        async def unit(session: AsyncSession) -> TransitionOutcome:
            user = await self._lock_user(session, User.id == user_id, user_id)
            return await self.apply(session, user, event, context)

        return await run_with_lock_retry(db, unit, operation=operation)

    async def transition_case(
        self,
        db: AsyncSession,
        code_id: str,
        event: WorkflowEvent,
        context: Optional[TransitionContext] = None,
        operation: str = "updating user status",
    ) -> TransitionOutcome:
        """Same as transition_user, addressing the case by code_id."""

        async def unit(session: AsyncSession) -> TransitionOutcome:
            user = await self._lock_user(session, User.code_id == code_id, code_id)
            return await self.apply(session, user, event, context)

        return await run_with_lock_retry(db, unit, operation=operation)

    # ── Lookups ───────────────────────────────────────────────────────────
    @staticmethod
    async def _lock_user(db: AsyncSession, criterion: Any, key: Any) -> User:
        result = await db.execute(select(User).where(criterion).with_for_update())
        user = result.scalars().first()
        if user is None:
            raise NotFoundError(resource="user", resource_id=key)
        return user

    @staticmethod
    async def profile(db: AsyncSession, code_id: Optional[str]) -> Optional[IdentifyingInformation]:
        if not code_id:
            return None
        result = await db.execute(
            select(IdentifyingInformation).where(IdentifyingInformation.code_id == code_id)
        )
        return result.scalars().first()

    @staticmethod
    async def user_by_code(db: AsyncSession, code_id: str) -> User:
        result = await db.execute(select(User).where(User.code_id == code_id))
        user = result.scalars().first()
        if user is None:
            raise NotFoundError(resource="user", resource_id=code_id)
        return user

    # ── Status Update (admin review) ──────────────────────────────────────
    async def update_status(
        self,
        db: AsyncSession,
        code_id: str,
        status: str,
        remarks: Optional[str] = None,
        approve_documents: bool = False,
        approval: Optional[str] = None,
    ) -> TransitionOutcome:
        """
        Admin decision on an application.

        Accepted statuses: Created, Verified, Declined, Renewal. With
        `approve_documents` an acceptance also marks every document of the
        case Approved. `approval` updates the barangay approval flag.
        """
        event = STATUS_UPDATE_EVENTS.get(status)
        if event is None:
            raise ValidationError(f"Invalid status: {status}", field="status")

        async def unit(session: AsyncSession) -> TransitionOutcome:
            user = await self._lock_user(session, User.code_id == code_id, code_id)
            outcome = await self.apply(session, user, event, TransitionContext(remarks=remarks))

            if approve_documents and event in (WorkflowEvent.APPROVE, WorkflowEvent.VERIFY):
                for document_type in DocumentType:
                    model = document_type.model
                    await session.execute(
                        update(model).where(model.code_id == code_id).values(status="Approved")
                    )
            if approval:
                user.approval = approval
            await session.flush()
            return outcome

        return await run_with_lock_retry(db, unit, operation="updating user status")

    # ── Document Aggregation ──────────────────────────────────────────────
    async def recompute_status(self, db: AsyncSession, code_id: str) -> RecomputeResult:
        """
        Re-derive a case's status from its required documents.

        Verified iff the latest row of every required type is Approved;
        otherwise Incomplete. A missing or Rejected document counts as not
        submitted, a Pending one as awaiting review. Running it twice without
        document changes yields the same status and no extra notifications.

        Only Pending, Created, Incomplete and Verified cases follow their
        documents; a case under remarks, terminated, in renewal or declined
        is reported back unchanged.
        """
        user = await self.user_by_code(db, code_id)
        profile = await self.profile(db, code_id)
        required = required_documents(profile.civil_status if profile else None)

        documents: List[Dict[str, Any]] = []
        missing = pending = rejected = False
        for document_type in required:
            row = await document_service.latest_document(db, document_type, code_id)
            if row is None:
                missing = True
                documents.append(
                    {
                        "documentType": document_type.value,
                        "tableName": document_type.table,
                        "displayName": document_type.display_name,
                        "status": "Missing",
                    }
                )
                continue
            documents.append(document_to_dict(document_type, row))
            if row.status == "Pending":
                pending = True
            elif row.status != "Approved":
                rejected = True

        complete = not (missing or pending or rejected)
        event = WorkflowEvent.DOCUMENTS_APPROVED if complete else WorkflowEvent.DOCUMENTS_INCOMPLETE
        previous = user.status
        try:
            status = (await self.apply(db, user, event)).current.value
        except InvalidTransitionError:
            logger.info("User %s: %s left unchanged by %s", user.id, previous, event.value)
            status = previous

        return RecomputeResult(
            status=status,
            previous_status=previous,
            all_documents_submitted=not (missing or rejected),
            has_pending_documents=pending,
            documents=documents,
            changed=status != previous,
        )

    async def review_document(
        self,
        db: AsyncSession,
        code_id: str,
        document_type: DocumentType,
        status: str,
        file_name: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], Optional[RecomputeResult]]:
        """
        Approve or reject one document of a case.

        The applicant gets a follow-up notice; an approval re-runs
        recompute_status so the case status follows its documents.
        """
        user = await self.user_by_code(db, code_id)
        row = await document_service.set_status(
            db, document_type, code_id, status, file_name=file_name, rejection_reason=rejection_reason
        )
        name = row.display_name or document_type.display_name
        if status == "Approved":
            await notification_service.notify_follow_up(db, user.id, f"Your {name} has been accepted.")
        elif status == "Rejected":
            await notification_service.notify_follow_up(
                db, user.id, f"Your {name} was rejected. {rejection_reason or ''}".rstrip()
            )

        recomputed = None
        if status == "Approved":
            recomputed = await self.recompute_status(db, code_id)
        return document_to_dict(document_type, row), recomputed

    async def review_renewal_document(
        self,
        db: AsyncSession,
        code_id: str,
        status: str,
        rejection_reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Status change of the renewal barangay certificate; the case status is left alone."""
        user = await self.user_by_code(db, code_id)
        document_type = DocumentType.BARANGAY_CERT
        row = await document_service.set_status(
            db, document_type, code_id, status, rejection_reason=rejection_reason
        )
        if status == "Approved":
            await notification_service.notify_follow_up(
                db, user.id, f"Your {document_type.display_name} has been accepted."
            )
        elif status == "Rejected":
            await notification_service.notify_follow_up(
                db,
                user.id,
                f"Your {document_type.display_name} was rejected. {rejection_reason or ''}".rstrip(),
            )
        return document_to_dict(document_type, row)

    # ── Renewal Decision (superadmin) ─────────────────────────────────────
    async def decide_renewal(
        self, db: AsyncSession, user_id: int, status: str, remarks: Optional[str] = None
    ) -> TransitionOutcome:
        """
        Verified approves the renewal and its barangay certificate; Renewal
        returns it to the applicant; Declined declines it. Returned and
        declined renewals drop the submitted barangay certificate.
        """
        event = RENEWAL_DECISION_EVENTS.get(status)
        if event is None:
            raise ValidationError(f"Invalid renewal status: {status}", field="status")

        async def unit(session: AsyncSession) -> TransitionOutcome:
            user = await self._lock_user(session, User.id == user_id, user_id)
            outcome = await self.apply(session, user, event, TransitionContext(remarks=remarks))
            if user.code_id:
                model = DocumentType.BARANGAY_CERT.model
                if event is WorkflowEvent.RENEWAL_APPROVED:
                    await session.execute(
                        update(model).where(model.code_id == user.code_id).values(status="Approved")
                    )
                else:
                    await document_service.delete_document(session, DocumentType.BARANGAY_CERT, user.code_id)
            return outcome

        return await run_with_lock_retry(db, unit, operation="updating renewal status")

    # ── Remarks ───────────────────────────────────────────────────────────
    async def flag_remarks(
        self,
        db: AsyncSession,
        code_id: str,
        remarks: str,
        admin_id: Optional[int] = None,
        superadmin_id: Optional[int] = None,
    ) -> TransitionOutcome:
        if not remarks or not remarks.strip():
            raise ValidationError("Remarks are required", field="remarks")
        ctx = TransitionContext(remarks=remarks, admin_id=admin_id, superadmin_id=superadmin_id)
        return await self.transition_case(
            db, code_id, WorkflowEvent.FLAG_REMARKS, ctx, operation="saving remarks"
        )


workflow_service = WorkflowService()
