"""
Solo Parent Backend: Case Service
==================================

What:  Read models over cases (listings, case detail, remarks, renewals,
       terminated cases), the two flags admins set directly on a user row
       (barangay approval and beneficiary status) and edits of the
       applicant's own records: identifying information, profile photos
       and classification.
How:   Listings join `users` with the step 1 profile on `code_id`. Status
       changes never happen here; they go through WorkflowService. An edit
       of civil_status changes the required documents, so it re-runs
       recompute_status in the same locked transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import row_to_dict
from soloparent.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from soloparent.models.notification import TerminatedUser, UserRemark
from soloparent.models.user import (
    Admin,
    Classification,
    FamilyMember,
    IdentifyingInformation,
    Superadmin,
    User,
)
from soloparent.services.blob_storage import blob_storage
from soloparent.services.document_registry import DocumentType
from soloparent.services.document_service import document_service, document_to_dict
from soloparent.services.notification_service import notification_service
from soloparent.services.retry import run_with_lock_retry
from soloparent.services.workflow import UserStatus, workflow_service

logger = logging.getLogger(__name__)

BENEFICIARY_STATUSES = ("beneficiary", "non-beneficiary")
ADMIN_APPROVED_TEMPLATE = "Admin from {barangay} approved an application."

# Step 1 columns an applicant may edit after submitting
PROFILE_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "suffix",
    "gender",
    "date_of_birth",
    "place_of_birth",
    "religion",
    "civil_status",
    "income",
    "contact_number",
)
PROFILE_PHOTO_FOLDER = "profile_photos"


def _full_name(profile: Optional[IdentifyingInformation]) -> Optional[str]:
    if profile is None:
        return None
    return f"{profile.first_name} {profile.last_name}"


class CaseService:

    async def list_users(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        barangay: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Applicants with their profile, optionally filtered by status and/or barangay."""
        query = select(User, IdentifyingInformation).outerjoin(
            IdentifyingInformation, IdentifyingInformation.code_id == User.code_id
        )
        if status:
            query = query.where(User.status == status)
        if barangay:
            query = query.where(IdentifyingInformation.barangay == barangay)
        query = query.order_by(User.created_at.desc(), User.id.desc())

        rows = (await db.execute(query)).all()
        return [self._summary(user, profile) for user, profile in rows]

    @staticmethod
    def _summary(user: User, profile: Optional[IdentifyingInformation]) -> Dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "code_id": user.code_id,
            "status": user.status,
            "approval": user.approval,
            "beneficiary_status": user.beneficiary_status,
            "first_name": profile.first_name if profile else None,
            "middle_name": profile.middle_name if profile else None,
            "last_name": profile.last_name if profile else None,
            "barangay": profile.barangay if profile else None,
            "civil_status": profile.civil_status if profile else None,
            "created_at": user.created_at,
        }

    async def case_detail(self, db: AsyncSession, code_id: str) -> Dict[str, Any]:
        """
        Everything an admin reviews for one case.

        Raises:
            NotFoundError: no user holds this code_id.
        """
        user = (await db.execute(select(User).where(User.code_id == code_id))).scalars().first()
        if user is None:
            raise NotFoundError(resource="user", resource_id=code_id)

        profile = (
            await db.execute(
                select(IdentifyingInformation).where(IdentifyingInformation.code_id == code_id)
            )
        ).scalars().first()
        members = (
            await db.execute(
                select(FamilyMember).where(FamilyMember.code_id == code_id).order_by(FamilyMember.id)
            )
        ).scalars().all()
        remark = (
            await db.execute(
                select(UserRemark)
                .where(UserRemark.user_id == user.id)
                .order_by(UserRemark.remarks_at.desc(), UserRemark.id.desc())
                .limit(1)
            )
        ).scalars().first()
        classification = (
            await db.execute(select(Classification).where(Classification.code_id == code_id))
        ).scalars().first()

        return {
            "user": self._summary(user, profile),
            "profile": row_to_dict(profile) if profile else None,
            "familyMembers": [
                {
                    "id": member.id,
                    "family_member_name": member.family_member_name,
                    "age": member.age,
                    "educational_attainment": member.educational_attainment,
                    "birthdate": member.birthdate,
                    "occupation": member.occupation,
                }
                for member in members
            ],
            "classification": classification.classification if classification else None,
            "remarks": remark.remarks if remark else None,
            "documents": await document_service.list_case_documents(db, code_id),
        }

    # ── Flags ─────────────────────────────────────────────────────────────
    async def set_approval(self, db: AsyncSession, code_id: str, approval: str) -> None:
        """Barangay pre-approval; the superadmins are told which barangay approved."""
        user = (await db.execute(select(User).where(User.code_id == code_id))).scalars().first()
        if user is None:
            raise NotFoundError(resource="application", resource_id=code_id)
        user.approval = approval

        profile = (
            await db.execute(
                select(IdentifyingInformation).where(IdentifyingInformation.code_id == code_id)
            )
        ).scalars().first()
        if profile is not None:
            await notification_service.notify_superadmin(
                db,
                notif_type="admin_approved",
                message=ADMIN_APPROVED_TEMPLATE.format(barangay=profile.barangay),
                user_id=user.id,
            )
        await db.flush()

    async def set_beneficiary_status(
        self,
        db: AsyncSession,
        user_id: int,
        beneficiary_status: str,
        admin_id: Optional[int] = None,
        superadmin_id: Optional[int] = None,
    ) -> str:
        """
        Record whether an applicant is a beneficiary.

        The acting account must exist: a superadmin when `superadmin_id` is
        given, otherwise the admin.
        """
        if beneficiary_status not in BENEFICIARY_STATUSES:
            raise ValidationError(
                f"Invalid beneficiary_status: {beneficiary_status}", field="beneficiary_status"
            )
        if not admin_id and not superadmin_id:
            raise ValidationError("Either admin_id or superadmin_id is required")

        if superadmin_id:
            if await db.get(Superadmin, superadmin_id) is None:
                raise PermissionDeniedError("Invalid superadmin credentials")
        elif await db.get(Admin, admin_id) is None:
            raise PermissionDeniedError("Invalid admin credentials")

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        user.beneficiary_status = beneficiary_status
        await db.flush()
        logger.info("User %d beneficiary status set to %s", user_id, beneficiary_status)
        return beneficiary_status

    # ── Applicant Records ─────────────────────────────────────────────────
    async def update_information(
        self, db: AsyncSession, user_id: int, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Edit the step 1 profile of an applicant.

        Only PROFILE_FIELDS may be changed; None values are left alone. When
        civil_status actually changes the case status is recomputed against
        the new set of required documents.

        Returns:
            {"updated": [...], "status", "previous_status", "recomputed"}

        Raises:
            ValidationError: unknown field, or a blank first/last name.
            NotFoundError: no such user, or the user has no profile yet.
        """
        unknown = sorted(set(changes) - set(PROFILE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}")
        values = {name: changes[name] for name in PROFILE_FIELDS if changes.get(name) is not None}
        for name in ("first_name", "last_name"):
            if name in values and not str(values[name]).strip():
                raise ValidationError(f"{name} cannot be empty", field=name)

        async def unit(session: AsyncSession) -> Dict[str, Any]:
            user = (
                await session.execute(select(User).where(User.id == user_id).with_for_update())
            ).scalars().first()
            if user is None:
                raise NotFoundError(resource="user", resource_id=user_id)
            profile = (
                await session.execute(
                    select(IdentifyingInformation).where(IdentifyingInformation.code_id == user.code_id)
                )
            ).scalars().first()
            if profile is None:
                raise NotFoundError(resource="profile", resource_id=user.code_id)

            old_civil_status = (profile.civil_status or "").strip().lower()
            for name, value in values.items():
                setattr(profile, name, value)
            await session.flush()

            result = {
                "updated": list(values),
                "status": user.status,
                "previous_status": user.status,
                "recomputed": False,
            }
            new_civil_status = (profile.civil_status or "").strip().lower()
            if "civil_status" in values and new_civil_status != old_civil_status:
                recomputed = await workflow_service.recompute_status(session, user.code_id)
                result.update(
                    status=recomputed.status,
                    previous_status=recomputed.previous_status,
                    recomputed=True,
                )
            return result

        result = await run_with_lock_retry(db, unit, operation="updating user information")
        logger.info("User %d information updated: %s", user_id, ", ".join(result["updated"]) or "nothing")
        return result

    async def update_profile_photos(
        self,
        db: AsyncSession,
        user_id: int,
        profile_pic: Optional[str] = None,
        face_recognition_photo: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        """
        Set the profile picture and/or the face recognition photo.

        Each value is either an https URL, stored as is, or a base64 data URI
        that is uploaded to blob storage first.

        Raises:
            ValidationError: neither photo given, or a value that is neither.
            NotFoundError: no such user.
            BlobStorageError: the upload failed (nothing is stored).
        """
        if not profile_pic and not face_recognition_photo:
            raise ValidationError("Missing required field: profilePic or faceRecognitionPhoto")
        for value in (profile_pic, face_recognition_photo):
            if value and not value.startswith(("https://", "http://", "data:")):
                raise ValidationError("Photos must be a URL or a base64 data URI")

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        folder = f"{PROFILE_PHOTO_FOLDER}/{user.code_id or user.id}"
        if profile_pic:
            user.profile_pic = await self._store_photo(profile_pic, folder, "profile")
        if face_recognition_photo:
            user.face_recognition_photo = await self._store_photo(face_recognition_photo, folder, "face")
        await db.flush()
        logger.info("User %d profile photos updated", user_id)
        return {"profilePic": user.profile_pic, "faceRecognitionPhoto": user.face_recognition_photo}

    @staticmethod
    async def _store_photo(value: str, folder: str, public_id: str) -> str:
        if not value.startswith("data:"):
            return value
        uploaded = await blob_storage.upload(value, folder, public_id=public_id)
        return uploaded.secure_url

    async def update_classification(self, db: AsyncSession, code_id: str, classification: str) -> str:
        """Replace the step 3 classification of a case."""
        if not code_id or not classification or not classification.strip():
            raise ValidationError("Missing required fields")
        row = (
            await db.execute(select(Classification).where(Classification.code_id == code_id))
        ).scalars().first()
        if row is None:
            raise NotFoundError(resource="classification", resource_id=code_id)
        row.classification = classification.strip()
        await db.flush()
        logger.info("Case %s classification set to %s", code_id, row.classification)
        return row.classification

    # ── Review Queues ─────────────────────────────────────────────────────
    async def list_remarks(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """Remarks on cases still in Pending Remarks, newest first."""
        query = (
            select(UserRemark, User, IdentifyingInformation, Admin)
            .join(User, User.id == UserRemark.user_id)
            .outerjoin(IdentifyingInformation, IdentifyingInformation.code_id == User.code_id)
            .outerjoin(Admin, Admin.id == UserRemark.admin_id)
            .where(User.status == UserStatus.PENDING_REMARKS.value)
            .order_by(UserRemark.remarks_at.desc(), UserRemark.id.desc())
        )
        rows = (await db.execute(query)).all()
        return [
            {
                "code_id": remark.code_id,
                "remarks": remark.remarks,
                "remarks_at": remark.remarks_at,
                "user_id": user.id,
                "user_name": _full_name(profile) or user.name,
                "admin_barangay": admin.barangay if admin else None,
                "status": user.status,
            }
            for remark, user, profile, admin in rows
        ]

    async def list_renewals(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """Cases in Renewal with their submitted barangay certificate."""
        query = (
            select(User, IdentifyingInformation)
            .join(IdentifyingInformation, IdentifyingInformation.code_id == User.code_id)
            .where(User.status == UserStatus.RENEWAL.value)
            .order_by(User.id)
        )
        renewals = []
        for user, profile in (await db.execute(query)).all():
            document = await document_service.latest_document(
                db, DocumentType.BARANGAY_CERT, user.code_id
            )
            renewals.append(
                {
                    "userId": user.id,
                    "code_id": user.code_id,
                    "first_name": profile.first_name,
                    "middle_name": profile.middle_name,
                    "last_name": profile.last_name,
                    "barangay": profile.barangay,
                    "documents": [document_to_dict(DocumentType.BARANGAY_CERT, document)]
                    if document else [],
                }
            )
        return renewals

    async def list_terminated(self, db: AsyncSession) -> List[Dict[str, Any]]:
        query = (
            select(User, IdentifyingInformation, TerminatedUser)
            .join(TerminatedUser, TerminatedUser.user_id == User.id)
            .outerjoin(IdentifyingInformation, IdentifyingInformation.code_id == User.code_id)
            .where(User.status == UserStatus.TERMINATED.value)
            .order_by(TerminatedUser.terminated_at.desc(), TerminatedUser.id.desc())
        )
        return [
            {
                "code_id": user.code_id,
                "user_name": _full_name(profile) or user.name,
                "user_id": user.id,
                "barangay": profile.barangay if profile else None,
                "terminated_at": notice.terminated_at,
            }
            for user, profile, notice in (await db.execute(query)).all()
        ]


case_service = CaseService()
