"""
Solo Parent Backend: Case Workflow Routes
==========================================

Listings and detail for admins, every endpoint that moves a case through
the status workflow, and the edits of an applicant's own records. Transitions
run through WorkflowService under a row lock with retry-on-lock; their mail
is sent only after the commit, and a failed send is reported in the message
instead of failing the call.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.cases import (
    ApprovalRequest,
    BeneficiaryRemoveRequest,
    BeneficiaryRequest,
    BeneficiaryResponse,
    ClassificationResponse,
    ClassificationUpdate,
    ProfilePhotoResponse,
    ProfilePhotoUpdate,
    RecomputeResponse,
    RemarksRequest,
    RenewalDecisionRequest,
    RenewalDocumentRequest,
    StatusChangeResponse,
    StatusUpdateRequest,
    UserInformationResponse,
    UserInformationUpdate,
)
from soloparent.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from soloparent.services.case_service import case_service
from soloparent.services.workflow import (
    TransitionOutcome,
    WorkflowEvent,
    workflow_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cases"])

_WORKFLOW_ERRORS = {
    **ERROR_RESPONSES,
    409: {"description": "Transition not allowed from the current status", "model": ErrorResponse},
}


async def _settle(outcome: TransitionOutcome, message: str) -> StatusChangeResponse:
    """Send the committed transition's mail and describe the result."""
    sent = await workflow_service.dispatch_mail(outcome)
    if sent is True:
        message = f"{message} and email sent"
    elif sent is False:
        message = f"{message} but email failed"
    return StatusChangeResponse(
        message=message,
        status=outcome.current.value,
        previous_status=outcome.previous,
        email_sent=sent,
    )


# ── Listings ──────────────────────────────────────────────────────────────
@router.get("/users", response_model=List[Dict[str, Any]], summary="List applicants")
async def list_users(
    status: Optional[str] = Query(default=None, description="Filter by case status"),
    barangay: Optional[str] = Query(default=None, description="Filter by barangay"),
    db: AsyncSession = Depends(get_db_session),
):
    return await case_service.list_users(db, status=status, barangay=barangay)


@router.get("/cases/{code_id}", responses=ERROR_RESPONSES, summary="Case detail")
async def case_detail(code_id: str, db: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    return await case_service.case_detail(db, code_id)


@router.get("/remarks", response_model=List[Dict[str, Any]])
async def list_remarks(db: AsyncSession = Depends(get_db_session)):
    return await case_service.list_remarks(db)


@router.get("/renewals", response_model=List[Dict[str, Any]])
async def list_renewals(db: AsyncSession = Depends(get_db_session)):
    return await case_service.list_renewals(db)


@router.get("/terminated", response_model=List[Dict[str, Any]])
async def list_terminated(db: AsyncSession = Depends(get_db_session)):
    return await case_service.list_terminated(db)


# ── Status Workflow ───────────────────────────────────────────────────────
@router.post(
    "/cases/{code_id}/status",
    response_model=StatusChangeResponse,
    responses=_WORKFLOW_ERRORS,
    summary="Accept, verify, decline or mark an application for renewal",
)
async def update_status(
    code_id: str, body: StatusUpdateRequest, db: AsyncSession = Depends(get_db_session)
) -> StatusChangeResponse:
    outcome = await workflow_service.update_status(
        db,
        code_id,
        body.status,
        remarks=body.remarks,
        approve_documents=body.update_document_status,
        approval=body.approval,
    )
    return await _settle(outcome, "Status updated")


@router.post(
    "/cases/{code_id}/recompute-status",
    response_model=RecomputeResponse,
    responses=ERROR_RESPONSES,
    summary="Re-derive the case status from its documents",
)
async def recompute_status(
    code_id: str, db: AsyncSession = Depends(get_db_session)
) -> RecomputeResponse:
    result = await workflow_service.recompute_status(db, code_id)
    return RecomputeResponse(
        status=result.status,
        previous_status=result.previous_status,
        all_documents_submitted=result.all_documents_submitted,
        has_pending_documents=result.has_pending_documents,
        documents=result.documents,
        changed=result.changed,
    )


@router.post("/cases/{code_id}/approval", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def set_approval(
    code_id: str, body: ApprovalRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await case_service.set_approval(db, code_id, body.approval)
    return MessageResponse(message="Approval updated and superadmin notified.")


@router.post(
    "/users/{user_id}/terminate", response_model=StatusChangeResponse, responses=_WORKFLOW_ERRORS
)
async def terminate_user(user_id: int, db: AsyncSession = Depends(get_db_session)) -> StatusChangeResponse:
    outcome = await workflow_service.transition_user(
        db, user_id, WorkflowEvent.TERMINATE, operation="terminating the account"
    )
    return await _settle(outcome, "User account terminated")


@router.post(
    "/users/{user_id}/reinstate", response_model=StatusChangeResponse, responses=_WORKFLOW_ERRORS
)
async def reinstate_user(user_id: int, db: AsyncSession = Depends(get_db_session)) -> StatusChangeResponse:
    outcome = await workflow_service.transition_user(
        db, user_id, WorkflowEvent.REINSTATE, operation="re-verifying the account"
    )
    return await _settle(outcome, "User account re-verified")


# ── Remarks ───────────────────────────────────────────────────────────────
@router.post(
    "/cases/{code_id}/remarks", response_model=StatusChangeResponse, responses=_WORKFLOW_ERRORS
)
async def save_remarks(
    code_id: str, body: RemarksRequest, db: AsyncSession = Depends(get_db_session)
) -> StatusChangeResponse:
    outcome = await workflow_service.flag_remarks(
        db, code_id, body.remarks, admin_id=body.admin_id, superadmin_id=body.superadmin_id
    )
    return await _settle(outcome, "Remarks saved")


@router.post(
    "/cases/{code_id}/remarks/accept", response_model=StatusChangeResponse, responses=_WORKFLOW_ERRORS
)
async def accept_remarks(code_id: str, db: AsyncSession = Depends(get_db_session)) -> StatusChangeResponse:
    """The applicant complied; the case returns to Verified."""
    outcome = await workflow_service.transition_case(
        db, code_id, WorkflowEvent.CLEAR_REMARKS, operation="accepting remarks"
    )
    return await _settle(outcome, "Remarks cleared")


@router.post(
    "/cases/{code_id}/remarks/decline", response_model=StatusChangeResponse, responses=_WORKFLOW_ERRORS
)
async def decline_remarks(code_id: str, db: AsyncSession = Depends(get_db_session)) -> StatusChangeResponse:
    """The remarks stand; the case is terminated."""
    outcome = await workflow_service.transition_case(
        db, code_id, WorkflowEvent.UPHOLD_REMARKS, operation="declining remarks"
    )
    return await _settle(outcome, "Remarks upheld")


# ── Renewal ───────────────────────────────────────────────────────────────
@router.post(
    "/users/{user_id}/renewal-decision",
    response_model=StatusChangeResponse,
    responses=_WORKFLOW_ERRORS,
    summary="Superadmin decision on a renewal (Verified, Renewal or Declined)",
)
async def decide_renewal(
    user_id: int, body: RenewalDecisionRequest, db: AsyncSession = Depends(get_db_session)
) -> StatusChangeResponse:
    outcome = await workflow_service.decide_renewal(db, user_id, body.status, remarks=body.remarks)
    return await _settle(outcome, "Renewal status updated")


@router.post("/cases/{code_id}/renewal-document", responses=ERROR_RESPONSES)
async def review_renewal_document(
    code_id: str, body: RenewalDocumentRequest, db: AsyncSession = Depends(get_db_session)
) -> Dict[str, Any]:
    document = await workflow_service.review_renewal_document(
        db, code_id, body.status, rejection_reason=body.rejection_reason
    )
    return {"success": True, "document": document}


# ── Beneficiary Flag ──────────────────────────────────────────────────────
@router.put(
    "/users/{user_id}/beneficiary",
    response_model=BeneficiaryResponse,
    responses={**ERROR_RESPONSES, 403: {"description": "Unknown acting admin", "model": ErrorResponse}},
)
async def set_beneficiary(
    user_id: int, body: BeneficiaryRequest, db: AsyncSession = Depends(get_db_session)
) -> BeneficiaryResponse:
    new_status = await case_service.set_beneficiary_status(
        db, user_id, body.beneficiary_status, admin_id=body.admin_id, superadmin_id=body.superadmin_id
    )
    return BeneficiaryResponse(
        message=f"User beneficiary status updated to {new_status}", user_id=user_id, new_status=new_status
    )


@router.post(
    "/users/{user_id}/beneficiary/remove",
    response_model=BeneficiaryResponse,
    responses={**ERROR_RESPONSES, 403: {"description": "Unknown acting admin", "model": ErrorResponse}},
)
async def remove_beneficiary(
    user_id: int, body: BeneficiaryRemoveRequest, db: AsyncSession = Depends(get_db_session)
) -> BeneficiaryResponse:
    new_status = await case_service.set_beneficiary_status(
        db, user_id, "non-beneficiary", admin_id=body.admin_id, superadmin_id=body.superadmin_id
    )
    return BeneficiaryResponse(message="User removed as beneficiary", user_id=user_id, new_status=new_status)


# ── Applicant Records ─────────────────────────────────────────────────────
@router.put(
    "/users/{user_id}/information",
    response_model=UserInformationResponse,
    responses=ERROR_RESPONSES,
    summary="Edit the applicant's identifying information",
)
async def update_information(
    user_id: int, body: UserInformationUpdate, db: AsyncSession = Depends(get_db_session)
) -> UserInformationResponse:
    result = await case_service.update_information(db, user_id, body.model_dump(exclude_none=True))
    return UserInformationResponse(message="User information updated successfully", **result)


@router.put(
    "/users/{user_id}/profile-photos",
    response_model=ProfilePhotoResponse,
    responses={**ERROR_RESPONSES, 502: {"description": "Image storage failed", "model": ErrorResponse}},
)
async def update_profile_photos(
    user_id: int, body: ProfilePhotoUpdate, db: AsyncSession = Depends(get_db_session)
) -> ProfilePhotoResponse:
    photos = await case_service.update_profile_photos(
        db, user_id, profile_pic=body.profile_pic, face_recognition_photo=body.face_recognition_photo
    )
    return ProfilePhotoResponse(
        message="User profile updated successfully",
        profile_pic=photos["profilePic"],
        face_recognition_photo=photos["faceRecognitionPhoto"],
    )


@router.put(
    "/cases/{code_id}/classification",
    response_model=ClassificationResponse,
    responses=ERROR_RESPONSES,
)
async def update_classification(
    code_id: str, body: ClassificationUpdate, db: AsyncSession = Depends(get_db_session)
) -> ClassificationResponse:
    classification = await case_service.update_classification(db, code_id, body.classification)
    return ClassificationResponse(
        message="Classification updated successfully", classification=classification
    )
