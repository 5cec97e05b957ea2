"""
Solo Parent Backend: Case Workflow Schemas
===========================================

Bodies of the status, remarks, renewal, approval and beneficiary
operations, the recompute report and the applicant record edits.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusUpdateRequest(BaseModel):
    """Admin decision on an application (Created, Verified, Declined or Renewal)."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    remarks: Optional[str] = None
    approval: Optional[str] = None
    update_document_status: bool = Field(default=False, alias="updateDocumentStatus")


class StatusChangeResponse(BaseModel):
    success: bool = True
    message: str
    status: str
    previous_status: Optional[str] = None
    email_sent: Optional[bool] = None


class RecomputeResponse(BaseModel):
    success: bool = True
    status: str
    previous_status: Optional[str] = None
    all_documents_submitted: bool = Field(serialization_alias="allDocumentsSubmitted")
    has_pending_documents: bool = Field(serialization_alias="hasPendingDocuments")
    documents: List[Dict[str, Any]]
    changed: bool = False


class ApprovalRequest(BaseModel):
    approval: str = Field(min_length=1)


class RemarksRequest(BaseModel):
    remarks: str
    admin_id: Optional[int] = None
    superadmin_id: Optional[int] = None


class RenewalDecisionRequest(BaseModel):
    status: str
    remarks: Optional[str] = None


class RenewalDocumentRequest(BaseModel):
    status: str
    rejection_reason: Optional[str] = None


class BeneficiaryRequest(BaseModel):
    beneficiary_status: str
    admin_id: Optional[int] = None
    superadmin_id: Optional[int] = None


class BeneficiaryRemoveRequest(BaseModel):
    admin_id: Optional[int] = None
    superadmin_id: Optional[int] = None


class BeneficiaryResponse(BaseModel):
    success: bool = True
    message: str
    user_id: int
    new_status: str


# ── Applicant Records ─────────────────────────────────────────────────────
class UserInformationUpdate(BaseModel):
    """Step 1 fields to change; omitted or null fields keep their value."""

    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    suffix: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    place_of_birth: Optional[str] = None
    religion: Optional[str] = None
    civil_status: Optional[str] = None
    income: Optional[str] = None
    contact_number: Optional[str] = None


class UserInformationResponse(BaseModel):
    success: bool = True
    message: str
    updated: List[str]
    status: str
    previous_status: Optional[str] = None
    recomputed: bool = False


class ProfilePhotoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile_pic: Optional[str] = Field(
        default=None, alias="profilePic", description="https URL or base64 data URI"
    )
    face_recognition_photo: Optional[str] = Field(
        default=None, alias="faceRecognitionPhoto", description="https URL or base64 data URI"
    )


class ProfilePhotoResponse(BaseModel):
    success: bool = True
    message: str
    profile_pic: Optional[str] = Field(default=None, serialization_alias="profilePic")
    face_recognition_photo: Optional[str] = Field(
        default=None, serialization_alias="faceRecognitionPhoto"
    )


class ClassificationUpdate(BaseModel):
    # Optional so the service can answer "Missing required fields" (400).
    classification: Optional[str] = None


class ClassificationResponse(BaseModel):
    success: bool = True
    message: str
    classification: str
