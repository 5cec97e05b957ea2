"""
Solo Parent Backend: Document Schemas
======================================

`documentType` accepts either the short code (psa) or the table name
(psa_documents); the registry resolves both.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentUpsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_type: str = Field(alias="documentType")
    code_id: str
    file_name: str
    display_name: Optional[str] = None


class DocumentUpsertResponse(BaseModel):
    success: bool = True
    action: str = Field(description="inserted or updated")
    id: int


class DocumentStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code_id: str
    document_type: str = Field(alias="documentType")
    status: str
    file_name: Optional[str] = None
    rejection_reason: Optional[str] = None


class DocumentStatusResponse(BaseModel):
    success: bool = True
    document: Dict[str, Any]
    user_status: Optional[str] = Field(default=None, serialization_alias="userStatus")
