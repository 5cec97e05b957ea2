"""
Solo Parent Backend: Document Routes
=====================================

Upsert, listing, deletion and review of supporting documents. Approving a
document re-derives the case status from its required documents.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.exceptions import NotFoundError
from soloparent.schemas.common import ERROR_RESPONSES, MessageResponse
from soloparent.schemas.documents import (
    DocumentStatusRequest,
    DocumentStatusResponse,
    DocumentUpsertRequest,
    DocumentUpsertResponse,
)
from soloparent.services.document_registry import DocumentType
from soloparent.services.document_service import document_service
from soloparent.services.workflow import workflow_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Documents"])


@router.post(
    "/documents",
    response_model=DocumentUpsertResponse,
    responses=ERROR_RESPONSES,
    summary="Insert or replace a case's document of one type",
)
async def upsert_document(
    body: DocumentUpsertRequest, db: AsyncSession = Depends(get_db_session)
) -> DocumentUpsertResponse:
    document_type = DocumentType.parse(body.document_type)
    result = await document_service.upsert_document(
        db, document_type, body.code_id, body.file_name, display_name=body.display_name
    )
    return DocumentUpsertResponse(action=result.action, id=result.id)


@router.get("/cases/{code_id}/documents", response_model=List[Dict[str, Any]])
async def list_documents(code_id: str, db: AsyncSession = Depends(get_db_session)):
    return await document_service.list_case_documents(db, code_id)


@router.delete(
    "/documents/{document_type}/{code_id}", response_model=MessageResponse, responses=ERROR_RESPONSES
)
async def delete_document(
    document_type: str, code_id: str, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    resolved = DocumentType.parse(document_type)
    if not await document_service.delete_document(db, resolved, code_id):
        raise NotFoundError(resource="document", resource_id=f"{resolved.value}/{code_id}")
    return MessageResponse(message="Document deleted")


@router.post(
    "/documents/status",
    response_model=DocumentStatusResponse,
    responses=ERROR_RESPONSES,
    summary="Approve or reject a document",
)
async def review_document(
    body: DocumentStatusRequest, db: AsyncSession = Depends(get_db_session)
) -> DocumentStatusResponse:
    document_type = DocumentType.parse(body.document_type)
    document, recomputed = await workflow_service.review_document(
        db,
        body.code_id,
        document_type,
        body.status,
        file_name=body.file_name,
        rejection_reason=body.rejection_reason,
    )
    return DocumentStatusResponse(
        document=document, user_status=recomputed.status if recomputed else None
    )
