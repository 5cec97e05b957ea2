"""
Solo Parent Backend: Document Service
======================================

What:  Storage operations on supporting documents: upsert by case, latest
       row per type, listing, deletion and status changes.
How:   Every operation dispatches through DocumentType (document_registry),
       so only registered tables are ever touched.

Upsert by natural key:
    BEGIN
      SELECT ... WHERE code_id = :code_id FOR UPDATE
      row found   → UPDATE file_name, display_name, status, uploaded_at
      row absent  → INSERT
    COMMIT            (ROLLBACK on any failure)

    The unit runs under run_with_lock_retry, so 1205/1213 are retried. The
    unique code_id index turns a racing second INSERT into an IntegrityError;
    the unit is then run once more and takes the UPDATE branch. One row per
    (document type, code_id) is the outcome, whatever the number of calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import utc_now
from soloparent.exceptions import DatabaseError, NotFoundError, ValidationError
from soloparent.models.document import DocumentMixin
from soloparent.services.document_registry import DocumentType
from soloparent.services.retry import run_with_lock_retry

logger = logging.getLogger(__name__)

DOCUMENT_STATUSES = ("Pending", "Approved", "Rejected")


@dataclass(frozen=True)
class UpsertResult:
    action: str  # "inserted" | "updated"
    id: int


def document_to_dict(document_type: DocumentType, row: DocumentMixin) -> Dict[str, Any]:
    return {
        "id": row.id,
        "documentType": document_type.value,
        "tableName": document_type.table,
        "displayName": row.display_name or document_type.display_name,
        "fileName": row.file_name,
        "status": row.status,
        "rejectionReason": row.rejection_reason,
        "uploadedAt": row.uploaded_at,
    }


class DocumentService:
    """Document persistence; workflow consequences live in WorkflowService."""

    async def upsert_document(
        self,
        db: AsyncSession,
        document_type: DocumentType,
        code_id: str,
        file_name: str,
        display_name: Optional[str] = None,
        status: str = "Pending",
    ) -> UpsertResult:
        """
        Insert or replace the document of one type for a case.

        Runs in its own transaction and commits before returning.

        Raises:
            ValidationError: missing code_id / file_name or unknown status.
            DatabaseError: the statement failed (transaction rolled back).
            LockContentionError: the row stayed locked through every attempt.
        """
        if not code_id or not file_name:
            raise ValidationError("code_id and file_name are required")
        if status not in DOCUMENT_STATUSES:
            raise ValidationError(f"Invalid document status: {status}", field="status")

        model = document_type.model
        operation = f"saving the {document_type.display_name}"

        async def write(session: AsyncSession) -> UpsertResult:
            result = await session.execute(
                select(model).where(model.code_id == code_id).with_for_update()
            )
            existing = result.scalars().first()

            if existing is not None:
                existing.file_name = file_name
                existing.display_name = display_name or document_type.display_name
                existing.status = status
                existing.rejection_reason = None
                existing.uploaded_at = utc_now()
                await session.flush()
                return UpsertResult(action="updated", id=existing.id)

            row = model(
                code_id=code_id,
                file_name=file_name,
                display_name=display_name or document_type.display_name,
                status=status,
            )
            session.add(row)
            await session.flush()
            return UpsertResult(action="inserted", id=row.id)

        try:
            try:
                outcome = await run_with_lock_retry(db, write, operation=operation)
            except IntegrityError:
                # Another upload inserted this case's row first; update it instead.
                logger.warning(
                    "Concurrent insert of %s for case %s, retrying as update",
                    document_type.value, code_id,
                )
                outcome = await run_with_lock_retry(db, write, operation=operation)
        except SQLAlchemyError as e:
            logger.error(
                "Upsert of %s for case %s failed: %s", document_type.value, code_id, str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Could not save the document. Please try again.",
                context={"document_type": document_type.value, "code_id": code_id},
            )

        logger.info("Document %s for case %s %s (id=%d)", document_type.value, code_id, outcome.action, outcome.id)
        return outcome

    async def latest_document(
        self, db: AsyncSession, document_type: DocumentType, code_id: str
    ) -> Optional[DocumentMixin]:
        model = document_type.model
        result = await db.execute(
            select(model)
            .where(model.code_id == code_id)
            .order_by(model.uploaded_at.desc(), model.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_case_documents(self, db: AsyncSession, code_id: str) -> List[Dict[str, Any]]:
        """Latest row of every registered type the case has submitted."""
        documents = []
        for document_type in DocumentType:
            row = await self.latest_document(db, document_type, code_id)
            if row is not None:
                documents.append(document_to_dict(document_type, row))
        return documents

    async def delete_document(
        self, db: AsyncSession, document_type: DocumentType, code_id: str
    ) -> bool:
        model = document_type.model
        result = await db.execute(delete(model).where(model.code_id == code_id))
        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info("Deleted %s for case %s", document_type.value, code_id)
        return deleted

    async def set_status(
        self,
        db: AsyncSession,
        document_type: DocumentType,
        code_id: str,
        status: str,
        file_name: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> DocumentMixin:
        """
        Change the review status of a case's document.

        With `file_name` the matching row is updated, otherwise the latest row.

        Raises:
            ValidationError: unknown status.
            NotFoundError: the case has no such document.
        """
        if status not in DOCUMENT_STATUSES:
            raise ValidationError(f"Invalid document status: {status}", field="status")

        model = document_type.model
        if file_name:
            result = await db.execute(
                select(model)
                .where(model.code_id == code_id, model.file_name == file_name)
                .order_by(model.uploaded_at.desc(), model.id.desc())
                .limit(1)
            )
            row = result.scalars().first()
        else:
            row = await self.latest_document(db, document_type, code_id)

        if row is None:
            raise NotFoundError(resource="document", resource_id=file_name or document_type.value)

        row.status = status
        row.rejection_reason = rejection_reason if status == "Rejected" else None
        await db.flush()
        return row


document_service = DocumentService()
