"""
Document Service Tests
=======================

What we test:
    ✅ Upsert by natural key: first call inserts, later calls update the same row
    ✅ Upsert resets a rejected document to Pending and clears the reason
    ✅ One row per case and type: a racing insert falls back to an update
    ✅ Input validation before any SQL runs
    ✅ Latest-row lookup, listing, deletion and status changes
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from soloparent.exceptions import NotFoundError, ValidationError
from soloparent.services.document_registry import DocumentType
from soloparent.services.document_service import DocumentService


class TestUpsertDocument:

    def setup_method(self):
        self.service = DocumentService()

    @pytest.mark.asyncio
    async def test_insert_then_update_keeps_one_row(self, session):
        first = await self.service.upsert_document(
            session, DocumentType.PSA, "SP-0001", "https://files.example.com/psa-v1.pdf"
        )
        second = await self.service.upsert_document(
            session, DocumentType.PSA, "SP-0001", "https://files.example.com/psa-v2.pdf"
        )

        assert first.action == "inserted"
        assert second.action == "updated"
        assert second.id == first.id
        rows = (await session.execute(select(DocumentType.PSA.model))).scalars().all()
        assert len(rows) == 1
        assert rows[0].file_name.endswith("psa-v2.pdf")
        assert rows[0].display_name == "PSA Birth Certificate"

    @pytest.mark.asyncio
    async def test_resubmission_resets_rejection(self, seed, session):
        await seed.document(DocumentType.ITR, status="Rejected")

        result = await self.service.upsert_document(
            session, DocumentType.ITR, "SP-0001", "https://files.example.com/itr-new.pdf"
        )

        row = await session.get(DocumentType.ITR.model, result.id)
        assert result.action == "updated"
        assert row.status == "Pending"
        assert row.rejection_reason is None

    @pytest.mark.asyncio
    async def test_types_are_independent(self, session):
        await self.service.upsert_document(session, DocumentType.PSA, "SP-0001", "psa.pdf")
        result = await self.service.upsert_document(session, DocumentType.ITR, "SP-0001", "itr.pdf")
        assert result.action == "inserted"

    @pytest.mark.asyncio
    async def test_code_id_is_unique_per_table(self, seed, session):
        await seed.document(DocumentType.PSA)

        session.add(DocumentType.PSA.model(code_id="SP-0001", file_name="psa-copy.pdf"))
        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_racing_insert_is_retried_as_update(self, seed, session):
        seeded = await seed.document(DocumentType.PSA, status="Rejected")
        real_execute = session.execute
        lookups = []

        async def execute(statement, *args, **kwargs):
            lookups.append(statement)
            if len(lookups) == 1:
                # The row is committed by another upload after this lookup.
                return MagicMock(**{"scalars.return_value.first.return_value": None})
            return await real_execute(statement, *args, **kwargs)

        with patch.object(session, "execute", new=execute):
            result = await self.service.upsert_document(
                session, DocumentType.PSA, "SP-0001", "https://files.example.com/psa-v2.pdf"
            )

        assert result.action == "updated"
        assert result.id == seeded.id
        assert len(lookups) == 2
        rows = (await session.execute(select(DocumentType.PSA.model))).scalars().all()
        assert len(rows) == 1
        assert rows[0].file_name.endswith("psa-v2.pdf")
        assert rows[0].status == "Pending"

    @pytest.mark.asyncio
    async def test_missing_file_name(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.upsert_document(mock_db_session, DocumentType.PSA, "SP-0001", "")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_status(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.upsert_document(
                mock_db_session, DocumentType.PSA, "SP-0001", "psa.pdf", status="Lost"
            )


class TestDocumentQueries:

    def setup_method(self):
        self.service = DocumentService()

    @pytest.mark.asyncio
    async def test_list_case_documents(self, seed, session):
        await seed.document(DocumentType.PSA, status="Approved")
        await seed.document(DocumentType.MED_CERT)
        await seed.document(DocumentType.PSA, code_id="SP-0002")

        documents = await self.service.list_case_documents(session, "SP-0001")

        assert [doc["documentType"] for doc in documents] == ["psa", "med_cert"]
        assert documents[0]["tableName"] == "psa_documents"

    @pytest.mark.asyncio
    async def test_delete_reports_whether_rows_went(self, seed, session):
        await seed.document(DocumentType.CENOMAR)

        assert await self.service.delete_document(session, DocumentType.CENOMAR, "SP-0001") is True
        assert await self.service.delete_document(session, DocumentType.CENOMAR, "SP-0001") is False

    @pytest.mark.asyncio
    async def test_set_status_rejected_keeps_reason(self, seed, session):
        await seed.document(DocumentType.PSA)

        row = await self.service.set_status(
            session, DocumentType.PSA, "SP-0001", "Rejected", rejection_reason="Unreadable"
        )

        assert row.status == "Rejected"
        assert row.rejection_reason == "Unreadable"

    @pytest.mark.asyncio
    async def test_set_status_by_file_name(self, seed, session):
        seeded = await seed.document(DocumentType.PSA)

        with pytest.raises(NotFoundError):
            await self.service.set_status(
                session, DocumentType.PSA, "SP-0001", "Approved", file_name="other.pdf"
            )
        row = await self.service.set_status(
            session, DocumentType.PSA, "SP-0001", "Approved", file_name=seeded.file_name
        )
        assert row.id == seeded.id

    @pytest.mark.asyncio
    async def test_set_status_missing_document(self, session):
        with pytest.raises(NotFoundError):
            await self.service.set_status(session, DocumentType.ITR, "SP-0001", "Approved")
