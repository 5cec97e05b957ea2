"""
HTTP Route Tests
=================

Runs requests through the full app (middleware, exception handlers, session
dependency) against the in-memory test database.

What we test:
    ✅ Health reports database connectivity (200 / 503)
    ✅ Login roles and the error envelope {error, message, details, request_id}
    ✅ Body shape errors are 422; business validation errors are 400
    ✅ Document upsert / review, event conflicts (409 with details.conflict)
    ✅ Status changes report mail delivery; invalid transitions are 409
    ✅ Applicant record edits: information (with recompute), photos, classification
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from soloparent.models.user import Classification, User
from soloparent.services.blob_storage import UploadedBlob
from soloparent.services.document_registry import DocumentType

DEFAULT_PASSWORD = "secret123"  # Seeder default


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_database_down(self, test_client, database):
        with patch.object(database, "ping", AsyncMock(return_value=False)):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_login_admin(self, test_client, seed):
        await seed.admin()

        response = await test_client.post(
            "/api/login", json={"email": "admin@sanroque.gov", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_pending_user_forbidden(self, test_client, seed):
        await seed.user(status="Pending")

        response = await test_client.post(
            "/api/login", json={"email": "maria@example.com", "password": DEFAULT_PASSWORD}
        )

        body = response.json()
        assert response.status_code == 403
        assert body["error"] == "forbidden"
        assert set(body) == {"error", "message", "details", "request_id"}

    @pytest.mark.asyncio
    async def test_bad_credentials(self, test_client):
        response = await test_client.post(
            "/api/login", json={"email": "nobody@example.com", "password": "x"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_failed"

    @pytest.mark.asyncio
    async def test_malformed_body_is_422(self, test_client):
        response = await test_client.post("/api/login", json={})
        assert response.status_code == 422


class TestValidationSplit:

    @pytest.mark.asyncio
    async def test_missing_admin_fields_is_400(self, test_client):
        response = await test_client.post("/api/admins", json={"email": "a@brgy.gov"})

        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"

    @pytest.mark.asyncio
    async def test_create_admin(self, test_client):
        response = await test_client.post(
            "/api/admins", json={"email": "a@brgy.gov", "password": "pw123", "barangay": "San Roque"}
        )

        assert response.status_code == 201
        assert response.json()["barangay"] == "San Roque"
        assert "password" not in response.json()


class TestDocumentRoutes:

    @pytest.mark.asyncio
    async def test_upsert_twice(self, test_client):
        body = {"documentType": "psa", "code_id": "SP-0001", "file_name": "https://files.example.com/psa.pdf"}

        first = await test_client.post("/api/documents", json=body)
        second = await test_client.post("/api/documents", json=body)

        assert first.json()["action"] == "inserted"
        assert second.json()["action"] == "updated"
        assert second.json()["id"] == first.json()["id"]

    @pytest.mark.asyncio
    async def test_unknown_document_type(self, test_client):
        response = await test_client.post(
            "/api/documents", json={"documentType": "passport", "code_id": "SP-0001", "file_name": "p.pdf"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reject_document(self, test_client, seed):
        await seed.user(status="Incomplete")
        await seed.document(DocumentType.PSA)

        response = await test_client.post(
            "/api/documents/status",
            json={
                "code_id": "SP-0001",
                "documentType": "psa_documents",
                "status": "Rejected",
                "rejection_reason": "Blurred scan",
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["document"]["status"] == "Rejected"
        assert body["document"]["rejectionReason"] == "Blurred scan"
        assert body["userStatus"] is None

    @pytest.mark.asyncio
    async def test_approving_document_of_terminated_case_keeps_status(self, test_client, seed):
        await seed.user(status="Terminated", civil_status=None)
        for document_type in (DocumentType.PSA, DocumentType.ITR):
            await seed.document(document_type, status="Approved")
        await seed.document(DocumentType.MED_CERT)

        response = await test_client.post(
            "/api/documents/status",
            json={"code_id": "SP-0001", "documentType": "med_cert", "status": "Approved"},
        )

        assert response.status_code == 200
        assert response.json()["userStatus"] == "Terminated"
        async with seed.database.session() as check:
            user = (await check.execute(select(User))).scalars().one()
            assert user.status == "Terminated"

    @pytest.mark.asyncio
    async def test_delete_missing_document(self, test_client):
        response = await test_client.delete("/api/documents/itr/SP-0001")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestEventRoutes:

    @pytest.mark.asyncio
    async def test_conflict_returns_colliding_event(self, test_client, seed):
        await seed.event()

        response = await test_client.post(
            "/api/events",
            json={
                "title": "Budget Forum",
                "startDate": "2030-05-10",
                "startTime": "11:30",
                "endTime": "12:30",
                "image": "https://img.example.com/forum.png",
            },
        )

        body = response.json()
        assert response.status_code == 409
        assert body["error"] == "conflict"
        assert body["details"]["conflict"]["title"] == "Parenting Seminar"
        assert body["details"]["conflict"]["startTime"] == "10:00"

    @pytest.mark.asyncio
    async def test_create_on_free_slot(self, test_client, seed):
        await seed.event()

        response = await test_client.post(
            "/api/events",
            json={
                "title": "Budget Forum",
                "startDate": "2030-05-10",
                "startTime": "12:00",
                "endTime": "13:00",
                "image": "https://img.example.com/forum.png",
            },
        )

        assert response.status_code == 201
        assert response.json()["startTime"] == "12:00:00"


class TestStatusRoutes:

    @pytest.mark.asyncio
    async def test_decline_reports_failed_mail(self, test_client, seed, mail):
        await seed.user(status="Pending")
        mail.send.return_value = False

        response = await test_client.post(
            "/api/cases/SP-0001/status", json={"status": "Declined", "remarks": "Incomplete ITR"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "Status updated but email failed"
        assert body["status"] == "Declined"
        assert body["previous_status"] == "Pending"
        assert body["email_sent"] is False
        async with seed.database.session() as check:
            user = (await check.execute(select(User))).scalars().one()
            assert user.status == "Declined"

    @pytest.mark.asyncio
    async def test_mail_sent(self, test_client, seed, mail):
        await seed.user(status="Pending")

        response = await test_client.post("/api/cases/SP-0001/status", json={"status": "Created"})

        assert response.json()["message"] == "Status updated and email sent"

    @pytest.mark.asyncio
    async def test_invalid_transition_is_409(self, test_client, seed, mail):
        user = await seed.user(status="Verified")

        response = await test_client.post(f"/api/users/{user.id}/reinstate")

        body = response.json()
        assert response.status_code == 409
        assert body["error"] == "invalid_transition"
        assert body["details"]["current_status"] == "Verified"
        mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_status_is_400(self, test_client, seed):
        await seed.user(status="Pending")

        response = await test_client.post("/api/cases/SP-0001/status", json={"status": "Archived"})

        assert response.status_code == 400


class TestMediaRoutes:

    @pytest.mark.asyncio
    async def test_id_card_upload(self, test_client):
        storage = AsyncMock()
        storage.upload = AsyncMock(
            side_effect=lambda data_uri, folder, public_id=None: UploadedBlob(
                secure_url=f"https://cdn.example.com/{folder}/{public_id}.png"
            )
        )
        body = {"userId": 1, "codeId": "SP-0001", "frontImage": "data:front", "backImage": "data:back"}

        with patch("soloparent.services.media_service.blob_storage", storage):
            first = await test_client.post("/api/id-cards", json=body)
            second = await test_client.post("/api/id-cards", json=body)

        assert first.status_code == 200
        assert first.json()["isExisting"] is False
        assert second.json()["isExisting"] is True
        assert second.json()["frontUrl"] == "https://cdn.example.com/id_cards/SP-0001/front.png"


class TestApplicantRecordRoutes:

    @pytest.mark.asyncio
    async def test_civil_status_edit_recomputes_case(self, test_client, seed):
        user = await seed.user(status="Verified", civil_status=None)
        for document_type in (DocumentType.PSA, DocumentType.ITR, DocumentType.MED_CERT):
            await seed.document(document_type, status="Approved")

        response = await test_client.put(
            f"/api/users/{user.id}/information", json={"civil_status": "married", "income": "12000"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "User information updated successfully"
        assert body["updated"] == ["civil_status", "income"]
        assert body["recomputed"] is True
        assert body["status"] == "Incomplete"
        async with seed.database.session() as check:
            stored = (await check.execute(select(User))).scalars().one()
            assert stored.status == "Incomplete"

    @pytest.mark.asyncio
    async def test_unknown_information_field_is_422(self, test_client, seed):
        user = await seed.user()

        response = await test_client.put(f"/api/users/{user.id}/information", json={"barangay": "Poblacion"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_profile_photos(self, test_client, seed):
        user = await seed.user()

        response = await test_client.put(
            f"/api/users/{user.id}/profile-photos", json={"profilePic": "https://img.example.com/maria.jpg"}
        )
        missing = await test_client.put(f"/api/users/{user.id}/profile-photos", json={})

        assert response.status_code == 200
        assert response.json()["profilePic"] == "https://img.example.com/maria.jpg"
        assert response.json()["faceRecognitionPhoto"] is None
        assert missing.status_code == 400

    @pytest.mark.asyncio
    async def test_classification(self, test_client, seed):
        await seed.user()
        await seed.save(Classification(code_id="SP-0001", classification="Unmarried mother"))

        response = await test_client.put(
            "/api/cases/SP-0001/classification", json={"classification": "Widowed parent"}
        )
        blank = await test_client.put("/api/cases/SP-0001/classification", json={"classification": ""})
        unknown = await test_client.put(
            "/api/cases/SP-0404/classification", json={"classification": "Widowed parent"}
        )

        assert response.status_code == 200
        assert response.json()["classification"] == "Widowed parent"
        assert blank.status_code == 400
        assert unknown.status_code == 404
