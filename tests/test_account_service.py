"""
Account Service Tests
======================

What we test:
    ✅ Login resolves users, then admins, then the superadmin
    ✅ Pending applicants are refused; a Created applicant is verified on first login
    ✅ Password changes (current password check, "must differ" rule for staff)
    ✅ Reset flow: Verified-only request, mailed link, token expiry, single use
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from soloparent.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from soloparent.models.notification import AdminNotification
from soloparent.models.user import User
from soloparent.services.account_service import AccountService, hash_password, verify_password

DEFAULT_PASSWORD = "secret123"  # Seeder default


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_missing_or_foreign_hash(self):
        assert verify_password("x", None) is False
        assert verify_password("x", "plain-text-password") is False


class TestLogin:

    def setup_method(self):
        self.service = AccountService()

    @pytest.mark.asyncio
    async def test_verified_user(self, seed, session):
        await seed.user(status="Verified")

        result = await self.service.login(session, "maria@example.com", DEFAULT_PASSWORD)

        assert result["role"] == "user"
        assert result["status"] == "Verified"

    @pytest.mark.asyncio
    async def test_pending_user_refused(self, seed, session):
        await seed.user(status="Pending")

        with pytest.raises(PermissionDeniedError):
            await self.service.login(session, "maria@example.com", DEFAULT_PASSWORD)

    @pytest.mark.asyncio
    async def test_created_user_verified_on_first_login(self, seed, session):
        await seed.user(status="Created")

        result = await self.service.login(session, "maria@example.com", DEFAULT_PASSWORD)

        assert result["status"] == "Verified"
        notices = (await session.execute(select(AdminNotification))).scalars().all()
        assert [notice.barangay for notice in notices] == ["San Roque"]

    @pytest.mark.asyncio
    async def test_admin_and_superadmin(self, seed, session):
        await seed.admin()
        await seed.superadmin()

        admin = await self.service.login(session, "admin@sanroque.gov", DEFAULT_PASSWORD)
        superadmin = await self.service.login(session, "mswdo@city.gov", DEFAULT_PASSWORD)

        assert admin["role"] == "admin"
        assert admin["barangay"] == "San Roque"
        assert superadmin["role"] == "superadmin"

    @pytest.mark.asyncio
    async def test_wrong_password(self, seed, session):
        await seed.user(status="Verified")

        with pytest.raises(AuthenticationError):
            await self.service.login(session, "maria@example.com", "not-it")

    @pytest.mark.asyncio
    async def test_unknown_email(self, session):
        with pytest.raises(AuthenticationError):
            await self.service.login(session, "nobody@example.com", DEFAULT_PASSWORD)


class TestAccountManagement:

    def setup_method(self):
        self.service = AccountService()

    @pytest.mark.asyncio
    async def test_create_user_starts_pending(self, session):
        user = await self.service.create_user(session, "new@example.com", "pw12345", name="Ana Cruz")

        assert user.status == "Pending"
        assert verify_password("pw12345", user.password)
        with pytest.raises(ValidationError, match="Email already exists"):
            await self.service.create_user(session, "new@example.com", "other")

    @pytest.mark.asyncio
    async def test_user_may_keep_same_password(self, seed, session):
        user = await seed.user(status="Verified")

        await self.service.change_user_password(session, user.id, DEFAULT_PASSWORD, DEFAULT_PASSWORD)

    @pytest.mark.asyncio
    async def test_admin_must_choose_new_password(self, seed, session):
        admin = await seed.admin()

        with pytest.raises(ValidationError):
            await self.service.change_admin_password(session, admin.id, DEFAULT_PASSWORD, DEFAULT_PASSWORD)
        with pytest.raises(AuthenticationError):
            await self.service.change_admin_password(session, admin.id, "wrong", "fresh-pass")

    @pytest.mark.asyncio
    async def test_superadmin_found_by_email(self, seed, session):
        await seed.superadmin()

        await self.service.change_superadmin_password(
            session, DEFAULT_PASSWORD, "fresh-pass", email="mswdo@city.gov"
        )

        result = await self.service.login(session, "mswdo@city.gov", "fresh-pass")
        assert result["role"] == "superadmin"

    @pytest.mark.asyncio
    async def test_check_user_status(self, seed, session):
        await seed.user(status="Renewal")

        result = await self.service.check_user_status(session, "maria@example.com")

        assert result["status"] == "Renewal"
        with pytest.raises(NotFoundError):
            await self.service.check_user_status(session, "nobody@example.com")


class TestPasswordReset:

    def setup_method(self):
        self.service = AccountService()

    @pytest.mark.asyncio
    async def test_request_mails_link(self, seed, session, mail):
        await seed.user(status="Verified")

        sent = await self.service.request_password_reset(session, "maria@example.com")

        assert sent is True
        user = (await session.execute(select(User))).scalars().one()
        assert len(user.reset_password_token) == 40
        to, kind, data = mail.send.await_args.args
        assert to == "maria@example.com"
        assert kind == "password_reset"
        assert data["reset_link"].endswith(f"/reset-password/{user.reset_password_token}")

    @pytest.mark.asyncio
    async def test_request_requires_verified(self, seed, session, mail):
        await seed.user(status="Pending")

        with pytest.raises(PermissionDeniedError):
            await self.service.request_password_reset(session, "maria@example.com")
        mail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_unknown_email(self, session, mail):
        with pytest.raises(NotFoundError):
            await self.service.request_password_reset(session, "nobody@example.com")

    @pytest.mark.asyncio
    async def test_reset_consumes_token(self, seed, session, mail):
        await seed.user(status="Verified")
        await self.service.request_password_reset(session, "maria@example.com")
        token = (await session.execute(select(User))).scalars().one().reset_password_token

        assert await self.service.verify_reset_token(session, token) is True
        with pytest.raises(ValidationError, match="cannot be the same"):
            await self.service.reset_password(session, token, DEFAULT_PASSWORD)

        await self.service.reset_password(session, token, "brand-new-pass")

        assert await self.service.verify_reset_token(session, token) is False
        result = await self.service.login(session, "maria@example.com", "brand-new-pass")
        assert result["role"] == "user"

    @pytest.mark.asyncio
    async def test_expired_token(self, seed, session):
        user = await seed.user(status="Verified")
        async with seed.database.session() as writer:
            stored = await writer.get(User, user.id)
            stored.reset_password_token = "a" * 40
            stored.reset_password_expires = datetime(2000, 1, 1) + timedelta(minutes=30)

        assert await self.service.verify_reset_token(session, "a" * 40) is False
        with pytest.raises(ValidationError, match="Invalid or expired token"):
            await self.service.reset_password(session, "a" * 40, "brand-new-pass")
