"""
Solo Parent Backend: Account Service
=====================================

What:  Login across the three account tables, applicant account creation,
       password changes and the password reset flow.
How:   Passwords are stored as passlib hashes (pbkdf2_sha256). Login tries
       users, then admin, then superadmin. A Created applicant's first
       login fires the FIRST_LOGIN workflow event.

Password reset:
    request  → only Verified users; token = 40 hex chars, valid
               `reset_token_ttl_minutes`; link mailed to the user
    verify   → token exists and has not expired
    reset    → new password must differ from the current one; the token is
               cleared so it cannot be reused
"""

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.config import settings
from soloparent.database import utc_now
from soloparent.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from soloparent.models.user import Admin, Superadmin, User
from soloparent.services.mail_service import MailKind, mail_service
from soloparent.services.workflow import UserStatus, WorkflowEvent, workflow_service

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Unrecognised hash format
        return False


class AccountService:
    """Authentication and credential management."""

    # ── Login ─────────────────────────────────────────────────────────────
    async def login(self, db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate against users, then admin, then superadmin.

        Raises:
            AuthenticationError: no account matches the credentials (401).
            PermissionDeniedError: the applicant is still Pending (403).
        """
        user = await self._first(db, select(User).where(User.email == email))
        if user is not None and verify_password(password, user.password):
            if user.status == UserStatus.PENDING.value:
                raise PermissionDeniedError("Account is pending approval")
            if user.status == UserStatus.CREATED.value:
                await workflow_service.apply(db, user, WorkflowEvent.FIRST_LOGIN)
            logger.info("User %d logged in (status=%s)", user.id, user.status)
            return {"id": user.id, "email": user.email, "status": user.status, "role": "user"}

        admin = await self._first(db, select(Admin).where(Admin.email == email))
        if admin is not None and verify_password(password, admin.password):
            return {
                "id": admin.id,
                "email": admin.email,
                "status": None,
                "role": "admin",
                "barangay": admin.barangay,
            }

        superadmin = await self._first(db, select(Superadmin).where(Superadmin.email == email))
        if superadmin is not None and verify_password(password, superadmin.password):
            return {"id": superadmin.id, "email": superadmin.email, "status": None, "role": "superadmin"}

        logger.warning("Failed login for %s", email)
        raise AuthenticationError("Invalid credentials")

    @staticmethod
    async def _first(db: AsyncSession, query):
        return (await db.execute(query)).scalars().first()

    async def check_user_status(self, db: AsyncSession, email: str) -> Dict[str, Any]:
        user = await self._first(db, select(User).where(User.email == email))
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)
        return {"id": user.id, "email": user.email, "name": user.name, "status": user.status}

    async def create_user(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        name: Optional[str] = None,
        code_id: Optional[str] = None,
    ) -> User:
        if await self._first(db, select(User.id).where(User.email == email)) is not None:
            raise ValidationError("Email already exists", field="email")
        user = User(
            email=email,
            password=hash_password(password),
            name=name,
            code_id=code_id,
            status=UserStatus.PENDING.value,
        )
        db.add(user)
        await db.flush()
        logger.info("Created applicant account %d", user.id)
        return user

    # ── Password Change ───────────────────────────────────────────────────
    async def change_user_password(
        self, db: AsyncSession, user_id: int, current_password: str, new_password: str
    ) -> None:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        self._replace_password(user, current_password, new_password, require_different=False)
        await db.flush()

    async def change_admin_password(
        self, db: AsyncSession, admin_id: int, current_password: str, new_password: str
    ) -> None:
        admin = await db.get(Admin, admin_id)
        if admin is None:
            raise NotFoundError(resource="admin", resource_id=admin_id)
        self._replace_password(admin, current_password, new_password, require_different=True)
        await db.flush()

    async def change_superadmin_password(
        self,
        db: AsyncSession,
        current_password: str,
        new_password: str,
        superadmin_id: Optional[int] = None,
        email: Optional[str] = None,
    ) -> None:
        """Superadmin is located by id, falling back to email."""
        superadmin = await db.get(Superadmin, superadmin_id) if superadmin_id else None
        if superadmin is None and email:
            superadmin = await self._first(db, select(Superadmin).where(Superadmin.email == email))
        if superadmin is None:
            raise NotFoundError(resource="superadmin", resource_id=superadmin_id or email)
        self._replace_password(superadmin, current_password, new_password, require_different=True)
        await db.flush()

    @staticmethod
    def _replace_password(account, current_password: str, new_password: str, require_different: bool) -> None:
        if not verify_password(current_password, account.password):
            raise AuthenticationError("Current password is incorrect")
        if require_different and current_password == new_password:
            raise ValidationError(
                "New password must be different from your current password", field="newPassword"
            )
        account.password = hash_password(new_password)

    # ── Password Reset ────────────────────────────────────────────────────
    async def request_password_reset(self, db: AsyncSession, email: str) -> bool:
        """
        Issue a reset token and mail the link.

        Returns whether the mail was delivered; the token is stored either way.

        Raises:
            NotFoundError: no applicant with this email (404).
            PermissionDeniedError: the applicant is not Verified (403).
        """
        user = await self._first(db, select(User).where(User.email == email))
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)
        if user.status != UserStatus.VERIFIED.value:
            raise PermissionDeniedError(
                "Only verified users can reset their password. Please contact an administrator."
            )

        token = secrets.token_hex(20)
        user.reset_password_token = token
        user.reset_password_expires = utc_now() + timedelta(minutes=settings.reset_token_ttl_minutes)
        await db.commit()

        reset_link = f"{settings.frontend_url.rstrip('/')}/reset-password/{token}"
        sent = await mail_service.send(
            user.email, MailKind.PASSWORD_RESET.value, {"name": user.name, "reset_link": reset_link}
        )
        if not sent:
            logger.warning("Password reset mail for user %d was not delivered", user.id)
        return sent

    async def _user_by_token(self, db: AsyncSession, token: str) -> Optional[User]:
        return await self._first(
            db,
            select(User).where(
                User.reset_password_token == token,
                User.reset_password_expires > utc_now(),
            ),
        )

    async def verify_reset_token(self, db: AsyncSession, token: str) -> bool:
        return await self._user_by_token(db, token) is not None

    async def reset_password(self, db: AsyncSession, token: str, password: str) -> None:
        user = await self._user_by_token(db, token)
        if user is None:
            raise ValidationError("Invalid or expired token", field="token")
        if verify_password(password, user.password):
            raise ValidationError(
                "New password cannot be the same as your current password", field="password"
            )
        user.password = hash_password(password)
        user.reset_password_token = None
        user.reset_password_expires = None
        await db.flush()
        logger.info("Password reset completed for user %d", user.id)


account_service = AccountService()
