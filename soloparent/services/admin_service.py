"""
Solo Parent Backend: Admin Accounts
====================================

Barangay admin management by the superadmin. Each barangay has at most one
admin; emails are unique. Passwords are hashed with the account service's
passlib context.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.exceptions import NotFoundError, ValidationError
from soloparent.models.user import Admin
from soloparent.services.account_service import hash_password

logger = logging.getLogger(__name__)


def admin_to_dict(admin: Admin) -> Dict[str, Any]:
    return {"id": admin.id, "email": admin.email, "barangay": admin.barangay}


class AdminService:

    async def list_admins(self, db: AsyncSession) -> List[Dict[str, Any]]:
        admins = (await db.execute(select(Admin).order_by(Admin.barangay))).scalars().all()
        return [admin_to_dict(admin) for admin in admins]

    async def _ensure_unique(
        self, db: AsyncSession, email: str, barangay: str, exclude_id: Optional[int] = None
    ) -> None:
        query = select(Admin).where((Admin.email == email) | (Admin.barangay == barangay))
        if exclude_id is not None:
            query = query.where(Admin.id != exclude_id)
        for other in (await db.execute(query)).scalars().all():
            if other.email == email:
                raise ValidationError("Email already exists", field="email")
            raise ValidationError("Barangay already has an admin", field="barangay")

    async def create_admin(
        self, db: AsyncSession, email: str, password: str, barangay: str
    ) -> Admin:
        if not email or not password or not barangay:
            raise ValidationError("All fields are required")
        await self._ensure_unique(db, email, barangay)

        admin = Admin(email=email, password=hash_password(password), barangay=barangay)
        db.add(admin)
        await db.flush()
        logger.info("Created admin %d for barangay %s", admin.id, barangay)
        return admin

    async def update_admin(
        self,
        db: AsyncSession,
        admin_id: int,
        email: str,
        barangay: str,
        password: Optional[str] = None,
    ) -> Admin:
        """Password is only replaced when a new one is given."""
        if not email or not barangay:
            raise ValidationError("Email and barangay are required")
        admin = await db.get(Admin, admin_id)
        if admin is None:
            raise NotFoundError(resource="admin", resource_id=admin_id)
        await self._ensure_unique(db, email, barangay, exclude_id=admin_id)

        admin.email = email
        admin.barangay = barangay
        if password:
            admin.password = hash_password(password)
        await db.flush()
        return admin


admin_service = AdminService()
