"""
Solo Parent Backend: ID Cards and Announcements
================================================

Both store images through the blob storage collaborator and keep only the
returned HTTPS URLs in the database.

ID card upload is idempotent per (user_id, code_id): an existing card is
returned untouched (isExisting=True) and nothing is uploaded.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import utc_now
from soloparent.exceptions import ValidationError
from soloparent.models.records import Announcement, UserIdCard
from soloparent.services.blob_storage import blob_storage

logger = logging.getLogger(__name__)

ANNOUNCEMENT_FOLDER = "announcements"


def id_card_folder(code_id: str) -> str:
    return f"id_cards/{code_id}"


class MediaService:

    async def upload_id_card(
        self,
        db: AsyncSession,
        user_id: int,
        code_id: str,
        front_image: str,
        back_image: str,
    ) -> Dict[str, Any]:
        """
        Store the front and back of a user's ID card.

        Raises:
            ValidationError: a field is missing.
            BlobStorageError: either upload failed (nothing is stored).
        """
        if not user_id or not code_id or not front_image or not back_image:
            raise ValidationError("Missing required fields")

        existing = (
            await db.execute(
                select(UserIdCard).where(UserIdCard.user_id == user_id, UserIdCard.code_id == code_id)
            )
        ).scalars().first()
        if existing is not None:
            return {
                "frontUrl": existing.front_url,
                "backUrl": existing.back_url,
                "message": "ID card already exists",
                "isExisting": True,
            }

        folder = id_card_folder(code_id)
        front, back = await asyncio.gather(
            blob_storage.upload(front_image, folder, public_id="front"),
            blob_storage.upload(back_image, folder, public_id="back"),
        )
        db.add(
            UserIdCard(
                user_id=user_id,
                code_id=code_id,
                front_url=front.secure_url,
                back_url=back.secure_url,
            )
        )
        await db.flush()
        logger.info("Stored ID card for user %d (case %s)", user_id, code_id)
        return {
            "frontUrl": front.secure_url,
            "backUrl": back.secure_url,
            "message": "ID card uploaded and saved successfully",
            "isExisting": False,
        }

    async def create_announcement(
        self,
        db: AsyncSession,
        title: str,
        description: Optional[str] = None,
        link: Optional[str] = None,
        image_base64: Optional[str] = None,
        end_date: Optional[datetime] = None,
    ) -> Announcement:
        if not title:
            raise ValidationError("Title is required", field="title")

        image_url = None
        if image_base64:
            uploaded = await blob_storage.upload(image_base64, ANNOUNCEMENT_FOLDER)
            image_url = uploaded.secure_url

        announcement = Announcement(
            title=title,
            description=description,
            image_url=image_url,
            link=link,
            date=utc_now(),
            end_date=end_date,
        )
        db.add(announcement)
        await db.flush()
        return announcement

    async def active_announcements(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> List[Announcement]:
        now = now or utc_now()
        query = (
            select(Announcement)
            .where(
                Announcement.date <= now,
                or_(Announcement.end_date.is_(None), Announcement.end_date > now),
            )
            .order_by(Announcement.date.desc(), Announcement.id.desc())
        )
        return list((await db.execute(query)).scalars().all())


media_service = MediaService()
