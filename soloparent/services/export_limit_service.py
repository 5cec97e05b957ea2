"""
Solo Parent Backend: Export Limits
===================================

Per-admin daily caps on report exports. Excel and PDF each allow
`settings.export_daily_limit` exports per day; counters read as zero once
the last export happened on an earlier (UTC) day.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.config import settings
from soloparent.database import utc_now
from soloparent.exceptions import ValidationError
from soloparent.models.records import ExportLimit
from soloparent.models.user import Admin

logger = logging.getLogger(__name__)

EXPORT_TYPES = ("excel", "pdf")


def _is_today(moment: Optional[datetime], now: datetime) -> bool:
    return moment is not None and moment.date() == now.date()


def export_limit_to_dict(row: ExportLimit) -> Dict[str, Any]:
    limit = settings.export_daily_limit
    can_excel = row.excel_count < limit
    can_pdf = row.pdf_count < limit
    return {
        "exportCount": row.export_count,
        "excelCount": row.excel_count,
        "pdfCount": row.pdf_count,
        "lastExportDate": row.last_export_date,
        "canExport": can_excel or can_pdf,
        "canExportExcel": can_excel,
        "canExportPdf": can_pdf,
    }


class ExportLimitService:

    async def _row(self, db: AsyncSession, admin_id: int) -> ExportLimit:
        """The admin's counters, created on first use and zeroed on a new day."""
        row = (
            await db.execute(
                select(ExportLimit).where(ExportLimit.admin_id == admin_id).with_for_update()
            )
        ).scalars().first()
        if row is None:
            row = ExportLimit(admin_id=admin_id, export_count=0, excel_count=0, pdf_count=0)
            db.add(row)
            await db.flush()
        elif row.last_export_date is not None and not _is_today(row.last_export_date, utc_now()):
            self._zero(row)
            await db.flush()
        return row

    @staticmethod
    def _zero(row: ExportLimit) -> None:
        row.export_count = 0
        row.excel_count = 0
        row.pdf_count = 0
        row.last_export_date = None

    async def get(self, db: AsyncSession, admin_id: int) -> Dict[str, Any]:
        return export_limit_to_dict(await self._row(db, admin_id))

    async def increment(
        self, db: AsyncSession, admin_id: int, export_type: Optional[str]
    ) -> Dict[str, Any]:
        """
        Count one export. Unknown types only bump the total.

        Raises:
            ValidationError: the daily cap for this type is already reached.
        """
        row = await self._row(db, admin_id)
        limit = settings.export_daily_limit
        if export_type == "excel":
            if row.excel_count >= limit:
                raise ValidationError("Daily Excel export limit reached", field="type")
            row.excel_count += 1
        elif export_type == "pdf":
            if row.pdf_count >= limit:
                raise ValidationError("Daily PDF export limit reached", field="type")
            row.pdf_count += 1
        row.export_count += 1
        row.last_export_date = utc_now()
        await db.flush()
        logger.info("Admin %d export (%s): %d today", admin_id, export_type, row.export_count)
        return export_limit_to_dict(row)

    async def list_all(self, db: AsyncSession) -> List[Dict[str, Any]]:
        query = (
            select(ExportLimit, Admin.barangay)
            .outerjoin(Admin, Admin.id == ExportLimit.admin_id)
            .order_by(ExportLimit.updated_at.desc(), ExportLimit.id.desc())
        )
        return [
            dict(export_limit_to_dict(row), adminId=row.admin_id, barangay=barangay)
            for row, barangay in (await db.execute(query)).all()
        ]

    async def reset(self, db: AsyncSession, admin_id: Optional[int] = None) -> int:
        """Zero one admin's counters, or everyone's when admin_id is None."""
        statement = update(ExportLimit).values(
            export_count=0, excel_count=0, pdf_count=0, last_export_date=None
        )
        if admin_id is not None:
            statement = statement.where(ExportLimit.admin_id == admin_id)
        result = await db.execute(statement)
        return result.rowcount or 0


export_limit_service = ExportLimitService()
