"""
Solo Parent Backend: Supporting Document Models
================================================

One table per document type, all with the same shape. Each case has at most
one row per table (unique `code_id`); `status` is Pending, Approved or Rejected.

The mapping from document code to model lives in services/document_registry.py.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from soloparent.database import Base, utc_now


class DocumentMixin:
    """Columns shared by every document table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    @declared_attr
    def code_id(cls) -> Mapped[str]:
        return mapped_column(String(64), nullable=False, unique=True, index=True)


class PsaDocument(DocumentMixin, Base):
    __tablename__ = "psa_documents"


class ItrDocument(DocumentMixin, Base):
    __tablename__ = "itr_documents"


class MedCertDocument(DocumentMixin, Base):
    __tablename__ = "med_cert_documents"


class MarriageDocument(DocumentMixin, Base):
    __tablename__ = "marriage_documents"


class CenomarDocument(DocumentMixin, Base):
    __tablename__ = "cenomar_documents"


class DeathCertDocument(DocumentMixin, Base):
    __tablename__ = "death_cert_documents"


class BarangayCertDocument(DocumentMixin, Base):
    __tablename__ = "barangay_cert_documents"
