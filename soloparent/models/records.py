"""
Solo Parent Backend: Miscellaneous Case Records
================================================

Child requests, ID card images, announcements and per-admin export counters.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from soloparent.database import Base, utc_now


class ChildRequest(Base):
    """A request to add a dependent to an existing case (Pending → Approved → removed)."""

    __tablename__ = "newchildrequest"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    middle_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    suffix: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    educational_attainment: Mapped[str] = mapped_column(String(128), nullable=False)
    barangay: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    requested_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)


class UserIdCard(Base):
    __tablename__ = "user_id_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False)
    front_url: Mapped[str] = mapped_column(Text, nullable=False)
    back_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (Index("idx_user_id_cards_user_code", "user_id", "code_id"),)


class Announcement(Base):
    """Visible while `date <= now` and (`end_date` is null or in the future)."""

    __tablename__ = "announcements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column("date", DateTime, nullable=False, default=utc_now)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class ExportLimit(Base):
    """Daily report-export counters for one barangay admin."""

    __tablename__ = "export_limits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    export_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    excel_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pdf_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_export_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )
