"""
Solo Parent Backend: Notification Models
=========================================

Append-only inbox rows, each scoped to one audience:

    user         accepted_users, declined_users, terminated_users, user_remarks,
                 follow_up_documents, user_childrequest
    admin        adminnotifications (scoped by barangay)
    superadmin   superadminnotifications

Every table carries an `is_read` flag. Rows are written as side effects of
workflow transitions (services/notification_service.py).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from soloparent.database import Base, utc_now


class AcceptedUser(Base):
    __tablename__ = "accepted_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    accepted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_accepted_users_user_read", "user_id", "is_read"),)


class DeclinedUser(Base):
    __tablename__ = "declined_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    remarks: Mapped[str] = mapped_column(Text, nullable=False)
    declined_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_declined_users_user_read", "user_id", "is_read"),)


class TerminatedUser(Base):
    __tablename__ = "terminated_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    terminated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_terminated_users_user_read", "user_id", "is_read"),)


class UserRemark(Base):
    """Investigation remarks filed against a verified case."""

    __tablename__ = "user_remarks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    remarks: Mapped[str] = mapped_column(Text, nullable=False)
    admin_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    superadmin_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    remarks_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_user_remarks_user_read", "user_id", "is_read"),)


class FollowUpDocument(Base):
    """Per-document review outcome shown to the applicant."""

    __tablename__ = "follow_up_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    accepted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class UserChildRequestNotice(Base):
    """Outcome of a child request, shown to the applicant."""

    __tablename__ = "user_childrequest"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    message_accepted: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class AdminNotification(Base):
    """Inbox row for the admin of one barangay."""

    __tablename__ = "adminnotifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notif_type: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    barangay: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class SuperadminNotification(Base):
    __tablename__ = "superadminnotifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notif_type: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
