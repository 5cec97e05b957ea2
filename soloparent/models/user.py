"""
Solo Parent Backend: Account and Case Profile Models
=====================================================

What:  ORM models for applicant accounts, barangay admins, superadmins, the
       identifying-information profile (step 1), family members (step 2)
       and the classification (step 3).
How:   `code_id` is the natural key that groups every row of one case
       across tables; `users.status` holds the case's workflow state.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from soloparent.database import Base, utc_now


class User(Base):
    """
    An applicant account and the status column of its case.

    Status values are the UserStatus enum (services/workflow.py); `approval`
    is the barangay admin's pre-approval flag; `beneficiary_status` is
    'beneficiary' or 'non-beneficiary'.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="passlib hash",
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    code_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Pending")
    approval: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    beneficiary_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    reset_password_token: Mapped[Optional[str]] = mapped_column(
        "resetPasswordToken", String(100), nullable=True
    )
    reset_password_expires: Mapped[Optional[datetime]] = mapped_column(
        "resetPasswordExpires", DateTime, nullable=True
    )
    profile_pic: Mapped[Optional[str]] = mapped_column("profilePic", String(512), nullable=True)
    face_recognition_photo: Mapped[Optional[str]] = mapped_column(
        "faceRecognitionPhoto", String(512), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_users_status", "status"),
    )


class Admin(Base):
    """Barangay admin; one admin per barangay."""

    __tablename__ = "admin"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    barangay: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)


class Superadmin(Base):
    """Municipal (MSWDO) superadmin."""

    __tablename__ = "superadmin"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)


class IdentifyingInformation(Base):
    """Step 1 of the application form: who the applicant is and where they live."""

    __tablename__ = "step1_identifying_information"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    middle_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    suffix: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    place_of_birth: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    barangay: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    civil_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    religion: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    income: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    contact_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        Index("idx_step1_barangay", "barangay"),
    )


class FamilyMember(Base):
    """Step 2 of the application form: a dependent of the applicant."""

    __tablename__ = "step2_family_occupation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    family_member_name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    educational_attainment: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    birthdate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    occupation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Classification(Base):
    """Step 3 of the application form: the solo parent category of the case."""

    __tablename__ = "step3_classification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    classification: Mapped[str] = mapped_column(Text, nullable=False)
