"""
Solo Parent Backend: Admin, Child Request, Media and Export Schemas
====================================================================
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Admin Accounts ────────────────────────────────────────────────────────
class AdminCreateRequest(BaseModel):
    # Optional so the service can answer "All fields are required" (400).
    email: Optional[str] = None
    password: Optional[str] = None
    barangay: Optional[str] = None


class AdminUpdateRequest(BaseModel):
    email: Optional[str] = None
    barangay: Optional[str] = None
    password: Optional[str] = None


class AdminOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    barangay: str


# ── Child Requests ────────────────────────────────────────────────────────
class ChildRequestCreate(BaseModel):
    code_id: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    suffix: Optional[str] = None
    birthdate: Optional[date] = None
    age: Optional[int] = None
    educational_attainment: Optional[str] = None


# ── ID Cards & Announcements ──────────────────────────────────────────────
class IdCardUpload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    code_id: str = Field(alias="codeId")
    front_image: str = Field(alias="frontImage", description="base64 data URI")
    back_image: str = Field(alias="backImage", description="base64 data URI")


class IdCardResponse(BaseModel):
    success: bool = True
    front_url: str = Field(serialization_alias="frontUrl")
    back_url: str = Field(serialization_alias="backUrl")
    message: str
    is_existing: bool = Field(serialization_alias="isExisting")


class AnnouncementCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: Optional[str] = None
    link: Optional[str] = None
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")


class AnnouncementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None


# ── Export Limits ─────────────────────────────────────────────────────────
class ExportIncrement(BaseModel):
    type: Optional[str] = Field(default=None, description="excel or pdf")
