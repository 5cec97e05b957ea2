"""
Solo Parent Backend: Event Schemas
===================================
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventPayload(BaseModel):
    """Create / update body. Times are "HH:MM" or "HH:MM:SS"."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: Optional[str] = None
    start_date: str = Field(alias="startDate")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    location: Optional[str] = None
    status: Optional[str] = None
    visibility: Optional[str] = None
    barangay: Optional[str] = None
    image: Optional[str] = None


class EventOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: Optional[str] = None
    start_date: date = Field(serialization_alias="startDate", validation_alias="startDate")
    start_time: time = Field(serialization_alias="startTime", validation_alias="startTime")
    end_time: time = Field(serialization_alias="endTime", validation_alias="endTime")
    location: Optional[str] = None
    status: str
    visibility: str
    barangay: str
    image: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    is_read: bool = False


class UserRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")


class AttendanceCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: int = Field(alias="eventId")
    user_id: int = Field(alias="userId")


class RatingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    rating: int


class RatingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    user_id: int
    rating: int
    created_at: Optional[datetime] = None
