"""
Solo Parent Backend: Event Models
==================================

Scheduled community activities, who read them, who attended, and ratings.
Column names keep the camelCase used by existing clients (startDate, ...).
"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from soloparent.database import Base, utc_now


class Event(Base):
    """
    A scheduled activity.

    Invariant (enforced by EventService): no two non-archived events on the
    same date come within 60 minutes of each other. Deleting an event only
    sets status to 'Archived'.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column("startDate", Date, nullable=False)
    start_time: Mapped[time] = mapped_column("startTime", Time, nullable=False)
    end_time: Mapped[time] = mapped_column("endTime", Time, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Upcoming")
    visibility: Mapped[str] = mapped_column(String(32), nullable=False, default="everyone")
    barangay: Mapped[str] = mapped_column(String(128), nullable=False, default="All")
    image: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (Index("idx_events_start_date", "startDate"),)


class EventRead(Base):
    __tablename__ = "event_reads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    read_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_reads_event_user"),)


class Attendee(Base):
    __tablename__ = "attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    attend_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)


class EventRating(Base):
    __tablename__ = "event_ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_ratings_event_user"),)
