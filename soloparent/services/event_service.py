"""
Solo Parent Backend: Event Service
===================================

What:  Community events: scheduling with the one-hour gap rule, listing per
       audience, read receipts, attendance and ratings.
How:   The scheduling rule is three pure helpers (time_to_minutes,
       validate_time_range, find_conflict); EventService feeds them the
       non-archived events of the candidate's date.

Gap rule (all times in minutes since midnight):

    existing [s, e] is buffered to [s - 60, e + 60]
    candidate [ns, ne] conflicts when
        bufStart <= ns <  bufEnd      or
        bufStart <  ne <= bufEnd      or
        ns <= bufStart and ne >= bufEnd

    10:00-11:00 existing → 11:30-12:30 rejected, 12:01-13:00 accepted.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import utc_now
from soloparent.exceptions import ConflictError, NotFoundError, ValidationError
from soloparent.models.event import Attendee, Event, EventRating, EventRead
from soloparent.models.user import IdentifyingInformation, Superadmin, User

logger = logging.getLogger(__name__)

GAP_MINUTES = 60
ARCHIVED = "Archived"

TimeValue = Union[str, time]


def time_to_minutes(value: TimeValue) -> int:
    """Minutes since midnight for "HH:MM", "HH:MM:SS" or a datetime.time."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    try:
        parts = str(value).strip().split(":")
        hours, minutes = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        raise ValidationError(f"Invalid time: {value}", field="time")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationError(f"Invalid time: {value}", field="time")
    return hours * 60 + minutes


def validate_time_range(start: TimeValue, end: TimeValue) -> None:
    if time_to_minutes(end) <= time_to_minutes(start):
        raise ValidationError("End time must be after start time", field="endTime")


def _overlaps(new_start: int, new_end: int, buf_start: int, buf_end: int) -> bool:
    return (
        (buf_start <= new_start < buf_end)
        or (buf_start < new_end <= buf_end)
        or (new_start <= buf_start and new_end >= buf_end)
    )


def find_conflict(
    start: TimeValue,
    end: TimeValue,
    existing: Iterable[Any],
    buffer_minutes: int = GAP_MINUTES,
) -> Optional[Any]:
    """
    First existing event whose buffered window the candidate touches.

    `existing` items need `id`, `start_time` and `end_time`. Among several
    conflicts the one starting earliest is returned (ties by id).
    """
    new_start = time_to_minutes(start)
    new_end = time_to_minutes(end)
    ordered = sorted(existing, key=lambda ev: (time_to_minutes(ev.start_time), ev.id or 0))
    for event in ordered:
        buf_start = time_to_minutes(event.start_time) - buffer_minutes
        buf_end = time_to_minutes(event.end_time) + buffer_minutes
        if _overlaps(new_start, new_end, buf_start, buf_end):
            return event
    return None


def _parse_time(value: TimeValue) -> time:
    if isinstance(value, time):
        return value
    minutes = time_to_minutes(value)
    return time(minutes // 60, minutes % 60)


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field="startDate")


@dataclass
class EventInput:
    title: str
    start_date: Union[str, date]
    start_time: TimeValue
    end_time: TimeValue
    image: Optional[str]
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    visibility: Optional[str] = None
    barangay: Optional[str] = None


def event_to_dict(event: Event, is_read: bool = False) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "startDate": event.start_date,
        "startTime": event.start_time,
        "endTime": event.end_time,
        "location": event.location,
        "status": event.status,
        "visibility": event.visibility,
        "barangay": event.barangay or "All",
        "image": event.image,
        "created_at": event.created_at,
        "updated_at": event.updated_at,
        "is_read": is_read,
    }


class EventService:
    """Event scheduling and participation."""

    # ── Scheduling ────────────────────────────────────────────────────────
    async def check_conflict(
        self,
        db: AsyncSession,
        start_date: date,
        start_time: time,
        end_time: time,
        exclude_id: Optional[int] = None,
    ) -> None:
        """
        Raises:
            ConflictError: another non-archived event that day is within the gap.
        """
        query = select(Event).where(Event.start_date == start_date, Event.status != ARCHIVED)
        if exclude_id is not None:
            query = query.where(Event.id != exclude_id)
        same_day: Sequence[Event] = list((await db.execute(query)).scalars())

        conflict = find_conflict(start_time, end_time, same_day)
        if conflict is not None:
            logger.info(
                "Event on %s %s-%s conflicts with event %s", start_date, start_time, end_time, conflict.id
            )
            raise ConflictError(
                message=(
                    "There must be a 1-hour gap between events. "
                    f'Conflicts with event "{conflict.title}"'
                ),
                conflict=_conflict_payload(conflict),
            )

    def _validated(self, data: EventInput):
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", field="title")
        start_date = _parse_date(data.start_date)
        validate_time_range(data.start_time, data.end_time)
        if not data.image or not data.image.strip():
            raise ValidationError("Image is required", field="image")
        return start_date, _parse_time(data.start_time), _parse_time(data.end_time)

    async def create(self, db: AsyncSession, data: EventInput) -> Event:
        start_date, start_time, end_time = self._validated(data)
        await self.check_conflict(db, start_date, start_time, end_time)

        event = Event(
            title=data.title.strip(),
            description=data.description,
            start_date=start_date,
            start_time=start_time,
            end_time=end_time,
            location=data.location,
            status=data.status or "Upcoming",
            visibility=data.visibility or "everyone",
            barangay=data.barangay or "All",
            image=data.image,
        )
        db.add(event)
        await db.flush()
        logger.info("Created event %d '%s' on %s", event.id, event.title, start_date)
        return event

    async def update(self, db: AsyncSession, event_id: int, data: EventInput) -> Event:
        event = await self._get(db, event_id)
        start_date, start_time, end_time = self._validated(data)
        await self.check_conflict(db, start_date, start_time, end_time, exclude_id=event_id)

        event.title = data.title.strip()
        event.description = data.description
        event.start_date = start_date
        event.start_time = start_time
        event.end_time = end_time
        event.location = data.location
        event.status = data.status or event.status
        event.visibility = data.visibility or event.visibility
        event.barangay = data.barangay or "All"
        event.image = data.image
        event.updated_at = utc_now()
        await db.flush()
        return event

    async def archive(self, db: AsyncSession, event_id: int) -> None:
        event = await self._get(db, event_id)
        event.status = ARCHIVED
        await db.flush()
        logger.info("Archived event %d", event_id)

    async def _get(self, db: AsyncSession, event_id: int) -> Event:
        event = await db.get(Event, event_id)
        if event is None:
            raise NotFoundError(resource="event", resource_id=event_id)
        return event

    # ── Listings ──────────────────────────────────────────────────────────
    async def list_for_user(
        self, db: AsyncSession, user_id: int, role: str = "user"
    ) -> List[Dict[str, Any]]:
        """
        Events visible to one account, newest first, with its read flag.

        Superadmins and users see every non-archived event; Declined users
        only past or Completed ones.
        """
        query = select(Event).where(Event.status != ARCHIVED)

        if role == "superadmin":
            if await db.get(Superadmin, user_id) is None:
                raise NotFoundError(resource="superadmin", resource_id=user_id)
        else:
            user = await db.get(User, user_id)
            if user is None:
                raise NotFoundError(resource="user", resource_id=user_id)
            if user.status == "Declined":
                query = query.where(
                    (Event.start_date < date.today()) | (Event.status == "Completed")
                )

        events = list((await db.execute(query.order_by(Event.created_at.desc(), Event.id.desc()))).scalars())
        read_ids = await self._read_ids(db, user_id)
        return [event_to_dict(event, event.id in read_ids) for event in events]

    async def list_all(self, db: AsyncSession, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        events = list(
            (
                await db.execute(
                    select(Event)
                    .where(Event.status != ARCHIVED)
                    .order_by(Event.created_at.desc(), Event.id.desc())
                )
            ).scalars()
        )
        read_ids = await self._read_ids(db, user_id) if user_id is not None else set()
        return [event_to_dict(event, event.id in read_ids) for event in events]

    @staticmethod
    async def _read_ids(db: AsyncSession, user_id: int) -> set:
        result = await db.execute(select(EventRead.event_id).where(EventRead.user_id == user_id))
        return set(result.scalars())

    async def mark_read(self, db: AsyncSession, event_id: int, user_id: int) -> None:
        """Record (or refresh) that a user has seen an event."""
        await self._get(db, event_id)
        result = await db.execute(
            select(EventRead).where(EventRead.event_id == event_id, EventRead.user_id == user_id)
        )
        receipt = result.scalars().first()
        if receipt is None:
            db.add(EventRead(event_id=event_id, user_id=user_id))
        else:
            receipt.read_at = utc_now()
        await db.flush()

    # ── Attendance ────────────────────────────────────────────────────────
    async def attendees(self, db: AsyncSession, event_id: int) -> List[Dict[str, Any]]:
        result = await db.execute(
            select(Attendee, IdentifyingInformation.barangay)
            .outerjoin(IdentifyingInformation, IdentifyingInformation.code_id == Attendee.code_id)
            .where(Attendee.event_id == event_id)
            .order_by(Attendee.attend_at.desc(), Attendee.id.desc())
        )
        return [
            {
                "id": attendee.id,
                "event_id": attendee.event_id,
                "code_id": attendee.code_id,
                "name": attendee.name,
                "email": attendee.email,
                "attend_at": attendee.attend_at,
                "barangay": barangay,
            }
            for attendee, barangay in result.all()
        ]

    async def add_attendee(self, db: AsyncSession, event_id: int, user_id: int) -> List[Dict[str, Any]]:
        """
        Register a Verified user for an event; returns the updated attendee list.

        Raises:
            NotFoundError: unknown event, or the user is missing / not Verified.
            ValidationError: the user already attends.
        """
        await self._get(db, event_id)
        user = await db.get(User, user_id)
        if user is None or user.status != "Verified":
            raise NotFoundError(resource="verified user", resource_id=user_id)

        existing = await db.execute(
            select(Attendee.id).where(Attendee.event_id == event_id, Attendee.code_id == user.code_id)
        )
        if existing.first() is not None:
            raise ValidationError("User is already an attendee")

        db.add(Attendee(event_id=event_id, code_id=user.code_id, name=user.name, email=user.email))
        await db.flush()
        return await self.attendees(db, event_id)

    async def check_attendance(self, db: AsyncSession, event_id: int, user_id: int) -> bool:
        user = await db.get(User, user_id)
        if user is None or not user.code_id:
            return False
        result = await db.execute(
            select(Attendee.id).where(Attendee.event_id == event_id, Attendee.code_id == user.code_id)
        )
        return result.first() is not None

    # ── Ratings ───────────────────────────────────────────────────────────
    async def rate(self, db: AsyncSession, event_id: int, user_id: int, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", field="rating")
        await self._get(db, event_id)
        result = await db.execute(
            select(EventRating).where(EventRating.event_id == event_id, EventRating.user_id == user_id)
        )
        existing = result.scalars().first()
        if existing is None:
            db.add(EventRating(event_id=event_id, user_id=user_id, rating=rating))
        else:
            existing.rating = rating
            existing.created_at = utc_now()
        await db.flush()

    async def ratings(self, db: AsyncSession, event_id: int) -> List[EventRating]:
        result = await db.execute(
            select(EventRating).where(EventRating.event_id == event_id).order_by(EventRating.id)
        )
        return list(result.scalars())


def _conflict_payload(event: Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "startDate": event.start_date.isoformat() if event.start_date else None,
        "startTime": event.start_time.strftime("%H:%M") if isinstance(event.start_time, time) else str(event.start_time),
        "endTime": event.end_time.strftime("%H:%M") if isinstance(event.end_time, time) else str(event.end_time),
    }


event_service = EventService()
