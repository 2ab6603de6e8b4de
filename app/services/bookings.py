# app/services/bookings.py

import logging
from datetime import date, datetime, time
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import update
from sqlmodel import Session, select

from app import config
from app.core import DEFAULT_GRID, TimeGrid, check_weekday
from app.db import read_retry
from app.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from app.models import Booking, Professor, utcnow
from app.schemas import BookingMode, BookingStatus
from app.services import schedules
from app.services.profiles import profiles_by_id

logger = logging.getLogger(__name__)

PENDING = BookingStatus.pending.value
CONFIRMED = BookingStatus.confirmed.value
DECLINED = BookingStatus.declined.value
CANCELLED = BookingStatus.cancelled.value

# action -> (target status, allowed source statuses, owning column)
TRANSITIONS = {
    "confirm": (CONFIRMED, (PENDING,), "professor_id"),
    "decline": (DECLINED, (PENDING,), "professor_id"),
    "cancel": (CANCELLED, (PENDING, CONFIRMED), "student_id"),
}


def institution_now() -> datetime:
    return datetime.now(ZoneInfo(config.INSTITUTION_TIMEZONE)).replace(tzinfo=None)


def create_booking(
    session: Session,
    student_id: int,
    professor_id: int,
    on_date: date,
    start_time: time,
    end_time: time,
    mode: str,
    topic: str,
    grid: TimeGrid = DEFAULT_GRID,
) -> Booking:
    """Create a pending booking against a bookable consultation slot.

    The caller is responsible for dispatching the professor notification
    once this returns; notification never affects the stored booking.
    """
    # 1) Validate input
    try:
        mode = BookingMode(mode).value
    except ValueError:
        raise ValidationError("mode must be 'online' or 'onsite'")
    if topic is None or len(topic.strip()) < 5:
        raise ValidationError("topic must be at least 5 characters")

    weekday = check_weekday(on_date.isoweekday())
    grid.check_slot(start_time, end_time)

    if datetime.combine(on_date, start_time) < institution_now():
        raise ValidationError("Cannot book a consultation in the past")

    # 2) Professor must exist
    if session.get(Professor, professor_id) is None:
        raise NotFoundError("Professor not found")

    # 3) Slot must be an explicitly marked, visible consultation block
    availability = schedules.availability_for(session, professor_id, visible_only=True, grid=grid)
    state = availability.classify(weekday, start_time)
    if not availability.is_bookable(weekday, start_time):
        raise SlotUnavailableError(f"This slot is not open for consultation ({state.value})")

    # 4) Create and save
    booking = Booking(
        student_id=student_id,
        professor_id=professor_id,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        mode=mode,
        topic=topic.strip(),
        status=PENDING,
    )
    session.add(booking)
    session.commit()
    session.refresh(booking)

    logger.info(
        f"Booking {booking.id} created by student {student_id} for professor {professor_id} "
        f"on {on_date} at {start_time:%H:%M}"
    )
    return booking


def _transition(
    session: Session,
    booking_id: int,
    action: str,
    actor_id: int,
    notes: Optional[str] = None,
) -> Booking:
    target, allowed, owner_column = TRANSITIONS[action]

    # 1) Find the booking
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    # 2) Authorization: only the owning professor/student
    if getattr(booking, owner_column) != actor_id:
        logger.warning(f"User {actor_id} tried to {action} booking {booking_id} they do not own")
        raise ForbiddenError("Forbidden")

    # 3) State machine
    if booking.status not in allowed:
        logger.warning(f"Rejected {action} on booking {booking_id} in status {booking.status}")
        raise InvalidTransitionError(f"Cannot {action} a booking that is {booking.status}")

    # 4) Conditional write: id + owner + source status
    values = {"status": target, "updated_at": utcnow()}
    if notes is not None:
        values["professor_notes"] = notes

    result = session.exec(
        update(Booking)
        .where(Booking.id == booking_id)
        .where(getattr(Booking, owner_column) == actor_id)
        .where(Booking.status.in_(allowed))
        .values(**values)
    )
    if result.rowcount == 0:
        # someone else moved it between our read and our write
        session.rollback()
        current = session.exec(select(Booking).where(Booking.id == booking_id)).first()
        if current is None:
            raise NotFoundError("Booking is no longer available, please refresh")
        raise InvalidTransitionError(f"Cannot {action} a booking that is {current.status}")

    session.commit()
    session.refresh(booking)
    logger.info(f"Booking {booking_id} -> {target} ({action} by user {actor_id})")
    return booking


def confirm_booking(session: Session, booking_id: int, acting_professor_id: int, notes: Optional[str] = None) -> Booking:
    return _transition(session, booking_id, "confirm", acting_professor_id, notes)


def decline_booking(session: Session, booking_id: int, acting_professor_id: int, notes: Optional[str] = None) -> Booking:
    return _transition(session, booking_id, "decline", acting_professor_id, notes)


def cancel_booking(session: Session, booking_id: int, acting_student_id: int) -> Booking:
    return _transition(session, booking_id, "cancel", acting_student_id)


def _with_profiles(session: Session, bookings: List[Booking], party: str) -> List[dict]:
    # second fetch: the student or professor profile for every booking
    column = f"{party}_id"
    profiles = profiles_by_id(session, {getattr(b, column) for b in bookings})
    out = []
    for b in bookings:
        profile = profiles.get(getattr(b, column))
        if profile is None:
            raise NotFoundError(f"Profile for {party} {getattr(b, column)} not found")
        row = b.model_dump()
        row[party] = profile.model_dump(exclude={"password_hash"})
        out.append(row)
    return out


@read_retry
def list_student_bookings(session: Session, student_id: int) -> List[dict]:
    bookings = session.exec(
        select(Booking)
        .where(Booking.student_id == student_id)
        .order_by(Booking.date.desc(), Booking.start_time.desc())
    ).all()
    return _with_profiles(session, list(bookings), "professor")


@read_retry
def list_professor_requests(session: Session, professor_id: int, status: Optional[str] = None) -> List[dict]:
    stmt = select(Booking).where(Booking.professor_id == professor_id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    bookings = session.exec(stmt.order_by(Booking.created_at.desc(), Booking.id.desc())).all()
    return _with_profiles(session, list(bookings), "student")


@read_retry
def list_professor_bookings(session: Session, professor_id: int) -> List[dict]:
    bookings = session.exec(
        select(Booking)
        .where(Booking.professor_id == professor_id)
        .where(Booking.status == CONFIRMED)
        .order_by(Booking.date, Booking.start_time)
    ).all()
    return _with_profiles(session, list(bookings), "student")
