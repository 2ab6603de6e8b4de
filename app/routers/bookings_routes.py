# app/routers/bookings_routes.py

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from app.db import get_session
from app.core import TimeGrid
from app.schemas import (
    BookingCreate,
    BookingDecision,
    BookingPublic,
    BookingWithParty,
)
from app.auth import get_current_user
from app.deps import get_grid, require_role
from app.notifications import notify_booking_created
from app.services import bookings

router = APIRouter(
    tags=["bookings"],
)


@router.post("/bookings", response_model=BookingPublic, status_code=201)
def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    grid: TimeGrid = Depends(get_grid),
):
    require_role(current_user, "student")

    booking = bookings.create_booking(
        session,
        student_id=current_user["id"],
        professor_id=payload.professor_id,
        on_date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        mode=payload.mode.value,
        topic=payload.topic,
        grid=grid,
    )

    # runs after the response; the booking is already committed
    background_tasks.add_task(notify_booking_created, booking.id)
    return booking


@router.get("/students/me/bookings", response_model=List[BookingWithParty])
def list_my_bookings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "student")
    return bookings.list_student_bookings(session, current_user["id"])


@router.patch("/bookings/{booking_id}/confirm", response_model=BookingPublic)
def confirm_booking(
    booking_id: int,
    decision: Optional[BookingDecision] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return bookings.confirm_booking(session, booking_id, current_user["id"], decision.notes if decision else None)


@router.patch("/bookings/{booking_id}/decline", response_model=BookingPublic)
def decline_booking(
    booking_id: int,
    decision: Optional[BookingDecision] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return bookings.decline_booking(session, booking_id, current_user["id"], decision.notes if decision else None)


@router.patch("/bookings/{booking_id}/cancel", response_model=BookingPublic)
def cancel_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "student")
    return bookings.cancel_booking(session, booking_id, current_user["id"])
