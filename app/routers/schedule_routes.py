# app/routers/schedule_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from app.db import get_session
from app.core import TimeGrid
from app.schemas import (
    BookingStatus,
    BookingWithParty,
    ProfessorDetail,
    ProfessorUpdate,
    ScheduleBlockCreate,
    ScheduleBlockPublic,
    ScheduleBlockUpdate,
    SlotCell,
)
from app.auth import get_current_user
from app.deps import get_grid, require_role
from app.services import bookings, profiles, schedules

# Everything here acts on the signed-in professor's own data
router = APIRouter(
    prefix="/professors/me",
    tags=["professor"],
)


@router.get("", response_model=ProfessorDetail)
def get_my_professor_profile(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return profiles.get_professor_detail(session, current_user["id"])


@router.patch("", response_model=ProfessorDetail)
def update_my_professor_profile(
    changes: ProfessorUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return profiles.update_professor(session, current_user["id"], changes.model_dump(exclude_unset=True))


@router.get("/schedule", response_model=List[ScheduleBlockPublic])
def list_my_blocks(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return schedules.list_blocks(session, current_user["id"])


@router.post("/schedule", response_model=ScheduleBlockPublic, status_code=201)
def add_block(
    block: ScheduleBlockCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    grid: TimeGrid = Depends(get_grid),
):
    require_role(current_user, "professor")
    return schedules.add_block(
        session,
        professor_id=current_user["id"],
        weekday=block.weekday,
        start_time=block.start_time,
        end_time=block.end_time,
        type=block.type.value,
        note=block.note,
        visible=block.visible_to_students,
        grid=grid,
    )


@router.patch("/schedule/{block_id}", response_model=ScheduleBlockPublic)
def update_block(
    block_id: int,
    changes: ScheduleBlockUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return schedules.update_block(
        session, block_id, current_user["id"], changes.model_dump(exclude_unset=True)
    )


@router.delete("/schedule/{block_id}", status_code=204)
def delete_block(
    block_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    schedules.delete_block(session, block_id, current_user["id"])
    return Response(status_code=204)


@router.get("/schedule/grid", response_model=List[SlotCell])
def my_schedule_grid(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    grid: TimeGrid = Depends(get_grid),
):
    # editor view: hidden blocks included
    require_role(current_user, "professor")
    return schedules.availability_for(session, current_user["id"], visible_only=False, grid=grid).cells()


@router.get("/requests", response_model=List[BookingWithParty])
def list_my_requests(
    status: Optional[BookingStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return bookings.list_professor_requests(
        session, current_user["id"], status.value if status is not None else None
    )


@router.get("/bookings", response_model=List[BookingWithParty])
def list_my_confirmed_bookings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "professor")
    return bookings.list_professor_bookings(session, current_user["id"])
