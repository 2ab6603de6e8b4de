# app/routers/professors_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db import get_session
from app.core import TimeGrid
from app.schemas import ProfessorDetail, ScheduleBlockPublic, SlotCell
from app.auth import get_current_user
from app.deps import get_grid
from app.services import profiles, schedules

router = APIRouter(
    prefix="/professors",
    tags=["professors"],
)


@router.get("", response_model=List[ProfessorDetail])
def list_professors(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return profiles.list_professors(session, search)


@router.get("/{professor_id}", response_model=ProfessorDetail)
def get_professor(
    professor_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return profiles.get_professor_detail(session, professor_id)


@router.get("/{professor_id}/schedule", response_model=List[ScheduleBlockPublic])
def professor_public_schedule(
    professor_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # 404 for unknown professors rather than an empty list
    profiles.get_professor_detail(session, professor_id)
    return schedules.list_visible_blocks(session, professor_id)


@router.get("/{professor_id}/availability", response_model=List[SlotCell])
def professor_availability(
    professor_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    grid: TimeGrid = Depends(get_grid),
):
    profiles.get_professor_detail(session, professor_id)
    return schedules.availability_for(session, professor_id, visible_only=True, grid=grid).cells()
