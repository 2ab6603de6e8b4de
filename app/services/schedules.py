# app/services/schedules.py

import logging
from datetime import time
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core import DEFAULT_GRID, AvailabilityMap, TimeGrid, check_weekday
from app.db import read_retry
from app.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.models import Professor, ProfessorSchedule
from app.schemas import ScheduleType

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("note", "visible_to_students")


def _ordered(stmt):
    return stmt.order_by(ProfessorSchedule.weekday, ProfessorSchedule.start_time)


@read_retry
def list_blocks(session: Session, professor_id: int) -> List[ProfessorSchedule]:
    stmt = select(ProfessorSchedule).where(ProfessorSchedule.professor_id == professor_id)
    return list(session.exec(_ordered(stmt)).all())


@read_retry
def list_visible_blocks(session: Session, professor_id: int) -> List[ProfessorSchedule]:
    stmt = (
        select(ProfessorSchedule)
        .where(ProfessorSchedule.professor_id == professor_id)
        .where(ProfessorSchedule.visible_to_students == True)  # noqa: E712
    )
    return list(session.exec(_ordered(stmt)).all())


def availability_for(
    session: Session,
    professor_id: int,
    visible_only: bool = True,
    grid: TimeGrid = DEFAULT_GRID,
) -> AvailabilityMap:
    """Resolver over a professor's blocks.

    Students (and the booking guard) only ever see visible blocks; the
    professor's own editor passes ``visible_only=False``.
    """
    if visible_only:
        blocks = list_visible_blocks(session, professor_id)
    else:
        blocks = list_blocks(session, professor_id)
    return AvailabilityMap(blocks, grid)


def add_block(
    session: Session,
    professor_id: int,
    weekday: int,
    start_time: time,
    end_time: time,
    type: str,
    note: Optional[str] = None,
    visible: bool = True,
    grid: TimeGrid = DEFAULT_GRID,
) -> ProfessorSchedule:
    # 1) Validate against the time grid
    check_weekday(weekday)
    grid.check_slot(start_time, end_time)
    try:
        block_type = ScheduleType(type)
    except ValueError:
        raise ValidationError("type must be one of 'class', 'office_hour', 'consultation'")

    # 2) Owner must be a professor
    if session.get(Professor, professor_id) is None:
        raise NotFoundError("Professor not found")

    # 3) One block per (professor, weekday, start)
    existing = session.exec(
        select(ProfessorSchedule)
        .where(ProfessorSchedule.professor_id == professor_id)
        .where(ProfessorSchedule.weekday == weekday)
        .where(ProfessorSchedule.start_time == start_time)
    ).first()
    if existing is not None:
        raise ConflictError("A schedule block already exists for that slot; delete it first")

    block = ProfessorSchedule(
        professor_id=professor_id,
        weekday=weekday,
        start_time=start_time,
        end_time=end_time,
        type=block_type.value,
        note=note,
        visible_to_students=visible,
    )
    session.add(block)
    try:
        session.commit()
    except IntegrityError:
        # lost a race with a concurrent add at the same key
        session.rollback()
        raise ConflictError("A schedule block already exists for that slot; delete it first")

    session.refresh(block)
    logger.info(
        f"Professor {professor_id} added {block.type} block {block.id} "
        f"on weekday {weekday} at {start_time:%H:%M}"
    )
    return block


def _owned_block(session: Session, block_id: int, acting_professor_id: int) -> ProfessorSchedule:
    block = session.get(ProfessorSchedule, block_id)
    if block is None:
        raise NotFoundError("Schedule block not found")
    if block.professor_id != acting_professor_id:
        logger.warning(f"Professor {acting_professor_id} tried to modify block {block_id} they do not own")
        raise ForbiddenError("Forbidden")
    return block


def update_block(session: Session, block_id: int, acting_professor_id: int, changes: dict) -> ProfessorSchedule:
    """Change note and/or visibility; weekday, times and type are fixed."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Only note and visibility can be changed, got: {', '.join(sorted(unknown))}")
    if changes.get("visible_to_students", True) is None:
        raise ValidationError("visible_to_students cannot be null")

    block = _owned_block(session, block_id, acting_professor_id)
    if not changes:
        return block

    result = session.exec(
        update(ProfessorSchedule)
        .where(ProfessorSchedule.id == block_id)
        .where(ProfessorSchedule.professor_id == acting_professor_id)
        .values(**changes)
    )
    if result.rowcount == 0:
        session.rollback()
        raise NotFoundError("Schedule block is no longer available, please refresh")

    session.commit()
    session.refresh(block)
    logger.info(f"Professor {acting_professor_id} updated block {block_id}: {sorted(changes)}")
    return block


def delete_block(session: Session, block_id: int, acting_professor_id: int) -> None:
    _owned_block(session, block_id, acting_professor_id)

    result = session.exec(
        delete(ProfessorSchedule)
        .where(ProfessorSchedule.id == block_id)
        .where(ProfessorSchedule.professor_id == acting_professor_id)
    )
    if result.rowcount == 0:
        session.rollback()
        raise NotFoundError("Schedule block is no longer available, please refresh")

    session.commit()
    logger.info(f"Professor {acting_professor_id} deleted block {block_id}")
