# app/models.py

from typing import Optional
from datetime import datetime, timezone, date as Date, time

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    role: str  # student or professor
    full_name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    department: Optional[str] = None
    program: Optional[str] = None
    student_number: Optional[str] = None
    teams_email: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class Professor(SQLModel, table=True):
    __tablename__ = "professors"

    # shares its id with the professor's Profile
    id: int = Field(foreign_key="profiles.id", primary_key=True)
    office_location: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)

class ProfessorSchedule(SQLModel, table=True):
    __tablename__ = "professor_schedules"
    __table_args__ = (
        UniqueConstraint("professor_id", "weekday", "start_time", name="uq_professor_weekday_start"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    professor_id: int = Field(foreign_key="professors.id", index=True)
    weekday: int  # 1=Mon ... 5=Fri
    start_time: time
    end_time: time
    type: str  # "class", "office_hour" or "consultation"
    note: Optional[str] = None
    visible_to_students: bool = True
    created_at: datetime = Field(default_factory=utcnow)

class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)

    student_id: int = Field(foreign_key="profiles.id", index=True)
    professor_id: int = Field(foreign_key="professors.id", index=True)
    date: Date = Field(index=True)
    start_time: time
    end_time: time
    mode: str  # "online" or "onsite"
    topic: Optional[str] = None
    status: str = "pending"
    professor_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
