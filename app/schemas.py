# app/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, date as Date, time
from typing import List, Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserRole(str, Enum):
    student = "student"
    professor = "professor"

class ScheduleType(str, Enum):
    class_ = "class"
    office_hour = "office_hour"
    consultation = "consultation"

class SlotState(str, Enum):
    occupied_class = "occupied:class"
    occupied_office_hour = "occupied:office_hour"
    bookable = "bookable:consultation"
    unset = "unset"

class BookingMode(str, Enum):
    online = "online"
    onsite = "onsite"

class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    declined = "declined"
    cancelled = "cancelled"

# Profiles

class SignupRequest(BaseModel):
    email: str
    password: str = Field(min_length=6, max_length=72)
    full_name: str = Field(min_length=2)
    role: UserRole
    department: Optional[str] = None
    program: Optional[str] = None
    student_number: Optional[str] = None
    teams_email: Optional[str] = None

class ProfilePublic(BaseModel):
    id: int
    role: UserRole
    full_name: str
    email: str
    department: Optional[str] = None
    program: Optional[str] = None
    student_number: Optional[str] = None
    teams_email: Optional[str] = None
    created_at: datetime

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2)
    department: Optional[str] = None
    program: Optional[str] = None
    student_number: Optional[str] = None
    teams_email: Optional[str] = None

class ProfessorUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2)
    department: Optional[str] = None
    teams_email: Optional[str] = None
    office_location: Optional[str] = None
    bio: Optional[str] = None

class ProfessorDetail(BaseModel):
    id: int
    office_location: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None
    updated_at: datetime
    profile: ProfilePublic

# Time grid / schedule blocks

class SlotPairPublic(BaseModel):
    start: time
    end: time
    label: str

class TimeGridPublic(BaseModel):
    weekdays: dict
    boundaries: List[time]
    slots: List[SlotPairPublic]

class ScheduleBlockCreate(BaseModel):
    # weekday/time checks happen against the time grid, not here
    weekday: int
    start_time: time
    end_time: time
    type: ScheduleType
    note: Optional[str] = None
    visible_to_students: bool = True

class ScheduleBlockUpdate(BaseModel):
    note: Optional[str] = None
    visible_to_students: Optional[bool] = None

class ScheduleBlockPublic(BaseModel):
    id: int
    professor_id: int
    weekday: int
    start_time: time
    end_time: time
    type: ScheduleType
    note: Optional[str] = None
    visible_to_students: bool
    created_at: datetime

class SlotCell(BaseModel):
    weekday: int
    start_time: time
    end_time: time
    label: str
    # state reflects the block type only; a hidden consultation block is
    # still "bookable:consultation" here, bookable_by_students is what the
    # booking guard decides on
    state: SlotState
    bookable_by_students: bool = False
    block_id: Optional[int] = None
    note: Optional[str] = None
    visible_to_students: Optional[bool] = None

# Bookings

class BookingCreate(BaseModel):
    professor_id: int
    date: Date
    start_time: time
    end_time: time
    mode: BookingMode
    topic: str = Field(min_length=5)

class BookingDecision(BaseModel):
    notes: Optional[str] = None

class BookingPublic(BaseModel):
    id: int
    student_id: int
    professor_id: int
    date: Date
    start_time: time
    end_time: time
    mode: BookingMode
    topic: Optional[str] = None
    status: BookingStatus
    professor_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class BookingWithParty(BookingPublic):
    student: Optional[ProfilePublic] = None
    professor: Optional[ProfilePublic] = None
