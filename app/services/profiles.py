# app/services/profiles.py

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.auth import hash_password, verify_password
from app.db import read_retry
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import Professor, Profile, utcnow
from app.schemas import SignupRequest, UserRole

logger = logging.getLogger(__name__)

PROFILE_EDITABLE = ("full_name", "department", "program", "student_number", "teams_email")
PROFESSOR_EDITABLE = ("department", "office_location", "bio")
# professor edits that also touch the shared profile row
PROFESSOR_PROFILE_EDITABLE = ("full_name", "department", "teams_email")


def _public(profile: Profile) -> dict:
    return profile.model_dump(exclude={"password_hash"})


def create_account(session: Session, signup: SignupRequest) -> Profile:
    """Profile plus, for professors, the Professor row, in one commit."""
    email = signup.email.strip().lower()

    # 1) Check if email already exists
    existing = session.exec(select(Profile).where(Profile.email == email)).first()
    if existing is not None:
        raise ConflictError("Email already registered")

    # 2) Create profile (and professor extension)
    profile = Profile(
        role=signup.role.value,
        full_name=signup.full_name.strip(),
        email=email,
        password_hash=hash_password(signup.password),
        department=signup.department,
        program=signup.program,
        student_number=signup.student_number,
        teams_email=signup.teams_email or None,
    )
    session.add(profile)
    try:
        session.flush()  # fills profile.id
        if signup.role == UserRole.professor:
            session.add(Professor(id=profile.id, department=signup.department))
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Email already registered")

    session.refresh(profile)
    logger.info(f"Created {profile.role} profile {profile.id}")
    return profile


def authenticate(session: Session, email: str, password: str) -> Optional[Profile]:
    profile = session.exec(
        select(Profile).where(Profile.email == email.strip().lower())
    ).first()
    if profile is None or not verify_password(password, profile.password_hash):
        return None
    return profile


@read_retry
def get_profile(session: Session, profile_id: int) -> Profile:
    profile = session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def update_profile(session: Session, profile_id: int, changes: dict) -> Profile:
    unknown = set(changes) - set(PROFILE_EDITABLE)
    if unknown:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "full_name" in changes and not changes["full_name"]:
        raise ValidationError("full_name cannot be empty")

    profile = get_profile(session, profile_id)
    for field, value in changes.items():
        setattr(profile, field, value)
    session.add(profile)

    # department lives on both rows for professors
    if "department" in changes:
        professor = session.get(Professor, profile_id)
        if professor is not None:
            professor.department = changes["department"]
            professor.updated_at = utcnow()
            session.add(professor)

    session.commit()
    session.refresh(profile)
    return profile


def profiles_by_id(session: Session, ids: Iterable[int]) -> Dict[int, Profile]:
    ids = list(set(ids))
    if not ids:
        return {}
    rows = session.exec(select(Profile).where(Profile.id.in_(ids))).all()
    return {p.id: p for p in rows}


def _merge(professor: Professor, profile: Optional[Profile]) -> dict:
    if profile is None:
        raise NotFoundError(f"Profile for professor {professor.id} not found")
    row = professor.model_dump()
    row["profile"] = _public(profile)
    return row


@read_retry
def list_professors(session: Session, search: Optional[str] = None) -> List[dict]:
    professors = session.exec(select(Professor)).all()
    profiles = profiles_by_id(session, [p.id for p in professors])

    result = [_merge(p, profiles.get(p.id)) for p in professors]

    if search:
        term = search.strip().lower()
        result = [
            r for r in result
            if term in (r["profile"]["full_name"] or "").lower()
            or term in (r["department"] or "").lower()
        ]

    return sorted(result, key=lambda r: (r["profile"]["full_name"] or "").lower())


@read_retry
def get_professor_detail(session: Session, professor_id: int) -> dict:
    professor = session.get(Professor, professor_id)
    if professor is None:
        raise NotFoundError("Professor not found")
    return _merge(professor, session.get(Profile, professor_id))


def update_professor(session: Session, professor_id: int, changes: dict) -> dict:
    """Self-service edit.

    ``full_name`` and ``teams_email`` land on the Profile, ``office_location``
    and ``bio`` on the Professor row; ``department`` is written to both.
    """
    allowed = set(PROFESSOR_EDITABLE) | set(PROFESSOR_PROFILE_EDITABLE)
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "full_name" in changes and not changes["full_name"]:
        raise ValidationError("full_name cannot be empty")

    professor = session.get(Professor, professor_id)
    profile = session.get(Profile, professor_id)
    if professor is None or profile is None:
        raise NotFoundError("Professor not found")

    for field in PROFESSOR_PROFILE_EDITABLE:
        if field in changes:
            setattr(profile, field, changes[field])
    session.add(profile)

    for field in PROFESSOR_EDITABLE:
        if field in changes:
            setattr(professor, field, changes[field])
    professor.updated_at = utcnow()
    session.add(professor)

    session.commit()
    session.refresh(professor)
    session.refresh(profile)
    logger.info(f"Professor {professor_id} updated profile fields: {sorted(changes)}")
    return _merge(professor, profile)
