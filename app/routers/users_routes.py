# app/routers/users_routes.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db import get_session
from app.schemas import ProfilePublic, ProfileUpdate
from app.auth import get_current_user
from app.services import profiles

router = APIRouter(
    tags=["users"],
)

@router.get("/me", response_model=ProfilePublic)
def me(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return profiles.get_profile(session, current_user["id"])


@router.patch("/me", response_model=ProfilePublic)
def update_me(
    changes: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # id, role and email are not editable here
    return profiles.update_profile(
        session, current_user["id"], changes.model_dump(exclude_unset=True)
    )
