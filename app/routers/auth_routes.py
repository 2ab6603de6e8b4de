# app/routers/auth_routes.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from app.db import get_session
from app.schemas import ProfilePublic, SignupRequest, Token
from app.auth import create_access_token
from app.services import profiles

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/signup", status_code=201, response_model=ProfilePublic)
def signup(
    payload: SignupRequest,
    session: Session = Depends(get_session),
):
    return profiles.create_account(session, payload)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    # Swagger OAuth2 "password" flow uses "username" field for the email
    profile = profiles.authenticate(session, form_data.username, form_data.password)
    if profile is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": str(profile.id)})
    return {"access_token": token, "token_type": "bearer"}
