"""Auth endpoints: register, login, logout, current user."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from api._helpers import bad_request, serialize_user, utcnow
from auth import (
    encode_auth_token,
    get_current_user,
    hash_password,
    login_session,
    logout_session,
    verify_password,
)
from config import settings
from database import get_db
from models.user import User
from schemas.auth import AuthUserOut, LoginRequest, RegisterRequest, UserOut
from schemas.base import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _signed_in(request: Request, response: Response, user: User) -> AuthUserOut:
    login_session(request, user)
    token = encode_auth_token(user)
    response.headers["X-Auth-Token"] = token
    return serialize_user(user, auth_token=token)


@router.post("/register", response_model=AuthUserOut, status_code=201)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    username = payload.username.strip()
    if not username or not payload.password:
        raise bad_request("Username and password are required")
    if not payload.terms_accepted:
        raise bad_request("You must accept the terms and conditions")
    if db.query(User).filter(User.username == username).first():
        raise bad_request("Username already exists")

    now = utcnow()
    user = User(
        username=username,
        password_hash=hash_password(payload.password),
        coins=settings.DEFAULT_COINS,
        terms_accepted=True,
        terms_accepted_at=now,
        last_login_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return _signed_in(request, response, user)


@router.post("/login", response_model=AuthUserOut, responses={401: {"description": "Invalid credentials"}})
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.username == payload.username.strip()).first()
    if not user or not verify_password(user.password_hash, payload.password):
        logger.info("Failed login for %r", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    now = utcnow()
    user.last_login_at = now
    user.last_active_at = now
    db.commit()
    db.refresh(user)
    return _signed_in(request, response, user)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request):
    logout_session(request)
    return {"message": "Logged out successfully"}


@router.get("/user", response_model=UserOut)
def current_user(user: User = Depends(get_current_user)):
    return serialize_user(user)
