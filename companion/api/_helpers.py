"""Shared helpers for API routers."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException

from models.user import User
from schemas.auth import AuthUserOut, UserOut


def utcnow() -> datetime:
    """Naive UTC, matching the database's CURRENT_TIMESTAMP defaults."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def serialize_user(user: User, auth_token: str | None = None) -> UserOut:
    out = UserOut.model_validate(user)
    if auth_token is None:
        return out
    return AuthUserOut(**out.model_dump(), auth_token=auth_token)


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=400, detail=message)
