"""Auth schemas."""

from __future__ import annotations

from datetime import datetime

from schemas.base import CamelModel


class RegisterRequest(CamelModel):
    username: str = ""
    password: str = ""
    terms_accepted: bool = False


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""


class UserOut(CamelModel):
    id: int
    username: str
    coins: int
    terms_accepted: bool
    terms_accepted_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class AuthUserOut(UserOut):
    auth_token: str
