"""Hybrid session-or-token authentication dependencies.

A request is authenticated by the signed session cookie first. Browsers that
drop third-party cookies fall back to an opaque token, ``base64("id:username:ms")``,
sent as ``Authorization`` (optionally ``Bearer``-prefixed), ``X-Auth-Token`` or
an ``authToken`` field in the JSON body.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from logging_config import user_id_var
from models.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_ADMIN_KEY = "is_admin"

AUTH_REQUIRED = {
    "message": "Authentication required. Please log in again.",
    "redirectTo": "/auth",
}

# Tolerated clock skew for tokens stamped slightly in the future.
_FUTURE_SKEW_MS = 60_000


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    import bcrypt

    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(stored_hash: str, password: str) -> bool:
    """Verify password against stored bcrypt hash."""
    if not stored_hash:
        return False

    import bcrypt

    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except (ValueError, UnicodeDecodeError):
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def encode_auth_token(user: User, issued_at: int | None = None) -> str:
    """Build the ``base64("id:username:ms")`` token returned at login."""
    if issued_at is None:
        issued_at = int(time.time() * 1000)
    raw = f"{user.id}:{user.username}:{issued_at}"
    return base64.b64encode(raw.encode()).decode()


def decode_auth_token(token: str) -> tuple[int, str, int | None] | None:
    """Return ``(user_id, username, issued_at_ms)`` or None for malformed tokens."""
    token = token.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    if not token:
        return None

    try:
        raw = base64.b64decode(token, validate=True).decode()
    except (binascii.Error, ValueError):
        return None

    parts = raw.split(":")
    if len(parts) < 2:
        return None
    try:
        user_id = int(parts[0])
    except ValueError:
        return None
    username = parts[1]
    if not username:
        return None

    issued_at = None
    if len(parts) > 2 and parts[2].isdigit():
        issued_at = int(parts[2])
    return user_id, username, issued_at


def _token_expired(issued_at: int | None) -> bool:
    max_age = settings.AUTH_TOKEN_MAX_AGE_SECONDS
    if not max_age:
        return False
    if issued_at is None:
        return True
    age_ms = time.time() * 1000 - issued_at
    return age_ms < -_FUTURE_SKEW_MS or age_ms > max_age * 1000


def user_from_token(db: Session, token: str) -> User | None:
    decoded = decode_auth_token(token)
    if decoded is None:
        logger.info("Token auth failed: invalid token format")
        return None

    user_id, username, issued_at = decoded
    if _token_expired(issued_at):
        logger.info("Token auth failed: token expired for user_id=%s", user_id)
        return None

    user = db.get(User, user_id)
    if not user or user.username != username:
        logger.info("Token auth failed: user not found or username mismatch")
        return None
    return user


async def _extract_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or request.headers.get("x-auth-token")
    if header:
        return header

    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        token = body.get("authToken")
        if isinstance(token, str) and token:
            return token
    return None


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def login_session(request: Request, user: User) -> None:
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.pop(SESSION_USER_KEY, None)


def _session_user(request: Request, db: Session) -> User | None:
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    return db.get(User, user_id)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _resolve_user(
    request: Request,
    token: str | None = Depends(_extract_token),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller by session, then by token."""
    user = _session_user(request, db)
    if user is None and token:
        user = user_from_token(db, token)

    if user is None:
        logger.info("Authentication failed - no valid session or token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=AUTH_REQUIRED)

    request.state.user = user
    return user


async def get_current_user(user: User = Depends(_resolve_user)) -> User:
    """FastAPI dependency for authenticated routes; tags the log context."""
    user_id_var.set(str(user.id))
    return user


def require_admin_host(request: Request) -> None:
    """Reject admin traffic that does not arrive on an allow-listed hostname."""
    host = request.headers.get("host", "")
    if not any(allowed in host for allowed in settings.ADMIN_ALLOWED_HOSTS):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def require_admin(request: Request, _host: None = Depends(require_admin_host)) -> None:
    if not request.session.get(SESSION_ADMIN_KEY):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
