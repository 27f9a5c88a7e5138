"""Admin endpoints: login, user reporting, characters, coin grants, keys.

All routes are restricted to allow-listed hostnames; everything except login
also needs the admin session flag.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from api._helpers import bad_request
from auth import SESSION_ADMIN_KEY, require_admin, require_admin_host
from config import settings
from database import get_db
from models.user import User
from schemas.admin import (
    AddCoinsRequest,
    AddCoinsResponse,
    AdminLoginRequest,
    AdminUserOut,
    AnalyticsOut,
    ApiKeyUpdateRequest,
)
from schemas.base import MessageResponse, SuccessResponse
from schemas.character import CharacterAdminOut, CharacterCreate, CharacterUpdate
from services import characters as catalog
from services.analytics import detailed_user_list, user_analytics
from services.ledger import credit

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_host)])


@router.post("/login", response_model=SuccessResponse)
def admin_login(payload: AdminLoginRequest, request: Request):
    if not settings.admin_enabled:
        raise HTTPException(status_code=503, detail="Admin access is not configured")

    username_ok = hmac.compare_digest(payload.username.encode(), settings.ADMIN_USERNAME.encode())
    password_ok = hmac.compare_digest(payload.password.encode(), settings.ADMIN_PASSWORD.encode())
    if not (username_ok and password_ok):
        logger.warning("Failed admin login for %r", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    request.session[SESSION_ADMIN_KEY] = True
    logger.info("Admin session opened")
    return {"success": True}


@router.get("/users", response_model=list[AdminUserOut], dependencies=[Depends(require_admin)])
def list_users(db: Session = Depends(get_db)):
    return detailed_user_list(db)


@router.get("/analytics", response_model=AnalyticsOut, dependencies=[Depends(require_admin)])
def analytics(db: Session = Depends(get_db)):
    return user_analytics(db)


@router.post(
    "/characters",
    response_model=CharacterAdminOut,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_character(payload: CharacterCreate, db: Session = Depends(get_db)):
    if catalog.get_by_key(db, payload.key, active_only=False) is not None:
        raise bad_request("Character key already exists")
    return catalog.create_character(db, payload.model_dump())


@router.put(
    "/characters/{character_id}",
    response_model=CharacterAdminOut,
    dependencies=[Depends(require_admin)],
)
def update_character(character_id: int, payload: CharacterUpdate, db: Session = Depends(get_db)):
    character = catalog.update_character(db, character_id, payload.model_dump(exclude_unset=True))
    if character is None:
        raise HTTPException(status_code=404, detail="Character not found")
    return character


@router.post("/add-coins", response_model=AddCoinsResponse, dependencies=[Depends(require_admin)])
def add_coins(payload: AddCoinsRequest, db: Session = Depends(get_db)):
    user = db.get(User, payload.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    old_coins = user.coins
    new_coins = credit(db, user, payload.coins)
    logger.info("Admin granted %d coins to user %s", payload.coins, user.id)
    return AddCoinsResponse(old_coins=old_coins, new_coins=new_coins, added=payload.coins)


@router.post(
    "/update-elevenlabs-key",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
def update_elevenlabs_key(payload: ApiKeyUpdateRequest):
    api_key = payload.api_key.strip()
    if not api_key:
        raise bad_request("API key is required")
    settings.ELEVENLABS_API_KEY = api_key
    logger.info("ElevenLabs API key rotated")
    return {"message": "ElevenLabs API key updated"}
