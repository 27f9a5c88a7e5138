"""Character ratings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api._helpers import bad_request
from auth import get_current_user
from database import get_db
from models.character import Character
from models.conversation import Conversation
from models.rating import Rating
from models.user import User
from schemas.rating import RatingOut, RatingRequest

router = APIRouter()


@router.post("", response_model=RatingOut, status_code=201)
def rate_character(
    payload: RatingRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if payload.character_id is None or payload.rating is None or not 1 <= payload.rating <= 5:
        raise bad_request("Character ID and a rating between 1 and 5 are required")

    if db.get(Character, payload.character_id) is None:
        raise HTTPException(status_code=404, detail="Character not found")
    if payload.conversation_id is not None:
        conversation = db.get(Conversation, payload.conversation_id)
        if conversation is None or conversation.user_id != user.id:
            raise HTTPException(status_code=404, detail="Conversation not found")

    rating = Rating(
        user_id=user.id,
        character_id=payload.character_id,
        conversation_id=payload.conversation_id,
        rating=payload.rating,
    )
    db.add(rating)
    db.commit()
    db.refresh(rating)
    return rating
