"""Text chat endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api._helpers import bad_request
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.base import SuccessResponse
from schemas.chat import (
    ChatEndRequest,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatStartRequest,
    ChatStartResponse,
)
from services.conversation import (
    CharacterNotFoundError,
    ConversationEndedError,
    ConversationNotFoundError,
    end_chat,
    send_text_message,
    start_chat,
)
from services.ledger import InsufficientCoinsError
from services.llm import CompletionService, get_completion_service

router = APIRouter()

NEEDS_COINS = {
    "message": "Insufficient coins. Please purchase more coins to continue.",
    "needsCoins": True,
}


@router.post("/start", response_model=ChatStartResponse)
def start(
    payload: ChatStartRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not payload.character_key:
        raise bad_request("Character key is required")
    try:
        conversation, character = start_chat(db, user, payload.character_key, payload.language)
    except CharacterNotFoundError:
        raise HTTPException(status_code=404, detail="Character not found")
    return {"conversation": conversation, "character": character, "messages": []}


@router.post("/message", response_model=ChatMessageResponse)
def message(
    payload: ChatMessageRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    completion: CompletionService = Depends(get_completion_service),
):
    content = payload.content.strip()
    if payload.conversation_id is None or not content:
        raise bad_request("Conversation ID and content are required")

    try:
        turn = send_text_message(db, user, payload.conversation_id, content, payload.language, completion)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except CharacterNotFoundError:
        raise HTTPException(status_code=404, detail="Character not found")
    except ConversationEndedError:
        raise bad_request("Conversation has ended")
    except InsufficientCoinsError:
        raise HTTPException(status_code=400, detail=NEEDS_COINS)

    return ChatMessageResponse(
        user_message=turn.user_message,
        ai_message=turn.ai_message,
        user_coins=turn.user_coins,
        message_count=turn.message_count,
    )


@router.post("/end", response_model=SuccessResponse)
def end(
    payload: ChatEndRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        end_chat(db, user, payload.conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"success": True}
