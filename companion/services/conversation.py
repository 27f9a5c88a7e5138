"""Conversation orchestration: ephemeral chats, text turns, message counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from config import settings
from models.character import Character
from models.conversation import Conversation, Message
from models.user import User
from services import characters as character_catalog
from services.language import normalize_language
from services.ledger import debit_message, ensure_can_spend
from services.llm import FALLBACK_REPLY, CompletionError, CompletionService

logger = logging.getLogger(__name__)

SENDER_USER = "user"
SENDER_ASSISTANT = "assistant"


class CharacterNotFoundError(Exception):
    pass


class ConversationNotFoundError(Exception):
    pass


class ConversationEndedError(Exception):
    pass


@dataclass
class ChatTurn:
    user_message: Message
    ai_message: Message
    user_coins: int
    message_count: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_chat(db: Session, user: User, character_key: str, language: str) -> tuple[Conversation, Character]:
    """Always open a fresh conversation; earlier ones are never resumed."""
    character = character_catalog.get_by_key(db, character_key)
    if character is None:
        raise CharacterNotFoundError(character_key)

    conversation = Conversation(
        user_id=user.id,
        character_id=character.id,
        language=normalize_language(language),
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    logger.info("Started conversation %s with %s", conversation.id, character.key)
    return conversation, character


def get_owned_conversation(db: Session, user: User, conversation_id: int) -> Conversation:
    conversation = db.get(Conversation, conversation_id)
    if conversation is None or conversation.user_id != user.id:
        logger.warning("Conversation %s not found for user %s", conversation_id, user.id)
        raise ConversationNotFoundError(conversation_id)
    return conversation


def get_active_conversation(db: Session, user: User, conversation_id: int) -> Conversation:
    conversation = get_owned_conversation(db, user, conversation_id)
    if not conversation.is_active:
        raise ConversationEndedError(conversation_id)
    if conversation.character is None:
        raise CharacterNotFoundError(conversation.character_id)
    return conversation


def append_message(db: Session, conversation: Conversation, content: str, sender: str, language: str) -> Message:
    """Persist one turn and keep message_count equal to the persisted count."""
    now = _utcnow()
    message = Message(conversation_id=conversation.id, content=content, sender=sender, language=language)
    db.add(message)
    conversation.message_count = conversation.message_count + 1
    conversation.last_message_at = now
    if sender == SENDER_USER:
        conversation.user.last_active_at = now
    db.commit()
    db.expire(conversation, ["messages"])
    db.refresh(message)
    return message


def recent_messages(db: Session, conversation: Conversation, limit: int | None = None) -> list[Message]:
    """The last *limit* turns of *conversation*, oldest first."""
    limit = settings.CONTEXT_WINDOW_TURNS if limit is None else limit
    if limit <= 0:
        return []
    rows = (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .order_by(Message.id.desc())
        .limit(limit)
        .all()
    )
    return rows[::-1]


def end_chat(db: Session, user: User, conversation_id: int) -> Conversation:
    conversation = get_owned_conversation(db, user, conversation_id)
    if conversation.is_active:
        conversation.is_active = False
        conversation.ended_at = _utcnow()
        db.commit()
        logger.info("Ended conversation %s after %d messages", conversation.id, conversation.message_count)
    return conversation


def send_text_message(
    db: Session,
    user: User,
    conversation_id: int,
    content: str,
    language: str,
    completion: CompletionService,
) -> ChatTurn:
    """Handle one text message: check coins, persist, debit, complete, persist."""
    conversation = get_active_conversation(db, user, conversation_id)
    ensure_can_spend(user)

    language = normalize_language(language)
    history = recent_messages(db, conversation)

    user_message = append_message(db, conversation, content, SENDER_USER, language)
    debit_message(db, user)

    try:
        reply = completion.generate(history, conversation.character, content, language)
    except CompletionError:
        logger.exception("Completion failed for conversation %s", conversation.id)
        reply = FALLBACK_REPLY

    ai_message = append_message(db, conversation, reply, SENDER_ASSISTANT, language)
    return ChatTurn(
        user_message=user_message,
        ai_message=ai_message,
        user_coins=user.coins,
        message_count=conversation.message_count,
    )
