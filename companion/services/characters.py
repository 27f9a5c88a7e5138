"""Character catalog: lookups, default personas, admin edits."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.character import Character
from models.rating import Rating

logger = logging.getLogger(__name__)

DEFAULT_CHARACTERS = [
    {
        "key": "priya",
        "name": "Priya",
        "avatar": "https://images.unsplash.com/photo-1544005313-94ddf0286df2?auto=format&fit=crop&w=300&h=300",
        "intro": "Hey! I'm Priya, your sweet and caring companion.",
        "welcome_message": "Hi sweetheart! I'm so happy you're here. How has your day been? 💕",
        "personality": "sweet, caring, warm, supportive",
        "system_prompt": (
            "A sweet, romantic Indian companion who replies warmly, never sexually, "
            "and offers emotional connection, support and engaging conversation."
        ),
    },
    {
        "key": "neha",
        "name": "Neha.ai",
        "avatar": "https://images.unsplash.com/photo-1489424731084-a5d8b219a5bb?auto=format&fit=crop&w=300&h=300",
        "intro": "I'm Neha: fun, flirty, and I love late-night talks 🌙",
        "welcome_message": "Hey gorgeous! Ready for some fun chats? I've been waiting for you! 😘",
        "personality": "fun, flirty, playful, energetic",
        "system_prompt": (
            "A fun, playful Indian companion who loves gentle teasing and lively "
            "conversation, keeping things light while being supportive."
        ),
    },
    {
        "key": "anjali",
        "name": "Anjali",
        "avatar": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?auto=format&fit=crop&w=300&h=300",
        "intro": "Emotional yet practical. I'm here when no one is 💬",
        "welcome_message": "Hello dear. I'm here to listen and understand you. What's on your mind today? 💙",
        "personality": "emotional, practical, understanding, empathetic",
        "system_prompt": (
            "An emotionally intelligent, practical Indian companion who is empathetic "
            "and gives thoughtful advice while staying caring."
        ),
    },
    {
        "key": "khushi",
        "name": "Khushi.ai",
        "avatar": "https://images.unsplash.com/photo-1524504388940-b1c1722653e1?auto=format&fit=crop&w=300&h=300",
        "intro": "I'm Khushi, full of joy and romantic dreams ✨",
        "welcome_message": "Hi my love! ✨ Tell me something that made you smile today! 😊",
        "personality": "joyful, romantic, dreamy, optimistic",
        "system_prompt": (
            "A joyful, dreamy Indian companion who always looks for the bright side "
            "and loves making people happy."
        ),
    },
]

EDITABLE_FIELDS = (
    "name", "avatar", "intro", "welcome_message", "personality", "system_prompt", "is_active",
)


def list_active(db: Session) -> list[Character]:
    return (
        db.query(Character)
        .filter(Character.is_active == True)  # noqa: E712
        .order_by(Character.id)
        .all()
    )


def get_by_key(db: Session, key: str, *, active_only: bool = True) -> Character | None:
    query = db.query(Character).filter(Character.key == key)
    if active_only:
        query = query.filter(Character.is_active == True)  # noqa: E712
    return query.first()


def average_rating(db: Session, character_id: int) -> float:
    value = db.query(func.avg(Rating.rating)).filter(Rating.character_id == character_id).scalar()
    return round(float(value), 2) if value is not None else 0.0


def seed_default_characters(db: Session) -> int:
    """Insert the default personas when the catalog is empty."""
    if db.query(Character).first() is not None:
        return 0
    for data in DEFAULT_CHARACTERS:
        db.add(Character(**data))
    db.commit()
    return len(DEFAULT_CHARACTERS)


def create_character(db: Session, data: dict) -> Character:
    character = Character(**data)
    db.add(character)
    db.commit()
    db.refresh(character)
    logger.info("Created character %s", character.key)
    return character


def update_character(db: Session, character_id: int, data: dict) -> Character | None:
    character = db.get(Character, character_id)
    if character is None:
        return None
    for field in EDITABLE_FIELDS:
        if field in data and data[field] is not None:
            setattr(character, field, data[field])
    db.commit()
    db.refresh(character)
    logger.info("Updated character %s", character.key)
    return character
