"""Character schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from schemas.base import CamelModel


class CharacterOut(CamelModel):
    id: int
    key: str
    name: str
    avatar: str
    intro: str
    welcome_message: str
    personality: str
    is_active: bool
    created_at: datetime | None = None


class CharacterDetailOut(CharacterOut):
    average_rating: float = 0.0


class CharacterAdminOut(CharacterOut):
    system_prompt: str


class CharacterCreate(CamelModel):
    key: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(min_length=1)
    avatar: str = ""
    intro: str = ""
    welcome_message: str = ""
    personality: str = ""
    system_prompt: str = Field(min_length=1)
    is_active: bool = True


class CharacterUpdate(CamelModel):
    name: str | None = None
    avatar: str | None = None
    intro: str | None = None
    welcome_message: str | None = None
    personality: str | None = None
    system_prompt: str | None = None
    is_active: bool | None = None
