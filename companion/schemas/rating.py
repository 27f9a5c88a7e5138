"""Rating schemas."""

from __future__ import annotations

from datetime import datetime

from schemas.base import CamelModel


class RatingRequest(CamelModel):
    character_id: int | None = None
    conversation_id: int | None = None
    rating: int | None = None


class RatingOut(CamelModel):
    id: int
    character_id: int
    conversation_id: int | None = None
    rating: int
    created_at: datetime | None = None
