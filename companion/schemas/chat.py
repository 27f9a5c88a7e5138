"""Chat and voice schemas."""

from __future__ import annotations

from datetime import datetime

from schemas.base import CamelModel
from schemas.character import CharacterOut


class ConversationOut(CamelModel):
    id: int
    user_id: int
    character_id: int
    language: str
    message_count: int
    is_active: bool
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    ended_at: datetime | None = None


class MessageOut(CamelModel):
    id: int
    conversation_id: int
    content: str
    sender: str
    language: str
    created_at: datetime | None = None


class ChatStartRequest(CamelModel):
    character_key: str = ""
    language: str = "english"


class ChatStartResponse(CamelModel):
    conversation: ConversationOut
    character: CharacterOut
    messages: list[MessageOut]


class ChatMessageRequest(CamelModel):
    conversation_id: int | None = None
    content: str = ""
    language: str = "english"


class ChatMessageResponse(CamelModel):
    user_message: MessageOut
    ai_message: MessageOut
    user_coins: int
    message_count: int


class ChatEndRequest(CamelModel):
    conversation_id: int


class TranscribeRequest(CamelModel):
    audio_data: str = ""


class TranscribeResponse(CamelModel):
    transcription: str


class VoiceMessageRequest(CamelModel):
    conversation_id: int | None = None
    audio_data: str = ""


class VoiceMessageResponse(ChatMessageResponse):
    voice_response: str
    user_audio_data: str
