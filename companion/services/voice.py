"""Voice turns: transcribe, reply through the text flow, synthesize."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from models.conversation import Message
from models.user import User
from services.conversation import (
    SENDER_ASSISTANT,
    SENDER_USER,
    append_message,
    get_active_conversation,
    recent_messages,
)
from services.language import detect_language
from services.ledger import debit_message, ensure_can_spend
from services.llm import CompletionService
from services.speech import SpeechError, SpeechService

logger = logging.getLogger(__name__)


class InvalidAudioError(SpeechError):
    pass


@dataclass
class VoiceTurn:
    user_message: Message
    ai_message: Message
    voice_response: bytes
    user_audio_b64: str
    user_coins: int
    message_count: int

    @property
    def voice_response_b64(self) -> str:
        return base64.b64encode(self.voice_response).decode()

    @property
    def user_audio_data_url(self) -> str:
        return f"data:audio/webm;base64,{self.user_audio_b64}"


def strip_data_url(audio_b64: str) -> str:
    """Accept either bare base64 or a ``data:audio/...;base64,`` URL."""
    audio_b64 = audio_b64.strip()
    if audio_b64.startswith("data:") and "," in audio_b64:
        audio_b64 = audio_b64.split(",", 1)[1]
    return audio_b64


def decode_audio(audio_b64: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url(audio_b64), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidAudioError("Audio data is not valid base64") from exc


def transcribe_only(audio_b64: str, speech: SpeechService) -> str:
    return speech.transcribe(decode_audio(audio_b64))


def send_voice_message(
    db: Session,
    user: User,
    conversation_id: int,
    audio_b64: str,
    completion: CompletionService,
    speech: SpeechService,
) -> VoiceTurn:
    """Handle one voice message end to end.

    The coin is debited once the transcript is known; a downstream completion
    or synthesis failure does not refund it.
    """
    ensure_can_spend(user)
    conversation = get_active_conversation(db, user, conversation_id)
    character = conversation.character

    raw_b64 = strip_data_url(audio_b64)
    audio = decode_audio(raw_b64)
    transcript = speech.transcribe(audio)
    language = detect_language(transcript)
    logger.info("Voice transcript for conversation %s detected as %s", conversation.id, language)

    history = recent_messages(db, conversation)
    debit_message(db, user)

    reply = completion.generate(history, character, transcript, language)
    voice_response = speech.synthesize(reply, character.name)

    user_message = append_message(db, conversation, transcript, SENDER_USER, language)
    ai_message = append_message(db, conversation, reply, SENDER_ASSISTANT, language)
    return VoiceTurn(
        user_message=user_message,
        ai_message=ai_message,
        voice_response=voice_response,
        user_audio_b64=raw_b64,
        user_coins=user.coins,
        message_count=conversation.message_count,
    )
