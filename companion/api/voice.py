"""Voice endpoints: transcription and full voice turns."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api._helpers import bad_request
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.chat import (
    TranscribeRequest,
    TranscribeResponse,
    VoiceMessageRequest,
    VoiceMessageResponse,
)
from services.conversation import (
    CharacterNotFoundError,
    ConversationEndedError,
    ConversationNotFoundError,
)
from services.ledger import InsufficientCoinsError
from services.llm import CompletionError, CompletionService, get_completion_service
from services.speech import (
    AudioTooShortError,
    EmptyTranscriptError,
    SpeechError,
    SpeechService,
    get_speech_service,
)
from services.voice import InvalidAudioError, send_voice_message, transcribe_only

logger = logging.getLogger(__name__)

router = APIRouter()

UNCLEAR_AUDIO = "Could not transcribe audio. Please speak clearly and try again."

NEEDS_PAYMENT = {"message": "Insufficient coins", "needsPayment": True}

_INPUT_ERRORS = (AudioTooShortError, EmptyTranscriptError, InvalidAudioError)


@router.post("/transcribe", response_model=TranscribeResponse)
def transcribe(
    payload: TranscribeRequest,
    user: User = Depends(get_current_user),
    speech: SpeechService = Depends(get_speech_service),
):
    if not payload.audio_data:
        raise bad_request("Audio data is required")
    try:
        text = transcribe_only(payload.audio_data, speech)
    except _INPUT_ERRORS as exc:
        logger.info("Rejected audio from user %s: %s", user.id, exc)
        raise bad_request(UNCLEAR_AUDIO)
    except SpeechError:
        logger.exception("Transcription failed for user %s", user.id)
        raise HTTPException(status_code=502, detail="Transcription service unavailable")
    return {"transcription": text}


@router.post("/message", response_model=VoiceMessageResponse)
def voice_message(
    payload: VoiceMessageRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    completion: CompletionService = Depends(get_completion_service),
    speech: SpeechService = Depends(get_speech_service),
):
    if payload.conversation_id is None or not payload.audio_data:
        raise bad_request("Conversation ID and audio data are required")

    try:
        turn = send_voice_message(db, user, payload.conversation_id, payload.audio_data, completion, speech)
    except InsufficientCoinsError:
        raise HTTPException(status_code=402, detail=NEEDS_PAYMENT)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except CharacterNotFoundError:
        raise HTTPException(status_code=404, detail="Character not found")
    except ConversationEndedError:
        raise bad_request("Conversation has ended")
    except _INPUT_ERRORS as exc:
        logger.info("Rejected voice message from user %s: %s", user.id, exc)
        raise bad_request(UNCLEAR_AUDIO)
    except (SpeechError, CompletionError):
        logger.exception("Voice message failed for conversation %s", payload.conversation_id)
        raise HTTPException(status_code=502, detail="Voice processing failed")

    return VoiceMessageResponse(
        user_message=turn.user_message,
        ai_message=turn.ai_message,
        user_coins=turn.user_coins,
        message_count=turn.message_count,
        voice_response=turn.voice_response_b64,
        user_audio_data=turn.user_audio_data_url,
    )
