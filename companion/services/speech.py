"""Speech collaborators: Whisper transcription and ElevenLabs synthesis."""

from __future__ import annotations

import logging

import httpx

from config import settings

logger = logging.getLogger(__name__)

MIN_AUDIO_BYTES = 1024

DEFAULT_VOICE_ID = "oHNJagRZ2LQEfZb2CEkb"

CHARACTER_VOICES: dict[str, str] = {
    "priya": DEFAULT_VOICE_ID,
    "neha": DEFAULT_VOICE_ID,
    "anjali": DEFAULT_VOICE_ID,
    "khushi": DEFAULT_VOICE_ID,
    "default": DEFAULT_VOICE_ID,
}

VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.0,
    "use_speaker_boost": True,
}

TRANSCRIPTION_PROMPT = (
    "This is a conversation that could be in English, Hindi, or mixed languages. "
    "Transcribe exactly what was said in the original language without translation."
)


class SpeechError(Exception):
    pass


class AudioTooShortError(SpeechError):
    pass


class EmptyTranscriptError(SpeechError):
    pass


class TranscriptionError(SpeechError):
    pass


class SynthesisError(SpeechError):
    pass


def sniff_audio_format(audio: bytes) -> tuple[str, str]:
    """Return (filename, mime type): MP3 by ID3 tag or frame sync, else WebM."""
    is_id3 = audio[:3] == b"ID3"
    is_frame_sync = len(audio) > 1 and audio[0] == 0xFF and (audio[1] & 0xE0) == 0xE0
    if is_id3 or is_frame_sync:
        return "voice.mp3", "audio/mpeg"
    return "voice.webm", "audio/webm"


def voice_for(character_name: str) -> str:
    key = (character_name or "").strip().lower()
    if key.endswith(".ai"):
        key = key[:-3]
    return CHARACTER_VOICES.get(key, CHARACTER_VOICES["default"])


class SpeechService:
    def __init__(self, openai_client=None, http_client: httpx.Client | None = None):
        self._openai = openai_client
        self._http = http_client

    @property
    def openai(self):
        if self._openai is None:
            if not settings.OPENAI_API_KEY:
                raise TranscriptionError("OPENAI_API_KEY is not configured")
            from openai import OpenAI

            self._openai = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
            )
        return self._openai

    def transcribe(self, audio: bytes) -> str:
        """Transcribe with language auto-detection (no language hint)."""
        if len(audio) < MIN_AUDIO_BYTES:
            raise AudioTooShortError(f"Audio too small for transcription: {len(audio)} bytes")

        filename, mime = sniff_audio_format(audio)
        logger.info("Transcribing %d bytes as %s", len(audio), mime)
        try:
            response = self.openai.audio.transcriptions.create(
                model=settings.STT_MODEL,
                file=(filename, audio, mime),
                prompt=TRANSCRIPTION_PROMPT,
                temperature=0.0,
            )
        except SpeechError:
            raise
        except Exception as exc:
            raise TranscriptionError(str(exc)) from exc

        text = (getattr(response, "text", "") or "").strip()
        if not text:
            raise EmptyTranscriptError("Empty transcription result")
        return text

    def synthesize(self, text: str, character_name: str = "default") -> bytes:
        api_key = settings.ELEVENLABS_API_KEY
        if not api_key:
            raise SynthesisError("ElevenLabs API key not configured")

        voice_id = voice_for(character_name)
        url = f"{settings.ELEVENLABS_BASE_URL.rstrip('/')}/text-to-speech/{voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": api_key,
        }
        body = {
            "text": text,
            "model_id": settings.ELEVENLABS_MODEL_ID,
            "voice_settings": VOICE_SETTINGS,
        }

        try:
            if self._http is not None:
                resp = self._http.post(url, headers=headers, json=body)
            else:
                resp = httpx.post(url, headers=headers, json=body, timeout=settings.EXTERNAL_TIMEOUT_SECONDS)
        except httpx.HTTPError as exc:
            raise SynthesisError(f"ElevenLabs request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise SynthesisError(f"ElevenLabs error {resp.status_code}: {resp.text[:400]}")
        if not resp.content:
            raise SynthesisError("ElevenLabs returned empty audio")

        logger.info(
            "Synthesized %d bytes for %s (voice=%s, chars=%d)",
            len(resp.content), character_name, voice_id, len(text),
        )
        return resp.content


_speech_service: SpeechService | None = None


def get_speech_service() -> SpeechService:
    """Get or create the speech service instance."""
    global _speech_service
    if _speech_service is None:
        _speech_service = SpeechService()
    return _speech_service
