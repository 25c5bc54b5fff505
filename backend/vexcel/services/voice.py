"""Speech-to-text proxy for voice input in the chat box."""

from __future__ import annotations

import os
from dataclasses import dataclass

import requests

from vexcel.core.config import Settings
from vexcel.core.errors import ConfigurationError, VExcelError
from vexcel.core.logging import get_logger, log_context

logger = get_logger(__name__)

_STATUS_MESSAGES = {
    400: "Audio format not supported or audio too short",
    401: "Invalid ElevenLabs API key",
    429: "Rate limit exceeded. Please try again in a moment.",
}


class TranscriptionError(VExcelError):
    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class Transcription:
    text: str
    confidence: float
    model: str


class SpeechToTextClient:
    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        content_type: str | None = None,
        model: str | None = None,
    ) -> Transcription:
        api_key = os.environ.get("ELEVENLABS_API_KEY")
        if not api_key:
            raise ConfigurationError("ElevenLabs API key not configured")
        if not audio:
            raise TranscriptionError("No audio file provided", status_code=400)
        model = model or self.settings.speech_model
        try:
            resp = self.session.post(
                self.settings.speech_url,
                headers={"xi-api-key": api_key},
                files={"audio": (filename, audio, content_type or "application/octet-stream")},
                data={"model_id": model},
                timeout=self.settings.http_timeout,
            )
        except requests.RequestException as exc:
            raise TranscriptionError(f"Speech recognition failed: {exc}", status_code=502) from exc
        if not resp.ok:
            logger.warning(
                "Speech-to-text error %s: %s",
                resp.status_code,
                resp.text,
                extra=log_context(action="voice.transcribe"),
            )
            message = _STATUS_MESSAGES.get(resp.status_code, "Speech recognition failed")
            raise TranscriptionError(message, status_code=resp.status_code)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise TranscriptionError("Speech recognition returned an unreadable response", status_code=502) from exc
        text = (payload.get("text") or payload.get("transcript") or "").strip()
        if not text:
            raise TranscriptionError("No speech detected. Please try speaking more clearly.", status_code=400)
        return Transcription(text=text, confidence=float(payload.get("confidence") or 0.9), model=model)


__all__ = ["SpeechToTextClient", "Transcription", "TranscriptionError"]
