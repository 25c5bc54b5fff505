"""Voice input routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from vexcel.api.dependencies import get_app_settings, get_speech_client
from vexcel.core.config import Settings
from vexcel.models.dto import TranscriptionResponse
from vexcel.services.voice import SpeechToTextClient, TranscriptionError

router = APIRouter()


@router.post("/speech-to-text", response_model=TranscriptionResponse, summary="Transcribe recorded audio")
def speech_to_text(
    audio: UploadFile = File(...),
    model: str | None = Form(default=None),
    client: SpeechToTextClient = Depends(get_speech_client),
    settings: Settings = Depends(get_app_settings),
) -> TranscriptionResponse:
    content = audio.file.read(settings.max_audio_bytes + 1)
    if len(content) > settings.max_audio_bytes:
        raise HTTPException(status_code=413, detail="The recording is too long. Please keep voice messages short.")
    try:
        result = client.transcribe(
            content,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type,
            model=model,
        )
    except TranscriptionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return TranscriptionResponse(text=result.text, confidence=result.confidence, model=result.model)


__all__ = ["router"]
