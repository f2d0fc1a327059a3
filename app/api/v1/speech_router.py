"""Text-to-speech API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.rate_limit import limiter
from app.dependencies import get_current_user, get_speech_service
from app.schemas.response_schema import ApiResponse, success_response
from app.schemas.speech_schema import (
    LanguageInfo,
    SpeechRequest,
    SpeechResult,
    VoiceInfo,
)
from app.services.speech_service import SpeechService

router = APIRouter(
    prefix="/api/v1/speech",
    tags=["speech"],
    dependencies=[Depends(get_current_user)],
)

SpeechServiceDep = Annotated[SpeechService, Depends(get_speech_service)]


@router.post(
    "",
    response_model=ApiResponse[SpeechResult],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth.chat_rate_limit)
async def synthesize(
    request: Request,
    body: SpeechRequest,
    service: SpeechServiceDep,
) -> dict:
    """Render text to an MP3 file."""
    result = await service.synthesize(body.text, voice=body.voice, speed=body.speed)
    return success_response(result)


@router.get("/voices", response_model=ApiResponse[list[VoiceInfo]])
async def list_voices(service: SpeechServiceDep) -> dict:
    """List selectable voices."""
    return success_response(service.list_voices())


@router.get("/languages", response_model=ApiResponse[list[LanguageInfo]])
async def list_languages(service: SpeechServiceDep) -> dict:
    """List languages the speech model reads."""
    return success_response(service.list_languages())


@router.get("/audio/{filename}", response_class=FileResponse)
async def get_audio(filename: str, service: SpeechServiceDep) -> FileResponse:
    """Download a rendered audio file."""
    return FileResponse(service.get_audio_path(filename), media_type="audio/mpeg")


@router.delete("/audio/{filename}", response_model=ApiResponse[None])
async def delete_audio(filename: str, service: SpeechServiceDep) -> dict:
    """Delete a rendered audio file."""
    await service.delete_audio(filename)
    return success_response(None)
