"""Text-to-speech request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SpeechRequest(BaseModel):
    """Request to render text as speech."""

    text: str = Field(..., min_length=1)
    voice: str = "alloy"
    speed: float = 1.0


class SpeechResult(BaseModel):
    """Rendered audio file reference."""

    model_config = ConfigDict(frozen=True)

    filename: str
    url: str
    size_bytes: int
    voice: str
    speed: float


class VoiceInfo(BaseModel):
    """Selectable voice."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class LanguageInfo(BaseModel):
    """Language the speech model can read."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
