"""Text-to-speech rendering and audio file storage."""

import asyncio
import re
import uuid
from pathlib import Path

import structlog
from openai import AsyncOpenAI, OpenAIError

from app.core.exceptions import AudioNotFoundError, InputValidationError, UpstreamError
from app.core.settings import SpeechConfig
from app.schemas.speech_schema import LanguageInfo, SpeechResult, VoiceInfo

logger = structlog.get_logger()

AUDIO_URL_PREFIX = "/api/v1/speech/audio"
AUDIO_FILENAME_PATTERN = re.compile(r"^[0-9a-f]{32}\.mp3$")
MIN_SPEED = 0.25
MAX_SPEED = 4.0

VOICES: dict[str, str] = {
    "alloy": "Alloy",
    "ash": "Ash",
    "coral": "Coral",
    "echo": "Echo",
    "fable": "Fable",
    "nova": "Nova",
    "onyx": "Onyx",
    "sage": "Sage",
    "shimmer": "Shimmer",
}

LANGUAGES: dict[str, str] = {
    "ar": "Arabic",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "hi": "Hindi",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "nl": "Dutch",
    "pl": "Polish",
    "pt": "Portuguese",
    "ru": "Russian",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "zh": "Chinese",
}


class SpeechService:
    """Renders text through the OpenAI audio API and stores MP3 files.

    Audio files carry no retention semantics; they are addressed by filename
    and deleted independently of chat history.
    """

    def __init__(self, client: AsyncOpenAI, config: SpeechConfig) -> None:
        self._client = client
        self._config = config

    async def synthesize(
        self, text: str, voice: str = "alloy", speed: float = 1.0
    ) -> SpeechResult:
        """Render ``text`` and return the stored file reference."""
        self._validate(text, voice, speed)
        try:
            response = await self._client.audio.speech.create(
                model=self._config.model,
                voice=voice,
                input=text,
                speed=speed,
                response_format="mp3",
            )
        except OpenAIError as exc:
            logger.warning("Speech synthesis failed", voice=voice, error=str(exc))
            raise UpstreamError("speech", str(exc)) from exc

        audio = response.content
        filename = f"{uuid.uuid4().hex}.mp3"
        path = self._config.storage_path / filename
        await asyncio.to_thread(self._write_file, path, audio)
        logger.info("Speech rendered", filename=filename, size_bytes=len(audio))
        return SpeechResult(
            filename=filename,
            url=f"{AUDIO_URL_PREFIX}/{filename}",
            size_bytes=len(audio),
            voice=voice,
            speed=speed,
        )

    def list_voices(self) -> list[VoiceInfo]:
        return [VoiceInfo(id=key, name=name) for key, name in VOICES.items()]

    def list_languages(self) -> list[LanguageInfo]:
        return [LanguageInfo(code=key, name=name) for key, name in LANGUAGES.items()]

    def get_audio_path(self, filename: str) -> Path:
        """Resolve a stored audio file. Unknown or malformed names are not found."""
        if not AUDIO_FILENAME_PATTERN.match(filename):
            raise AudioNotFoundError()
        path = self._config.storage_path / filename
        if not path.is_file():
            raise AudioNotFoundError()
        return path

    async def delete_audio(self, filename: str) -> None:
        """Delete a stored audio file."""
        path = self.get_audio_path(filename)
        await asyncio.to_thread(path.unlink, True)
        logger.info("Speech audio deleted", filename=filename)

    def _validate(self, text: str, voice: str, speed: float) -> None:
        if not text.strip():
            raise InputValidationError("text must not be empty")
        if len(text) > self._config.max_text_length:
            raise InputValidationError(
                f"text must be at most {self._config.max_text_length} characters"
            )
        if voice not in VOICES:
            raise InputValidationError(f"Unknown voice: {voice}")
        if not MIN_SPEED <= speed <= MAX_SPEED:
            raise InputValidationError(
                f"speed must be between {MIN_SPEED} and {MAX_SPEED}"
            )

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
