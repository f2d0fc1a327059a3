"""Text-to-speech configuration."""

from pathlib import Path

from pydantic import BaseModel, SecretStr


class SpeechConfig(BaseModel, frozen=True):
    """Speech rendering and audio storage settings."""

    api_key: SecretStr
    model: str
    storage_path: Path
    max_text_length: int
