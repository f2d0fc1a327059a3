"""JWT verification and rate limit configuration."""

from pydantic import BaseModel, SecretStr


class AuthConfig(BaseModel, frozen=True):
    """Access token verification settings."""

    secret_key: SecretStr
    algorithm: str
    chat_rate_limit: str
