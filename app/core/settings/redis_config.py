"""Redis connection configuration."""

from pydantic import BaseModel


class RedisConfig(BaseModel, frozen=True):
    """Redis connection settings."""

    url: str
    key_prefix: str

    def key(self, *parts: object) -> str:
        """Build a namespaced cache key."""
        return ":".join([self.key_prefix, *(str(p) for p in parts)])
