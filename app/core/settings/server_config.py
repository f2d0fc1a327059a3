"""Server configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Server bind address and allowed browser origins."""

    host: str
    port: int
    cors_origins: str

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
