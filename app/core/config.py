"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.settings import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    LLMConfig,
    RedisConfig,
    RetentionConfig,
    ServerConfig,
    SpeechConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.retention.sweep_interval_seconds).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="LLM provider to use",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat replies",
    )
    llm_max_context_messages: int = Field(
        default=20,
        ge=0,
        le=200,
        description="Most recent stored messages sent as conversation context",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key (chat and speech)",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model name",
    )

    # Speech
    speech_model: str = Field(
        default="tts-1",
        description="OpenAI text-to-speech model",
    )
    speech_storage_path: Path = Field(
        default=Path("./data/audio"),
        description="Directory where rendered audio files are written",
    )
    speech_max_text_length: int = Field(
        default=4096,
        ge=1,
        le=4096,
        description="Maximum characters per synthesis request",
    )

    # App
    app_name: str = Field(
        default="voicechat-history",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Retention
    retention_sweep_interval_seconds: int = Field(
        default=3600,
        ge=0,
        description="Interval of the timer-driven retention sweep (0 disables it)",
    )
    stats_cache_ttl_seconds: int = Field(
        default=60,
        ge=1,
        le=86400,
        description="Lifetime of cached per-user statistics",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8004,
        ge=1,
        le=65535,
        description="Server port",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins outside development",
    )

    # JWT Auth
    jwt_secret_key: SecretStr = Field(
        description="Secret used to verify access tokens",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    chat_rate_limit: str = Field(
        default="30/minute",
        description="Rate limit for chat and speech endpoints",
    )

    # Database
    database_url: SecretStr = Field(
        description="Async database URL (mysql+aiomysql://...)",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_key_prefix: str = Field(
        default="voicechat",
        description="Namespace prepended to every Redis key",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_model=self.anthropic_model,
            temperature=self.llm_temperature,
            max_context_messages=self.llm_max_context_messages,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            version=self.app_version,
            env=self.app_env,
            debug=self.debug,
        )

    @cached_property
    def speech(self) -> SpeechConfig:
        """Text-to-speech configuration."""
        return SpeechConfig(
            api_key=self.openai_api_key,
            model=self.speech_model,
            storage_path=self.speech_storage_path,
            max_text_length=self.speech_max_text_length,
        )

    @cached_property
    def retention(self) -> RetentionConfig:
        """Retention sweep configuration."""
        return RetentionConfig(
            sweep_interval_seconds=self.retention_sweep_interval_seconds,
            stats_cache_ttl_seconds=self.stats_cache_ttl_seconds,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            cors_origins=self.cors_origins,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """JWT verification configuration."""
        return AuthConfig(
            secret_key=self.jwt_secret_key,
            algorithm=self.jwt_algorithm,
            chat_rate_limit=self.chat_rate_limit,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url)

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(url=self.redis_url, key_prefix=self.redis_key_prefix)

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
