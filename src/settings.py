"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE = "http://127.0.0.1:8000"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,  # Allow both field name and alias
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Generation backend
    ai_base_url: str = Field(
        default=DEFAULT_API_BASE,
        description="Base URL of the generation backend (trailing slashes are ignored)",
        validation_alias=AliasChoices("ai_base_url", "margati_api_base"),
    )
    ai_server_api_key_auth: SecretStr = Field(
        default=SecretStr(""),
        description="Bearer token for the generation backend (empty = no auth header)",
        validation_alias=AliasChoices("ai_server_api_key_auth", "margati_api_key"),
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Timeout in seconds for the microtask generation request",
    )
    stream_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Read timeout in seconds for the questionnaire event stream",
    )

    # Calibration dialogue
    stream_render_delay: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Pause in seconds after each streamed text delta",
    )

    # Microtask dials that the sandbox does not expose as inputs
    academic_level: str = Field(default="high_school")
    support_level: str = Field(default="HIGH")

    @property
    def api_base(self) -> str:
        """Backend base URL without trailing slashes."""
        return self.ai_base_url.rstrip("/") or DEFAULT_API_BASE


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
