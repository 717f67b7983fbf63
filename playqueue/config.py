"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="PlayQueue", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    jellyfin_url: HttpUrl = Field(
        default="http://localhost:8096", alias="JELLYFIN_URL"
    )
    jellyfin_api_key: str | None = Field(default=None, alias="JELLYFIN_API_KEY")
    jellyfin_user_id: str | None = Field(default=None, alias="JELLYFIN_USER_ID")
    jellyfin_retry_limit: int = Field(
        default=2, alias="JELLYFIN_RETRY_LIMIT", ge=0, le=10
    )

    external_subtitle_label: str = Field(
        default="External", alias="EXTERNAL_SUBTITLE_LABEL"
    )
    skip_virtual_episodes: bool = Field(
        default=False, alias="SKIP_VIRTUAL_EPISODES"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("external_subtitle_label", mode="before")
    @classmethod
    def _default_blank_label(cls, value: object) -> object:
        """Blank labels fall back to the stock subtitle title."""

        if value is None or (isinstance(value, str) and not value.strip()):
            return "External"
        return value

    @property
    def jellyfin_base_url(self) -> str:
        """Return the server URL without a trailing slash."""

        return str(self.jellyfin_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
