"""Application configuration for the collaboration server."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_CODE = "// Start coding here..."


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    default_code: str = Field(default=DEFAULT_CODE)
    log_level: str = Field(default="INFO")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    ws_ping_interval: float = Field(default=25.0)
    ws_ping_timeout: float = Field(default=60.0)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for the origin allow-list."""

        if isinstance(value, str):
            parts = [item.strip() for item in value.split(",") if item.strip()]
            return parts
        return value

    def origin_allowed(self, origin: str | None) -> bool:
        """Return whether a browser origin may open a connection."""

        if origin is None:
            return True
        return "*" in self.cors_allow_origins or origin in self.cors_allow_origins


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
