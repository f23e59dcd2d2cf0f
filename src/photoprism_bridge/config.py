"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    telegram_chat_id: int
    telegram_bot_api_server: str = "https://api.telegram.org"
    tags: str = ""
    photoprism_url: str
    photoprism_username: str
    photoprism_password: str
    # Must stay below PHOTOPRISM_SESSION_TIMEOUT on the server.
    photoprism_session_refresh_sec: int = 86400
    photoprism_search_attempts: int = 1
    photoprism_search_retry_delay_sec: float = 1.0
    working_dir: str = "."
    disallow_compressed_files: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_tags(raw: str | None) -> list[str]:
    """Parse the comma separated tag list, keeping its order."""
    if raw is None:
        return []
    tags: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in tags:
            tags.append(value)
    return tags
