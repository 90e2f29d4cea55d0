"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DOWNLOAD_ACCESS_REGIMES = frozenset({"grant", "follow"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    server_host: str = "0.0.0.0"
    server_port: int = 8000
    max_connections: int = 8
    chunk_count: int = 10
    ack_timeout_seconds: float = 5.0
    max_chunk_attempts: int = 3
    download_access: str = "grant"
    max_upload_bytes: int = 16 * 1024 * 1024
    photo_storage_dir: str | None = None
    admin_token: str = "change-me"
    admin_port: int | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_download_access(raw: str | None) -> str:
    """Normalize the download authorization regime name."""
    cleaned = (raw or "").strip().lower()
    if cleaned not in DOWNLOAD_ACCESS_REGIMES:
        allowed = ", ".join(sorted(DOWNLOAD_ACCESS_REGIMES))
        raise ValueError(f"download_access must be one of: {allowed}")
    return cleaned
