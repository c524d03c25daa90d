"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    relationlens_env: str = "development"
    relationlens_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Frame that candidate layouts are measured in when a request names none
    reference_width: float = 1080.0
    reference_height: float = 1920.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
