from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    anthropic_api_key: str = ""
    google_api_key: str = ""  # Gemini multimodal transcription

    # Supabase (anon key; RLS applies through the caller's bearer token)
    supabase_url: str = ""
    supabase_key: str = ""
    audio_bucket: str = "meeting-audio"

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8501"]
    log_level: str = "INFO"

    # Models
    llm_model: str = "claude-sonnet-4-20250514"
    extraction_temperature: float = 0.3
    transcription_model: str = "gemini-2.5-flash"
    transcription_fallback_model: str = "gemini-2.0-flash"

    # Limits
    max_audio_bytes: int = 25 * 1024 * 1024
    http_timeout_seconds: float = 60.0
    tracker_publish_concurrency: int = 4

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
