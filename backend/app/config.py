"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    REQUEST_TIMEOUT: float = 60.0

    TEMPERATURE: float = 0.1
    TOP_P: float = 0.95
    MAX_OUTPUT_TOKENS: int = 2048

    MAX_IMAGE_EDGE: int = 512
    JPEG_QUALITY: int = 75
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    DEMO_MODE: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["*"]

    model_config = {"env_prefix": "WOUNDWISE_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
