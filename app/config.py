"""Settings of the HTTP layer; engine tunables live in jigsaw_engine.config."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """API settings, read from the environment or a .env file."""

    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Jigsaw Assembly API"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Uploaded images are only inspected for their dimensions
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Boards live in memory only; the oldest is dropped past this count
    MAX_BOARDS: int = 100

    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    class Config:
        """Pydantic configuration class."""

        case_sensitive = True
        env_file = ".env"
        # The same .env may carry PUZZLE_ engine settings
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
