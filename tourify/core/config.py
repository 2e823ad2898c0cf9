"""Application configuration."""
from functools import lru_cache
from typing import Any, List, Optional

from pydantic import field_validator
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Also exposes .env values such as LOG_LEVEL and LOG_DIR to os.getenv
load_dotenv()


def clean_int_value(v: Any) -> int:
    """Clean integer values from environment variables."""
    if isinstance(v, str):
        # Remove any comments and whitespace
        v = v.split('#')[0].strip()
    return int(v)


class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "Tourify Accounts"
    API_V1_STR: str = "/api/v1"
    BACKEND_CORS_ORIGINS: List[str] = ["*"]
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database settings
    DATABASE_URL: str = "sqlite:///./tourify.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis settings (display cache second tier and event bus)
    REDIS_URL: Optional[str] = None

    # Cache settings
    CACHE_ENABLED: bool = True
    DISPLAY_CACHE_TTL: int = 300

    # Event bus settings
    EVENT_CHANNEL_PREFIX: str = "tourify"

    # Navigation
    ONBOARDING_PATH: str = "/create"

    # Attribution retry policy
    RESOLVE_MAX_RETRIES: int = 3
    RESOLVE_RETRY_DELAY: float = 0.2

    # Security settings
    JWT_SECRET_KEY: str = "change-me-in-production-0123456789abcdef"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    _clean_ints = field_validator('PORT', 'DATABASE_POOL_SIZE', 'DATABASE_MAX_OVERFLOW',
                                  'DISPLAY_CACHE_TTL', 'RESOLVE_MAX_RETRIES',
                                  'ACCESS_TOKEN_EXPIRE_MINUTES', mode='before')(clean_int_value)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
