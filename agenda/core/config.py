"""
Application configuration.
Values come from environment variables / .env file through pydantic-settings.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./agenda.db"
    SQL_ECHO: bool = False

    # JWT
    JWT_SECRET_KEY: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Scheduling
    DEFAULT_TIMEZONE: str = "America/Costa_Rica"

    # Startup
    SEED_CATALOG: bool = True
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

# Validate critical security settings
if not settings.JWT_SECRET_KEY:
    if settings.APP_ENV != "development":
        raise ValueError(
            "JWT_SECRET_KEY is not set. "
            "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
        )
    logger.warning("JWT_SECRET_KEY not set; using an insecure development key.")
    settings.JWT_SECRET_KEY = "dev-insecure-secret"
