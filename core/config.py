# ==================================================================================
# core/config.py: Team Planner configuration (Pydantic v2 settings)
# ==================================================================================
import logging
import sys
from typing import List, Optional

from pydantic import EmailStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE / STORAGE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./teamplanner.db"
    STORAGE_BACKEND: str = "sql"  # 'sql' | 'memory'

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # ------------------------
    # INVITATIONS
    # ------------------------
    INVITATION_VALID_DAYS: int = 7

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: Optional[str] = None
    MAIL_FROM: Optional[EmailStr] = None

    # ------------------------
    # OPENAI CONFIG
    # ------------------------
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    # ------------------------
    # FRONTEND CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True

    @property
    def IS_PRODUCTION(self) -> bool:
        """Convenience helper to check if running in production"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def USE_MEMORY_STORAGE(self) -> bool:
        return self.STORAGE_BACKEND.lower() == "memory"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info("✅ Environment variables loaded. Environment: %s, storage: %s",
                settings.ENVIRONMENT, settings.STORAGE_BACKEND)
except ValidationError as e:
    logger.error("❌ Environment configuration error: missing or invalid settings!\n%s", e)
    sys.exit(1)
