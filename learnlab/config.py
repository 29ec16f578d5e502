"""
Configuration module for the LearnLab backend.
Centralizes all environment variable management.
"""
import os
from typing import Optional
from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
load_dotenv()

class Config:
    """Application configuration from environment variables."""

    # Gemini API Configuration (empty key means fallback-only mode)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    AI_TIMEOUT_SEC: int = int(os.getenv("AI_TIMEOUT_SEC", "30"))
    TASK_COUNT: int = int(os.getenv("TASK_COUNT", "3"))

    # Rate Limiting Configuration (single process, in-memory)
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "60"))
    RATE_LIMIT_WINDOW_MS: int = int(os.getenv("RATE_LIMIT_WINDOW_MS", "60000"))

    # CORS Configuration
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")

    # Database Configuration (persisted variant)
    DB_ENABLED: bool = os.getenv("DB_ENABLED", "false").lower() == "true"
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")
    DB_NAME: str = os.getenv("DB_NAME", "learnlab")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_SEED_SAMPLES: bool = os.getenv("DB_SEED_SAMPLES", "true").lower() == "true"

    # Server Configuration
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "3000"))

    # Development Settings
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    VERSION: str = "1.0.0"

    @property
    def ai_configured(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    @property
    def store_enabled(self) -> bool:
        return self.DB_ENABLED or bool(self.DATABASE_URL)

    @property
    def database_url(self) -> str:
        """DATABASE_URL if set, otherwise a PostgreSQL URL built from the DB_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)

    def validate(self) -> bool:
        """Validate that the configuration is usable."""
        if self.TASK_COUNT not in (3, 4):
            raise ValueError("TASK_COUNT must be 3 or 4")

        if self.RATE_LIMIT_MAX_REQUESTS <= 0:
            raise ValueError("RATE_LIMIT_MAX_REQUESTS must be positive")

        if self.RATE_LIMIT_WINDOW_MS <= 0:
            raise ValueError("RATE_LIMIT_WINDOW_MS must be positive")

        if self.AI_TIMEOUT_SEC <= 0:
            raise ValueError("AI_TIMEOUT_SEC must be positive")

        return True

# Global config instance
config = Config()
