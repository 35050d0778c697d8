"""
Configuration management using Pydantic Settings.
All environment variables are loaded and validated here.
"""

from typing import List, Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ================================
    # Application Configuration
    # ================================
    APP_NAME: str = "reelsense"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = True
    SECRET_KEY: str = Field(..., min_length=32)

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def parse_origins(cls, v: str) -> List[str]:
        """Parse comma-separated origins into list."""
        return [origin.strip() for origin in v.split(",")]

    # ================================
    # Database Configuration
    # ================================
    DATABASE_URL: str = Field(..., description="PostgreSQL connection string")
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # ================================
    # JWT Authentication
    # ================================
    # Tokens are issued by the account service; we only verify them.
    JWT_SECRET_KEY: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = "HS256"

    # Comma-separated user ids allowed to call the admin endpoints.
    # Empty means "everyone" outside production and "nobody" in production.
    ADMIN_USER_IDS: str = ""

    @property
    def admin_user_id_list(self) -> List[int]:
        """Parse ADMIN_USER_IDS into a list of ints."""
        return [int(part) for part in self.ADMIN_USER_IDS.split(",") if part.strip()]

    # ================================
    # AI Provider Configuration
    # ================================
    # OpenAI (embeddings)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Anthropic Claude (chat generation)
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-20241022"

    # Applies to every outbound provider call
    PROVIDER_TIMEOUT_SECONDS: float = 30.0

    # ================================
    # Embedding Configuration
    # ================================
    EMBEDDING_DIMENSION: int = 1536
    EMBEDDING_BATCH_SIZE: int = 100
    EMBEDDING_MAX_INPUT_CHARS: int = 8000

    # ================================
    # Search / Recommendation Configuration
    # ================================
    SEARCH_DEFAULT_LIMIT: int = 20
    SEARCH_DEFAULT_THRESHOLD: float = 0.5
    SEARCH_MAX_LIMIT: int = 50
    SEARCH_QUERY_MAX_LENGTH: int = 500
    TRENDING_WINDOW_DAYS: int = 7

    # ================================
    # Chat Configuration
    # ================================
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 1000
    CHAT_HISTORY_TURNS: int = 10
    CHAT_MESSAGE_MAX_LENGTH: int = 2000
    CHAT_GROUNDING_LIMIT: int = 5
    CHAT_GROUNDING_THRESHOLD: float = 0.3

    # ================================
    # Celery Configuration
    # ================================
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/0"
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    # Celery accept content as comma-separated string, we'll parse it
    CELERY_ACCEPT_CONTENT: str = "json"
    CELERY_TIMEZONE: str = "UTC"
    CELERY_ENABLE_UTC: bool = True
    EMBEDDING_SWEEP_INTERVAL_MINUTES: int = 30

    @property
    def celery_accept_content_list(self) -> List[str]:
        """Parse CELERY_ACCEPT_CONTENT into a list."""
        return [item.strip() for item in self.CELERY_ACCEPT_CONTENT.split(",")]

    # ================================
    # Logging Configuration
    # ================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.APP_ENV == "production"

    @property
    def embeddings_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def generation_configured(self) -> bool:
        return bool(self.ANTHROPIC_API_KEY)


# Global settings instance
settings = Settings()
