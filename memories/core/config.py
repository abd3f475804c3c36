"""Configuration settings for the memories service."""
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.
    
    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values
    
    Attributes:
        DATABASE_URL: SQLAlchemy async database URL
        EMBEDDING_DIMENSION: Number of components in every face embedding
        CLUSTER_SIMILARITY_THRESHOLD: Cosine similarity a face must exceed to join a cluster (0-1]
        PERSON_MATCH_MIN_OVERLAP: Share of cluster members that must already be linked to a person
        REMINDER_ABSENCE_YEARS: Calendar years without a sighting before a person is "forgotten"
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
    )

    # Core Settings
    PROJECT_NAME: str = "Memories Service"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./memories.db"
    DATABASE_ECHO: bool = False

    # Clustering Settings
    EMBEDDING_DIMENSION: int = 128
    CLUSTER_SIMILARITY_THRESHOLD: float = 0.6
    PERSON_MATCH_MIN_OVERLAP: float = 0.5
    PLACEHOLDER_NAME_PREFIX: str = "Person"

    # Reminder Settings
    REMINDER_ABSENCE_YEARS: int = 2

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"

    @field_validator("CLUSTER_SIMILARITY_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Similarity threshold must lie in (0, 1]."""
        if not 0.0 < v <= 1.0:
            raise ValueError("CLUSTER_SIMILARITY_THRESHOLD must be in (0, 1]")
        return v

settings = Settings()
