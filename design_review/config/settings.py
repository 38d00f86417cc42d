"""Application settings using Pydantic."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str = "sqlite:///design_review.db"
    pipeline_config_name: str = "comprehensive_analysis"

    # Google Cloud Vision
    google_vision_api_key: Optional[str] = None
    google_vision_base_url: str = "https://vision.googleapis.com/v1"
    google_vision_max_results: int = 50

    # Perplexity research
    perplexity_api_key: Optional[str] = None
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar"

    # Validation stage
    research_min_interval_seconds: float = 2.0
    validation_max_annotations: int = 5

    # Processing Configuration
    http_timeout_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
