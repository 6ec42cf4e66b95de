"""
Centralized Configuration System
Environment-aware settings for the queue engine, its store and its worker.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Loads from environment variables with sensible defaults.
    Queue options built with QueueOptions.from_settings() read the QUEUE_* values.
    """

    # ============================================
    # MONGODB CONNECTION
    # ============================================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "mongo_queue"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1
    mongodb_server_selection_timeout_ms: int = 5000

    # ============================================
    # QUEUE DEFAULTS
    # ============================================
    queue_collection_name: str = "queue"
    queue_batch_size: int = 10
    queue_retry_limit: int = 5      # Negative means retry forever
    queue_max_record_age_ms: int = 7 * 24 * 60 * 60 * 1000
    queue_backoff_ms: int = 0
    queue_backoff_coefficient: float = 1.5

    # ============================================
    # WORKER CADENCE
    # ============================================
    worker_batch_interval_seconds: float = 5.0
    worker_cleanup_interval_seconds: float = 3600.0

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "test", "staging", "production"] = "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


# Convenience accessor for common use
settings = get_settings()
