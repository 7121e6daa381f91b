"""
Centralized Configuration System
Environment-aware settings for the generation pipeline and its services.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Production-grade configuration management.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # LLM PROVIDER CREDENTIALS
    # ============================================
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # ============================================
    # MODEL SELECTION (by provider)
    # ============================================
    default_provider: Literal["openai", "anthropic"] = "anthropic"
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-sonnet-4-5"

    # ============================================
    # GENERATION PARAMETERS
    # ============================================
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 60.0

    # ============================================
    # CORPUS & DOCUMENT LIMITS
    # ============================================
    corpus_char_limit: int = 12000          # Prefix of corpus text fed to the segmentation prompt
    document_summary_chars: int = 10000     # Per-document share of the corpus
    chunk_size_chars: int = 8000            # ~2k tokens per stored chunk
    focus_group_summary_chars: int = 8000   # Transcript prefix sent for summarisation
    max_upload_bytes: int = 10 * 1024 * 1024
    max_concurrent_extractions: int = 4

    # ============================================
    # MONGODB
    # ============================================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "marketlens"
    mongodb_max_pool_size: int = 20
    mongodb_min_pool_size: int = 1
    mongodb_server_selection_timeout_ms: int = 5000

    # ============================================
    # API SERVER
    # ============================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ============================================
    # OBSERVABILITY
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "staging", "production", "test"] = "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


# Convenience accessor for common use
settings = get_settings()
