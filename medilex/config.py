"""
Configuration management for MediLex AI.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "MediLex AI"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    
    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000
    
    # ==========================================================================
    # Generative AI Provider
    # ==========================================================================
    gemini_api_key: Optional[str] = None
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_chat_model: str = "gemini-2.5-flash"
    enable_web_search: bool = True
    
    # ==========================================================================
    # Local Storage
    # ==========================================================================
    storage_path: str = "data/medilex.db"
    api_key_storage_key: str = "medilex_api_key"
    history_storage_key: str = "medilex_history"
    
    # ==========================================================================
    # Behavior
    # ==========================================================================
    history_limit: int = 20
    min_api_key_length: int = 10
    placeholder_image_url: str = "https://placehold.co/600x400?text={term}"
    
    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_per_minute: int = 30
    
    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def storage_file(self) -> Path:
        """Path to the key/value store database."""
        return Path(self.storage_path)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
