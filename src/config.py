"""
Configuration management for the Vocabulary Flashcard Trainer
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Telegram Bot Configuration
    telegram_bot_token: str = Field(...)
    allowed_users: str = Field(default="")

    # Word list sources
    pages_base: str = Field(default="data")  # directory or http(s) URL
    word_list_folder: str = Field(default="lws")
    total_pages: int = Field(default=25, ge=1)

    # Card pool policy
    recent_capacity: int = Field(default=6, ge=1)
    recycle_low_water_mark: int = Field(default=10, ge=0)
    prefetch_threshold: int = Field(default=20, ge=0)
    prefetch_batch_size: int = Field(default=2, ge=1)
    initial_pages: int = Field(default=2, ge=1)

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/flashcards.db")

    # Translation Configuration
    translation_provider: str = Field(default="mymemory")
    source_language: str = Field(default="de")
    target_language: str = Field(default="bn")
    mymemory_url: str = Field(default="https://api.mymemory.translated.net/get")
    openai_api_key: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4")
    api_timeout: int = Field(default=30)

    # Application Configuration
    log_level: str = Field(default="INFO")
    polling_interval: float = Field(default=1.0)

    @property
    def allowed_users_list(self) -> list[int]:
        """Convert allowed_users string to list of integers"""
        if not self.allowed_users.strip():
            return []
        # Parse comma-separated string of user IDs
        return [
            int(user_id.strip())
            for user_id in self.allowed_users.split(",")
            if user_id.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path() -> str:
    """Get the database file path from URL"""
    settings = get_settings()
    if settings.database_url.startswith("sqlite:///"):
        return settings.database_url.replace("sqlite:///", "")
    return "data/flashcards.db"
