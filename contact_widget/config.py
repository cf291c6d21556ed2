"""Application configuration"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Notion
    # Optional so a missing credential is reported per request instead of at import
    notion_api_key: Optional[str] = None
    notion_database_id: Optional[str] = None
    notion_api_url: str = "https://api.notion.com/v1/pages"
    notion_version: str = "2022-06-28"

    # reCAPTCHA
    recaptcha_secret_key: Optional[str] = None
    recaptcha_site_key: str = ""
    recaptcha_verify_url: str = "https://www.google.com/recaptcha/api/siteverify"

    # Injected at deploy time, baked into the widget configuration
    site_url: str = ""

    # Application
    environment: str = "development"
    cors_origins: list[str] = ["*"]
    http_timeout_seconds: float = 10.0

    # Rate limiting
    rate_limit_window_seconds: float = 60.0
    rate_limit_max_requests: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def notion_configured(self) -> bool:
        return bool(self.notion_api_key and self.notion_database_id)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
