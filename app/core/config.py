"""Application configuration."""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./acaraje.db"
    database_echo: bool = False
    db_timeout_seconds: float = 10.0

    # Business
    business_name: str = "Acarajé e Abará do Louro"
    business_timezone: str = "America/Bahia"
    website_url: str = "https://acarajeeabaradolouro.netlify.app/"
    dashboard_cache_ttl_seconds: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> List[str]:
        """Comma-separated ALLOWED_ORIGINS as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
