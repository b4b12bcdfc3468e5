"""Application settings and configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database Configuration
    DATABASE_URL: Optional[str] = None  # Full URL (overrides DB_* components if set)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "linkhub"
    DB_USER: str = "linkhub_user"
    DB_PASSWORD: Optional[str] = ""
    DB_SSLMODE: Optional[str] = None  # e.g., "require" for managed Postgres
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Security (required for token encryption)
    ENCRYPTION_KEY: Optional[str] = None  # Fernet key for encrypting tokens in DB

    # OAuth
    OAUTH_REDIRECT_BASE_URL: str = "http://localhost:8000"  # e.g., "https://api.linkhub.io"
    TWITTER_CLIENT_ID: Optional[str] = None
    TWITTER_CLIENT_SECRET: Optional[str] = None
    FACEBOOK_APP_ID: Optional[str] = None
    FACEBOOK_APP_SECRET: Optional[str] = None
    INSTAGRAM_APP_ID: Optional[str] = None
    INSTAGRAM_APP_SECRET: Optional[str] = None
    LINKEDIN_CLIENT_ID: Optional[str] = None
    LINKEDIN_CLIENT_SECRET: Optional[str] = None
    YOUTUBE_CLIENT_ID: Optional[str] = None
    YOUTUBE_CLIENT_SECRET: Optional[str] = None
    TIKTOK_CLIENT_KEY: Optional[str] = None
    TIKTOK_CLIENT_SECRET: Optional[str] = None

    # Background workers
    SCHEDULER_INTERVAL_SECONDS: int = 60
    PUBLISHER_INTERVAL_SECONDS: int = 60
    TOKEN_REFRESH_INTERVAL_SECONDS: int = 3600  # 1 hour
    PUBLISHER_BATCH_SIZE: int = 10
    ADAPTER_TIMEOUT_SECONDS: float = 30.0

    # API server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Development Settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    @property
    def database_url(self) -> str:
        """Get database URL for SQLAlchemy.

        If DATABASE_URL is set, use it directly (standard for PaaS platforms).
        Otherwise, assemble from individual DB_* components.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if self.DB_PASSWORD:
            url = f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        else:
            url = f"postgresql://{self.DB_USER}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.DB_SSLMODE:
            url += f"?sslmode={self.DB_SSLMODE}"
        return url

    def oauth_credentials(self, provider: str) -> tuple[Optional[str], Optional[str]]:
        """Return (client_id, client_secret) for a provider."""
        return {
            "twitter": (self.TWITTER_CLIENT_ID, self.TWITTER_CLIENT_SECRET),
            "facebook": (self.FACEBOOK_APP_ID, self.FACEBOOK_APP_SECRET),
            "instagram": (
                self.INSTAGRAM_APP_ID or self.FACEBOOK_APP_ID,
                self.INSTAGRAM_APP_SECRET or self.FACEBOOK_APP_SECRET,
            ),
            "linkedin": (self.LINKEDIN_CLIENT_ID, self.LINKEDIN_CLIENT_SECRET),
            "youtube": (self.YOUTUBE_CLIENT_ID, self.YOUTUBE_CLIENT_SECRET),
            "tiktok": (self.TIKTOK_CLIENT_KEY, self.TIKTOK_CLIENT_SECRET),
        }.get(provider, (None, None))


# Global settings instance
settings = Settings()
