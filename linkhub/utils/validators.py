"""Configuration validation."""

from typing import List, Tuple

from cryptography.fernet import Fernet

from linkhub.config.constants import PLATFORMS
from linkhub.config.settings import settings


class ConfigValidator:
    """Validate configuration on startup."""

    @staticmethod
    def validate_all() -> Tuple[bool, List[str]]:
        """
        Validate all configuration settings.

        Returns:
            (is_valid, error_messages)
        """
        errors = []

        if not settings.ENCRYPTION_KEY:
            errors.append("ENCRYPTION_KEY is required")
        else:
            try:
                Fernet(settings.ENCRYPTION_KEY.encode())
            except Exception:
                errors.append("ENCRYPTION_KEY is not a valid Fernet key")

        if not settings.DATABASE_URL and not settings.DB_NAME:
            errors.append("DATABASE_URL or DB_NAME is required")

        for name in (
            "SCHEDULER_INTERVAL_SECONDS",
            "PUBLISHER_INTERVAL_SECONDS",
            "TOKEN_REFRESH_INTERVAL_SECONDS",
        ):
            if getattr(settings, name) < 1:
                errors.append(f"{name} must be at least 1")

        if settings.PUBLISHER_BATCH_SIZE < 1:
            errors.append("PUBLISHER_BATCH_SIZE must be at least 1")

        if settings.ADAPTER_TIMEOUT_SECONDS <= 0:
            errors.append("ADAPTER_TIMEOUT_SECONDS must be positive")

        if not settings.OAUTH_REDIRECT_BASE_URL.startswith(("http://", "https://")):
            errors.append("OAUTH_REDIRECT_BASE_URL must be an http(s) URL")

        is_valid = len(errors) == 0
        return is_valid, errors

    @staticmethod
    def configured_platforms() -> List[str]:
        """Platforms whose OAuth client credentials are present."""
        return [p for p in PLATFORMS if all(settings.oauth_credentials(p))]
