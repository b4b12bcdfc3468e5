"""Token encryption for provider credentials at rest."""

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from linkhub.config.constants import REVOKED_TOKEN_SENTINEL
from linkhub.config.settings import settings
from linkhub.utils.logger import logger


class TokenEncryption:
    """
    Encrypt/decrypt OAuth tokens for database storage.

    Uses Fernet symmetric encryption. The key lives in .env as ENCRYPTION_KEY;
    rotating it makes every stored token unreadable, so accounts must reconnect.

    Usage:
        encryption = TokenEncryption()
        stored = encryption.encrypt(access_token)
        access_token = encryption.decrypt(stored)
    """

    _instance: Optional["TokenEncryption"] = None
    _cipher: Optional[Fernet] = None

    def __new__(cls) -> "TokenEncryption":
        """Singleton - reuse cipher instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._cipher is not None:
            return

        key = settings.ENCRYPTION_KEY
        if not key:
            raise ValueError(
                "ENCRYPTION_KEY not configured. "
                'Generate one with: python -c "from linkhub.utils.encryption import TokenEncryption; print(TokenEncryption.generate_key())"'
            )

        try:
            self._cipher = Fernet(key.encode())
        except Exception as e:
            raise ValueError(f"Invalid ENCRYPTION_KEY format: {e}")

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a token. Returns a base64 string safe for a text column."""
        if not plaintext:
            raise ValueError("Cannot encrypt empty string")

        return self._cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a stored token.

        Raises:
            ValueError: If the token was revoked or decryption fails (wrong key or corrupted data)
        """
        if not ciphertext:
            raise ValueError("Cannot decrypt empty string")
        if ciphertext == REVOKED_TOKEN_SENTINEL:
            raise ValueError("Token has been revoked; reconnect the account")

        try:
            return self._cipher.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed - key mismatch or corrupted data")
            raise ValueError(
                "Failed to decrypt token. "
                "This may indicate the ENCRYPTION_KEY has changed or data is corrupted."
            )

    def encrypt_optional(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt a token some platforms omit (refresh tokens); None stays None."""
        return self.encrypt(plaintext) if plaintext else None

    def decrypt_optional(self, ciphertext: Optional[str]) -> Optional[str]:
        return self.decrypt(ciphertext) if ciphertext else None

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key for ENCRYPTION_KEY."""
        return Fernet.generate_key().decode()

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (tests, key rotation)."""
        cls._instance = None
        cls._cipher = None
