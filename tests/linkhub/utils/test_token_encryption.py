"""Tests for token encryption utility."""

import pytest
from unittest.mock import patch

from cryptography.fernet import Fernet

from linkhub.utils.encryption import TokenEncryption


@pytest.mark.unit
class TestTokenEncryption:
    @pytest.fixture(autouse=True)
    def reset_singleton(self):
        TokenEncryption.reset()
        yield
        TokenEncryption.reset()

    def test_generate_key_produces_valid_fernet_key(self):
        key = TokenEncryption.generate_key()

        assert len(key) == 44
        Fernet(key.encode())

    @patch("linkhub.utils.encryption.settings")
    def test_encrypt_decrypt_roundtrip(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()
        encryption = TokenEncryption()

        encrypted = encryption.encrypt("access-token-123")

        assert encrypted != "access-token-123"
        assert encryption.decrypt(encrypted) == "access-token-123"

    @patch("linkhub.utils.encryption.settings")
    def test_singleton(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()

        assert TokenEncryption() is TokenEncryption()

    @patch("linkhub.utils.encryption.settings")
    def test_missing_key_raises(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = None

        with pytest.raises(ValueError, match="ENCRYPTION_KEY not configured"):
            TokenEncryption()

    @patch("linkhub.utils.encryption.settings")
    def test_invalid_key_raises(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = "not-a-fernet-key"

        with pytest.raises(ValueError, match="Invalid ENCRYPTION_KEY"):
            TokenEncryption()

    @patch("linkhub.utils.encryption.settings")
    def test_decrypt_with_other_key_fails(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()
        encrypted = TokenEncryption().encrypt("secret")

        TokenEncryption.reset()
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()

        with pytest.raises(ValueError, match="Failed to decrypt"):
            TokenEncryption().decrypt(encrypted)

    @patch("linkhub.utils.encryption.settings")
    def test_empty_values_rejected(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()
        encryption = TokenEncryption()

        with pytest.raises(ValueError):
            encryption.encrypt("")
        with pytest.raises(ValueError):
            encryption.decrypt("")

    @patch("linkhub.utils.encryption.settings")
    def test_revoked_sentinel_not_decryptable(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()

        with pytest.raises(ValueError, match="revoked"):
            TokenEncryption().decrypt("REVOKED")

    @patch("linkhub.utils.encryption.settings")
    def test_optional_helpers_pass_none_through(self, mock_settings):
        mock_settings.ENCRYPTION_KEY = Fernet.generate_key().decode()
        encryption = TokenEncryption()

        assert encryption.encrypt_optional(None) is None
        assert encryption.decrypt_optional(None) is None
        assert encryption.decrypt_optional(encryption.encrypt_optional("refresh")) == "refresh"
