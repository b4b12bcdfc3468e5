"""OAuth service - connects social accounts through the provider redirect flow."""

import base64
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from linkhub.config.constants import OAUTH_STATE_TTL_SECONDS
from linkhub.config.oauth import ProviderConfig, get_provider_config
from linkhub.exceptions import (
    AccountNotFoundError,
    OAuthStateError,
    PlatformNotConfiguredError,
)
from linkhub.models.oauth_state import OAuthState
from linkhub.models.social_account import SocialAccount
from linkhub.repositories.oauth_state_repository import OAuthStateRepository
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.base_service import BaseService
from linkhub.services.platforms import AdapterRegistry, default_registry
from linkhub.utils.encryption import TokenEncryption
from linkhub.utils.logger import logger


def pkce_challenge(verifier: str) -> str:
    """S256 code challenge for a PKCE verifier."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class OAuthService(BaseService):
    """
    Orchestrate the OAuth redirect flow for every supported provider.

    Handles:
    - Issuing single-use state tokens (CSRF protection), with a PKCE
      verifier for providers that require one
    - Exchanging auth codes for tokens
    - Creating/updating the user's SocialAccount with encrypted tokens
    - Disconnecting (revoking) accounts
    """

    def __init__(self, registry: Optional[AdapterRegistry] = None, db: Optional[Session] = None):
        super().__init__(db)
        self.state_repo = OAuthStateRepository(db)
        self.account_repo = SocialAccountRepository(db)
        self.registry = registry or default_registry()
        self._encryption: Optional[TokenEncryption] = None

    @property
    def encryption(self) -> TokenEncryption:
        """Lazy-load encryption to avoid errors when ENCRYPTION_KEY not set."""
        if self._encryption is None:
            self._encryption = TokenEncryption()
        return self._encryption

    def _validate_oauth_config(self, provider: str) -> ProviderConfig:
        """
        Raises:
            PlatformNotConfiguredError: Unknown provider or missing client credentials
        """
        config = get_provider_config(provider)
        if config is None:
            raise PlatformNotConfiguredError(provider, reason="unknown provider")
        if not config.is_configured:
            raise PlatformNotConfiguredError(provider, reason="missing client credentials")
        if self.registry.get(provider) is None:
            raise PlatformNotConfiguredError(provider, reason="no adapter registered")
        return config

    def generate_authorization_url(self, user_id, provider: str) -> str:
        """
        Build the provider's authorization URL and remember the state.

        Returns:
            Full provider authorization URL

        Raises:
            PlatformNotConfiguredError: If the provider can't be used
        """
        provider = provider.lower()
        config = self._validate_oauth_config(provider)

        self.state_repo.delete_expired()

        state = secrets.token_hex(32)
        code_verifier = secrets.token_urlsafe(64) if config.uses_pkce else None
        self.state_repo.create(
            state=state,
            user_id=user_id,
            provider=provider,
            expires_at=datetime.utcnow() + timedelta(seconds=OAUTH_STATE_TTL_SECONDS),
            code_verifier=code_verifier,
        )

        params = {
            config.client_id_param: config.client_id,
            "redirect_uri": config.callback_url,
            "scope": config.scope_separator.join(config.scopes),
            "response_type": "code",
            "state": state,
        }
        if code_verifier:
            params["code_challenge"] = pkce_challenge(code_verifier)
            params["code_challenge_method"] = "S256"
        params.update(dict(config.extra_auth_params))

        logger.info(f"Started {provider} OAuth flow for user {user_id}")
        return f"{config.auth_url}?{urlencode(params)}"

    def consume_state(self, state: str, provider: str) -> OAuthState:
        """
        Look up and delete a pending state. Single use.

        Raises:
            OAuthStateError: If missing, expired, or issued for another provider
        """
        record = self.state_repo.get_by_state(state) if state else None
        if record is None:
            raise OAuthStateError("Invalid or unknown OAuth state")

        # Delete before validating so a rejected state can't be replayed
        self.state_repo.delete(record)

        if record.provider != provider.lower():
            raise OAuthStateError("OAuth state was issued for a different provider")
        if record.is_expired():
            raise OAuthStateError("OAuth state has expired; start again")
        return record

    async def exchange_and_store(self, provider: str, code: str, state: str) -> dict:
        """
        Complete the callback: exchange the code and store the account.

        Flow:
        1. Consume the state (identifies the user, carries the PKCE verifier)
        2. Exchange the code for tokens
        3. Fetch the account profile with the new access token
        4. Create or update the SocialAccount with encrypted tokens

        Returns:
            The account's public dict (no tokens)

        Raises:
            OAuthStateError, PlatformNotConfiguredError, PlatformAPIError
        """
        provider = provider.lower()
        with self.track_execution(
            method_name="exchange_and_store",
            triggered_by="user",
            input_params={"provider": provider},
        ) as run_id:
            self._validate_oauth_config(provider)
            record = self.consume_state(state, provider)
            user_id = record.user_id
            adapter = self.registry.get(provider)

            token = await adapter.exchange_code(code, code_verifier=record.code_verifier)
            profile = await adapter.fetch_profile(token.access_token)

            expires_at = None
            if token.expires_in_seconds:
                expires_at = datetime.utcnow() + timedelta(seconds=token.expires_in_seconds)

            account = self.account_repo.upsert_from_oauth(
                user_id=user_id,
                platform=provider,
                account_id=profile.account_id,
                access_token=self.encryption.encrypt(token.access_token),
                refresh_token=self.encryption.encrypt_optional(token.refresh_token),
                token_expires_at=expires_at,
                account_handle=profile.handle,
                account_name=profile.display_name,
                profile_data=profile.profile_data,
                permissions=token.scopes,
            )

            logger.info(f"OAuth: Connected {provider} account {profile.handle or profile.account_id} for user {user_id}")
            result = account.to_public_dict()
            self.set_result_summary(run_id, {"provider": provider, "account_id": profile.account_id})
            return result

    def list_accounts(self, user_id) -> list:
        """The user's usable connected accounts."""
        accounts = self.account_repo.find_valid(user_id)
        self.account_repo.end_read_transaction()
        return accounts

    def disconnect(self, user_id, provider: str) -> SocialAccount:
        """
        Revoke the user's account for a provider.

        Raises:
            AccountNotFoundError: If the user has no account on that platform
        """
        account = self.account_repo.get_by_user_and_platform(user_id, provider)
        if account is None:
            raise AccountNotFoundError(platform=provider)

        account = self.account_repo.revoke(account.id)
        logger.info(f"Disconnected {provider} account {account.account_id} for user {user_id}")
        return account
