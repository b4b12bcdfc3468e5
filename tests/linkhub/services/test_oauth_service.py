"""Tests for OAuthService."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from linkhub.config.settings import settings
from linkhub.exceptions import (
    AccountNotFoundError,
    OAuthStateError,
    PlatformNotConfiguredError,
)
from linkhub.models.oauth_state import OAuthState
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.core.oauth_service import OAuthService, pkce_challenge
from linkhub.services.platforms import AdapterRegistry, PlatformProfile, RefreshedToken


def fake_oauth_adapter(platform):
    adapter = Mock()
    adapter.platform = platform
    adapter.exchange_code = AsyncMock(
        return_value=RefreshedToken(
            access_token="oauth-access",
            refresh_token="oauth-refresh",
            expires_in_seconds=3600,
            scopes=["tweet.read", "tweet.write"],
        )
    )
    adapter.fetch_profile = AsyncMock(
        return_value=PlatformProfile(account_id="987", handle="LinkHubHQ", display_name="LinkHub", profile_data={"followers": 10})
    )
    return adapter


@pytest.fixture
def oauth_credentials():
    with patch.object(settings, "TWITTER_CLIENT_ID", "tw-id"), patch.object(
        settings, "TWITTER_CLIENT_SECRET", "tw-secret"
    ), patch.object(settings, "YOUTUBE_CLIENT_ID", "yt-id"), patch.object(settings, "YOUTUBE_CLIENT_SECRET", "yt-secret"):
        yield


@pytest.mark.unit
class TestOAuthService:
    @pytest.fixture
    def registry(self):
        registry = AdapterRegistry()
        registry.register(fake_oauth_adapter("twitter"))
        registry.register(fake_oauth_adapter("youtube"))
        return registry

    @pytest.fixture
    def service(self, test_db, registry, encryption, oauth_credentials):
        return OAuthService(registry=registry, db=test_db)

    def test_twitter_url_uses_pkce(self, service, test_db, user_id):
        url = service.generate_authorization_url(user_id, "twitter")

        query = parse_qs(urlparse(url).query)
        record = test_db.query(OAuthState).one()
        assert url.startswith("https://twitter.com/i/oauth2/authorize?")
        assert query["client_id"] == ["tw-id"]
        assert query["state"] == [record.state]
        assert query["code_challenge_method"] == ["S256"]
        assert query["code_challenge"] == [pkce_challenge(record.code_verifier)]
        assert query["redirect_uri"] == [f"{settings.OAUTH_REDIRECT_BASE_URL.rstrip('/')}/api/social/callback/twitter"]
        assert record.user_id == user_id

    def test_youtube_url_requests_offline_access(self, service, test_db, user_id):
        url = service.generate_authorization_url(user_id, "youtube")

        query = parse_qs(urlparse(url).query)
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert "code_challenge" not in query
        assert test_db.query(OAuthState).one().code_verifier is None

    def test_unconfigured_provider_rejected(self, service, user_id):
        with pytest.raises(PlatformNotConfiguredError):
            service.generate_authorization_url(user_id, "linkedin")

    def test_unknown_provider_rejected(self, service, user_id):
        with pytest.raises(PlatformNotConfiguredError, match="unknown provider"):
            service.generate_authorization_url(user_id, "myspace")

    def test_expired_states_purged_on_start(self, service, test_db, user_id):
        service.state_repo.create("stale", user_id, "twitter", datetime.utcnow() - timedelta(minutes=1))

        service.generate_authorization_url(user_id, "twitter")

        assert test_db.query(OAuthState).filter(OAuthState.state == "stale").first() is None

    def test_consume_state_is_single_use(self, service, user_id):
        service.state_repo.create("abc", user_id, "twitter", datetime.utcnow() + timedelta(minutes=5))

        assert service.consume_state("abc", "twitter").user_id == user_id
        with pytest.raises(OAuthStateError):
            service.consume_state("abc", "twitter")

    def test_consume_state_wrong_provider(self, service, user_id):
        service.state_repo.create("abc", user_id, "twitter", datetime.utcnow() + timedelta(minutes=5))

        with pytest.raises(OAuthStateError, match="different provider"):
            service.consume_state("abc", "youtube")

    def test_consume_state_expired(self, service, user_id):
        service.state_repo.create("abc", user_id, "twitter", datetime.utcnow() - timedelta(seconds=1))

        with pytest.raises(OAuthStateError, match="expired"):
            service.consume_state("abc", "twitter")

    @pytest.mark.asyncio
    async def test_exchange_and_store(self, service, registry, test_db, user_id, encryption):
        service.state_repo.create("abc", user_id, "twitter", datetime.utcnow() + timedelta(minutes=5), code_verifier="verifier")

        result = await service.exchange_and_store("twitter", "the-code", "abc")

        registry.get("twitter").exchange_code.assert_awaited_once_with("the-code", code_verifier="verifier")
        registry.get("twitter").fetch_profile.assert_awaited_once_with("oauth-access")
        assert result["account_handle"] == "linkhubhq"
        assert result["permissions"] == ["tweet.read", "tweet.write"]
        assert "access_token" not in result

        account = SocialAccountRepository(db=test_db).get_by_user_and_platform(user_id, "twitter")
        assert encryption.decrypt(account.access_token) == "oauth-access"
        assert encryption.decrypt(account.refresh_token) == "oauth-refresh"
        assert account.is_valid()
        assert test_db.query(OAuthState).count() == 0

    @pytest.mark.asyncio
    async def test_exchange_with_bad_state(self, service, registry):
        with pytest.raises(OAuthStateError):
            await service.exchange_and_store("twitter", "the-code", "forged")

        registry.get("twitter").exchange_code.assert_not_called()

    def test_disconnect(self, service, make_account, user_id):
        make_account(user_id, "twitter")

        account = service.disconnect(user_id, "twitter")

        assert account.is_revoked is True
        assert account.access_token == "REVOKED"
        assert service.list_accounts(user_id) == []

    def test_disconnect_missing(self, service, user_id):
        with pytest.raises(AccountNotFoundError):
            service.disconnect(user_id, "twitter")
