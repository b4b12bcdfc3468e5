"""Tests for SocialAccountRepository against SQLite."""

from datetime import datetime, timedelta

import pytest

from linkhub.exceptions import AccountNotFoundError
from linkhub.repositories.social_account_repository import SocialAccountRepository


@pytest.mark.unit
class TestSocialAccountRepository:
    @pytest.fixture
    def repo(self, test_db):
        return SocialAccountRepository(db=test_db)

    def test_platform_lookup_is_case_insensitive(self, repo, make_account, user_id):
        account = make_account(user_id, "twitter")

        assert repo.get_by_user_and_platform(user_id, "Twitter").id == account.id

    def test_find_valid_excludes_expired_and_revoked(self, repo, make_account, user_id):
        valid = make_account(user_id, "twitter")
        make_account(user_id, "facebook", token_expires_at=datetime.utcnow() - timedelta(minutes=1))
        make_account(user_id, "linkedin", is_revoked=True)
        never_expires = make_account(user_id, "tiktok", token_expires_at=None)

        ids = {a.id for a in repo.find_valid(user_id)}

        assert ids == {valid.id, never_expires.id}

    def test_upsert_creates_then_reconnects(self, repo, user_id):
        created = repo.upsert_from_oauth(user_id, "Twitter", "42", "enc-access", account_handle="@LinkHub")
        repo.revoke(created.id)

        reconnected = repo.upsert_from_oauth(user_id, "twitter", "42", "enc-new", refresh_token="enc-refresh")

        assert reconnected.id == created.id
        assert reconnected.platform == "twitter"
        assert reconnected.is_active is True
        assert reconnected.is_revoked is False
        assert reconnected.revoked_at is None
        assert reconnected.access_token == "enc-new"
        assert reconnected.sync_status == "idle"

    def test_upsert_lowercases_handle(self, repo, user_id):
        account = repo.upsert_from_oauth(user_id, "twitter", "42", "enc", account_handle="LinkHub")

        assert account.account_handle == "linkhub"

    def test_revoke_scrubs_secrets(self, repo, make_account, user_id):
        account = make_account(user_id)

        revoked = repo.revoke(account.id)

        assert revoked.access_token == "REVOKED"
        assert revoked.refresh_token is None
        assert revoked.token_expires_at is None
        assert revoked.is_active is False
        assert revoked.is_revoked is True
        assert revoked.revoked_at is not None
        assert revoked.is_valid() is False

    def test_revoke_missing_account(self, repo):
        with pytest.raises(AccountNotFoundError):
            repo.revoke("00000000-0000-0000-0000-000000000000")

    def test_refresh_candidates_window(self, repo, make_account, user_id):
        now = datetime.utcnow()
        soon = make_account(user_id, "twitter", token_expires_at=now + timedelta(hours=2))
        make_account(user_id, "facebook", token_expires_at=now + timedelta(days=10))
        make_account(user_id, "tiktok", token_expires_at=None)
        make_account(user_id, "linkedin", token_expires_at=now + timedelta(hours=1), is_active=False)

        candidates = repo.get_refresh_candidates(now + timedelta(hours=24))

        assert [a.id for a in candidates] == [soon.id]

    def test_update_tokens_and_mark_failed(self, repo, make_account, user_id):
        account = make_account(user_id)
        repo.mark_sync_failed(account.id, "invalid_grant")
        assert repo.get_by_id(account.id).sync_status == "failed"

        expires = datetime.utcnow() + timedelta(hours=2)
        updated = repo.update_tokens(account.id, "enc-a", "enc-r", expires)

        assert updated.sync_status == "idle"
        assert updated.sync_error is None
        assert updated.token_expires_at == expires
        assert updated.last_sync_at is not None

    def test_update_tokens_keeps_values_not_returned(self, repo, make_account, user_id):
        expires = datetime.utcnow() + timedelta(hours=2)
        account = make_account(user_id, refresh_token="enc-old-refresh", token_expires_at=expires)

        updated = repo.update_tokens(account.id, "enc-new-access")

        assert updated.access_token == "enc-new-access"
        assert updated.refresh_token == "enc-old-refresh"
        assert updated.token_expires_at == expires

    def test_public_dict_has_no_tokens(self, make_account, user_id):
        data = make_account(user_id).to_public_dict()

        assert "access_token" not in data
        assert "refresh_token" not in data
        assert data["platform"] == "twitter"
