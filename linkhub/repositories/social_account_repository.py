"""Social account repository - the token store."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_

from linkhub.config.constants import REVOKED_TOKEN_SENTINEL
from linkhub.exceptions import AccountNotFoundError
from linkhub.models.social_account import SocialAccount
from linkhub.repositories.base_repository import BaseRepository


class SocialAccountRepository(BaseRepository):
    """
    Repository for SocialAccount CRUD operations.

    Token columns are written exactly as given; callers encrypt before
    storing and decrypt after reading.
    """

    def get_by_id(self, account_id: str) -> Optional[SocialAccount]:
        """Get account by internal UUID."""
        return (
            self.db.query(SocialAccount)
            .filter(SocialAccount.id == self._to_uuid(account_id))
            .first()
        )

    def get_by_user_and_platform(self, user_id: str, platform: str) -> Optional[SocialAccount]:
        """Get the user's account on a platform (any state)."""
        return (
            self.db.query(SocialAccount)
            .filter(
                SocialAccount.user_id == self._to_uuid(user_id),
                SocialAccount.platform == platform.lower(),
            )
            .first()
        )

    def list_for_user(self, user_id: str) -> List[SocialAccount]:
        """All of a user's accounts, including revoked ones."""
        return (
            self.db.query(SocialAccount)
            .filter(SocialAccount.user_id == self._to_uuid(user_id))
            .order_by(SocialAccount.platform)
            .all()
        )

    def find_valid(self, user_id: str, now: Optional[datetime] = None) -> List[SocialAccount]:
        """Active, non-revoked accounts whose token has not expired."""
        now = now or datetime.utcnow()
        return (
            self.db.query(SocialAccount)
            .filter(
                SocialAccount.user_id == self._to_uuid(user_id),
                SocialAccount.is_active.is_(True),
                SocialAccount.is_revoked.is_(False),
                or_(
                    SocialAccount.token_expires_at.is_(None),
                    SocialAccount.token_expires_at > now,
                ),
            )
            .order_by(SocialAccount.platform)
            .all()
        )

    def get_all_active(self) -> List[SocialAccount]:
        """Every active, non-revoked account (all users)."""
        return (
            self.db.query(SocialAccount)
            .filter(SocialAccount.is_active.is_(True), SocialAccount.is_revoked.is_(False))
            .order_by(SocialAccount.platform)
            .all()
        )

    def get_refresh_candidates(self, window_end: datetime) -> List[SocialAccount]:
        """Active accounts whose token expires at or before window_end (expired included)."""
        return (
            self.db.query(SocialAccount)
            .filter(
                SocialAccount.is_active.is_(True),
                SocialAccount.is_revoked.is_(False),
                SocialAccount.token_expires_at.isnot(None),
                SocialAccount.token_expires_at <= window_end,
            )
            .order_by(SocialAccount.token_expires_at.asc())
            .all()
        )

    def get_expiring(self, now: datetime, window_end: datetime) -> List[SocialAccount]:
        """Active accounts whose token is still valid but expires before window_end."""
        return (
            self.db.query(SocialAccount)
            .filter(
                SocialAccount.is_active.is_(True),
                SocialAccount.is_revoked.is_(False),
                SocialAccount.token_expires_at > now,
                SocialAccount.token_expires_at <= window_end,
            )
            .order_by(SocialAccount.token_expires_at.asc())
            .all()
        )

    def upsert_from_oauth(
        self,
        user_id: str,
        platform: str,
        account_id: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        token_expires_at: Optional[datetime] = None,
        account_handle: Optional[str] = None,
        account_name: Optional[str] = None,
        profile_data: Optional[dict] = None,
        permissions: Optional[list] = None,
    ) -> SocialAccount:
        """
        Create the user's account for a platform, or reconnect the existing one.

        Reconnecting clears any revoked state and sync error.
        """
        platform = platform.lower()
        account = self.get_by_user_and_platform(user_id, platform)

        if account is None:
            account = SocialAccount(user_id=self._to_uuid(user_id), platform=platform)
            self.db.add(account)

        account.account_id = account_id
        account.account_handle = account_handle.lower() if account_handle else None
        account.account_name = account_name
        account.access_token = access_token
        account.refresh_token = refresh_token
        account.token_expires_at = token_expires_at
        account.profile_data = profile_data or {}
        account.permissions = permissions or []
        account.is_active = True
        account.is_revoked = False
        account.revoked_at = None
        account.sync_status = "idle"
        account.sync_error = None
        account.last_sync_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(account)
        return account

    def update_tokens(
        self,
        account_id: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        token_expires_at: Optional[datetime] = None,
    ) -> Optional[SocialAccount]:
        """
        Store refreshed tokens and mark the sync as healthy.

        A refresh token or expiry the provider didn't return (None) keeps
        the stored value.
        """
        account = self.get_by_id(account_id)
        if account:
            account.access_token = access_token
            if refresh_token is not None:
                account.refresh_token = refresh_token
            if token_expires_at is not None:
                account.token_expires_at = token_expires_at
            account.sync_status = "idle"
            account.sync_error = None
            account.last_sync_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(account)
        return account

    def mark_sync_failed(self, account_id: str, error: str) -> Optional[SocialAccount]:
        """Record a failed refresh attempt."""
        account = self.get_by_id(account_id)
        if account:
            account.sync_status = "failed"
            account.sync_error = error
            self.db.commit()
            self.db.refresh(account)
        return account

    def revoke(self, account_id: str) -> SocialAccount:
        """
        Disconnect an account and scrub its secrets.

        Raises:
            AccountNotFoundError: If no account has this ID
        """
        account = self.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()

        account.is_active = False
        account.is_revoked = True
        account.revoked_at = datetime.utcnow()
        account.access_token = REVOKED_TOKEN_SENTINEL
        account.refresh_token = None
        account.token_expires_at = None
        self.db.commit()
        self.db.refresh(account)
        return account
