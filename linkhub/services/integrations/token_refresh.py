"""Token refresh service - keeps connected accounts' OAuth tokens alive."""
import asyncio
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from linkhub.config.constants import TOKEN_ALERT_WINDOW_DAYS, TOKEN_REFRESH_WINDOW_HOURS
from linkhub.config.settings import settings
from linkhub.exceptions import AccountNotFoundError
from linkhub.models.social_account import SocialAccount
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.base_service import BaseService
from linkhub.services.core.notification_service import NotificationService
from linkhub.services.platforms import AdapterRegistry, default_registry
from linkhub.utils.encryption import TokenEncryption
from linkhub.utils.logger import logger


class TokenRefreshService(BaseService):
    """
    Manage OAuth token lifetimes for connected social accounts.

    Handles:
    - Refresh pass: accounts expiring within 24h get a new token
    - Expiry-alert pass: accounts expiring within 3 days get a
      'token_expiring' notification (at most one per account per 24h)
    - On-demand refresh of a single user's account

    Usage:
        service = TokenRefreshService()
        await service.run_cycle()
        await service.refresh_account_for_user_provider(user_id, "twitter")
    """

    def __init__(self, registry: Optional[AdapterRegistry] = None, db: Optional[Session] = None):
        super().__init__(db)
        self.account_repo = SocialAccountRepository(db)
        self.notification_service = NotificationService(db)
        self.registry = registry or default_registry()
        self._encryption: Optional[TokenEncryption] = None

    @property
    def encryption(self) -> TokenEncryption:
        """Lazy-load encryption to avoid errors when ENCRYPTION_KEY not set."""
        if self._encryption is None:
            self._encryption = TokenEncryption()
        return self._encryption

    def _cannot_refresh(self, account: SocialAccount, error: str) -> bool:
        """Mark the account failed and ask the user to reconnect."""
        logger.warning(f"Cannot refresh {account.platform} account {account.id}: {error}")
        self.account_repo.mark_sync_failed(account.id, error)
        self.notification_service.notify_token_expiring(
            account.user_id, account.id, account.platform, account.hours_until_expiry()
        )
        return False

    async def refresh_account(self, account: SocialAccount) -> bool:
        """
        Refresh one account's access token.

        Errors are recorded on the account (sync_status='failed',
        sync_error=message) rather than raised.

        Returns:
            True if new tokens were stored
        """
        platform = account.platform
        adapter = self.registry.get(platform)

        if adapter is None:
            return self._cannot_refresh(account, f"No refresher configured for provider: {platform}")

        stored_token = account.access_token if adapter.refreshes_with_access_token else account.refresh_token
        if not stored_token:
            return self._cannot_refresh(account, "No refresh token available; reconnect the account")

        timeout = settings.ADAPTER_TIMEOUT_SECONDS
        try:
            current = self.encryption.decrypt(stored_token)
            refreshed = await asyncio.wait_for(adapter.refresh_token(current), timeout=timeout)
        except asyncio.TimeoutError:
            error = f"Token refresh timed out after {timeout}s"
        except Exception as e:
            error = str(e)
        else:
            expires_at = None
            if refreshed.expires_in_seconds:
                expires_at = datetime.utcnow() + timedelta(seconds=refreshed.expires_in_seconds)

            stored = self.account_repo.update_tokens(
                account.id,
                access_token=self.encryption.encrypt(refreshed.access_token),
                refresh_token=self.encryption.encrypt_optional(refreshed.refresh_token),
                token_expires_at=expires_at,
            )
            expiry = stored.token_expires_at if stored else expires_at
            logger.info(
                f"Refreshed {platform} token for account {account.id}. "
                f"Expires: {expiry.isoformat() if expiry else 'never'}"
                f"{'' if expires_at else ' (unchanged)'}"
            )
            return True

        logger.error(f"Token refresh failed for {platform} account {account.id}: {error}")
        self.account_repo.mark_sync_failed(account.id, error)
        return False

    async def refresh_expiring_accounts(self, now: Optional[datetime] = None, triggered_by: str = "scheduler") -> dict:
        """
        Refresh every active account whose token expires within the refresh window.

        Returns:
            dict with candidates, refreshed, failed counts
        """
        now = now or datetime.utcnow()

        with self.track_execution(method_name="refresh_expiring_accounts", triggered_by=triggered_by) as run_id:
            candidates = self.account_repo.get_refresh_candidates(now + timedelta(hours=TOKEN_REFRESH_WINDOW_HOURS))
            results = {"candidates": len(candidates), "refreshed": 0, "failed": 0}

            for account in candidates:
                account_id = account.id
                try:
                    success = await self.refresh_account(account)
                except Exception as e:
                    logger.error(f"Error refreshing account {account_id}: {e}", exc_info=True)
                    self.account_repo.rollback()
                    success = False

                results["refreshed" if success else "failed"] += 1

            logger.info(
                f"Token refresh complete: {results['refreshed']} refreshed, "
                f"{results['failed']} failed ({results['candidates']} candidates)"
            )
            self.set_result_summary(run_id, results)
            return results

    def send_expiry_alerts(self, now: Optional[datetime] = None, triggered_by: str = "scheduler") -> dict:
        """
        Notify owners of accounts whose token expires within the alert window.

        Returns:
            dict with expiring, notified, skipped counts
        """
        now = now or datetime.utcnow()

        with self.track_execution(method_name="send_expiry_alerts", triggered_by=triggered_by) as run_id:
            expiring = self.account_repo.get_expiring(now, now + timedelta(days=TOKEN_ALERT_WINDOW_DAYS))
            results = {"expiring": len(expiring), "notified": 0, "skipped": 0}

            for account in expiring:
                notification = self.notification_service.notify_token_expiring(
                    account.user_id, account.id, account.platform, account.hours_until_expiry(now)
                )
                results["notified" if notification else "skipped"] += 1

            self.set_result_summary(run_id, results)
            return results

    async def run_cycle(self, triggered_by: str = "scheduler") -> dict:
        """One hourly tick: refresh pass, then expiry-alert pass. Each pass runs even if the other fails."""
        summary = {}
        try:
            summary["refresh"] = await self.refresh_expiring_accounts(triggered_by=triggered_by)
        except Exception as e:
            logger.error(f"Token refresh pass failed: {e}", exc_info=True)
            summary["refresh"] = {"error": str(e)}

        try:
            summary["alerts"] = self.send_expiry_alerts(triggered_by=triggered_by)
        except Exception as e:
            logger.error(f"Token expiry alert pass failed: {e}", exc_info=True)
            summary["alerts"] = {"error": str(e)}

        return summary

    async def refresh_account_for_user_provider(self, user_id, platform: str) -> SocialAccount:
        """
        Refresh one user's account on demand.

        Returns:
            The account after the attempt (check sync_status / sync_error)

        Raises:
            AccountNotFoundError: If the user has no account on that platform
        """
        with self.track_execution(
            method_name="refresh_account_for_user_provider",
            user_id=user_id,
            triggered_by="user",
            input_params={"platform": platform},
        ) as run_id:
            account = self.account_repo.get_by_user_and_platform(user_id, platform)
            if account is None:
                raise AccountNotFoundError(platform=platform)

            success = await self.refresh_account(account)
            self.set_result_summary(run_id, {"platform": platform, "success": success})
            return self.account_repo.get_by_id(account.id)

    def check_account_health(self, account: SocialAccount, now: Optional[datetime] = None) -> dict:
        """Token status summary for CLI display."""
        now = now or datetime.utcnow()
        hours = account.hours_until_expiry(now)
        return {
            "valid": account.is_valid(now),
            "expires_at": account.token_expires_at,
            "expires_in_hours": hours,
            "needs_refresh": hours is not None and hours <= TOKEN_REFRESH_WINDOW_HOURS,
            "sync_status": account.sync_status,
            "error": account.sync_error,
        }
