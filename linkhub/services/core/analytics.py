"""Analytics service - pulls engagement metrics for a connected account."""

from typing import List, Optional

from sqlalchemy.orm import Session

from linkhub.exceptions import AccountNotFoundError, PlatformNotConfiguredError
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.base_service import BaseService
from linkhub.services.platforms import (
    AccountCredentials,
    AdapterRegistry,
    AnalyticsRecord,
    default_registry,
)
from linkhub.utils.encryption import TokenEncryption


class AnalyticsService(BaseService):
    """Best-effort engagement metrics through the platform adapters."""

    def __init__(self, registry: Optional[AdapterRegistry] = None, db: Optional[Session] = None):
        super().__init__(db)
        self.account_repo = SocialAccountRepository(db)
        self.registry = registry or default_registry()

    async def fetch_account_analytics(self, user_id, platform: str) -> List[AnalyticsRecord]:
        """
        Recent per-post metrics for the user's account on one platform.

        Raises:
            AccountNotFoundError: No usable account for that platform
            PlatformNotConfiguredError: No adapter registered
        """
        with self.track_execution(
            method_name="fetch_account_analytics",
            user_id=user_id,
            triggered_by="cli",
            input_params={"platform": platform},
        ) as run_id:
            adapter = self.registry.get(platform)
            if adapter is None:
                raise PlatformNotConfiguredError(platform)

            account = self.account_repo.get_by_user_and_platform(user_id, platform)
            if account is None or not account.is_valid():
                raise AccountNotFoundError(platform=platform)

            credentials = AccountCredentials.from_account(account, TokenEncryption())
            self.account_repo.end_read_transaction()

            records = await adapter.fetch_analytics(credentials)
            self.set_result_summary(run_id, {"platform": platform, "records": len(records)})
            return records
