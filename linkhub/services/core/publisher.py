"""Publisher service - publishes queued posts to their target platforms."""

import asyncio
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from linkhub.config.settings import settings
from linkhub.repositories.post_repository import PostRepository
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.base_service import BaseService
from linkhub.services.core import post_lifecycle
from linkhub.services.core.notification_service import NotificationService
from linkhub.services.platforms import (
    AccountCredentials,
    AdapterRegistry,
    PostContent,
    PublishResult,
    default_registry,
)
from linkhub.utils.encryption import TokenEncryption
from linkhub.utils.logger import logger

NO_PUBLISHER_ERROR = "No publisher configured"
NO_ACCOUNT_ERROR = "No connected account or invalid token"

OUTCOMES = {"published": "published", "scheduled": "retrying", "failed": "failed"}


class PublisherService(BaseService):
    """
    Publish queued posts.

    Posts are handled one at a time; within a post, every platform is
    called concurrently and each call is bounded by ADAPTER_TIMEOUT_SECONDS.

    Flow per post:
    1. Claim (queued -> publishing, guarded; skip if another worker won)
    2. Resolve an adapter and a valid connected account per platform
    3. Fan out adapter.publish calls and collect per-platform results
    4. Apply published / retry / failed and emit notifications

    Usage:
        service = PublisherService()
        result = await service.process_queue()
        # {"processed": 2, "published": 1, "retrying": 1, "failed": 0, "skipped": 0}
    """

    def __init__(self, registry: Optional[AdapterRegistry] = None, db: Optional[Session] = None):
        super().__init__(db)
        self.post_repo = PostRepository(db)
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

    async def process_queue(self, limit: Optional[int] = None, triggered_by: str = "scheduler") -> dict:
        """
        Publish up to `limit` queued posts, earliest scheduled first.

        Returns:
            dict with processed, published, retrying, failed, skipped counts
        """
        limit = limit or settings.PUBLISHER_BATCH_SIZE

        with self.track_execution(
            method_name="process_queue",
            triggered_by=triggered_by,
            input_params={"limit": limit},
        ) as run_id:
            post_ids = [post.id for post in self.post_repo.get_queued(limit)]
            self.post_repo.end_read_transaction()

            results = {"processed": 0, "published": 0, "retrying": 0, "failed": 0, "skipped": 0}

            for post_id in post_ids:
                try:
                    outcome = await self.publish_post(post_id)
                except Exception as e:
                    # Post stays 'publishing' if its result could not be written
                    logger.error(f"Error publishing post {post_id}: {e}", exc_info=True)
                    self.post_repo.rollback()
                    outcome = "failed"

                results[outcome] += 1
                if outcome != "skipped":
                    results["processed"] += 1

            if post_ids:
                logger.info(
                    f"Processed {results['processed']} posts: {results['published']} published, "
                    f"{results['retrying']} retrying, {results['failed']} failed, "
                    f"{results['skipped']} skipped"
                )

            self.set_result_summary(run_id, results)
            return results

    async def publish_post(self, post_id) -> str:
        """
        Run the full publish procedure for one queued post.

        Returns:
            'published', 'retrying', 'failed' or 'skipped'
        """
        post = self.post_repo.get_by_id(post_id)
        if post is None or post.status != "queued":
            return "skipped"

        if not self.post_repo.apply_transition(post_lifecycle.claim(post, datetime.utcnow())):
            logger.info(f"Post {post_id} was claimed or changed by someone else, skipping")
            return "skipped"

        post = self.post_repo.get_by_id(post_id)
        try:
            results = await self._publish_to_platforms(post)
            transition = post_lifecycle.resolve_publish_outcome(post, results, datetime.utcnow())
        except Exception as e:
            logger.error(f"Publish procedure failed for post {post_id}: {e}", exc_info=True)
            self.post_repo.rollback()
            post = self.post_repo.get_by_id(post_id)
            transition = post_lifecycle.resolve_publish_error(post, str(e), datetime.utcnow())

        if not self.post_repo.apply_transition(transition):
            logger.warning(f"Post {post_id} left 'publishing' unexpectedly; result not recorded")
            return "skipped"

        self.notification_service.execute(transition.notifications)

        if transition.to_status == "scheduled":
            logger.info(
                f"Post {post_id} will retry at {transition.changes['scheduled_at']} "
                f"(attempt {transition.changes['attempts']})"
            )
        else:
            logger.info(f"Post {post_id} {transition.to_status}")

        return OUTCOMES[transition.to_status]

    async def _publish_to_platforms(self, post) -> Dict[str, dict]:
        """Call every target platform; returns {platform: {success, data | error}}."""
        content = PostContent.from_post(post)
        accounts = {account.platform: account for account in self.account_repo.find_valid(post.user_id)}

        results: Dict[str, dict] = {}
        calls = {}

        for platform in post.platforms:
            adapter = self.registry.get(platform)
            if adapter is None:
                results[platform] = PublishResult(success=False, error=NO_PUBLISHER_ERROR).to_dict()
                continue

            account = accounts.get(platform)
            if account is None:
                results[platform] = PublishResult(success=False, error=NO_ACCOUNT_ERROR).to_dict()
                continue

            try:
                credentials = AccountCredentials.from_account(account, self.encryption)
            except ValueError as e:
                logger.error(f"Unreadable {platform} token for account {account.id}: {e}")
                results[platform] = PublishResult(success=False, error=NO_ACCOUNT_ERROR).to_dict()
                continue

            calls[platform] = self._call_adapter(adapter, content, credentials)

        if calls:
            outcomes = await asyncio.gather(*calls.values())
            for platform, outcome in zip(calls, outcomes):
                results[platform] = outcome.to_dict()

        return {platform: results[platform] for platform in post.platforms}

    async def _call_adapter(self, adapter, content: PostContent, credentials: AccountCredentials) -> PublishResult:
        """adapter.publish under the adapter timeout; never raises."""
        timeout = settings.ADAPTER_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(adapter.publish(content, credentials), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[{adapter.platform}] Publish of post {content.post_id} timed out after {timeout}s")
            return PublishResult(success=False, error=f"Timed out after {timeout}s")
        except Exception as e:
            logger.error(f"[{adapter.platform}] Adapter raised during publish: {e}", exc_info=True)
            return PublishResult(success=False, error=str(e))
