"""Scheduler service - promotes due posts into the publish queue."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from linkhub.exceptions import PostStateError
from linkhub.repositories.post_repository import PostRepository
from linkhub.services.base_service import BaseService
from linkhub.services.core import post_lifecycle
from linkhub.utils.logger import logger


class SchedulerService(BaseService):
    """Move scheduled posts whose time has come to 'queued'."""

    def __init__(self, db: Optional[Session] = None):
        super().__init__(db)
        self.post_repo = PostRepository(db)

    def promote_due_posts(self, now: Optional[datetime] = None, triggered_by: str = "scheduler") -> dict:
        """
        Queue every scheduled post with scheduled_at <= now, earliest first.

        Each post is promoted with a status-guarded update; a post that was
        cancelled or edited in the meantime is skipped. A failure on one post
        is logged and does not stop the rest.

        Returns:
            dict with due, queued, skipped, failed counts
        """
        now = now or datetime.utcnow()

        with self.track_execution(
            method_name="promote_due_posts",
            triggered_by=triggered_by,
        ) as run_id:
            due_posts = self.post_repo.find_due(now)
            results = {"due": len(due_posts), "queued": 0, "skipped": 0, "failed": 0}

            for post in due_posts:
                post_id = post.id
                try:
                    scheduled_at = post.scheduled_at
                    transition = post_lifecycle.promote(post, now)
                    if self.post_repo.apply_transition(transition):
                        results["queued"] += 1
                        logger.info(f"Queued post {post_id} (scheduled for {scheduled_at})")
                    else:
                        results["skipped"] += 1
                        logger.info(f"Post {post_id} changed status before it could be queued, skipping")
                except PostStateError as e:
                    results["skipped"] += 1
                    logger.info(f"Skipping post {post_id}: {e}")
                except Exception as e:
                    results["failed"] += 1
                    self.post_repo.rollback()
                    logger.error(f"Error queueing post {post_id}: {e}", exc_info=True)

            if results["due"]:
                logger.info(
                    f"Scheduler: {results['queued']} queued, "
                    f"{results['skipped']} skipped, {results['failed']} failed"
                )

            self.set_result_summary(run_id, results)
            return results
