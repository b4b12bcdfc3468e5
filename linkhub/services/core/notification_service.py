"""Notification service - records user-facing events."""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from linkhub.config.constants import TOKEN_ALERT_DEDUPE_HOURS
from linkhub.models.notification import Notification
from linkhub.repositories.notification_repository import NotificationRepository
from linkhub.services.base_service import BaseService
from linkhub.utils.logger import logger


def format_expires_in(hours: Optional[float]) -> str:
    """Human wording for a remaining token lifetime ('2 days', '5 hours')."""
    if hours is None:
        return "an unknown amount of time"
    if hours < 1:
        return "less than an hour"
    if hours < 48:
        value = int(hours)
        return f"{value} hour{'s' if value != 1 else ''}"
    days = int(hours // 24)
    return f"{days} days"


class NotificationService(BaseService):
    """
    Persist notifications for publish outcomes and account health.

    Delivery is someone else's job; this service only writes the record.
    Notification failures are logged and never break the caller, since
    callers are background workers mid-way through a post or account.
    """

    def __init__(self, db: Optional[Session] = None):
        super().__init__(db)
        self.notification_repo = NotificationRepository(db)

    def notify(
        self,
        user_id,
        type: str,
        title: str,
        message: str,
        reference_type: Optional[str] = None,
        reference_id=None,
        data: Optional[dict] = None,
        priority: str = "normal",
        action_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Optional[Notification]:
        """Record a notification. Returns None if it could not be stored."""
        try:
            notification = self.notification_repo.create(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                reference_type=reference_type,
                reference_id=reference_id,
                data=data,
                priority=priority,
                action_url=action_url,
                expires_at=expires_at,
            )
            logger.info(f"Notification '{type}' recorded for user {user_id}")
            return notification
        except Exception as e:
            logger.error(f"Failed to record '{type}' notification for user {user_id}: {e}", exc_info=True)
            self.notification_repo.rollback()
            return None

    def notify_post_published(self, user_id, post_id, post_title: str) -> Optional[Notification]:
        return self.notify(
            user_id,
            "post_published",
            "Post Published",
            f'Your post "{post_title}" has been published successfully.',
            reference_type="post",
            reference_id=post_id,
            action_url=f"/posts/{post_id}",
        )

    def notify_post_failed(self, user_id, post_id, post_title: str, error: str) -> Optional[Notification]:
        return self.notify(
            user_id,
            "post_failed",
            "Post Failed",
            f'Failed to publish "{post_title}": {error}',
            reference_type="post",
            reference_id=post_id,
            priority="high",
            action_url=f"/posts/{post_id}",
        )

    def notify_post_scheduled(self, user_id, post_id, post_title: str, scheduled_at: datetime) -> Optional[Notification]:
        formatted = scheduled_at.strftime("%b %d, %Y %H:%M UTC")
        return self.notify(
            user_id,
            "post_scheduled",
            "Post Scheduled",
            f'Your post "{post_title}" has been scheduled for {formatted}.',
            reference_type="post",
            reference_id=post_id,
            data={"scheduled_at": scheduled_at.isoformat()},
            action_url=f"/posts/{post_id}",
        )

    def notify_token_expiring(
        self,
        user_id,
        account_id,
        platform: str,
        hours_left: Optional[float],
        dedupe_hours: int = TOKEN_ALERT_DEDUPE_HOURS,
    ) -> Optional[Notification]:
        """
        Warn that an account needs reconnecting.

        Skipped if the same account already got one within dedupe_hours.
        """
        try:
            if self.notification_repo.has_recent(user_id, "token_expiring", account_id, dedupe_hours):
                logger.debug(f"Skipping duplicate token_expiring notification for {platform} account {account_id}")
                return None
        except Exception as e:
            logger.warning(f"Could not check recent notifications for account {account_id}: {e}")
            self.notification_repo.rollback()

        return self.notify(
            user_id,
            "token_expiring",
            "Account Token Expiring",
            f"Your {platform} account token will expire in {format_expires_in(hours_left)}. "
            "Please reconnect to continue posting.",
            reference_type="account",
            reference_id=account_id,
            data={"platform": platform},
            priority="high",
            action_url="/accounts",
        )

    def execute(self, commands: Iterable) -> None:
        """Run the NotificationCommands produced by a post transition."""
        for command in commands:
            if command.kind == "post_published":
                self.notify_post_published(command.user_id, command.post_id, command.title)
            elif command.kind == "post_failed":
                self.notify_post_failed(command.user_id, command.post_id, command.title, command.error or "Unknown error")
            elif command.kind == "post_scheduled":
                self.notify_post_scheduled(command.user_id, command.post_id, command.title, command.scheduled_at)
            else:
                logger.warning(f"Unknown notification command: {command.kind}")
