"""Notification repository."""

from datetime import datetime, timedelta
from typing import List, Optional

from linkhub.models.notification import Notification
from linkhub.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository):
    """Repository for Notification records."""

    def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        data: Optional[dict] = None,
        priority: str = "normal",
        action_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Notification:
        notification = Notification(
            user_id=self._to_uuid(user_id),
            type=type,
            title=title[:200],
            message=message[:1000],
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id else None,
            data=data or {},
            priority=priority,
            action_url=action_url,
            expires_at=expires_at,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def has_recent(
        self,
        user_id: str,
        type: str,
        reference_id: str,
        within_hours: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """Whether a notification of this type/reference was recorded recently."""
        since = (now or datetime.utcnow()) - timedelta(hours=within_hours)
        return (
            self.db.query(Notification.id)
            .filter(
                Notification.user_id == self._to_uuid(user_id),
                Notification.type == type,
                Notification.reference_id == str(reference_id),
                Notification.created_at >= since,
            )
            .first()
            is not None
        )

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == self._to_uuid(user_id))
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()
