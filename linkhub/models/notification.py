"""Notification model - persisted user-facing events."""

from datetime import datetime
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    JSON,
    String,
    Uuid,
)

from linkhub.config.database import Base


class Notification(Base):
    """
    User notification record.

    Only persistence happens here; delivery (email, push, websocket)
    is handled elsewhere.
    """

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)

    type = Column(String(50), nullable=False, index=True)  # 'post_published', 'token_expiring'
    title = Column(String(200), nullable=False)
    message = Column(String(1000), nullable=False)

    # What the notification is about (e.g., 'Post' / post id)
    reference_type = Column(String(50))
    reference_id = Column(String(64), index=True)

    data = Column(JSON, nullable=False, default=dict)
    priority = Column(String(20), nullable=False, default="normal")
    action_url = Column(String(500))

    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime)
    expires_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            "priority IN ('low', 'normal', 'high', 'urgent')",
            name="check_notification_priority",
        ),
    )

    def __repr__(self):
        return f"<Notification {self.type} user={self.user_id} ({self.priority})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "data": self.data or {},
            "priority": self.priority,
            "action_url": self.action_url,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
