"""Post model - cross-platform content and its publishing state."""

from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Text,
    CheckConstraint,
    JSON,
    Uuid,
)
from datetime import datetime
import uuid

from linkhub.config.constants import DEFAULT_CATEGORY_ID
from linkhub.config.database import Base


class Post(Base):
    """
    Post model.

    A single piece of content targeted at one or more platforms.

    Lifecycle:
        draft/scheduled -> queued (scheduler) -> publishing (publisher claim)
        -> published | scheduled (retry) | failed
    Posts are never hard-deleted; cancelling is a soft delete.
    """

    __tablename__ = "posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)

    # Content
    content = Column(Text, nullable=False, default="")
    media = Column(JSON, nullable=False, default=list)  # [{url, type, filename, meta}]
    platforms = Column(JSON, nullable=False)  # ['twitter', 'youtube']

    # Video platform fields (YouTube)
    title = Column(String(100))
    tags = Column(JSON, nullable=False, default=list)
    visibility = Column(String(20), nullable=False, default="public")
    category_id = Column(String(10), nullable=False, default=DEFAULT_CATEGORY_ID)

    # Scheduling / status
    scheduled_at = Column(DateTime, index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)

    # Execution bookkeeping
    publish_result = Column(JSON)  # {platform: {success, data | error}}
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    post_metadata = Column(JSON, nullable=False, default=dict)

    queued_at = Column(DateTime)
    published_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'scheduled', 'queued', 'publishing', "
            "'published', 'failed', 'cancelled')",
            name="check_post_status",
        ),
        CheckConstraint(
            "visibility IN ('public', 'private', 'unlisted')",
            name="check_post_visibility",
        ),
        CheckConstraint(
            "(status = 'cancelled') = (cancelled_at IS NOT NULL)",
            name="check_post_cancelled_at",
        ),
    )

    def __repr__(self):
        return f"<Post {self.id} ({self.status}) -> {','.join(self.platforms or [])}>"

    @staticmethod
    def title_for(title, content) -> str:
        """Short label used in notifications: the title, else the start of the content."""
        if title:
            return title
        return (content or "")[:50] or "Untitled Post"

    @property
    def display_title(self) -> str:
        return Post.title_for(self.title, self.content)

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "content": self.content,
            "media": self.media or [],
            "platforms": self.platforms or [],
            "title": self.title,
            "tags": self.tags or [],
            "visibility": self.visibility,
            "category_id": self.category_id,
            "scheduled_at": _iso(self.scheduled_at),
            "status": self.status,
            "publish_result": self.publish_result,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "metadata": self.post_metadata or {},
            "queued_at": _iso(self.queued_at),
            "published_at": _iso(self.published_at),
            "cancelled_at": _iso(self.cancelled_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


def _iso(value):
    return value.isoformat() if value else None
