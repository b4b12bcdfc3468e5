"""Post repository - CRUD and lifecycle updates for posts."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func

from linkhub.models.post import Post
from linkhub.repositories.base_repository import BaseRepository


class PostRepository(BaseRepository):
    """Repository for Post CRUD operations."""

    def get_by_id(self, post_id: str) -> Optional[Post]:
        """Get post by ID."""
        return self.db.query(Post).filter(Post.id == self._to_uuid(post_id)).first()

    def get_for_user(self, user_id: str, post_id: str) -> Optional[Post]:
        """Get a post only if it belongs to the user."""
        return (
            self.db.query(Post)
            .filter(Post.id == self._to_uuid(post_id), Post.user_id == self._to_uuid(user_id))
            .first()
        )

    def list_for_user(self, user_id: str, limit: int = 100) -> List[Post]:
        """Newest first."""
        return (
            self.db.query(Post)
            .filter(Post.user_id == self._to_uuid(user_id))
            .order_by(Post.created_at.desc())
            .limit(limit)
            .all()
        )

    def find_due(self, now: datetime) -> List[Post]:
        """Scheduled posts whose time has come, earliest first."""
        return (
            self.db.query(Post)
            .filter(Post.status == "scheduled", Post.scheduled_at <= now)
            .order_by(Post.scheduled_at.asc())
            .all()
        )

    def get_queued(self, limit: int = 10) -> List[Post]:
        """Queued posts, earliest scheduled first."""
        return (
            self.db.query(Post)
            .filter(Post.status == "queued")
            .order_by(Post.scheduled_at.asc())
            .limit(limit)
            .all()
        )

    def count_by_status(self, user_id: Optional[str] = None) -> dict:
        """Post counts keyed by status."""
        query = self.db.query(Post.status, func.count(Post.id))
        if user_id:
            query = query.filter(Post.user_id == self._to_uuid(user_id))
        return {status: count for status, count in query.group_by(Post.status).all()}

    def create(self, user_id: str, **fields) -> Post:
        """Insert a new post."""
        post = Post(user_id=self._to_uuid(user_id), **fields)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def apply_transition(self, transition) -> bool:
        """
        Apply a PostTransition atomically.

        The UPDATE is guarded by the expected source status, so a post that
        was claimed, cancelled or published in the meantime is left alone.

        Returns:
            True if this call performed the transition
        """
        values = transition.values
        values.setdefault("updated_at", datetime.utcnow())

        updated = (
            self.db.query(Post)
            .filter(
                Post.id == self._to_uuid(transition.post_id),
                Post.status == transition.from_status,
            )
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        # Objects in this session still hold pre-update values
        self.db.expire_all()
        return updated == 1
