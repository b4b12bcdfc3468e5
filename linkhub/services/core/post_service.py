"""Post service - compose, edit, cancel and queue posts on behalf of a user."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from sqlalchemy.orm import Session

from linkhub.config.constants import (
    DEFAULT_CATEGORY_ID,
    MAX_CONTENT_LENGTH,
    MAX_LIST_POSTS,
    MAX_TITLE_LENGTH,
    MEDIA_TYPES,
    PLATFORMS,
    VISIBILITY_OPTIONS,
)
from linkhub.exceptions import PostNotFoundError, PostStateError, PostValidationError
from linkhub.models.post import Post
from linkhub.repositories.post_repository import PostRepository
from linkhub.services.base_service import BaseService
from linkhub.services.core import post_lifecycle
from linkhub.services.core.notification_service import NotificationService
from linkhub.utils.logger import logger

EDITABLE_FIELDS = (
    "content",
    "media",
    "platforms",
    "scheduled_at",
    "title",
    "tags",
    "visibility",
    "category_id",
)


def parse_scheduled_at(value) -> Optional[datetime]:
    """
    Parse a client-supplied schedule time into naive UTC.

    Accepts ISO-8601 strings or datetimes; empty values mean "no schedule".

    Raises:
        PostValidationError: If the value can't be parsed
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            raise PostValidationError("Invalid scheduled_at", field="scheduled_at")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class PostService(BaseService):
    """
    User-facing post operations.

    Status changes go through post_lifecycle and are written with
    PostRepository.apply_transition, so a user action racing the scheduler
    or publisher never overwrites the worker's result.

    Usage:
        service = PostService()
        post = service.create_post(user_id, {"content": "Hi", "platforms": ["twitter"]})
        service.publish_now(user_id, post.id)
    """

    def __init__(self, db: Optional[Session] = None):
        super().__init__(db)
        self.post_repo = PostRepository(db)
        self.notification_service = NotificationService(db)

    # Validation

    def _validate_platforms(self, platforms) -> List[str]:
        if not isinstance(platforms, list) or not platforms:
            raise PostValidationError("At least one platform is required", field="platforms")

        normalized = [str(p).strip().lower() for p in platforms]
        invalid = [p for p in normalized if p not in PLATFORMS]
        if invalid:
            raise PostValidationError("Invalid platforms", field="platforms", invalid_values=invalid)

        # Preserve order, drop duplicates
        return list(dict.fromkeys(normalized))

    def _validate_media(self, media) -> List[Dict[str, Any]]:
        if media is None:
            return []
        if not isinstance(media, list):
            raise PostValidationError("Media must be a list", field="media")

        items = []
        for item in media:
            if not isinstance(item, dict) or not item.get("url"):
                raise PostValidationError("Each media item needs a url", field="media")
            media_type = item.get("type", "other")
            if media_type not in MEDIA_TYPES:
                raise PostValidationError("Invalid media type", field="media", invalid_values=[str(media_type)])
            items.append(
                {
                    "url": str(item["url"]),
                    "type": media_type,
                    "filename": item.get("filename"),
                    "meta": item.get("meta") or {},
                }
            )
        return items

    def _validate_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and normalize whichever editable fields are present."""
        fields: Dict[str, Any] = {}

        if "platforms" in data:
            fields["platforms"] = self._validate_platforms(data["platforms"])

        if "content" in data:
            content = (data["content"] or "").strip()
            if len(content) > MAX_CONTENT_LENGTH:
                raise PostValidationError(
                    f"Content exceeds {MAX_CONTENT_LENGTH} characters", field="content"
                )
            fields["content"] = content

        if "media" in data:
            fields["media"] = self._validate_media(data["media"])

        if "scheduled_at" in data:
            fields["scheduled_at"] = parse_scheduled_at(data["scheduled_at"])

        if "title" in data:
            title = (data["title"] or "").strip() or None
            if title and len(title) > MAX_TITLE_LENGTH:
                raise PostValidationError(f"Title exceeds {MAX_TITLE_LENGTH} characters", field="title")
            fields["title"] = title

        if "tags" in data:
            tags = data["tags"] or []
            if not isinstance(tags, list):
                raise PostValidationError("Tags must be a list", field="tags")
            fields["tags"] = [str(t).strip() for t in tags if str(t).strip()]

        if "visibility" in data:
            visibility = data["visibility"] or "public"
            if visibility not in VISIBILITY_OPTIONS:
                raise PostValidationError("Invalid visibility", field="visibility", invalid_values=[str(visibility)])
            fields["visibility"] = visibility

        if "category_id" in data:
            category_id = str(data["category_id"] or DEFAULT_CATEGORY_ID)
            if not category_id.isdigit():
                raise PostValidationError("category_id must be numeric", field="category_id")
            fields["category_id"] = category_id

        return fields

    @staticmethod
    def _validate_youtube(platforms: List[str], title: Optional[str], media: List[Dict[str, Any]]) -> None:
        if "youtube" not in platforms:
            return
        if not title:
            raise PostValidationError("A title is required when publishing to YouTube", field="title")
        if not any(item.get("type") == "video" for item in media):
            raise PostValidationError("A video is required when publishing to YouTube", field="media")

    # Operations

    def create_post(self, user_id, data: Dict[str, Any]) -> Post:
        """
        Validate and store a new post.

        A post with scheduled_at starts 'scheduled', otherwise 'draft'.

        Raises:
            PostValidationError: If the payload is invalid
        """
        with self.track_execution(
            method_name="create_post",
            user_id=user_id,
            triggered_by="user",
            input_params={"platforms": data.get("platforms"), "scheduled_at": str(data.get("scheduled_at"))},
        ) as run_id:
            payload = {"platforms": data.get("platforms"), **data}
            fields = self._validate_fields(payload)
            fields.setdefault("content", "")
            fields.setdefault("media", [])
            fields.setdefault("scheduled_at", None)
            self._validate_youtube(fields["platforms"], fields.get("title"), fields["media"])

            status = post_lifecycle.initial_status(fields["scheduled_at"])
            post = self.post_repo.create(user_id, status=status, **fields)

            if status == "scheduled":
                self.notification_service.notify_post_scheduled(
                    post.user_id, post.id, post.display_title, post.scheduled_at
                )

            logger.info(f"Created post {post.id} ({status}) for {', '.join(post.platforms)}")
            self.set_result_summary(run_id, {"post_id": str(post.id), "status": status})
            return post

    def list_posts(self, user_id, limit: int = MAX_LIST_POSTS) -> List[Post]:
        """The user's posts, newest first (at most 100)."""
        posts = self.post_repo.list_for_user(user_id, limit=min(limit, MAX_LIST_POSTS))
        self.post_repo.end_read_transaction()
        return posts

    def get_post(self, user_id, post_id) -> Post:
        """
        Raises:
            PostNotFoundError: If the post doesn't exist or isn't the user's
        """
        try:
            post = self.post_repo.get_for_user(user_id, post_id)
        except ValueError:
            post = None  # Malformed id
        if post is None:
            raise PostNotFoundError(str(post_id))
        return post

    def update_post(self, user_id, post_id, changes: Dict[str, Any]) -> Post:
        """
        Edit a post.

        Content, media and platforms are frozen once the post is queued;
        setting or clearing scheduled_at moves a draft/scheduled post
        between those two statuses.

        Raises:
            PostNotFoundError, PostValidationError, PostStateError
        """
        with self.track_execution(
            method_name="update_post",
            user_id=user_id,
            triggered_by="user",
            input_params={"post_id": str(post_id), "fields": sorted(changes)},
        ):
            post = self.get_post(user_id, post_id)
            changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
            fields = self._validate_fields(changes)
            scheduled_at = fields.pop("scheduled_at", post_lifecycle.UNCHANGED)
            if scheduled_at == post.scheduled_at:
                scheduled_at = post_lifecycle.UNCHANGED

            transition = post_lifecycle.edit(post, fields, scheduled_at)
            self._validate_youtube(
                fields.get("platforms", post.platforms),
                fields.get("title", post.title),
                fields.get("media", post.media or []),
            )

            if not transition.changes:
                return post

            if not self.post_repo.apply_transition(transition):
                raise PostStateError(
                    "Post changed status while being edited; reload and try again",
                    status=post.status,
                    action="edit",
                )
            self.notification_service.execute(transition.notifications)
            return self.post_repo.get_by_id(post.id)

    def cancel_post(self, user_id, post_id) -> Post:
        """
        Soft-delete a post.

        Raises:
            PostNotFoundError: Unknown post
            PostStateError: Post is publishing, published or already cancelled
        """
        post = self.get_post(user_id, post_id)
        transition = post_lifecycle.cancel(post, datetime.utcnow())

        if not self.post_repo.apply_transition(transition):
            # Lost a race with a worker; report against the current status
            post = self.post_repo.get_by_id(post.id)
            post_lifecycle.cancel(post, datetime.utcnow())
            raise PostStateError("Post changed status; try again", status=post.status, action="cancel")

        logger.info(f"Cancelled post {post_id} (was {transition.from_status})")
        return self.post_repo.get_by_id(post.id)

    def publish_now(self, user_id, post_id) -> Post:
        """
        Queue a post for the next publisher tick, bypassing its schedule.

        Already-queued posts are returned unchanged.

        Raises:
            PostNotFoundError: Unknown post
            PostStateError: Post is cancelled, published or publishing
        """
        post = self.get_post(user_id, post_id)
        transition = post_lifecycle.request_publish(post, datetime.utcnow())
        if transition is None:
            return post

        if not self.post_repo.apply_transition(transition):
            post = self.post_repo.get_by_id(post.id)
            raise PostStateError("Post changed status; try again", status=post.status, action="publish")

        logger.info(f"Post {post_id} queued for immediate publishing (was {transition.from_status})")
        return self.post_repo.get_by_id(post.id)

    def count_by_status(self, user_id=None) -> Dict[str, int]:
        counts = self.post_repo.count_by_status(user_id)
        self.post_repo.end_read_transaction()
        return counts
