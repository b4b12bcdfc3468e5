"""Post lifecycle rules.

Pure functions: each takes a post (anything exposing the Post attributes)
and returns a PostTransition describing the status change, the column
updates and the notifications to emit. Nothing here touches the database;
PostRepository.apply_transition writes a transition with a status guard so
two workers cannot both apply a transition from the same status.

    create ──> draft ───────────────┐ publish now
          └──> scheduled ─(due)─> queued ─(claim)─> publishing ─> published
                  ^                                     │
                  └──────────── retry (attempts < 3) ───┤
                                                        └──> failed
    draft | scheduled | queued | failed ──(user)──> cancelled
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from linkhub.config.constants import (
    IMMUTABLE_POST_STATUSES,
    MAX_PUBLISH_ATTEMPTS,
    RETRY_DELAY_SECONDS,
)
from linkhub.exceptions import PostStateError
from linkhub.models.post import Post

CANCELLABLE_STATUSES = ("draft", "scheduled", "queued", "failed")
PUBLISHABLE_STATUSES = ("draft", "scheduled", "failed")
IMMUTABLE_FIELDS = ("content", "media", "platforms")

# scheduled_at=None means "unschedule", so edit() needs its own marker
UNCHANGED = object()


@dataclass(frozen=True)
class NotificationCommand:
    """A notification the caller must emit after applying a transition."""

    kind: str  # 'post_published' | 'post_failed' | 'post_scheduled'
    user_id: Any
    post_id: Any
    title: str
    error: Optional[str] = None
    scheduled_at: Optional[datetime] = None


@dataclass
class PostTransition:
    """A single guarded status change for one post."""

    post_id: Any
    from_status: str
    to_status: str
    changes: Dict[str, Any] = field(default_factory=dict)
    notifications: List[NotificationCommand] = field(default_factory=list)

    @property
    def values(self) -> Dict[str, Any]:
        """Column values to write, status included."""
        return {**self.changes, "status": self.to_status}



def _require(post, allowed, action: str):
    if post.status not in allowed:
        raise PostStateError(
            f"Cannot {action} a post with status '{post.status}'",
            status=post.status,
            action=action,
        )


def summarize_failures(results: Dict[str, Dict[str, Any]]) -> str:
    """'twitter: rate limited; youtube: No publisher configured'"""
    failures = [
        f"{platform}: {result.get('error') or 'unknown error'}"
        for platform, result in results.items()
        if not result.get("success")
    ]
    return "; ".join(failures) or "No platforms attempted"


def initial_status(scheduled_at: Optional[datetime]) -> str:
    """Status for a newly created post."""
    return "scheduled" if scheduled_at else "draft"


def promote(post, now: datetime) -> PostTransition:
    """scheduled -> queued once the post is due."""
    _require(post, ("scheduled",), "queue")
    if post.scheduled_at is None or post.scheduled_at > now:
        raise PostStateError(
            f"Post {post.id} is not due until {post.scheduled_at}",
            status=post.status,
            action="queue",
        )
    return PostTransition(post.id, "scheduled", "queued", {"queued_at": now})


def claim(post, now: datetime) -> PostTransition:
    """queued -> publishing, taken by the publisher before calling adapters."""
    _require(post, ("queued",), "publish")
    return PostTransition(post.id, "queued", "publishing", {"updated_at": now})


def _retry_or_fail(post, now: datetime, last_error: str, publish_result, summary: str) -> PostTransition:
    attempts = (post.attempts or 0) + 1
    changes = {
        "attempts": attempts,
        "last_error": last_error,
        "publish_result": publish_result,
    }

    if attempts < MAX_PUBLISH_ATTEMPTS:
        changes["scheduled_at"] = now + timedelta(seconds=RETRY_DELAY_SECONDS)
        return PostTransition(post.id, "publishing", "scheduled", changes)

    notification = NotificationCommand(
        kind="post_failed",
        user_id=post.user_id,
        post_id=post.id,
        title=post.display_title,
        error=summary,
    )
    return PostTransition(post.id, "publishing", "failed", changes, [notification])


def resolve_publish_outcome(post, results: Dict[str, Dict[str, Any]], now: datetime) -> PostTransition:
    """
    Decide what happens after every target platform has been attempted.

    Args:
        post: Post in 'publishing'
        results: {platform: {"success": bool, "data": ... | "error": str}}
        now: Current time

    Returns:
        publishing -> published when every platform succeeded, otherwise
        publishing -> scheduled (retry in RETRY_DELAY_SECONDS) or failed
        once MAX_PUBLISH_ATTEMPTS is reached.
    """
    _require(post, ("publishing",), "complete publishing of")

    if results and all(r.get("success") for r in results.values()):
        notification = NotificationCommand(
            kind="post_published",
            user_id=post.user_id,
            post_id=post.id,
            title=post.display_title,
        )
        return PostTransition(
            post.id,
            "publishing",
            "published",
            {"published_at": now, "publish_result": results, "last_error": None},
            [notification],
        )

    return _retry_or_fail(post, now, json.dumps(results, default=str), results, summarize_failures(results))


def resolve_publish_error(post, error: str, now: datetime) -> PostTransition:
    """An exception escaped the publish procedure; counts as a failed attempt."""
    _require(post, ("publishing",), "complete publishing of")
    return _retry_or_fail(post, now, error, post.publish_result, error)


def cancel(post, now: datetime) -> PostTransition:
    """User cancel (soft delete)."""
    _require(post, CANCELLABLE_STATUSES, "cancel")
    return PostTransition(post.id, post.status, "cancelled", {"cancelled_at": now})


def request_publish(post, now: datetime) -> Optional[PostTransition]:
    """
    User "publish now".

    Returns None when the post is already queued. A failed post starts a
    fresh round of attempts.
    """
    if post.status == "queued":
        return None
    _require(post, PUBLISHABLE_STATUSES, "publish")

    changes = {"queued_at": now, "scheduled_at": now}
    if post.status == "failed":
        changes.update({"attempts": 0, "last_error": None})
    return PostTransition(post.id, post.status, "queued", changes)


def reschedule(post, scheduled_at: Optional[datetime], title: Optional[str] = None) -> PostTransition:
    """Edit of scheduled_at on a draft/scheduled post: moves draft <-> scheduled."""
    _require(post, ("draft", "scheduled"), "reschedule")
    target = initial_status(scheduled_at)
    changes = {"scheduled_at": scheduled_at}
    notifications = []
    if target == "scheduled":
        notifications.append(
            NotificationCommand(
                kind="post_scheduled",
                user_id=post.user_id,
                post_id=post.id,
                title=title or post.display_title,
                scheduled_at=scheduled_at,
            )
        )
    return PostTransition(post.id, post.status, target, changes, notifications)


def edit(post, fields: Dict[str, Any], scheduled_at=UNCHANGED) -> PostTransition:
    """
    A user edit as a single guarded write.

    Field changes keep the current status unless scheduled_at is given, in
    which case the post also moves draft <-> scheduled. Every check runs
    here, so a rejected edit raises before anything is written.

    Raises:
        PostStateError: If the edit is not allowed in the current status
    """
    rescheduling = scheduled_at is not UNCHANGED
    ensure_editable(post, list(fields) + (["scheduled_at"] if rescheduling else []))

    if not rescheduling:
        return PostTransition(post.id, post.status, post.status, dict(fields))

    title = Post.title_for(fields.get("title", post.title), fields.get("content", post.content))
    transition = reschedule(post, scheduled_at, title=title)
    transition.changes.update(fields)
    return transition


def ensure_editable(post, changed_fields) -> None:
    """
    Raise PostStateError if the edit is not allowed in the current status.

    Content, media and platforms are frozen once the post is queued;
    cancelled posts accept no edits at all.
    """
    if post.status == "cancelled":
        raise PostStateError("Cannot edit a cancelled post", status=post.status, action="edit")

    if post.status in IMMUTABLE_POST_STATUSES:
        frozen = [f for f in changed_fields if f in IMMUTABLE_FIELDS]
        if frozen:
            raise PostStateError(
                f"Cannot change {', '.join(frozen)} once a post is {post.status}",
                status=post.status,
                action="edit",
            )
        if "scheduled_at" in changed_fields:
            raise PostStateError(
                f"Cannot reschedule a post that is {post.status}",
                status=post.status,
                action="edit",
            )
