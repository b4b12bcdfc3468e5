"""Post composition and lifecycle exceptions."""

from typing import List, Optional

from linkhub.exceptions.base import LinkHubError


class PostValidationError(LinkHubError):
    """
    Post payload failed validation.

    Attributes:
        message: Human-readable error description
        field: Offending field name (e.g., 'platforms')
        invalid_values: Values rejected for that field
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        invalid_values: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.field = field
        self.invalid_values = invalid_values or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.invalid_values:
            return f"{base}: {', '.join(self.invalid_values)}"
        return base


class PostNotFoundError(LinkHubError):
    """Post does not exist or belongs to another user."""

    def __init__(self, post_id: str):
        super().__init__(f"Post not found: {post_id}")
        self.post_id = post_id


class PostStateError(LinkHubError):
    """
    Requested action is not allowed in the post's current status.

    Raised for invalid lifecycle transitions (cancelling a published post)
    and for edits to content that has already entered the pipeline.

    Attributes:
        status: Current post status
        action: Action that was attempted ('cancel', 'publish', 'edit')
    """

    def __init__(self, message: str, status: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.action = action
