"""LinkHub exception classes."""

from linkhub.exceptions.base import LinkHubError
from linkhub.exceptions.posts import (
    PostValidationError,
    PostNotFoundError,
    PostStateError,
)
from linkhub.exceptions.platforms import (
    AccountNotFoundError,
    OAuthStateError,
    PlatformNotConfiguredError,
    PlatformAPIError,
    TokenRefreshError,
)

__all__ = [
    "LinkHubError",
    "PostValidationError",
    "PostNotFoundError",
    "PostStateError",
    "AccountNotFoundError",
    "OAuthStateError",
    "PlatformNotConfiguredError",
    "PlatformAPIError",
    "TokenRefreshError",
]
