"""Social account, OAuth and platform API exceptions."""

from typing import Optional

from linkhub.exceptions.base import LinkHubError


class AccountNotFoundError(LinkHubError):
    """No connected social account for the requested user/platform."""

    def __init__(self, message: str = "Social account not found", platform: Optional[str] = None):
        super().__init__(message)
        self.platform = platform


class OAuthStateError(LinkHubError):
    """OAuth state is missing, expired, or issued for another provider."""

    pass


class PlatformNotConfiguredError(LinkHubError):
    """Provider is unknown or its client credentials are missing."""

    def __init__(self, platform: str, reason: Optional[str] = None):
        message = f"Platform not configured: {platform}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.platform = platform


class PlatformAPIError(LinkHubError):
    """
    A social platform's API returned an error response.

    Attributes:
        platform: Platform name (e.g., 'twitter')
        status_code: HTTP status returned by the platform, if any
    """

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code:
            return f"{base} (status: {self.status_code})"
        return base


class TokenRefreshError(PlatformAPIError):
    """
    Refreshing an access token failed.

    The account must be reconnected by the user if this persists.
    """

    def __init__(self, message: str = "Token refresh failed", **kwargs):
        super().__init__(message, **kwargs)
