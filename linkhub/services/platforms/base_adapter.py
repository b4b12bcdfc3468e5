"""Abstract base class for social platform adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from linkhub.config.oauth import ProviderConfig, get_provider_config
from linkhub.exceptions import PlatformAPIError, TokenRefreshError
from linkhub.utils.logger import logger


@dataclass
class PostContent:
    """Snapshot of the post fields an adapter needs.

    Adapters never see the ORM row, so a slow network call cannot touch
    the database session.
    """

    post_id: str
    content: str
    media: List[Dict[str, Any]] = field(default_factory=list)
    title: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    visibility: str = "public"
    category_id: str = "22"

    @classmethod
    def from_post(cls, post) -> "PostContent":
        return cls(
            post_id=str(post.id),
            content=post.content or "",
            media=list(post.media or []),
            title=post.title,
            tags=list(post.tags or []),
            visibility=post.visibility or "public",
            category_id=post.category_id or "22",
        )

    def first_media(self, *types: str) -> Optional[Dict[str, Any]]:
        """First media item whose type is one of types."""
        for item in self.media:
            if item.get("type") in types and item.get("url"):
                return item
        return None


@dataclass
class AccountCredentials:
    """Decrypted credentials for one connected account."""

    platform: str
    account_id: str
    access_token: str
    refresh_token: Optional[str] = None
    handle: Optional[str] = None
    profile_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_account(cls, account, encryption) -> "AccountCredentials":
        """
        Decrypt a SocialAccount's tokens.

        Raises:
            ValueError: If a stored token can't be decrypted
        """
        return cls(
            platform=account.platform,
            account_id=account.account_id,
            access_token=encryption.decrypt(account.access_token),
            refresh_token=encryption.decrypt_optional(account.refresh_token),
            handle=account.account_handle,
            profile_data=dict(account.profile_data or {}),
        )


@dataclass
class PublishResult:
    """Outcome of publishing one post to one platform."""

    success: bool
    external_id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Shape stored in Post.publish_result[platform]."""
        if self.success:
            return {"success": True, "data": {"external_id": self.external_id, "url": self.url}}
        return {"success": False, "error": self.error}


@dataclass
class RefreshedToken:
    """Token endpoint response (code exchange or refresh)."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in_seconds: Optional[int] = None
    scopes: List[str] = field(default_factory=list)


@dataclass
class PlatformProfile:
    """Identity of the account behind an access token."""

    account_id: str
    handle: Optional[str] = None
    display_name: Optional[str] = None
    profile_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AnalyticsRecord:
    """Engagement metrics for one published item."""

    external_post_id: str
    metrics: Dict[str, int] = field(default_factory=dict)
    recorded_at: Optional[datetime] = None


def error_message(response: httpx.Response) -> str:
    """Best human-readable error from a platform error response."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if message:
                return message
        elif isinstance(error, str):
            return data.get("error_description") or error
        for key in ("detail", "message", "title", "error_description"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {response.status_code}"


class PlatformAdapter(ABC):
    """Abstract interface to one social platform.

    Contract:
        publish / fetch_analytics never raise; failures come back as a
        failed PublishResult / an empty list.
        refresh_token raises TokenRefreshError, fetch_profile raises
        PlatformAPIError.

    Adapters are lightweight objects -- they do NOT extend BaseService and
    are not tracked in service_runs. They are used by services that do have
    tracking (PublisherService, TokenRefreshService, OAuthService).
    """

    platform: str = ""
    REQUEST_TIMEOUT = 30.0
    # Long-lived-token platforms refresh by exchanging the access token itself
    refreshes_with_access_token = False

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_provider_config(self.platform)
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.REQUEST_TIMEOUT, transport=self._transport)

    @staticmethod
    def _bearer(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    def _check(self, response: httpx.Response, action: str) -> None:
        """Raise PlatformAPIError for non-2xx responses."""
        if response.is_success:
            return
        raise PlatformAPIError(
            f"{action} failed: {error_message(response)}",
            platform=self.platform,
            status_code=response.status_code,
        )

    # Token endpoint

    def _token_request(self, payload: Dict[str, str]) -> Dict[str, Any]:
        """httpx.post kwargs for the token endpoint (client auth in the body)."""
        payload = {
            **payload,
            self.config.client_id_param: self.config.client_id or "",
            "client_secret": self.config.client_secret or "",
        }
        return {"data": payload, "headers": {"Accept": "application/json"}}

    async def _call_token_endpoint(self, payload: Dict[str, str], error_cls=PlatformAPIError) -> RefreshedToken:
        async with self._client() as client:
            response = await client.post(self.config.token_url, **self._token_request(payload))

        if not response.is_success:
            raise error_cls(
                f"Token request failed: {error_message(response)}",
                platform=self.platform,
                status_code=response.status_code,
            )

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise error_cls("No access_token in token response", platform=self.platform)

        scope = data.get("scope") or ""
        return RefreshedToken(
            access_token=token,
            refresh_token=data.get("refresh_token"),
            expires_in_seconds=int(data["expires_in"]) if data.get("expires_in") else None,
            scopes=[s for s in scope.replace(",", " ").split() if s],
        )

    async def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> RefreshedToken:
        """Exchange an authorization code for tokens."""
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.callback_url,
        }
        if code_verifier:
            payload["code_verifier"] = code_verifier
        return await self._call_token_endpoint(payload)

    async def refresh_token(self, refresh_token: str) -> RefreshedToken:
        """
        Exchange a refresh token for a new access token.

        The previous refresh token is kept when the platform does not rotate it.

        Raises:
            TokenRefreshError: On any non-success response
        """
        token = await self._call_token_endpoint(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            error_cls=TokenRefreshError,
        )
        if not token.refresh_token:
            token.refresh_token = refresh_token
        return token

    # Publishing / profile / analytics

    async def publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        """Publish a post. Never raises."""
        try:
            return await self._publish(post, account)
        except PlatformAPIError as e:
            logger.warning(f"[{self.platform}] Publish of post {post.post_id} failed: {e}")
            return PublishResult(success=False, error=str(e))
        except httpx.HTTPError as e:
            logger.warning(f"[{self.platform}] Network error publishing post {post.post_id}: {e}")
            return PublishResult(success=False, error=f"Network error: {e}")
        except Exception as e:
            logger.error(f"[{self.platform}] Unexpected publish error for post {post.post_id}: {e}", exc_info=True)
            return PublishResult(success=False, error=str(e))

    async def fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        """Recent engagement metrics. Best effort, empty list on failure."""
        try:
            return await self._fetch_analytics(account)
        except Exception as e:
            logger.warning(f"[{self.platform}] Analytics fetch failed for {account.account_id}: {e}")
            return []

    @abstractmethod
    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        """Platform-specific publish. May raise; publish() converts errors."""

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        """Identify the account behind a token (used by the OAuth callback)."""

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        return []
