"""Facebook Graph API adapter (user feed)."""

from datetime import datetime
from typing import List

from dateutil import parser as date_parser

from linkhub.exceptions import PlatformAPIError, TokenRefreshError
from linkhub.services.platforms.base_adapter import (
    AccountCredentials,
    AnalyticsRecord,
    PlatformAdapter,
    PlatformProfile,
    PostContent,
    PublishResult,
    RefreshedToken,
    error_message,
)


class FacebookAdapter(PlatformAdapter):
    """Posts to the connected user's feed; a link media item becomes the post link."""

    platform = "facebook"
    refreshes_with_access_token = True

    async def refresh_token(self, refresh_token: str) -> RefreshedToken:
        """Facebook has no refresh grant; the current long-lived token is exchanged for a new one."""
        async with self._client() as client:
            response = await client.get(
                self.config.token_url,
                params={
                    "grant_type": "fb_exchange_token",
                    "client_id": self.config.client_id or "",
                    "client_secret": self.config.client_secret or "",
                    "fb_exchange_token": refresh_token,
                },
            )
        if not response.is_success:
            raise TokenRefreshError(
                f"Token request failed: {error_message(response)}",
                platform=self.platform,
                status_code=response.status_code,
            )
        data = response.json()
        if not data.get("access_token"):
            raise TokenRefreshError("No access_token in token response", platform=self.platform)
        return RefreshedToken(
            access_token=data["access_token"],
            refresh_token=None,
            expires_in_seconds=data.get("expires_in"),
        )

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        params = {"message": post.content, "access_token": account.access_token}
        link = post.first_media("link")
        if link:
            params["link"] = link["url"]

        async with self._client() as client:
            response = await client.post(f"{self.config.api_base_url}/me/feed", data=params)
        self._check(response, "Feed post")

        post_id = response.json().get("id")
        if not post_id:
            raise PlatformAPIError("No post ID in response", platform=self.platform)

        return PublishResult(success=True, external_id=post_id, url=f"https://facebook.com/{post_id}")

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/me",
                params={"fields": "id,name,email,picture", "access_token": access_token},
            )
        self._check(response, "Profile lookup")

        data = response.json()
        return PlatformProfile(
            account_id=data["id"],
            handle=data.get("name"),
            display_name=data.get("name"),
            profile_data=data,
        )

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/me/posts",
                params={
                    "fields": "id,created_time,shares,likes.summary(true),comments.summary(true)",
                    "limit": 20,
                    "access_token": account.access_token,
                },
            )
        self._check(response, "Post list")

        records = []
        for item in response.json().get("data", []):
            created = item.get("created_time")
            records.append(
                AnalyticsRecord(
                    external_post_id=item["id"],
                    metrics={
                        "likes": item.get("likes", {}).get("summary", {}).get("total_count", 0),
                        "comments": item.get("comments", {}).get("summary", {}).get("total_count", 0),
                        "shares": item.get("shares", {}).get("count", 0),
                    },
                    recorded_at=date_parser.parse(created) if created else datetime.utcnow(),
                )
            )
        return records
