"""Twitter (X) API v2 adapter."""

from datetime import datetime
from typing import Any, Dict, List

from dateutil import parser as date_parser

from linkhub.exceptions import PlatformAPIError
from linkhub.services.platforms.base_adapter import (
    AccountCredentials,
    AnalyticsRecord,
    PlatformAdapter,
    PlatformProfile,
    PostContent,
    PublishResult,
)


class TwitterAdapter(PlatformAdapter):
    """Posts tweets through the v2 API with an OAuth2 user token."""

    platform = "twitter"
    MAX_TWEET_LENGTH = 280

    def _token_request(self, payload: Dict[str, str]) -> Dict[str, Any]:
        # Confidential clients authenticate with HTTP Basic; client_id stays in the body
        return {
            "data": {**payload, "client_id": self.config.client_id or ""},
            "auth": (self.config.client_id or "", self.config.client_secret or ""),
            "headers": {"Accept": "application/json"},
        }

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        text = post.content or ""
        if not text:
            return PublishResult(success=False, error="Tweet text is empty")
        if len(text) > self.MAX_TWEET_LENGTH:
            return PublishResult(success=False, error=f"Tweet exceeds {self.MAX_TWEET_LENGTH} characters")

        async with self._client() as client:
            response = await client.post(
                f"{self.config.api_base_url}/tweets",
                json={"text": text},
                headers=self._bearer(account.access_token),
            )
        self._check(response, "Tweet")

        tweet_id = response.json().get("data", {}).get("id")
        if not tweet_id:
            raise PlatformAPIError("No tweet ID in response", platform=self.platform)

        return PublishResult(
            success=True,
            external_id=tweet_id,
            url=f"https://twitter.com/i/web/status/{tweet_id}",
        )

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/users/me",
                params={"user.fields": "profile_image_url,public_metrics,verified"},
                headers=self._bearer(access_token),
            )
        self._check(response, "Profile lookup")

        user = response.json().get("data", {})
        return PlatformProfile(
            account_id=user["id"],
            handle=user.get("username"),
            display_name=user.get("name"),
            profile_data=user,
        )

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/users/{account.account_id}/tweets",
                params={"max_results": 10, "tweet.fields": "public_metrics,created_at"},
                headers=self._bearer(account.access_token),
            )
        self._check(response, "Tweet list")

        records = []
        for tweet in response.json().get("data", []):
            metrics = tweet.get("public_metrics", {})
            created = tweet.get("created_at")
            records.append(
                AnalyticsRecord(
                    external_post_id=tweet["id"],
                    metrics={
                        "likes": metrics.get("like_count", 0),
                        "comments": metrics.get("reply_count", 0),
                        "shares": metrics.get("retweet_count", 0) + metrics.get("quote_count", 0),
                        "impressions": metrics.get("impression_count", 0),
                    },
                    recorded_at=date_parser.isoparse(created) if created else datetime.utcnow(),
                )
            )
        return records
