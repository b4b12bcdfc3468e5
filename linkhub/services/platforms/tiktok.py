"""TikTok Content Posting API adapter."""

from datetime import datetime
from typing import List

from linkhub.exceptions import PlatformAPIError
from linkhub.services.platforms.base_adapter import (
    AccountCredentials,
    AnalyticsRecord,
    PlatformAdapter,
    PlatformProfile,
    PostContent,
    PublishResult,
)


class TikTokAdapter(PlatformAdapter):
    """Direct-posts the first video by URL (PULL_FROM_URL); TikTok fetches the file."""

    platform = "tiktok"
    MAX_TITLE_LENGTH = 2200
    JSON_HEADERS = {"Content-Type": "application/json; charset=UTF-8"}

    def _check_envelope(self, data: dict, action: str) -> None:
        """TikTok wraps every response in {data, error: {code, message}}."""
        error = data.get("error") or {}
        if error.get("code") not in (None, "ok"):
            raise PlatformAPIError(
                f"{action} failed: {error.get('message') or error.get('code')}",
                platform=self.platform,
            )

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        video = post.first_media("video")
        if not video:
            return PublishResult(success=False, error="TikTok requires a video")

        body = {
            "post_info": {
                "title": post.content[: self.MAX_TITLE_LENGTH],
                "privacy_level": "PUBLIC_TO_EVERYONE" if post.visibility == "public" else "SELF_ONLY",
                "disable_comment": False,
            },
            "source_info": {"source": "PULL_FROM_URL", "video_url": video["url"]},
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.config.api_base_url}/post/publish/video/init/",
                json=body,
                headers={**self._bearer(account.access_token), **self.JSON_HEADERS},
            )
        self._check(response, "Video init")

        data = response.json()
        self._check_envelope(data, "Video init")
        publish_id = data.get("data", {}).get("publish_id")
        if not publish_id:
            raise PlatformAPIError("No publish ID in response", platform=self.platform)

        return PublishResult(success=True, external_id=publish_id)

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/user/info/",
                params={"fields": "open_id,union_id,avatar_url,display_name,username"},
                headers=self._bearer(access_token),
            )
        self._check(response, "Profile lookup")

        data = response.json()
        self._check_envelope(data, "Profile lookup")
        user = data.get("data", {}).get("user", {})
        return PlatformProfile(
            account_id=user["open_id"],
            handle=user.get("username") or user.get("display_name"),
            display_name=user.get("display_name"),
            profile_data=user,
        )

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        async with self._client() as client:
            response = await client.post(
                f"{self.config.api_base_url}/video/list/",
                params={"fields": "id,create_time,like_count,comment_count,share_count,view_count"},
                json={"max_count": 20},
                headers={**self._bearer(account.access_token), **self.JSON_HEADERS},
            )
        self._check(response, "Video list")

        data = response.json()
        self._check_envelope(data, "Video list")
        return [
            AnalyticsRecord(
                external_post_id=video["id"],
                metrics={
                    "views": video.get("view_count", 0),
                    "likes": video.get("like_count", 0),
                    "comments": video.get("comment_count", 0),
                    "shares": video.get("share_count", 0),
                },
                recorded_at=datetime.utcfromtimestamp(video["create_time"]) if video.get("create_time") else datetime.utcnow(),
            )
            for video in data.get("data", {}).get("videos", [])
        ]
