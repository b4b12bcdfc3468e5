"""Instagram Graph API adapter (Business/Creator accounts)."""

import asyncio
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
from linkhub.utils.logger import logger


class InstagramAdapter(PlatformAdapter):
    """
    Publishes a single image or video through the container flow:
    create container -> wait until FINISHED (video) -> media_publish.
    """

    platform = "instagram"
    refreshes_with_access_token = True

    META_GRAPH_BASE = "https://graph.facebook.com/v18.0"
    CONTAINER_STATUS_POLL_INTERVAL = 2  # seconds
    CONTAINER_STATUS_MAX_POLLS = 30

    async def refresh_token(self, refresh_token: str) -> RefreshedToken:
        """Long-lived tokens are refreshed with the ig_refresh_token grant."""
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/refresh_access_token",
                params={"grant_type": "ig_refresh_token", "access_token": refresh_token},
            )
        if not response.is_success:
            raise TokenRefreshError(
                f"Token request failed: {error_message(response)}",
                platform=self.platform,
                status_code=response.status_code,
            )
        data = response.json()
        if not data.get("access_token"):
            raise TokenRefreshError("No access_token in refresh response", platform=self.platform)
        return RefreshedToken(
            access_token=data["access_token"],
            refresh_token=None,
            expires_in_seconds=data.get("expires_in", 5184000),  # Default 60 days
        )

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        media = post.first_media("image", "video")
        if not media:
            return PublishResult(success=False, error="Instagram requires an image or video")

        is_video = media["type"] == "video"
        container_params = {"caption": post.content, "access_token": account.access_token}
        if is_video:
            container_params["media_type"] = "REELS"
            container_params["video_url"] = media["url"]
        else:
            container_params["image_url"] = media["url"]

        async with self._client(timeout=60.0) as client:
            response = await client.post(
                f"{self.META_GRAPH_BASE}/{account.account_id}/media", data=container_params
            )
            self._check(response, "Media container")
            container_id = response.json().get("id")
            if not container_id:
                raise PlatformAPIError("No container ID in response", platform=self.platform)

            if is_video:
                await self._wait_for_container_ready(client, account.access_token, container_id)

            response = await client.post(
                f"{self.META_GRAPH_BASE}/{account.account_id}/media_publish",
                data={"creation_id": container_id, "access_token": account.access_token},
            )
            self._check(response, "Media publish")

        media_id = response.json().get("id")
        if not media_id:
            raise PlatformAPIError("No media ID in publish response", platform=self.platform)

        return PublishResult(success=True, external_id=media_id, url=f"https://instagram.com/p/{media_id}")

    async def _wait_for_container_ready(self, client, token: str, container_id: str) -> None:
        """Poll container status until FINISHED."""
        for poll_num in range(self.CONTAINER_STATUS_MAX_POLLS):
            response = await client.get(
                f"{self.META_GRAPH_BASE}/{container_id}",
                params={"fields": "status_code", "access_token": token},
            )
            self._check(response, "Container status")
            status_code = response.json().get("status_code")

            if status_code == "FINISHED":
                logger.debug(f"Container {container_id} ready after {poll_num + 1} polls")
                return
            if status_code in ("ERROR", "EXPIRED"):
                raise PlatformAPIError(f"Media container {status_code.lower()}", platform=self.platform)

            await asyncio.sleep(self.CONTAINER_STATUS_POLL_INTERVAL)

        raise PlatformAPIError(
            f"Media container did not finish after {self.CONTAINER_STATUS_MAX_POLLS} polls",
            platform=self.platform,
        )

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/me",
                params={"fields": "id,username,account_type,media_count", "access_token": access_token},
            )
        self._check(response, "Profile lookup")

        data = response.json()
        return PlatformProfile(
            account_id=data["id"],
            handle=data.get("username"),
            display_name=data.get("username"),
            profile_data=data,
        )

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/me/media",
                params={
                    "fields": "id,timestamp,like_count,comments_count",
                    "limit": 20,
                    "access_token": account.access_token,
                },
            )
        self._check(response, "Media list")

        return [
            AnalyticsRecord(
                external_post_id=media["id"],
                metrics={
                    "likes": media.get("like_count", 0),
                    "comments": media.get("comments_count", 0),
                },
                recorded_at=date_parser.parse(media["timestamp"]) if media.get("timestamp") else datetime.utcnow(),
            )
            for media in response.json().get("data", [])
        ]
