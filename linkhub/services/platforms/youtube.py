"""YouTube Data API v3 adapter."""

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


class YouTubeAdapter(PlatformAdapter):
    """
    Uploads the post's first video with a resumable upload session.

    The post content becomes the video description; title, tags, category
    and visibility come from the post's video fields.
    """

    platform = "youtube"
    UPLOAD_API = "https://www.googleapis.com/upload/youtube/v3"
    UPLOAD_TIMEOUT = 300.0

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        video = post.first_media("video")
        if not video:
            return PublishResult(success=False, error="YouTube requires a video")

        metadata = {
            "snippet": {
                "title": (post.title or post.content[:100] or "Untitled")[:100],
                "description": post.content,
                "tags": post.tags,
                "categoryId": post.category_id,
            },
            "status": {"privacyStatus": post.visibility},
        }

        async with self._client(timeout=self.UPLOAD_TIMEOUT) as client:
            source = await client.get(video["url"], follow_redirects=True)
            self._check(source, "Video download")
            content_type = source.headers.get("content-type", "video/*")

            init = await client.post(
                f"{self.UPLOAD_API}/videos",
                params={"uploadType": "resumable", "part": "snippet,status"},
                json=metadata,
                headers={
                    **self._bearer(account.access_token),
                    "X-Upload-Content-Type": content_type,
                    "X-Upload-Content-Length": str(len(source.content)),
                },
            )
            self._check(init, "Upload session")
            upload_url = init.headers.get("location")
            if not upload_url:
                raise PlatformAPIError("No upload URL in response", platform=self.platform)

            upload = await client.put(
                upload_url,
                content=source.content,
                headers={**self._bearer(account.access_token), "Content-Type": content_type},
            )
            self._check(upload, "Video upload")

        video_id = upload.json().get("id")
        if not video_id:
            raise PlatformAPIError("No video ID in upload response", platform=self.platform)

        return PublishResult(success=True, external_id=video_id, url=f"https://www.youtube.com/watch?v={video_id}")

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/channels",
                params={"part": "snippet,statistics", "mine": "true"},
                headers=self._bearer(access_token),
            )
        self._check(response, "Channel lookup")

        items = response.json().get("items", [])
        if not items:
            raise PlatformAPIError("No YouTube channel for this Google account", platform=self.platform)

        channel = items[0]
        snippet = channel.get("snippet", {})
        return PlatformProfile(
            account_id=channel["id"],
            handle=snippet.get("customUrl") or snippet.get("title"),
            display_name=snippet.get("title"),
            profile_data={"snippet": snippet, "statistics": channel.get("statistics", {})},
        )

    async def _fetch_analytics(self, account: AccountCredentials) -> List[AnalyticsRecord]:
        headers = self._bearer(account.access_token)
        async with self._client() as client:
            search = await client.get(
                f"{self.config.api_base_url}/search",
                params={"part": "id", "forMine": "true", "type": "video", "maxResults": 10},
                headers=headers,
            )
            self._check(search, "Video search")
            video_ids = [item["id"]["videoId"] for item in search.json().get("items", [])]
            if not video_ids:
                return []

            stats = await client.get(
                f"{self.config.api_base_url}/videos",
                params={"part": "statistics", "id": ",".join(video_ids)},
                headers=headers,
            )
            self._check(stats, "Video statistics")

        now = datetime.utcnow()
        records = []
        for item in stats.json().get("items", []):
            statistics = item.get("statistics", {})
            records.append(
                AnalyticsRecord(
                    external_post_id=item["id"],
                    metrics={
                        "views": int(statistics.get("viewCount", 0)),
                        "likes": int(statistics.get("likeCount", 0)),
                        "comments": int(statistics.get("commentCount", 0)),
                    },
                    recorded_at=now,
                )
            )
        return records
