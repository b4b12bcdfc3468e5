"""LinkedIn adapter (member shares via ugcPosts)."""

from linkhub.exceptions import PlatformAPIError
from linkhub.services.platforms.base_adapter import (
    AccountCredentials,
    PlatformAdapter,
    PlatformProfile,
    PostContent,
    PublishResult,
)


class LinkedInAdapter(PlatformAdapter):
    """Shares text (and an optional article link) as the connected member."""

    platform = "linkedin"
    RESTLI_HEADERS = {"X-Restli-Protocol-Version": "2.0.0"}

    async def _publish(self, post: PostContent, account: AccountCredentials) -> PublishResult:
        share_content = {
            "shareCommentary": {"text": post.content},
            "shareMediaCategory": "NONE",
        }
        link = post.first_media("link")
        if link:
            share_content["shareMediaCategory"] = "ARTICLE"
            share_content["media"] = [{"status": "READY", "originalUrl": link["url"]}]

        body = {
            "author": f"urn:li:person:{account.account_id}",
            "lifecycleState": "PUBLISHED",
            "specificContent": {"com.linkedin.ugc.ShareContent": share_content},
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.config.api_base_url}/ugcPosts",
                json=body,
                headers={**self._bearer(account.access_token), **self.RESTLI_HEADERS},
            )
        self._check(response, "Share")

        share_urn = response.headers.get("x-restli-id") or response.json().get("id")
        if not share_urn:
            raise PlatformAPIError("No share ID in response", platform=self.platform)

        return PublishResult(
            success=True,
            external_id=share_urn,
            url=f"https://www.linkedin.com/feed/update/{share_urn}",
        )

    async def fetch_profile(self, access_token: str) -> PlatformProfile:
        async with self._client() as client:
            response = await client.get(
                f"{self.config.api_base_url}/userinfo",
                headers=self._bearer(access_token),
            )
        self._check(response, "Profile lookup")

        data = response.json()
        return PlatformProfile(
            account_id=data["sub"],
            handle=data.get("email") or data.get("name"),
            display_name=data.get("name"),
            profile_data=data,
        )
