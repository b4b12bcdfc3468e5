"""OAuth2 endpoints and scopes for each social platform."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from linkhub.config.settings import settings


@dataclass(frozen=True)
class ProviderConfig:
    """Static OAuth configuration for one platform."""

    name: str
    auth_url: str
    token_url: str
    scopes: Tuple[str, ...]
    api_base_url: str
    scope_separator: str = " "
    uses_pkce: bool = False
    client_id_param: str = "client_id"
    extra_auth_params: Tuple[Tuple[str, str], ...] = ()

    @property
    def credentials(self) -> Tuple[Optional[str], Optional[str]]:
        return settings.oauth_credentials(self.name)

    @property
    def client_id(self) -> Optional[str]:
        return self.credentials[0]

    @property
    def client_secret(self) -> Optional[str]:
        return self.credentials[1]

    @property
    def callback_url(self) -> str:
        base = settings.OAUTH_REDIRECT_BASE_URL.rstrip("/")
        return f"{base}/api/social/callback/{self.name}"

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


PROVIDERS: Dict[str, ProviderConfig] = {
    "twitter": ProviderConfig(
        name="twitter",
        auth_url="https://twitter.com/i/oauth2/authorize",
        token_url="https://api.twitter.com/2/oauth2/token",
        scopes=("tweet.read", "tweet.write", "users.read", "offline.access"),
        api_base_url="https://api.twitter.com/2",
        uses_pkce=True,
    ),
    "facebook": ProviderConfig(
        name="facebook",
        auth_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        scopes=(
            "public_profile",
            "email",
            "pages_manage_posts",
            "pages_read_engagement",
            "pages_show_list",
        ),
        api_base_url="https://graph.facebook.com/v18.0",
        scope_separator=",",
    ),
    "instagram": ProviderConfig(
        name="instagram",
        auth_url="https://api.instagram.com/oauth/authorize",
        token_url="https://api.instagram.com/oauth/access_token",
        scopes=("user_profile", "user_media"),
        api_base_url="https://graph.instagram.com",
        scope_separator=",",
    ),
    "linkedin": ProviderConfig(
        name="linkedin",
        auth_url="https://www.linkedin.com/oauth/v2/authorization",
        token_url="https://www.linkedin.com/oauth/v2/accessToken",
        scopes=("openid", "profile", "email", "w_member_social"),
        api_base_url="https://api.linkedin.com/v2",
    ),
    "youtube": ProviderConfig(
        name="youtube",
        auth_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        scopes=(
            "https://www.googleapis.com/auth/youtube.readonly",
            "https://www.googleapis.com/auth/youtube.upload",
        ),
        api_base_url="https://www.googleapis.com/youtube/v3",
        extra_auth_params=(("access_type", "offline"), ("prompt", "consent")),
    ),
    "tiktok": ProviderConfig(
        name="tiktok",
        auth_url="https://www.tiktok.com/v2/auth/authorize",
        token_url="https://open.tiktokapis.com/v2/oauth/token/",
        scopes=("user.info.basic", "video.list", "video.upload"),
        api_base_url="https://open.tiktokapis.com/v2",
        scope_separator=",",
        client_id_param="client_key",
    ),
}


def get_provider_config(provider: str) -> Optional[ProviderConfig]:
    return PROVIDERS.get(provider.lower())


def get_configured_providers() -> List[str]:
    return [name for name, config in PROVIDERS.items() if config.is_configured]
