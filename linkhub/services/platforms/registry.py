"""Registry mapping platform names to adapter instances."""

from typing import Dict, List, Optional

from linkhub.config.oauth import get_provider_config
from linkhub.services.platforms.base_adapter import PlatformAdapter
from linkhub.services.platforms.facebook import FacebookAdapter
from linkhub.services.platforms.instagram import InstagramAdapter
from linkhub.services.platforms.linkedin import LinkedInAdapter
from linkhub.services.platforms.tiktok import TikTokAdapter
from linkhub.services.platforms.twitter import TwitterAdapter
from linkhub.services.platforms.youtube import YouTubeAdapter
from linkhub.utils.logger import logger


class AdapterRegistry:
    """Platform -> adapter lookup shared by the publisher, token refresher and OAuth flow.

    Supports:
        twitter, instagram, facebook, linkedin, youtube, tiktok

    A platform with no registered adapter is reported by the publisher as
    "No publisher configured".
    """

    _adapter_classes: Dict[str, type] = {
        "twitter": TwitterAdapter,
        "instagram": InstagramAdapter,
        "facebook": FacebookAdapter,
        "linkedin": LinkedInAdapter,
        "youtube": YouTubeAdapter,
        "tiktok": TikTokAdapter,
    }

    def __init__(self):
        self._adapters: Dict[str, PlatformAdapter] = {}

    def register(self, adapter: PlatformAdapter) -> None:
        """Register (or replace) the adapter for adapter.platform."""
        self._adapters[adapter.platform] = adapter
        logger.debug(f"Registered platform adapter: {adapter.platform}")

    def get(self, platform: str) -> Optional[PlatformAdapter]:
        return self._adapters.get(platform.lower())

    def platforms(self) -> List[str]:
        return sorted(self._adapters)

    def __contains__(self, platform: str) -> bool:
        return platform.lower() in self._adapters

    @classmethod
    def adapter_class(cls, platform: str) -> Optional[type]:
        return cls._adapter_classes.get(platform.lower())

    @classmethod
    def from_settings(cls) -> "AdapterRegistry":
        """Registry with an adapter for every platform whose OAuth app is configured."""
        registry = cls()
        for platform, adapter_class in cls._adapter_classes.items():
            config = get_provider_config(platform)
            if config and config.is_configured:
                registry.register(adapter_class(config=config))
            else:
                logger.info(f"Platform {platform} not configured (missing client credentials)")
        return registry


_default_registry: Optional[AdapterRegistry] = None


def default_registry() -> AdapterRegistry:
    """Process-wide registry, built once from settings."""
    global _default_registry
    if _default_registry is None:
        _default_registry = AdapterRegistry.from_settings()
    return _default_registry
