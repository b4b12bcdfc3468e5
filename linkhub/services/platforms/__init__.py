"""Social platform adapters."""

from linkhub.services.platforms.base_adapter import (
    AccountCredentials,
    AnalyticsRecord,
    PlatformAdapter,
    PlatformProfile,
    PostContent,
    PublishResult,
    RefreshedToken,
)
from linkhub.services.platforms.registry import AdapterRegistry, default_registry

__all__ = [
    "AccountCredentials",
    "AnalyticsRecord",
    "PlatformAdapter",
    "PlatformProfile",
    "PostContent",
    "PublishResult",
    "RefreshedToken",
    "AdapterRegistry",
    "default_registry",
]
