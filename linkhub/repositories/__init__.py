"""Repository layer - database access."""

from linkhub.repositories.base_repository import BaseRepository
from linkhub.repositories.post_repository import PostRepository
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.repositories.oauth_state_repository import OAuthStateRepository
from linkhub.repositories.notification_repository import NotificationRepository
from linkhub.repositories.service_run_repository import ServiceRunRepository

__all__ = [
    "BaseRepository",
    "PostRepository",
    "SocialAccountRepository",
    "OAuthStateRepository",
    "NotificationRepository",
    "ServiceRunRepository",
]
