"""SQLAlchemy models."""
from linkhub.models.post import Post
from linkhub.models.social_account import SocialAccount
from linkhub.models.oauth_state import OAuthState
from linkhub.models.notification import Notification
from linkhub.models.service_run import ServiceRun

__all__ = [
    "Post",
    "SocialAccount",
    "OAuthState",
    "Notification",
    "ServiceRun",
]
