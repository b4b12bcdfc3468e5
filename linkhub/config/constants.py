"""Shared application constants.

Constants used by multiple modules are defined here to ensure consistency.
Module-specific constants should be defined as class-level attributes on
their respective service classes instead.
"""

# Supported social platforms (order is the display order in the CLI)
PLATFORMS = ("twitter", "instagram", "facebook", "linkedin", "tiktok", "youtube")

# Post lifecycle
POST_STATUSES = (
    "draft",
    "scheduled",
    "queued",
    "publishing",
    "published",
    "failed",
    "cancelled",
)
IMMUTABLE_POST_STATUSES = ("queued", "publishing", "published")

# Post content limits
MAX_CONTENT_LENGTH = 5000
MAX_TITLE_LENGTH = 100
MEDIA_TYPES = ("image", "video", "link", "other")
VISIBILITY_OPTIONS = ("public", "private", "unlisted")
DEFAULT_CATEGORY_ID = "22"  # YouTube "People & Blogs"

# Publishing
MAX_PUBLISH_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 60
MAX_LIST_POSTS = 100

# Token lifecycle
TOKEN_REFRESH_WINDOW_HOURS = 24
TOKEN_ALERT_WINDOW_DAYS = 3
TOKEN_ALERT_DEDUPE_HOURS = 24
REVOKED_TOKEN_SENTINEL = "REVOKED"
OAUTH_STATE_TTL_SECONDS = 600  # 10 minutes

SYNC_STATUSES = ("idle", "syncing", "failed")

# Notifications
NOTIFICATION_TYPES = (
    "post_published",
    "post_failed",
    "post_scheduled",
    "token_expiring",
)
NOTIFICATION_PRIORITIES = ("low", "normal", "high", "urgent")
