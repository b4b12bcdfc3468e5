"""Social account model - a user's connected platform account and its tokens."""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from linkhub.config.database import Base


class SocialAccount(Base):
    """
    Connected social account (the token store record).

    Tokens are encrypted at the application level before storage and are
    never serialized to clients (see to_public_dict).

    Lifecycle:
    - Created/updated by the OAuth callback (upsert on user + platform)
    - Tokens rotated by the token refresh manager
    - Revoked on disconnect: tokens scrubbed, row kept for audit
    """

    __tablename__ = "social_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)

    platform = Column(String(20), nullable=False, index=True)
    account_id = Column(String(255), nullable=False)  # Platform's external ID
    account_handle = Column(String(255))  # Lower-cased @handle
    account_name = Column(String(255))

    # Token data (encrypted at application level)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True, index=True)  # NULL = never expires

    profile_data = Column(JSON, nullable=False, default=dict)
    permissions = Column(JSON, nullable=False, default=list)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)
    is_revoked = Column(Boolean, nullable=False, default=False)
    revoked_at = Column(DateTime)

    # Sync tracking (token refresh outcome)
    last_sync_at = Column(DateTime)
    sync_status = Column(String(20), nullable=False, default="idle")
    sync_error = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "platform", name="unique_user_platform_account"),
        CheckConstraint(
            "sync_status IN ('idle', 'syncing', 'failed')",
            name="check_social_account_sync_status",
        ),
    )

    def __repr__(self):
        return f"<SocialAccount {self.platform}:{self.account_handle or self.account_id}>"

    def is_token_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the access token has expired. No expiry means never expired."""
        if self.token_expires_at is None:
            return False
        return (now or datetime.utcnow()) > self.token_expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Usable for publishing: active, not revoked, token not expired."""
        return bool(self.is_active) and not self.is_revoked and not self.is_token_expired(now)

    def hours_until_expiry(self, now: Optional[datetime] = None) -> Optional[float]:
        """Get hours until token expires, or None if no expiry."""
        if self.token_expires_at is None:
            return None
        delta = self.token_expires_at - (now or datetime.utcnow())
        return max(0, delta.total_seconds() / 3600)

    def to_public_dict(self) -> dict:
        """Client-safe serialization (no tokens)."""
        return {
            "id": str(self.id),
            "platform": self.platform,
            "account_id": self.account_id,
            "account_handle": self.account_handle,
            "account_name": self.account_name,
            "profile_data": self.profile_data or {},
            "permissions": self.permissions or [],
            "token_expires_at": self.token_expires_at.isoformat() if self.token_expires_at else None,
            "is_active": self.is_active,
            "is_revoked": self.is_revoked,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "sync_status": self.sync_status,
            "sync_error": self.sync_error,
        }
