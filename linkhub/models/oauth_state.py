"""OAuth state model - short-lived CSRF state for the authorization redirect."""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from linkhub.config.database import Base


class OAuthState(Base):
    """
    Pending OAuth authorization.

    One row per started flow. Deleted when the callback consumes it;
    expired rows are purged whenever a new flow starts.
    """

    __tablename__ = "oauth_states"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    state = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(Uuid, nullable=False)
    provider = Column(String(20), nullable=False)
    code_verifier = Column(String(128))  # PKCE (twitter)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<OAuthState {self.provider} user={self.user_id} expires {self.expires_at}>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at
