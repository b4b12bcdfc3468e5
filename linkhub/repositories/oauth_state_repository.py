"""OAuth state repository."""

from datetime import datetime
from typing import Optional

from linkhub.models.oauth_state import OAuthState
from linkhub.repositories.base_repository import BaseRepository


class OAuthStateRepository(BaseRepository):
    """Repository for pending OAuth authorizations."""

    def create(
        self,
        state: str,
        user_id: str,
        provider: str,
        expires_at: datetime,
        code_verifier: Optional[str] = None,
    ) -> OAuthState:
        record = OAuthState(
            state=state,
            user_id=self._to_uuid(user_id),
            provider=provider,
            expires_at=expires_at,
            code_verifier=code_verifier,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def get_by_state(self, state: str) -> Optional[OAuthState]:
        return self.db.query(OAuthState).filter(OAuthState.state == state).first()

    def delete(self, record: OAuthState) -> None:
        self.db.delete(record)
        self.db.commit()

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Purge expired states. Returns number deleted."""
        count = (
            self.db.query(OAuthState)
            .filter(OAuthState.expires_at < (now or datetime.utcnow()))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count
