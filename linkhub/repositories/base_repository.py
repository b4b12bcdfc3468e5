"""Base repository class with proper session management."""

import uuid
from typing import Optional, Union

from sqlalchemy.orm import Session

from linkhub.config.database import get_db
from linkhub.utils.logger import logger


class BaseRepository:
    """
    Base class for all repositories.

    Handles database session lifecycle to prevent connection pool exhaustion.
    Sessions are created on demand and must be closed when done.

    A session can be injected (tests, or several repositories sharing one
    unit of work); injected sessions are left open by close().

    IMPORTANT: Always call commit() after write operations and
    end_read_transaction() after read-only operations to prevent
    "idle in transaction" connections.
    """

    def __init__(self, db: Optional[Session] = None):
        if db is not None:
            self._db_generator = None
            self._db: Session = db
        else:
            self._db_generator = get_db()
            self._db = next(self._db_generator)

    @property
    def db(self) -> Session:
        """Get the database session, ensuring it's in a clean state."""
        try:
            if not self._db.is_active:
                self._db.rollback()
        except Exception as e:
            if self._db_generator is None:
                raise
            # Connection is likely severed; replace the session instead of
            # handing out a broken one.
            logger.warning(f"Session recovery rollback failed, creating new session: {e}")
            self._replace_session()
        return self._db

    def _replace_session(self):
        try:
            self._db.close()
        except Exception as e:
            logger.debug(f"Suppressed error closing broken session: {e}")
        self._db_generator = get_db()
        self._db = next(self._db_generator)

    def commit(self):
        """Commit the current transaction."""
        try:
            self._db.commit()
        except Exception as e:
            logger.warning(f"Error during commit: {e}")
            self._db.rollback()
            raise

    def rollback(self):
        """Rollback the current transaction."""
        try:
            self._db.rollback()
        except Exception as e:
            logger.warning(f"Error during rollback: {e}")

    def end_read_transaction(self):
        """
        End a read-only transaction by committing (releases locks).

        Even SELECT queries start a transaction in SQLAlchemy that must be
        ended. If both commit and rollback fail (dead connection), the
        session is replaced so the next operation starts clean.
        """
        try:
            self._db.commit()
        except Exception:
            try:
                self._db.rollback()
            except Exception:
                if self._db_generator is None:
                    raise
                logger.warning("Session unrecoverable, creating fresh session")
                self._replace_session()

    def close(self):
        """
        Close the database session and return connection to pool.

        Injected sessions are owned by the caller and are not closed.
        """
        if self._db_generator is None:
            return
        try:
            try:
                next(self._db_generator)
            except StopIteration:
                pass  # Expected: generator finishes and closes the session
        except Exception as e:
            logger.warning(f"Error closing database session: {e}")
        finally:
            try:
                self._db.close()
            except Exception as e:
                logger.debug(f"Suppressed error during session close: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @staticmethod
    def _to_uuid(value: Union[str, uuid.UUID, None]) -> Optional[uuid.UUID]:
        """Normalize an id argument (CLI and API pass strings)."""
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))
