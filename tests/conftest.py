"""Pytest configuration and fixtures."""

import os
import uuid
from datetime import datetime, timedelta

import pytest
from dotenv import load_dotenv

# Load test environment variables before importing any application code
load_dotenv(".env.test", override=True)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENCRYPTION_KEY", "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE=")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from linkhub.config.database import Base  # noqa: E402
from linkhub.models import (  # noqa: E402, F401
    Notification,
    OAuthState,
    Post,
    ServiceRun,
    SocialAccount,
)
from linkhub.utils.encryption import TokenEncryption  # noqa: E402


@pytest.fixture(scope="function")
def test_db():
    """
    Function-scoped fixture providing a fresh in-memory SQLite session.

    Every test gets its own empty schema, so there is nothing to roll back.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def encryption():
    """Real Fernet encryption using the test key."""
    TokenEncryption.reset()
    yield TokenEncryption()
    TokenEncryption.reset()


@pytest.fixture
def make_post(test_db):
    """Insert a Post directly, bypassing validation."""

    def _make_post(user_id, **fields):
        values = {
            "content": "Hello world",
            "platforms": ["twitter"],
            "status": "draft",
            "media": [],
            "tags": [],
        }
        values.update(fields)
        post = Post(user_id=user_id, **values)
        test_db.add(post)
        test_db.commit()
        test_db.refresh(post)
        return post

    return _make_post


@pytest.fixture
def make_account(test_db, encryption):
    """Insert a SocialAccount with encrypted tokens."""

    def _make_account(user_id, platform="twitter", **fields):
        values = {
            "account_id": f"{platform}-123",
            "account_handle": "linkhubtester",
            "access_token": encryption.encrypt("access-token"),
            "refresh_token": encryption.encrypt("refresh-token"),
            "token_expires_at": datetime.utcnow() + timedelta(days=30),
        }
        values.update(fields)
        account = SocialAccount(user_id=user_id, platform=platform, **values)
        test_db.add(account)
        test_db.commit()
        test_db.refresh(account)
        return account

    return _make_account
