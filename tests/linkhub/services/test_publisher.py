"""Tests for PublisherService."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest

from linkhub.config.settings import settings
from linkhub.models.notification import Notification
from linkhub.repositories.post_repository import PostRepository
from linkhub.services.core.publisher import (
    NO_ACCOUNT_ERROR,
    NO_PUBLISHER_ERROR,
    PublisherService,
)
from linkhub.services.platforms import AdapterRegistry, PublishResult


def fake_adapter(platform, result=None):
    adapter = Mock()
    adapter.platform = platform
    adapter.publish = AsyncMock(
        return_value=result or PublishResult(success=True, external_id=f"{platform}-post-1", url=f"https://{platform}.example/1")
    )
    return adapter


@pytest.mark.unit
class TestPublisherService:
    @pytest.fixture
    def registry(self):
        registry = AdapterRegistry()
        registry.register(fake_adapter("twitter"))
        return registry

    @pytest.fixture
    def service(self, test_db, registry, encryption):
        return PublisherService(registry=registry, db=test_db)

    @pytest.fixture
    def queued_post(self, make_post, user_id):
        def _queued(**fields):
            fields.setdefault("scheduled_at", datetime.utcnow() - timedelta(minutes=1))
            return make_post(user_id, status="queued", **fields)

        return _queued

    @pytest.mark.asyncio
    async def test_publishes_when_every_platform_succeeds(self, service, test_db, queued_post, make_account, user_id):
        make_account(user_id, "twitter")
        post = queued_post()

        result = await service.process_queue()

        assert result == {"processed": 1, "published": 1, "retrying": 0, "failed": 0, "skipped": 0}
        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.status == "published"
        assert post.published_at is not None
        assert post.publish_result["twitter"] == {
            "success": True,
            "data": {"external_id": "twitter-post-1", "url": "https://twitter.example/1"},
        }
        assert post.attempts == 0
        notification = test_db.query(Notification).one()
        assert notification.type == "post_published"

    @pytest.mark.asyncio
    async def test_adapter_receives_decrypted_credentials(self, service, registry, queued_post, make_account, user_id):
        make_account(user_id, "twitter")
        queued_post(content="Hello from LinkHub")

        await service.process_queue()

        content, credentials = registry.get("twitter").publish.await_args.args
        assert content.content == "Hello from LinkHub"
        assert credentials.access_token == "access-token"
        assert credentials.refresh_token == "refresh-token"

    @pytest.mark.asyncio
    async def test_partial_failure_schedules_retry(self, service, test_db, queued_post, make_account, user_id):
        """twitter succeeds, youtube has no adapter -> retry in 60s with both results kept."""
        make_account(user_id, "twitter")
        make_account(user_id, "youtube")
        post = queued_post(platforms=["twitter", "youtube"])
        before = datetime.utcnow()

        result = await service.process_queue()

        assert result["retrying"] == 1
        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.status == "scheduled"
        assert post.attempts == 1
        assert post.scheduled_at >= before + timedelta(seconds=60)
        assert post.publish_result["twitter"]["success"] is True
        assert post.publish_result["youtube"] == {"success": False, "error": NO_PUBLISHER_ERROR}
        assert "No publisher configured" in post.last_error

    @pytest.mark.asyncio
    async def test_missing_account_is_platform_failure(self, service, test_db, queued_post, registry):
        post = queued_post()

        await service.process_queue()

        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.publish_result["twitter"] == {"success": False, "error": NO_ACCOUNT_ERROR}
        registry.get("twitter").publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_account_is_not_used(self, service, test_db, queued_post, make_account, user_id, registry):
        make_account(user_id, "twitter", token_expires_at=datetime.utcnow() - timedelta(hours=1))
        post = queued_post()

        await service.process_queue()

        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.publish_result["twitter"]["error"] == NO_ACCOUNT_ERROR
        registry.get("twitter").publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_third_failure_marks_failed_and_notifies(self, service, test_db, queued_post, make_account, user_id, registry):
        registry.get("twitter").publish.return_value = PublishResult(success=False, error="rate limited")
        make_account(user_id, "twitter")
        post = queued_post(attempts=2)

        result = await service.process_queue()

        assert result["failed"] == 1
        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.status == "failed"
        assert post.attempts == 3
        notification = test_db.query(Notification).one()
        assert notification.type == "post_failed"
        assert notification.priority == "high"
        assert "twitter: rate limited" in notification.message

    @pytest.mark.asyncio
    async def test_adapter_timeout_is_platform_failure(self, service, test_db, queued_post, make_account, user_id, registry):
        async def slow_publish(post, account):
            await asyncio.sleep(5)

        registry.get("twitter").publish = AsyncMock(side_effect=slow_publish)
        make_account(user_id, "twitter")
        post = queued_post()

        with patch.object(settings, "ADAPTER_TIMEOUT_SECONDS", 0.01):
            await service.process_queue()

        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.status == "scheduled"
        assert "Timed out" in post.publish_result["twitter"]["error"]

    @pytest.mark.asyncio
    async def test_adapter_exception_is_platform_failure(self, service, test_db, queued_post, make_account, user_id, registry):
        registry.get("twitter").publish = AsyncMock(side_effect=RuntimeError("boom"))
        make_account(user_id, "twitter")
        post = queued_post()

        await service.process_queue()

        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.publish_result["twitter"] == {"success": False, "error": "boom"}

    @pytest.mark.asyncio
    async def test_post_claimed_elsewhere_is_skipped(self, service, queued_post, registry):
        post = queued_post()

        with patch.object(service.post_repo, "apply_transition", return_value=False):
            outcome = await service.publish_post(post.id)

        assert outcome == "skipped"
        registry.get("twitter").publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_queued_post_is_skipped(self, service, make_post, user_id):
        post = make_post(user_id, status="draft")

        assert await service.publish_post(post.id) == "skipped"

    @pytest.mark.asyncio
    async def test_procedure_error_counts_as_attempt(self, service, test_db, queued_post):
        post = queued_post()

        with patch.object(service, "_publish_to_platforms", AsyncMock(side_effect=RuntimeError("lost connection"))):
            outcome = await service.publish_post(post.id)

        assert outcome == "retrying"
        post = PostRepository(db=test_db).get_by_id(post.id)
        assert post.attempts == 1
        assert post.last_error == "lost connection"

    @pytest.mark.asyncio
    async def test_one_bad_post_does_not_stop_the_batch(self, service, queued_post, make_account, user_id):
        make_account(user_id, "twitter")
        first = queued_post(scheduled_at=datetime.utcnow() - timedelta(minutes=5))
        queued_post(scheduled_at=datetime.utcnow() - timedelta(minutes=1))
        original = service.publish_post

        async def flaky(post_id):
            if post_id == first.id:
                raise RuntimeError("unexpected")
            return await original(post_id)

        with patch.object(service, "publish_post", side_effect=flaky):
            result = await service.process_queue()

        assert result["failed"] == 1
        assert result["published"] == 1
        assert result["processed"] == 2

    @pytest.mark.asyncio
    async def test_batch_size_limit(self, service, queued_post, make_account, user_id):
        make_account(user_id, "twitter")
        for _ in range(3):
            queued_post()

        result = await service.process_queue(limit=2)

        assert result["processed"] == 2
