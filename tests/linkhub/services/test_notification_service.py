"""Tests for NotificationService."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from linkhub.models.notification import Notification
from linkhub.services.core.notification_service import NotificationService, format_expires_in
from linkhub.services.core.post_lifecycle import NotificationCommand


@pytest.mark.unit
class TestFormatExpiresIn:
    @pytest.mark.parametrize(
        "hours,expected",
        [
            (None, "an unknown amount of time"),
            (0.5, "less than an hour"),
            (1, "1 hour"),
            (5.7, "5 hours"),
            (72, "3 days"),
        ],
    )
    def test_wording(self, hours, expected):
        assert format_expires_in(hours) == expected


@pytest.mark.unit
class TestNotificationService:
    @pytest.fixture
    def service(self, test_db):
        return NotificationService(db=test_db)

    def test_post_failed_is_high_priority(self, service, user_id):
        notification = service.notify_post_failed(user_id, "post-1", "Launch", "twitter: rate limited")

        assert notification.title == "Post Failed"
        assert notification.message == 'Failed to publish "Launch": twitter: rate limited'
        assert notification.priority == "high"
        assert notification.action_url == "/posts/post-1"

    def test_token_expiring_deduplicated_within_24h(self, service, test_db, user_id):
        first = service.notify_token_expiring(user_id, "acct-1", "twitter", 30)
        second = service.notify_token_expiring(user_id, "acct-1", "twitter", 29)
        other_account = service.notify_token_expiring(user_id, "acct-2", "facebook", 29)

        assert first is not None
        assert second is None
        assert other_account is not None
        assert test_db.query(Notification).count() == 2
        assert "expire in 30 hours" in first.message

    def test_token_expiring_sent_again_after_dedupe_window(self, service, test_db, user_id):
        old = service.notify_token_expiring(user_id, "acct-1", "twitter", 30)
        old.created_at = datetime.utcnow() - timedelta(hours=25)
        test_db.commit()

        assert service.notify_token_expiring(user_id, "acct-1", "twitter", 5) is not None

    def test_storage_failure_does_not_raise(self, service, user_id):
        with patch.object(service.notification_repo, "create", side_effect=RuntimeError("db down")):
            assert service.notify_post_published(user_id, "post-1", "Launch") is None

    def test_execute_runs_commands(self, service, test_db, user_id):
        service.execute(
            [
                NotificationCommand(kind="post_published", user_id=user_id, post_id="p1", title="A"),
                NotificationCommand(kind="post_failed", user_id=user_id, post_id="p2", title="B", error="nope"),
            ]
        )

        types = sorted(n.type for n in test_db.query(Notification).all())
        assert types == ["post_failed", "post_published"]
