"""Tests for SchedulerService."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from linkhub.repositories.post_repository import PostRepository
from linkhub.services.core.scheduler import SchedulerService


@pytest.mark.unit
class TestSchedulerService:
    @pytest.fixture
    def service(self, test_db):
        return SchedulerService(db=test_db)

    def test_promotes_only_due_posts(self, service, test_db, make_post, user_id):
        now = datetime.utcnow()
        due = make_post(user_id, status="scheduled", scheduled_at=now - timedelta(minutes=1))
        future = make_post(user_id, status="scheduled", scheduled_at=now + timedelta(hours=1))

        result = service.promote_due_posts(now=now)

        assert result == {"due": 1, "queued": 1, "skipped": 0, "failed": 0}
        repo = PostRepository(db=test_db)
        assert repo.get_by_id(due.id).status == "queued"
        assert repo.get_by_id(due.id).queued_at == now
        assert repo.get_by_id(future.id).status == "scheduled"

    def test_leaves_terminal_posts_alone(self, service, test_db, make_post, user_id):
        now = datetime.utcnow()
        past = now - timedelta(days=1)
        published = make_post(user_id, status="published", scheduled_at=past)
        failed = make_post(user_id, status="failed", scheduled_at=past)
        cancelled = make_post(user_id, status="cancelled", scheduled_at=past, cancelled_at=past)

        result = service.promote_due_posts(now=now)

        assert result["due"] == 0
        repo = PostRepository(db=test_db)
        assert repo.get_by_id(published.id).status == "published"
        assert repo.get_by_id(failed.id).status == "failed"
        assert repo.get_by_id(cancelled.id).status == "cancelled"

    def test_post_changed_concurrently_is_skipped(self, service, make_post, user_id):
        now = datetime.utcnow()
        make_post(user_id, status="scheduled", scheduled_at=now - timedelta(minutes=1))

        with patch.object(service.post_repo, "apply_transition", return_value=False):
            result = service.promote_due_posts(now=now)

        assert result["skipped"] == 1
        assert result["queued"] == 0

    def test_error_on_one_post_does_not_stop_others(self, service, make_post, user_id):
        now = datetime.utcnow()
        make_post(user_id, status="scheduled", scheduled_at=now - timedelta(minutes=2))
        make_post(user_id, status="scheduled", scheduled_at=now - timedelta(minutes=1))
        original = service.post_repo.apply_transition
        calls = []

        def flaky(transition):
            calls.append(transition)
            if len(calls) == 1:
                raise RuntimeError("deadlock detected")
            return original(transition)

        with patch.object(service.post_repo, "apply_transition", side_effect=flaky):
            result = service.promote_due_posts(now=now)

        assert result == {"due": 2, "queued": 1, "skipped": 0, "failed": 1}

    def test_records_service_run(self, service, test_db):
        from linkhub.models.service_run import ServiceRun

        service.promote_due_posts()

        run = test_db.query(ServiceRun).one()
        assert run.service_name == "SchedulerService"
        assert run.method_name == "promote_due_posts"
        assert run.status == "completed"
        assert run.result_summary == {"due": 0, "queued": 0, "skipped": 0, "failed": 0}
