"""Tests for BaseService execution tracking and session housekeeping."""

from unittest.mock import patch

import pytest

from linkhub.models.service_run import ServiceRun
from linkhub.repositories.post_repository import PostRepository
from linkhub.services.base_service import BaseService
from linkhub.services.core.notification_service import NotificationService


class ExampleService(BaseService):
    def __init__(self, db=None):
        super().__init__(db)
        self.post_repo = PostRepository(db)
        self.notification_service = NotificationService(db)

    def work(self, fail=False):
        with self.track_execution("work", triggered_by="cli", input_params={"fail": fail}) as run_id:
            if fail:
                raise RuntimeError("boom")
            self.set_result_summary(run_id, {"done": 1})
            return "ok"


@pytest.mark.unit
class TestTrackExecution:
    def test_success_recorded(self, test_db):
        service = ExampleService(db=test_db)

        assert service.work() == "ok"

        run = test_db.query(ServiceRun).one()
        assert run.service_name == "ExampleService"
        assert run.status == "completed"
        assert run.triggered_by == "cli"
        assert run.result_summary == {"done": 1}
        assert run.duration_ms >= 0

    def test_failure_recorded_and_reraised(self, test_db):
        service = ExampleService(db=test_db)

        with pytest.raises(RuntimeError, match="boom"):
            service.work(fail=True)

        run = test_db.query(ServiceRun).one()
        assert run.status == "failed"
        assert run.error_type == "RuntimeError"
        assert "boom" in run.stack_trace


@pytest.mark.unit
class TestSessionHousekeeping:
    def test_repositories_include_collaborator_services(self, test_db):
        service = ExampleService(db=test_db)

        repos = service._repositories()

        assert service.post_repo in repos
        assert service.notification_service.notification_repo in repos
        assert service.service_run_repo in repos

    def test_cleanup_ends_every_read_transaction(self, test_db):
        service = ExampleService(db=test_db)

        with patch.object(PostRepository, "end_read_transaction") as end_read:
            service.cleanup_transactions()

        end_read.assert_called_once()
