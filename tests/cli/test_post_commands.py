"""Tests for post pipeline CLI commands."""

from datetime import datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from cli.commands.posts import cancel_post, list_posts, process_queue, promote_due, publish_post
from linkhub.exceptions import PostNotFoundError, PostStateError

USER_ID = "6f1c2b0e-6a43-4c61-9d9b-2f5f2f1f0a11"


@pytest.mark.unit
class TestListPostsCommand:
    @patch("cli.commands.posts.PostService")
    def test_lists_posts(self, mock_service_class):
        post = Mock(
            id="8d4cbb7e-0000-0000-0000-000000000000",
            display_title="Launch",
            platforms=["twitter"],
            status="scheduled",
            scheduled_at=datetime(2030, 1, 1, 9, 0),
            attempts=0,
        )
        mock_service_class.return_value.list_posts.return_value = [post]

        result = CliRunner().invoke(list_posts, ["--user", USER_ID])

        assert result.exit_code == 0
        assert "Launch" in result.output
        assert "2030-01-01" in result.output
        mock_service_class.return_value.list_posts.assert_called_once_with(USER_ID, limit=20)
        mock_service_class.return_value.close.assert_called_once()

    @patch("cli.commands.posts.PostService")
    def test_no_posts(self, mock_service_class):
        mock_service_class.return_value.list_posts.return_value = []

        result = CliRunner().invoke(list_posts, ["--user", USER_ID])

        assert result.exit_code == 0
        assert "No posts found" in result.output

    def test_user_required(self):
        result = CliRunner().invoke(list_posts, [])

        assert result.exit_code != 0


@pytest.mark.unit
class TestWorkerCommands:
    @patch("cli.commands.posts.SchedulerService")
    def test_promote_due(self, mock_service_class):
        mock_service_class.return_value.promote_due_posts.return_value = {
            "due": 3,
            "queued": 2,
            "skipped": 1,
            "failed": 0,
        }

        result = CliRunner().invoke(promote_due, [])

        assert result.exit_code == 0
        assert "Queued: 2" in result.output
        mock_service_class.return_value.promote_due_posts.assert_called_once_with(triggered_by="cli")

    @patch("cli.commands.posts.PublisherService")
    def test_process_queue(self, mock_service_class):
        mock_service_class.return_value.process_queue = AsyncMock(
            return_value={"processed": 2, "published": 1, "retrying": 1, "failed": 0, "skipped": 0}
        )

        result = CliRunner().invoke(process_queue, ["--limit", "5"])

        assert result.exit_code == 0
        assert "Published: 1" in result.output
        assert "Retrying: 1" in result.output
        mock_service_class.return_value.process_queue.assert_awaited_once_with(limit=5, triggered_by="cli")

    @patch("cli.commands.posts.PublisherService")
    def test_process_queue_error_aborts(self, mock_service_class):
        mock_service_class.return_value.process_queue = AsyncMock(side_effect=RuntimeError("db down"))

        result = CliRunner().invoke(process_queue, [])

        assert result.exit_code != 0
        assert "db down" in result.output
        mock_service_class.return_value.close.assert_called_once()


@pytest.mark.unit
class TestPostActionCommands:
    @patch("cli.commands.posts.PostService")
    def test_publish_post(self, mock_service_class):
        mock_service_class.return_value.publish_now.return_value = Mock(id="p1", status="queued")

        result = CliRunner().invoke(publish_post, ["p1", "--user", USER_ID])

        assert result.exit_code == 0
        assert "Post p1 is queued" in result.output

    @patch("cli.commands.posts.PostService")
    def test_publish_missing_post(self, mock_service_class):
        mock_service_class.return_value.publish_now.side_effect = PostNotFoundError("p1")

        result = CliRunner().invoke(publish_post, ["p1", "--user", USER_ID])

        assert result.exit_code != 0
        assert "Post not found" in result.output

    @patch("cli.commands.posts.PostService")
    def test_cancel_published_post(self, mock_service_class):
        mock_service_class.return_value.cancel_post.side_effect = PostStateError("Cannot cancel a published post")

        result = CliRunner().invoke(cancel_post, ["p1", "--user", USER_ID])

        assert result.exit_code != 0
        assert "Cannot cancel" in result.output
