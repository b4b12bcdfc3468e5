"""Tests for social account and configuration CLI commands."""

from datetime import datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from cli.commands.accounts import (
    account_analytics,
    disconnect_account,
    list_accounts,
    refresh_account,
    refresh_tokens,
)
from cli.commands.config import check_config, recent_runs
from linkhub.exceptions import AccountNotFoundError, PlatformNotConfiguredError
from linkhub.services.platforms import AnalyticsRecord

USER_ID = "6f1c2b0e-6a43-4c61-9d9b-2f5f2f1f0a11"


@pytest.mark.unit
class TestListAccountsCommand:
    @patch("cli.commands.accounts.TokenRefreshService")
    @patch("cli.commands.accounts.SocialAccountRepository")
    def test_shows_token_health(self, mock_repo_class, mock_refresh_class):
        account = Mock(
            platform="twitter",
            account_handle="linkhubhq",
            account_id="987",
            user_id=USER_ID,
            is_revoked=False,
            sync_status="idle",
        )
        mock_repo_class.return_value.get_all_active.return_value = [account]
        mock_refresh_class.return_value.check_account_health.return_value = {
            "valid": True,
            "expires_in_hours": 72.0,
            "needs_refresh": False,
            "error": None,
        }

        result = CliRunner().invoke(list_accounts, [])

        assert result.exit_code == 0
        assert "linkhubhq" in result.output
        assert "3d" in result.output
        mock_repo_class.return_value.close.assert_called_once()

    @patch("cli.commands.accounts.TokenRefreshService")
    @patch("cli.commands.accounts.SocialAccountRepository")
    def test_filters_by_user(self, mock_repo_class, mock_refresh_class):
        mock_repo_class.return_value.list_for_user.return_value = []

        result = CliRunner().invoke(list_accounts, ["--user", USER_ID])

        assert result.exit_code == 0
        assert "No connected accounts" in result.output
        mock_repo_class.return_value.list_for_user.assert_called_once_with(USER_ID)


@pytest.mark.unit
class TestRefreshCommands:
    @patch("cli.commands.accounts.TokenRefreshService")
    def test_refresh_tokens_summary(self, mock_service_class):
        mock_service_class.return_value.run_cycle = AsyncMock(
            return_value={
                "refresh": {"candidates": 2, "refreshed": 1, "failed": 1},
                "alerts": {"expiring": 1, "notified": 1, "skipped": 0},
            }
        )

        result = CliRunner().invoke(refresh_tokens, [])

        assert result.exit_code == 0
        assert "Refreshed: 1" in result.output
        assert "Expiry alerts sent: 1" in result.output
        mock_service_class.return_value.run_cycle.assert_awaited_once_with(triggered_by="cli")

    @patch("cli.commands.accounts.TokenRefreshService")
    def test_refresh_tokens_reports_failed_pass(self, mock_service_class):
        mock_service_class.return_value.run_cycle = AsyncMock(
            return_value={"refresh": {"error": "db down"}, "alerts": {"expiring": 0, "notified": 0, "skipped": 0}}
        )

        result = CliRunner().invoke(refresh_tokens, [])

        assert "Refresh pass failed" in result.output
        assert "db down" in result.output

    @patch("cli.commands.accounts.TokenRefreshService")
    def test_refresh_account_success(self, mock_service_class):
        mock_service_class.return_value.refresh_account_for_user_provider = AsyncMock(
            return_value=Mock(sync_status="idle", sync_error=None, token_expires_at=datetime(2030, 1, 1, 9, 0))
        )

        result = CliRunner().invoke(refresh_account, ["twitter", "--user", USER_ID])

        assert result.exit_code == 0
        assert "twitter token refreshed" in result.output
        assert "2030-01-01 09:00" in result.output

    @patch("cli.commands.accounts.TokenRefreshService")
    def test_refresh_account_failure_aborts(self, mock_service_class):
        mock_service_class.return_value.refresh_account_for_user_provider = AsyncMock(
            return_value=Mock(sync_status="failed", sync_error="No refresh token available; reconnect the account")
        )

        result = CliRunner().invoke(refresh_account, ["twitter", "--user", USER_ID])

        assert result.exit_code != 0
        assert "Refresh failed" in result.output

    @patch("cli.commands.accounts.TokenRefreshService")
    def test_refresh_account_missing(self, mock_service_class):
        mock_service_class.return_value.refresh_account_for_user_provider = AsyncMock(
            side_effect=AccountNotFoundError(platform="tiktok")
        )

        result = CliRunner().invoke(refresh_account, ["tiktok", "--user", USER_ID])

        assert result.exit_code != 0
        assert "No tiktok account connected" in result.output


@pytest.mark.unit
class TestDisconnectCommand:
    @patch("cli.commands.accounts.OAuthService")
    def test_disconnect_with_yes(self, mock_service_class):
        mock_service_class.return_value.disconnect.return_value = Mock(account_handle="linkhubhq", account_id="987")

        result = CliRunner().invoke(disconnect_account, ["twitter", "--user", USER_ID, "-y"])

        assert result.exit_code == 0
        assert "Disconnected twitter account linkhubhq" in result.output
        mock_service_class.return_value.disconnect.assert_called_once_with(USER_ID, "twitter")

    @patch("cli.commands.accounts.OAuthService")
    def test_disconnect_declined(self, mock_service_class):
        result = CliRunner().invoke(disconnect_account, ["twitter", "--user", USER_ID], input="n\n")

        assert result.exit_code != 0
        mock_service_class.assert_not_called()


@pytest.mark.unit
class TestAnalyticsCommand:
    @patch("cli.commands.accounts.AnalyticsService")
    def test_table_of_metrics(self, mock_service_class):
        mock_service_class.return_value.fetch_account_analytics = AsyncMock(
            return_value=[AnalyticsRecord(external_post_id="1789", metrics={"likes": 12, "shares": 3})]
        )

        result = CliRunner().invoke(account_analytics, ["twitter", "--user", USER_ID])

        assert result.exit_code == 0
        assert "1789" in result.output
        assert "12" in result.output

    @patch("cli.commands.accounts.AnalyticsService")
    def test_unconfigured_platform(self, mock_service_class):
        mock_service_class.return_value.fetch_account_analytics = AsyncMock(
            side_effect=PlatformNotConfiguredError("tiktok")
        )

        result = CliRunner().invoke(account_analytics, ["tiktok", "--user", USER_ID])

        assert result.exit_code != 0
        assert "Platform not configured" in result.output


@pytest.mark.unit
class TestCheckConfigCommand:
    @patch("cli.commands.config.ConfigValidator")
    def test_valid_config(self, mock_validator):
        mock_validator.validate_all.return_value = (True, [])
        mock_validator.configured_platforms.return_value = ["twitter"]

        result = CliRunner().invoke(check_config, [])

        assert result.exit_code == 0
        assert "VALID" in result.output
        assert "twitter" in result.output

    @patch("cli.commands.config.ConfigValidator")
    def test_invalid_config_aborts(self, mock_validator):
        mock_validator.validate_all.return_value = (False, ["ENCRYPTION_KEY is required"])
        mock_validator.configured_platforms.return_value = []

        result = CliRunner().invoke(check_config, [])

        assert result.exit_code != 0
        assert "ENCRYPTION_KEY is required" in result.output


@pytest.mark.unit
class TestRecentRunsCommand:
    @patch("cli.commands.config.ServiceRunRepository")
    def test_lists_runs(self, mock_repo_class):
        run = Mock(
            started_at=datetime(2030, 1, 1, 9, 0, 5),
            service_name="PublisherService",
            method_name="process_queue",
            triggered_by="system",
            status="failed",
            duration_ms=42,
        )
        mock_repo_class.return_value.get_recent_runs.return_value = [run]

        result = CliRunner().invoke(recent_runs, ["--service", "PublisherService"])

        assert result.exit_code == 0
        assert "failed" in result.output
        mock_repo_class.return_value.get_recent_runs.assert_called_once_with(service_name="PublisherService", limit=20)
        mock_repo_class.return_value.close.assert_called_once()

    @patch("cli.commands.config.ServiceRunRepository")
    def test_no_runs(self, mock_repo_class):
        mock_repo_class.return_value.get_recent_runs.return_value = []

        result = CliRunner().invoke(recent_runs, [])

        assert "No service runs recorded" in result.output
