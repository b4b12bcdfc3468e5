"""Social account CLI commands."""
import asyncio

import click
from rich.console import Console
from rich.table import Table

from linkhub.exceptions import AccountNotFoundError, PlatformNotConfiguredError
from linkhub.repositories.social_account_repository import SocialAccountRepository
from linkhub.services.core.analytics import AnalyticsService
from linkhub.services.core.oauth_service import OAuthService
from linkhub.services.integrations.token_refresh import TokenRefreshService

console = Console()


@click.command(name="list-accounts")
@click.option("--user", "user_id", default=None, help="Only this user's accounts (UUID)")
def list_accounts(user_id):
    """List connected social accounts and their token health."""
    account_repo = SocialAccountRepository()
    refresh_service = TokenRefreshService()

    try:
        accounts = account_repo.list_for_user(user_id) if user_id else account_repo.get_all_active()

        if not accounts:
            console.print("[yellow]No connected accounts[/yellow]")
            return

        table = Table(title=f"Social Accounts ({len(accounts)})")
        table.add_column("Platform", style="cyan")
        table.add_column("Handle")
        table.add_column("User", style="dim")
        table.add_column("Token")
        table.add_column("Expires In", justify="right")
        table.add_column("Sync")

        for account in accounts:
            health = refresh_service.check_account_health(account)
            if account.is_revoked:
                token = "[red]revoked[/red]"
            elif health["valid"]:
                token = "[green]valid[/green]"
            else:
                token = "[red]expired[/red]"

            hours = health["expires_in_hours"]
            if hours is None:
                expires = "-"
            elif hours >= 48:
                expires = f"{hours / 24:.0f}d"
            else:
                expires = f"{hours:.0f}h"
            if health["needs_refresh"] and not account.is_revoked:
                expires = f"[yellow]{expires}[/yellow]"

            sync = account.sync_status
            if health["error"]:
                sync = f"[red]{sync}[/red]: {health['error'][:40]}"

            table.add_row(
                account.platform,
                account.account_handle or account.account_id,
                str(account.user_id)[:8],
                token,
                expires,
                sync,
            )

        console.print(table)
    finally:
        account_repo.close()
        refresh_service.close()


@click.command(name="refresh-tokens")
def refresh_tokens():
    """Run the token refresh and expiry-alert passes now."""
    console.print("[bold blue]Refreshing expiring tokens...[/bold blue]")

    service = TokenRefreshService()

    try:
        summary = asyncio.run(service.run_cycle(triggered_by="cli"))

        refresh = summary.get("refresh", {})
        alerts = summary.get("alerts", {})

        if "error" in refresh:
            console.print(f"[bold red]✗ Refresh pass failed:[/bold red] {refresh['error']}")
        else:
            console.print("\n[bold green]✓ Refresh pass complete![/bold green]")
            console.print(f"  Candidates: {refresh['candidates']}")
            console.print(f"  Refreshed: {refresh['refreshed']}")
            console.print(f"  Failed: {refresh['failed']}")

        if "error" in alerts:
            console.print(f"[bold red]✗ Expiry alert pass failed:[/bold red] {alerts['error']}")
        else:
            console.print(f"  Expiry alerts sent: {alerts['notified']} (skipped {alerts['skipped']})")

    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="refresh-account")
@click.argument("platform")
@click.option("--user", "user_id", required=True, help="Owner's user ID (UUID)")
def refresh_account(platform, user_id):
    """Refresh one user's token for a platform."""
    service = TokenRefreshService()

    try:
        account = asyncio.run(service.refresh_account_for_user_provider(user_id, platform))

        if account.sync_status == "failed":
            console.print(f"[bold red]✗ Refresh failed:[/bold red] {account.sync_error}")
            raise click.Abort()

        expires = account.token_expires_at.strftime("%Y-%m-%d %H:%M") if account.token_expires_at else "never"
        console.print(f"[bold green]✓ {platform} token refreshed[/bold green] (expires {expires} UTC)")

    except AccountNotFoundError:
        console.print(f"[bold red]✗ Error:[/bold red] No {platform} account connected for {user_id}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="disconnect-account")
@click.argument("platform")
@click.option("--user", "user_id", required=True, help="Owner's user ID (UUID)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def disconnect_account(platform, user_id, yes):
    """Revoke a connected account and erase its tokens."""
    if not yes:
        click.confirm(f"Disconnect {platform} for user {user_id}?", abort=True)

    service = OAuthService()

    try:
        account = service.disconnect(user_id, platform)
        console.print(f"[bold green]✓ Disconnected {platform} account {account.account_handle or account.account_id}[/bold green]")

    except AccountNotFoundError:
        console.print(f"[bold red]✗ Error:[/bold red] No {platform} account connected for {user_id}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="account-analytics")
@click.argument("platform")
@click.option("--user", "user_id", required=True, help="Owner's user ID (UUID)")
def account_analytics(platform, user_id):
    """Show recent engagement metrics for a connected account."""
    service = AnalyticsService()

    try:
        records = asyncio.run(service.fetch_account_analytics(user_id, platform))

        if not records:
            console.print("[yellow]No analytics available[/yellow]")
            return

        metric_names = sorted({name for record in records for name in record.metrics})

        table = Table(title=f"{platform} analytics ({len(records)} posts)")
        table.add_column("Post", style="cyan")
        for name in metric_names:
            table.add_column(name.replace("_", " ").title(), justify="right")

        for record in records:
            table.add_row(
                record.external_post_id,
                *[str(record.metrics.get(name, "-")) for name in metric_names],
            )

        console.print(table)

    except (AccountNotFoundError, PlatformNotConfiguredError) as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()
