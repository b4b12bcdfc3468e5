"""Configuration and service run CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from linkhub.config.constants import PLATFORMS
from linkhub.config.settings import settings
from linkhub.repositories.service_run_repository import ServiceRunRepository
from linkhub.utils.validators import ConfigValidator

console = Console()


@click.command(name="check-config")
def check_config():
    """Validate settings and show which platforms can publish."""
    console.print("[bold blue]Checking configuration...[/bold blue]\n")

    is_valid, errors = ConfigValidator.validate_all()

    if is_valid:
        console.print("[bold green]✓ Configuration: VALID[/bold green]\n")
    else:
        console.print("[bold yellow]⚠ Configuration: INVALID[/bold yellow]")
        for error in errors:
            console.print(f"  • {error}")
        console.print()

    configured = set(ConfigValidator.configured_platforms())

    table = Table(title="Platforms")
    table.add_column("Platform", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Callback URL")

    for platform in PLATFORMS:
        ok = platform in configured
        status = "[green]✓[/green]" if ok else "[red]✗[/red]"
        callback = f"{settings.OAUTH_REDIRECT_BASE_URL.rstrip('/')}/api/social/callback/{platform}"
        table.add_row(platform, status, callback if ok else "missing client credentials")

    console.print(table)

    console.print(
        f"\nIntervals: scheduler {settings.SCHEDULER_INTERVAL_SECONDS}s, "
        f"publisher {settings.PUBLISHER_INTERVAL_SECONDS}s, "
        f"token refresh {settings.TOKEN_REFRESH_INTERVAL_SECONDS}s"
    )

    if not is_valid:
        raise click.Abort()


@click.command(name="recent-runs")
@click.option("--service", default=None, help="Only runs of this service (e.g. PublisherService)")
@click.option("--limit", default=20, help="Maximum runs to show")
def recent_runs(service, limit):
    """Show recent tracked service runs (workers, CLI and API)."""
    run_repo = ServiceRunRepository()

    try:
        runs = run_repo.get_recent_runs(service_name=service, limit=limit)

        if not runs:
            console.print("[yellow]No service runs recorded[/yellow]")
            return

        table = Table(title=f"Service Runs ({len(runs)})")
        table.add_column("Started", style="dim")
        table.add_column("Service")
        table.add_column("Method", style="cyan")
        table.add_column("By")
        table.add_column("Status")
        table.add_column("ms", justify="right")

        for run in runs:
            color = {"completed": "green", "failed": "red"}.get(run.status, "yellow")
            table.add_row(
                run.started_at.strftime("%m-%d %H:%M:%S"),
                run.service_name,
                run.method_name,
                run.triggered_by or "-",
                f"[{color}]{run.status}[/{color}]",
                str(run.duration_ms) if run.duration_ms is not None else "-",
            )

        console.print(table)
    finally:
        run_repo.close()
