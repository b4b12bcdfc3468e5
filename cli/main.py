"""CLI main entry point."""

import click
from rich.console import Console

from cli.commands.accounts import (
    account_analytics,
    disconnect_account,
    list_accounts,
    refresh_account,
    refresh_tokens,
)
from cli.commands.config import check_config, recent_runs
from cli.commands.posts import (
    cancel_post,
    list_posts,
    process_queue,
    promote_due,
    publish_post,
)
from linkhub import __version__

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli():
    """LinkHub - Social Post Scheduler & Publisher"""
    pass


# Add commands to CLI
cli.add_command(list_posts)
cli.add_command(promote_due)
cli.add_command(process_queue)
cli.add_command(publish_post)
cli.add_command(cancel_post)
cli.add_command(list_accounts)
cli.add_command(refresh_tokens)
cli.add_command(refresh_account)
cli.add_command(disconnect_account)
cli.add_command(account_analytics)
cli.add_command(check_config)
cli.add_command(recent_runs)


if __name__ == "__main__":
    cli()
