"""Post pipeline CLI commands."""
import asyncio

import click
from rich.console import Console
from rich.table import Table

from linkhub.exceptions import PostNotFoundError, PostStateError
from linkhub.services.core.post_service import PostService
from linkhub.services.core.publisher import PublisherService
from linkhub.services.core.scheduler import SchedulerService

console = Console()

STATUS_COLORS = {
    "draft": "dim",
    "scheduled": "cyan",
    "queued": "blue",
    "publishing": "magenta",
    "published": "green",
    "failed": "red",
    "cancelled": "yellow",
}


@click.command(name="list-posts")
@click.option("--user", "user_id", required=True, help="User ID (UUID)")
@click.option("--limit", default=20, help="Maximum posts to show")
def list_posts(user_id, limit):
    """List a user's posts, newest first."""
    service = PostService()

    try:
        posts = service.list_posts(user_id, limit=limit)

        if not posts:
            console.print("[yellow]No posts found[/yellow]")
            return

        table = Table(title=f"Posts ({len(posts)})")
        table.add_column("ID", style="dim")
        table.add_column("Title / Content")
        table.add_column("Platforms", style="cyan")
        table.add_column("Status")
        table.add_column("Scheduled At")
        table.add_column("Attempts", justify="right")

        for post in posts:
            color = STATUS_COLORS.get(post.status, "white")
            table.add_row(
                str(post.id)[:8],
                post.display_title[:40],
                ", ".join(post.platforms or []),
                f"[{color}]{post.status}[/{color}]",
                post.scheduled_at.strftime("%Y-%m-%d %H:%M") if post.scheduled_at else "-",
                str(post.attempts or 0),
            )

        console.print(table)

    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="promote-due")
def promote_due():
    """Queue every scheduled post whose time has come."""
    console.print("[bold blue]Promoting due posts...[/bold blue]")

    service = SchedulerService()

    try:
        result = service.promote_due_posts(triggered_by="cli")

        console.print("\n[bold green]✓ Scheduler pass complete![/bold green]")
        console.print(f"  Due: {result['due']}")
        console.print(f"  Queued: {result['queued']}")
        console.print(f"  Skipped: {result['skipped']}")
        console.print(f"  Failed: {result['failed']}")

    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="process-queue")
@click.option("--limit", default=None, type=int, help="Maximum posts to publish (default: PUBLISHER_BATCH_SIZE)")
def process_queue(limit):
    """Publish queued posts now."""
    console.print("[bold blue]Processing publish queue...[/bold blue]")

    service = PublisherService()

    try:
        result = asyncio.run(service.process_queue(limit=limit, triggered_by="cli"))

        console.print("\n[bold green]✓ Processing complete![/bold green]")
        console.print(f"  Processed: {result['processed']}")
        console.print(f"  Published: {result['published']}")
        console.print(f"  Retrying: {result['retrying']}")
        console.print(f"  Failed: {result['failed']}")
        console.print(f"  Skipped: {result['skipped']}")

    except Exception as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="publish-post")
@click.argument("post_id")
@click.option("--user", "user_id", required=True, help="Owner's user ID (UUID)")
def publish_post(post_id, user_id):
    """Queue a post for immediate publishing."""
    service = PostService()

    try:
        post = service.publish_now(user_id, post_id)
        console.print(f"[bold green]✓ Post {post.id} is {post.status}[/bold green]")
        console.print("  It will be published on the next publisher tick (or run 'process-queue').")

    except (PostNotFoundError, PostStateError) as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()


@click.command(name="cancel-post")
@click.argument("post_id")
@click.option("--user", "user_id", required=True, help="Owner's user ID (UUID)")
def cancel_post(post_id, user_id):
    """Cancel a post that has not been published."""
    service = PostService()

    try:
        post = service.cancel_post(user_id, post_id)
        console.print(f"[bold green]✓ Post {post.id} cancelled[/bold green]")

    except (PostNotFoundError, PostStateError) as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()
    finally:
        service.close()
