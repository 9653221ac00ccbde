"""Main CLI entry point for the creative asset cache."""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from creative_cache.errors import CreativeCacheError
from creative_cache.services.logger_service import cleanup_old_logs, setup_logging

console = Console()
logger = logging.getLogger(__name__)


def _services():
    from creative_cache.api import AppServices

    return AppServices.from_settings()


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose (DEBUG) logging",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Creative Cache - asset deduplication and download sessions.

    Reuse previously generated campaign images for similar prompts, sweep
    old assets, and share campaign bundles through short-lived links.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_logging(verbose=verbose)

    from creative_cache.config import settings
    cleanup_old_logs(max_age_days=settings.log_max_age_days)


@cli.command()
@click.option("--host", default=None, help="Bind host (default: from settings)")
@click.option("--port", default=None, type=int, help="Bind port (default: from settings)")
def serve(host: str | None, port: int | None):
    """Run the HTTP API."""
    import uvicorn

    from creative_cache.api import create_app
    from creative_cache.config import settings

    app = create_app()
    try:
        uvicorn.run(app, host=host or settings.host, port=port or settings.port, log_config=None)
    finally:
        app.state.services.close()


@cli.command()
def stats():
    """Show asset usage statistics."""
    services = _services()
    try:
        result = services.asset_cache.get_stats()
    finally:
        services.close()

    table = Table(title="Asset Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Campaigns", str(result.total_campaigns))
    table.add_row("Images", str(result.total_images))
    table.add_row("Videos", str(result.total_videos))
    table.add_row("Images per campaign", str(result.avg_images_per_campaign))
    table.add_row("Storage (approx.)", f"~{result.storage_usage_mb} MB")

    console.print(table)


@cli.command()
@click.option(
    "--retention-days",
    "-d",
    default=None,
    type=click.IntRange(min=0),
    help="Sweep campaigns older than this many days (default: from settings)",
)
@click.option(
    "--purge-sessions/--keep-sessions",
    default=True,
    help="Also delete expired download sessions",
)
def cleanup(retention_days: int | None, purge_sessions: bool):
    """Delete stored assets of old campaigns."""
    services = _services()
    try:
        result = services.asset_cache.cleanup_unused(
            retention_days if retention_days is not None else services.retention_days
        )
        purged = services.broker.purge_expired() if purge_sessions else 0
    except CreativeCacheError as e:
        console.print(f"[red]✗ Cleanup failed: {e}[/red]")
        sys.exit(1)
    finally:
        services.close()

    console.print(f"[green]✓ Cleaned up {result.deleted_count} unused assets[/green]")
    for path in result.deleted_assets:
        console.print(f"  - {path}")
    if result.failed_assets:
        console.print(f"[yellow]{len(result.failed_assets)} assets could not be deleted[/yellow]")
    if purge_sessions:
        console.print(f"[green]✓ Purged {purged} expired download sessions[/green]")


@cli.command("find-similar")
@click.argument("prompts", nargs=-1, required=True)
@click.option(
    "--threshold",
    "-t",
    default=None,
    type=click.FloatRange(0.0, 1.0),
    help="Similarity threshold (default: from settings)",
)
def find_similar(prompts: tuple[str, ...], threshold: float | None):
    """Find stored assets that could be reused for PROMPTS."""
    services = _services()
    try:
        matches = services.asset_cache.find_similar(list(prompts), threshold)
    except CreativeCacheError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    finally:
        services.close()

    if not matches:
        console.print("[yellow]No reusable assets found[/yellow]")
        return

    table = Table(title=f"{len(matches)} assets can be reused")
    table.add_column("Prompt", style="cyan")
    table.add_column("Similar prompt", style="green")
    table.add_column("Score", style="yellow", no_wrap=True, min_width=5)
    table.add_column("Campaign", style="blue")
    table.add_column("URL", style="magenta")

    for match in sorted(matches, key=lambda m: m.similarity_score, reverse=True):
        table.add_row(
            match.original_prompt,
            match.similar_prompt,
            f"{match.similarity_score:.2f}",
            match.source_campaign,
            match.asset_url,
        )

    console.print(table)


@cli.command("create-session")
@click.argument("bundle_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def create_session(bundle_file: Path):
    """Create (or reuse) a download session for a bundle JSON file."""
    try:
        bundle = json.loads(bundle_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ Invalid JSON in {bundle_file}: {e}[/red]")
        sys.exit(1)

    services = _services()
    try:
        token = services.broker.create_or_get(bundle)
        url = services.broker.build_download_url(token)
    except CreativeCacheError as e:
        console.print(f"[red]✗ Failed to create session: {e}[/red]")
        sys.exit(1)
    finally:
        services.close()

    console.print(f"[green]✓ Session:[/green] {token}", soft_wrap=True)
    console.print(f"[green]✓ Download:[/green] {url}", soft_wrap=True)


if __name__ == "__main__":
    cli()
