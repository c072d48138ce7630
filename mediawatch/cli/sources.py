"""Sources management commands."""

from contextlib import aclosing
from typing import List, Optional

import httpx
import psycopg
import typer
from rich.table import Table

from ..config import SourceConfig, load_sources
from ..db import SourceStore
from ..errors import MediaWatchError
from ..ingestion import FeedDiscoverer, PageScraper
from ..models import Source
from ..runtime import open_runtime
from .common import console, get_config, run

sources_app = typer.Typer(help="Manage news sources")

TEST_ITEMS = 5


def _load() -> List[SourceConfig]:
    config = get_config()
    try:
        return load_sources(config.sources_path)
    except FileNotFoundError:
        console.print("[red]Sources file not found. Run 'mediawatch init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@sources_app.command("list")
def sources_list() -> None:
    """List all configured sources."""
    sources = _load()
    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Region", style="green")
    table.add_column("Active", style="yellow")
    table.add_column("Feed / listing", style="blue")

    for source in sources:
        table.add_row(
            source.name,
            source.feed_type.value,
            source.region or "-",
            "✓" if source.active else "✗",
            source.feed_url or ", ".join(source.list_urls) or "-",
        )

    console.print(table)


@sources_app.command("sync")
def sources_sync() -> None:
    """Upsert sources.yaml into the database."""
    config = get_config()
    sources = _load()

    async def _sync():
        async with open_runtime(config) as rt:
            return await SourceStore(rt.pool).sync(sources)

    try:
        synced = run(_sync())
    except psycopg.Error as e:
        console.print(f"[red]❌ Failed to sync sources: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Synced {len(synced)} sources[/green]")


@sources_app.command("test")
def sources_test(
    name: Optional[str] = typer.Argument(None, help="Source name to test (or test all)"),
) -> None:
    """Discover a few items from each source without storing anything."""
    config = get_config()
    sources = _load()

    if name:
        sources = [s for s in sources if s.name == name]
        if not sources:
            console.print(f"[red]Source '{name}' not found.[/red]")
            raise typer.Exit(1)

    settings = config.config.scraper

    async def _test() -> None:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            scraper = PageScraper(client, settings)
            discoverer = FeedDiscoverer(client, settings, scraper)
            for source_config in sources:
                if not source_config.active:
                    console.print(f"[yellow]⚠️  {source_config.name}: Inactive[/yellow]")
                    continue
                source = Source(**source_config.model_dump())
                titles = []
                try:
                    async with aclosing(discoverer.discover(source)) as items:
                        async for item in items:
                            titles.append(item.title or item.url)
                            if len(titles) >= TEST_ITEMS:
                                break
                except MediaWatchError as e:
                    console.print(f"[red]❌ {source.name}: {e}[/red]")
                    continue
                console.print(f"[green]✅ {source.name}: {len(titles)} items[/green]")
                for title in titles:
                    console.print(f"   [dim]{title}[/dim]")

    run(_test())
