"""Job commands: ingest, scan, brief, cleanup, reenrich and worker."""

from typing import Optional

import psycopg
import typer
from rich.panel import Panel
from rich.table import Table

from ..pipeline import Deadline, IngestionStats
from ..runtime import open_runtime
from ..watchlist import ScanStats
from .common import console, get_config, run


def _print_ingestion_summary(stats: IngestionStats) -> None:
    table = Table(title="Ingestion Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("Sources", str(stats.sources))
    table.add_row("Discovered", str(stats.discovered))
    table.add_row("New articles", f"[green]{stats.ingested}[/green]")
    table.add_row("Duplicates", str(stats.duplicates))
    table.add_row("Noise titles", str(stats.noise))
    table.add_row("Empty pages", str(stats.empty))
    table.add_row("Failed", f"[red]{stats.failed}[/red]" if stats.failed else "0")
    table.add_row("Enrichment failures", str(stats.enrichment_failed))
    table.add_row("Budget at start", str(stats.budget))
    table.add_row("Duration", f"{stats.duration:.1f}s")

    console.print(table)
    if stats.budget_exhausted:
        console.print("[yellow]Daily article budget reached.[/yellow]")
    if stats.deadline_expired:
        console.print("[yellow]Run stopped at its deadline.[/yellow]")


def _print_scan_summary(stats: ScanStats) -> None:
    table = Table(title="Watchlist Scan")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Organizations", str(stats.orgs))
    table.add_row("New mentions", f"[green]{stats.new_mentions}[/green]")
    table.add_row("Spam filtered", str(stats.spam))
    table.add_row("Already known", str(stats.duplicates))
    table.add_row("Agent failures", str(stats.agent_failures))
    table.add_row("Classified", str(stats.classified))
    table.add_row("Duration", f"{stats.duration:.1f}s")
    console.print(table)


def ingest_command(
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Run deadline in seconds (default from config)"
    ),
) -> None:
    """Run one ingestion pass over all active sources."""
    config = get_config()

    async def _ingest() -> IngestionStats:
        async with open_runtime(config) as rt:
            deadline = Deadline(timeout or rt.settings.ingestion.run_timeout)
            return await rt.orchestrator().run(deadline)

    try:
        stats = run(_ingest())
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)
    _print_ingestion_summary(stats)


def scan_command() -> None:
    """Scan the web for mentions of every active watchlist organization."""
    config = get_config()

    async def _scan() -> ScanStats:
        async with open_runtime(config) as rt:
            return await rt.scanner().run()

    try:
        stats = run(_scan())
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)
    _print_scan_summary(stats)


def brief_command() -> None:
    """Generate today's brief from the last day of articles."""
    config = get_config()

    async def _brief():
        async with open_runtime(config) as rt:
            return await rt.brief_generator().generate()

    try:
        brief = run(_brief())
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)

    if brief is None:
        console.print("[yellow]No recent articles; no brief generated.[/yellow]")
        return

    console.print(
        Panel(
            brief.summary,
            title=f"Brief {brief.date} ({brief.article_count} articles)",
            subtitle=", ".join(brief.top_tags),
        )
    )


def cleanup_command() -> None:
    """Delete evidence bundles whose retention has expired."""
    config = get_config()

    async def _cleanup() -> int:
        async with open_runtime(config) as rt:
            return await rt.cleanup()

    try:
        cleaned = run(_cleanup())
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Cleaned evidence for {cleaned} articles[/green]")


def reenrich_command(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", help="Articles to re-enrich (default from config)"
    ),
) -> None:
    """Clear refusal summaries and enrich articles that have no summary."""
    config = get_config()

    async def _reenrich() -> int:
        async with open_runtime(config) as rt:
            return await rt.enricher().reenrich(limit or rt.settings.ingestion.reenrich_limit)

    try:
        count = run(_reenrich())
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Re-enriched {count} articles[/green]")


def worker_command() -> None:
    """Run ingestion, watchlist, brief and cleanup on their schedules until stopped."""
    config = get_config()

    async def _work() -> None:
        async with open_runtime(config) as rt:
            await rt.scheduler().run()

    console.print("[bold]Starting worker[/bold] (Ctrl-C to stop)")
    run(_work())
    console.print("[dim]Worker stopped[/dim]")
