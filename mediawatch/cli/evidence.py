"""Evidence and article inspection commands."""

import json
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..errors import EvidenceNotConfigured, EvidenceNotFound, StorageFailed
from ..models import EvidencePolicy
from ..runtime import open_runtime
from .common import console, get_config, run
from .watchlist import _parse_uuid

evidence_app = typer.Typer(help="Inspect captured evidence")
articles_app = typer.Typer(help="Search and inspect articles")


@evidence_app.command("show")
def evidence_show(
    article_id: str = typer.Argument(..., help="Article id"),
    extracted: bool = typer.Option(False, "--extracted", help="Print the extracted JSON"),
) -> None:
    """Print the capture metadata of an article's evidence bundle."""
    config = get_config()
    uid = _parse_uuid(article_id)

    async def _show():
        async with open_runtime(config) as rt:
            return await rt.evidence.get(uid)

    try:
        evidence = run(_show())
    except EvidenceNotConfigured:
        console.print("[yellow]Object storage is not configured.[/yellow]")
        raise typer.Exit(1)
    except (EvidenceNotFound, StorageFailed) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    meta = evidence.meta
    table = Table(title=f"Evidence {meta.article_id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Captured at", meta.captured_at)
    table.add_row("Policy", meta.evidence_policy.value)
    table.add_row("Raw SHA-256", meta.raw_hash_sha256)
    table.add_row("Extract SHA-256", meta.extract_hash_sha256)
    table.add_row("Raw size", f"{len(evidence.raw)} bytes")
    console.print(table)

    if extracted:
        payload = json.loads(evidence.extracted)
        console.print(Panel(json.dumps(payload, indent=2, ensure_ascii=False), title="Extracted"))


@evidence_app.command("retention")
def evidence_retention(
    article_id: str = typer.Argument(..., help="Article id"),
    policy: EvidencePolicy = typer.Argument(..., help="ret_3m, ret_6m, ret_12m or keep"),
) -> None:
    """Change the retention policy of an article and recompute its expiry."""
    config = get_config()
    uid = _parse_uuid(article_id)

    async def _retention():
        async with open_runtime(config) as rt:
            await rt.articles.update_retention(uid, policy)
            return await rt.articles.get_by_id(uid)

    article = run(_retention())
    if article is None:
        console.print(f"[red]Article {article_id} not found.[/red]")
        raise typer.Exit(1)
    expires = article.evidence_expires_at.isoformat() if article.evidence_expires_at else "never"
    console.print(f"[green]✅ {article.evidence_policy.value}, expires {expires}[/green]")


def _print_articles(title: str, articles) -> None:
    if not articles:
        console.print("[yellow]No articles found.[/yellow]")
        return
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Source", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("Tags", style="green")
    for article in articles:
        table.add_row(str(article.id), article.source_name, article.title, ", ".join(article.tags))
    console.print(table)


@articles_app.command("search")
def articles_search(
    query: str = typer.Argument(..., help="Full-text query"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum results"),
) -> None:
    """Full-text search over titles and text."""
    config = get_config()

    async def _search():
        async with open_runtime(config) as rt:
            return await rt.articles.search(query, limit)

    _print_articles(f"Search: {query}", run(_search()))


@articles_app.command("similar")
def articles_similar(
    article_id: str = typer.Argument(..., help="Article id"),
    limit: Optional[int] = typer.Option(5, "--limit", "-n", help="Maximum results"),
) -> None:
    """Articles closest to the given one by embedding."""
    config = get_config()
    uid = _parse_uuid(article_id)

    async def _similar():
        async with open_runtime(config) as rt:
            return await rt.articles.similar_articles(uid, limit)

    _print_articles("Similar articles", run(_similar()))
