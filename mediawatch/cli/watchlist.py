"""Watchlist management commands."""

from typing import List, Optional
from uuid import UUID

import psycopg
import typer
from rich.table import Table

from ..errors import MediaWatchError
from ..models import WatchlistOrg
from ..runtime import open_runtime
from ..watchlist import merge_keywords
from .common import console, get_config, run

watchlist_app = typer.Typer(help="Manage watched organizations")


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Invalid id: {value}[/red]")
        raise typer.Exit(1)


@watchlist_app.command("list")
def watchlist_list() -> None:
    """List watched organizations."""
    config = get_config()

    async def _list() -> List[WatchlistOrg]:
        async with open_runtime(config) as rt:
            return await rt.orgs.list_all()

    orgs = run(_list())
    if not orgs:
        console.print("[yellow]No organizations on the watchlist.[/yellow]")
        return

    table = Table(title="Watchlist")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Active", style="yellow")
    table.add_column("Keywords", style="green")
    table.add_column("Channels", style="magenta")
    for org in orgs:
        table.add_row(
            str(org.id),
            org.name,
            "✓" if org.active else "✗",
            ", ".join(org.keywords),
            str(len(org.video_channels)),
        )
    console.print(table)


@watchlist_app.command("add")
def watchlist_add(
    name: str = typer.Argument(..., help="Organization name"),
    website: Optional[str] = typer.Option(None, "--website", "-w", help="Organization website"),
    keyword: List[str] = typer.Option([], "--keyword", "-k", help="Keyword (repeatable)"),
    channel: List[str] = typer.Option([], "--channel", help="Video channel id (repeatable)"),
    enrich: bool = typer.Option(
        True, "--enrich/--no-enrich", help="Suggest keywords with the LLM"
    ),
) -> None:
    """Add an organization, optionally suggesting keywords for it."""
    config = get_config()

    async def _add() -> WatchlistOrg:
        async with open_runtime(config) as rt:
            keywords = list(keyword)
            if enrich:
                try:
                    suggested = await rt.keyword_enricher().suggest(name, website)
                except MediaWatchError as e:
                    console.print(f"[yellow]⚠️  Keyword suggestion failed: {e}[/yellow]")
                else:
                    keywords = merge_keywords(suggested, keywords)
            org = WatchlistOrg(
                name=name,
                website=website,
                keywords=keywords,
                video_channels=list(channel),
            )
            return await rt.orgs.create(org)

    try:
        org = run(_add())
    except psycopg.Error as e:
        console.print(f"[red]❌ Failed to add organization: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Added {org.name} ({org.id})[/green]")
    if org.keywords:
        console.print(f"   Keywords: {', '.join(org.keywords)}")


@watchlist_app.command("enrich")
def watchlist_enrich(
    org_id: str = typer.Argument(..., help="Organization id"),
) -> None:
    """Suggest keywords for an existing organization and merge them in."""
    config = get_config()
    uid = _parse_uuid(org_id)

    async def _enrich() -> Optional[List[str]]:
        async with open_runtime(config) as rt:
            org = await rt.orgs.get(uid)
            if org is None:
                return None
            suggested = await rt.keyword_enricher().suggest(org.name, org.website)
            keywords = merge_keywords(suggested, org.keywords)
            await rt.orgs.update_keywords(uid, keywords)
            return keywords

    try:
        keywords = run(_enrich())
    except MediaWatchError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if keywords is None:
        console.print(f"[red]Organization {org_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Keywords: {', '.join(keywords)}[/green]")


@watchlist_app.command("toggle")
def watchlist_toggle(
    org_id: str = typer.Argument(..., help="Organization id"),
) -> None:
    """Pause or resume scanning of an organization."""
    config = get_config()
    uid = _parse_uuid(org_id)

    async def _toggle() -> Optional[bool]:
        async with open_runtime(config) as rt:
            return await rt.orgs.toggle_active(uid)

    active = run(_toggle())
    if active is None:
        console.print(f"[red]Organization {org_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ {'Active' if active else 'Paused'}[/green]")


@watchlist_app.command("remove")
def watchlist_remove(
    org_id: str = typer.Argument(..., help="Organization id"),
) -> None:
    """Remove an organization and its mentions."""
    config = get_config()
    uid = _parse_uuid(org_id)

    async def _remove() -> None:
        async with open_runtime(config) as rt:
            await rt.orgs.delete(uid)

    run(_remove())
    console.print(f"[green]✅ Removed {org_id}[/green]")


@watchlist_app.command("mentions")
def watchlist_mentions(
    org_id: Optional[str] = typer.Option(None, "--org", help="Only this organization"),
    limit: int = typer.Option(20, "--limit", "-n", help="Mentions to show"),
    drafts: bool = typer.Option(False, "--drafts", help="Print PR drafts"),
) -> None:
    """Show the most recent mentions."""
    config = get_config()
    uid = _parse_uuid(org_id) if org_id else None

    async def _mentions():
        async with open_runtime(config) as rt:
            return await rt.mentions.list_recent(uid, limit)

    mentions = run(_mentions())
    if not mentions:
        console.print("[yellow]No mentions yet.[/yellow]")
        return

    colors = {"positive": "green", "negative": "red", "neutral": "white", "unknown": "dim"}
    table = Table(title="Mentions")
    table.add_column("Sentiment")
    table.add_column("Source", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("URL", style="blue")
    for mention in mentions:
        color = colors[mention.sentiment.value]
        table.add_row(
            f"[{color}]{mention.sentiment.value}[/{color}]",
            mention.source_type.value,
            mention.title,
            mention.url,
        )
    console.print(table)

    if drafts:
        for mention in mentions:
            if mention.ai_draft:
                console.print(f"\n[bold]{mention.title}[/bold]\n{mention.ai_draft}")
