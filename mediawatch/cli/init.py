"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from ..config import Config, ConfigModel, SourceConfig, save_config, save_sources
from ..db import close_connection_pool, init_database, validate_connection
from ..models import FeedType
from .common import console, run

PASSWORD_ENV = "MEDIAWATCH_DB_PASSWORD"


def create_default_sources() -> List[SourceConfig]:
    """Starter sources for the default region."""
    return [
        SourceConfig(
            name="El Nuevo Dia",
            base_url="https://www.elnuevodia.com",
            region="PR",
            feed_type=FeedType.RSS,
            feed_url="https://www.elnuevodia.com/arc/outboundfeeds/rss/?outputType=xml",
        ),
        SourceConfig(
            name="Primera Hora",
            base_url="https://www.primerahora.com",
            region="PR",
            feed_type=FeedType.SCRAPE,
            list_urls=["https://www.primerahora.com/noticias/"],
            link_selector="article a[href]",
            title_selector="h1",
            body_selector="article p",
            date_selector="time",
            active=False,
        ),
        SourceConfig(
            name="Federal Register - Puerto Rico",
            base_url="https://www.federalregister.gov",
            region="PR",
            feed_type=FeedType.RSS,
            feed_url="https://www.federalregister.gov/documents/search.rss?conditions%5Bterm%5D=%22Puerto+Rico%22",
        ),
    ]


async def _init_schema(db_config: dict) -> bool:
    if not await validate_connection(db_config):
        return False
    try:
        await init_database(db_config)
    finally:
        await close_connection_pool()
    return True


def _write_files(config: ConfigModel, config_dir: Path, seed_sources: bool) -> Path:
    """Write config.yaml and sources.yaml under ``config_dir``; returns the config path."""
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    save_config(config, config_path)

    sources = create_default_sources() if seed_sources else []
    save_sources(sources, config_dir / "sources.yaml")

    table = Table(show_header=False, box=None)
    table.add_row("Config", str(config_path))
    table.add_row("Sources", f"{config_dir / 'sources.yaml'} ({len(sources)} seeded)")
    table.add_row("Region", f"{config.region.name} ({config.region.code})")
    table.add_row("LLM", f"{config.llm.provider} at {config.llm.base_url}")
    table.add_row("Evidence", config.storage.endpoint or "disabled (no storage endpoint)")
    console.print(table)
    return config_path


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "mediawatch",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("mediawatch", "--db-name", help="Database name"),
    db_user: str = typer.Option("mediawatch", "--db-user", help="Database user"),
    llm_provider: str = typer.Option("ollama", "--llm-provider", help="ollama or openai"),
    llm_url: str = typer.Option("http://localhost:11434", "--llm-url", help="Inference server URL"),
    storage_endpoint: str = typer.Option(
        "", "--storage-endpoint", help="S3-compatible endpoint for evidence (empty disables)"
    ),
    seed_sources: bool = typer.Option(
        True,
        "--seed-sources/--no-seed-sources",
        help="Seed starter news sources",
    ),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("MediaWatch - Initialization", style="bold blue"))

    try:
        config = ConfigModel(
            postgres={
                "host": db_host,
                "port": db_port,
                "database": db_name,
                "user": db_user,
                "password_env": PASSWORD_ENV,
            },
            llm={"provider": llm_provider, "base_url": llm_url},
            storage={"endpoint": storage_endpoint},
        )
    except ValidationError as e:
        console.print(f"[red]❌ Invalid option: {e}[/red]")
        raise typer.Exit(1)

    config_path = _write_files(config, config_dir, seed_sources)

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        ok = run(_init_schema(Config(config_path).get_db_config()))
    except RuntimeError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if not ok:
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Check that Postgres (with pgvector) is reachable, then export "
            f"[bold]{PASSWORD_ENV}[/bold] and run init again."
        )
        raise typer.Exit(1)

    console.print(
        Panel(
            "[green]✅ Schema ready.[/green]\n\n"
            "1. Review sources.yaml, then run [bold]mediawatch sources sync[/bold]\n"
            "2. Start the inference server\n"
            "3. Run [bold]mediawatch ingest[/bold] once, or [bold]mediawatch worker[/bold]",
            style="green",
        )
    )
