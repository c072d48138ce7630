"""Main CLI application."""

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from ..log import setup_logging
from .common import set_config_path
from .evidence import articles_app, evidence_app
from .init import init_command
from .run import (
    brief_command,
    cleanup_command,
    ingest_command,
    reenrich_command,
    scan_command,
    worker_command,
)
from .sources import sources_app
from .watchlist import watchlist_app

app = typer.Typer(
    name="mediawatch",
    help="MediaWatch - News ingestion, enrichment and organization monitoring",
    no_args_is_help=True,
)


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        envvar="MEDIAWATCH_CONFIG",
        help="Path to config.yaml",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    set_config_path(config)


# Register commands
app.command("init")(init_command)
app.command("ingest")(ingest_command)
app.command("scan")(scan_command)
app.command("brief")(brief_command)
app.command("cleanup")(cleanup_command)
app.command("reenrich")(reenrich_command)
app.command("worker")(worker_command)
app.add_typer(sources_app, name="sources", help="Manage news sources")
app.add_typer(watchlist_app, name="watchlist", help="Manage watched organizations")
app.add_typer(evidence_app, name="evidence", help="Inspect captured evidence")
app.add_typer(articles_app, name="articles", help="Search and inspect articles")


if __name__ == "__main__":
    app()
