"""Shared CLI state and helpers."""

import asyncio
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console

from ..config import Config

console = Console()

T = TypeVar("T")

_state = {"config_path": None}


def set_config_path(path: Optional[Path]) -> None:
    _state["config_path"] = path


def get_config() -> Config:
    """Config from --config, MEDIAWATCH_CONFIG or the default path."""
    config = Config(_state["config_path"])
    try:
        config.config
    except FileNotFoundError:
        console.print(
            f"[red]Config file not found: {config.config_path}. Run 'mediawatch init' first.[/red]"
        )
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion, turning Ctrl-C into a clean exit."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(1)
