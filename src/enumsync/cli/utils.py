"""
enumsync CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from enumsync._version import get_version
from enumsync.core.config import SyncConfig, load_config
from enumsync.core.errors import ConfigError
from enumsync.core.sync import SyncResult, SyncService

console = Console()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"enumsync {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )


def load_settings(config_path: str) -> SyncConfig:
    """Load enumsync.toml, exiting with code 1 if it is malformed."""
    try:
        return load_config(Path(config_path).resolve())
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)


def make_service(config_path: str, **kwargs: bool) -> SyncService:
    return SyncService(load_settings(config_path), **kwargs)


_ACTION_STYLES = {
    "created": "green",
    "generated": "green",
    "updated": "cyan",
    "unchanged": "dim",
    "skipped": "dim",
    "pending": "yellow",
    "failed": "red",
}


def print_result(result: SyncResult) -> None:
    style = _ACTION_STYLES.get(result.action, "white")
    target = result.enum_name or (result.path.name if result.path else "?")
    line = f"[{style}]{result.action:>9}[/{style}]  {escape(target)}"
    if result.message:
        line += f"  {escape(result.message)}"
    console.print(line, highlight=False, soft_wrap=True)
    for change in result.changes:
        console.print(f"           - {escape(change)}", highlight=False, soft_wrap=True)


def report(results: list[SyncResult]) -> None:
    """Print every result; exit with code 1 if any failed."""
    for result in results:
        print_result(result)
    if any(not r.ok for r in results):
        raise typer.Exit(code=1)
