"""
enumsync CLI package.

- enums.py: definition, generation and sync commands
- utils.py: shared helpers (console, config loading, result printing)
"""

from __future__ import annotations

import typer

from enumsync._version import get_version
from enumsync.cli.enums import (
    add_command,
    add_to_file_command,
    apply_command,
    find_command,
    list_command,
    move_command,
    new_command,
    remove_command,
    rename_command,
    restore_command,
    scan_command,
    show_command,
    sync_command,
    tooltip_command,
    watch_command,
)
from enumsync.cli.utils import configure_logging, version_callback

__version__ = get_version()

app = typer.Typer(
    help="""enumsync - keep enum definitions and generated C# enums in sync

  • Definitions -> files: new, add, remove, restore, rename, move, tooltip, apply
  • Files -> definitions: sync, scan, watch
  • Hand-written sources: find, add-to-file
  • Inspection: show, list
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """enumsync CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="new")(new_command)
app.command(name="add")(add_command)
app.command(name="remove")(remove_command)
app.command(name="restore")(restore_command)
app.command(name="rename")(rename_command)
app.command(name="move")(move_command)
app.command(name="tooltip")(tooltip_command)
app.command(name="apply")(apply_command)
app.command(name="sync")(sync_command)
app.command(name="scan")(scan_command)
app.command(name="watch")(watch_command)
app.command(name="find")(find_command)
app.command(name="add-to-file")(add_to_file_command)
app.command(name="show")(show_command)
app.command(name="list")(list_command)


def main() -> None:
    app(standalone_mode=True)


__all__ = [
    "__version__",
    "app",
    "main",
]
