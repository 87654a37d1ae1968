"""
CLI commands for enum definitions and generated files.

Commands:
- new: Create a definition and file from the starter template
- add / remove / restore / rename / move / tooltip: Edit a definition and regenerate
- apply: Regenerate files from definitions
- sync: Merge hand-edited generated files back into definitions
- scan: Sync every generated file
- watch: Poll the generated directory and sync changes as they happen
- show / list: Inspect definitions
- find: List the enums declared anywhere in a source tree
- add-to-file: Append a member to an enum in any C# file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from enumsync.cli.utils import console, load_settings, make_service, print_result, report
from enumsync.core.codec import generate
from enumsync.core.detector import find_enums
from enumsync.core.errors import EnumSyncError, ValidationError
from enumsync.core.models import EnumDefinition
from enumsync.core.protection import is_protected, rename_value
from enumsync.core.store import DefinitionStore
from enumsync.core.sync import SyncResult
from enumsync.core.watcher import EventKind, FileWatcher


def _exit_on_failure(result: SyncResult) -> None:
    print_result(result)
    if not result.ok:
        raise typer.Exit(code=1)


# =============================================================================
# Creating and editing definitions
# =============================================================================


def new_command(
    name: str = typer.Argument(..., help="Enum type name"),
    namespace: str | None = typer.Option(
        None, "--namespace", "-n", help="Namespace (defaults to default_namespace)"
    ),
    flags: bool | None = typer.Option(
        None, "--flags/--no-flags", help="Generate a [Flags] enum (defaults to default_use_flags)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing enum"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Create a new enum with None and three sample values."""
    service = make_service(config)
    result = service.create_enum_file(name, namespace=namespace, use_flags=flags, overwrite=force)
    _exit_on_failure(result)


def add_command(
    name: str = typer.Argument(..., help="Enum type name"),
    values: list[str] = typer.Argument(..., help="Member names to append"),
    tooltip: str = typer.Option("", "--tooltip", "-t", help="Tooltip for the new members"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Append members to a definition and regenerate its file."""
    service = make_service(config)

    def change(definition: EnumDefinition) -> EnumDefinition:
        for value in values:
            definition = definition.add_value(value, tooltip)
        return definition

    _exit_on_failure(service.edit(name, change))


def remove_command(
    name: str = typer.Argument(..., help="Enum type name"),
    value: str = typer.Argument(..., help="Member to soft-delete"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """
    Soft-delete a member.

    The member stays in the generated file, marked obsolete, with its
    number frozen so existing data keeps its meaning.
    """
    service = make_service(config)
    result = service.edit(
        name, lambda d: d.remove_value(value, service.mode_for(d))
    )
    _exit_on_failure(result)


def restore_command(
    name: str = typer.Argument(..., help="Enum type name"),
    value: str = typer.Argument(..., help="Removed member to reactivate"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Reactivate a soft-deleted member with its original number."""
    service = make_service(config)
    result = service.edit(
        name, lambda d: d.restore_value(value, service.mode_for(d))
    )
    _exit_on_failure(result)


def rename_command(
    name: str = typer.Argument(..., help="Enum type name"),
    old: str = typer.Argument(..., help="Current member name"),
    new: str = typer.Argument(..., help="New member name"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Rename a member (refused for generated members when name changes are disabled)."""
    service = make_service(config)
    result = service.edit(name, lambda d: rename_value(d, old, new, service.config))
    _exit_on_failure(result)


def move_command(
    name: str = typer.Argument(..., help="Enum type name"),
    value: str = typer.Argument(..., help="Member to move"),
    index: int = typer.Argument(..., help="New zero-based position"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Reorder a member. Every member keeps its number."""
    service = make_service(config)
    result = service.edit(
        name, lambda d: d.move_value(value, index, service.mode_for(d))
    )
    _exit_on_failure(result)


def tooltip_command(
    name: str = typer.Argument(..., help="Enum type name"),
    value: str = typer.Argument(..., help="Member name"),
    text: str = typer.Argument(..., help="Tooltip text (empty to clear)"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Set or clear a member's tooltip."""
    service = make_service(config)
    _exit_on_failure(service.edit(name, lambda d: d.set_tooltip(value, text)))


# =============================================================================
# Syncing
# =============================================================================


def apply_command(
    names: list[str] | None = typer.Argument(None, help="Enums to regenerate (default: all)"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Regenerate C# files from their definitions."""
    service = make_service(config)
    if not names:
        names = [d.enum_name for d in service.store.load_all()]
        if not names:
            typer.echo(f"No enum definitions found in {service.config.definitions_path}")
            return
    for enum_name in names:
        service.post(EventKind.APPLY_REQUESTED, enum_name=enum_name)
    report(service.process_events())


def sync_command(
    files: list[Path] = typer.Argument(..., help="Generated .cs files to merge back"),
    canonicalize: bool = typer.Option(
        False, "--canonicalize", help="Rewrite merged files in canonical form"
    ),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Merge hand-edited generated files into their definitions."""
    service = make_service(config, canonicalize=canonicalize)
    report([service.sync_file(path, force=True) for path in files])


def scan_command(
    canonicalize: bool = typer.Option(
        False, "--canonicalize", help="Rewrite merged files in canonical form"
    ),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Sync every file in the generated directory."""
    service = make_service(config, canonicalize=canonicalize)
    service.post(EventKind.STARTUP_SCAN)
    results = service.process_events()
    if not results:
        typer.echo(f"No generated enums found in {service.config.generated_path}")
        return
    report(results)


def watch_command(
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Poll interval in seconds (defaults to poll_interval)"
    ),
    scan: bool = typer.Option(True, "--scan/--no-scan", help="Sync all files before watching"),
    max_cycles: int | None = typer.Option(None, "--max-cycles", hidden=True),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Watch the generated directory and sync files as they change."""
    service = make_service(config, defer_until_build=False)
    watcher = FileWatcher(service.config.generated_path, service.queue)
    watcher.prime()

    if scan:
        service.post(EventKind.STARTUP_SCAN)
        for result in service.process_events():
            print_result(result)

    def process() -> None:
        for result in service.process_events():
            if result.action != "skipped":
                print_result(result)

    console.print(f"[bold]Watching[/bold] {escape(str(service.config.generated_path))}")
    try:
        watcher.run(
            process,
            poll_interval=interval or service.config.poll_interval,
            max_cycles=max_cycles,
        )
    except KeyboardInterrupt:
        console.print("Stopped.")


# =============================================================================
# Hand-written sources
# =============================================================================


def find_command(
    directory: Path = typer.Argument(Path("."), help="Source tree to search"),
) -> None:
    """List every enum declared in the .cs files under a directory."""
    enums = find_enums(directory)
    if not enums:
        typer.echo(f"No enums found in {directory}")
        return

    table = Table(title=f"Enums in {directory}")
    table.add_column("Enum", style="cyan")
    table.add_column("Flags")
    table.add_column("Values", justify="right")
    table.add_column("Obsolete", justify="right")
    table.add_column("File")

    for detected in enums:
        values = detected.enum.values
        obsolete = sum(1 for v in values if v.is_obsolete)
        table.add_row(
            escape(detected.qualified_name),
            "Yes" if detected.enum.use_flags else "No",
            str(len(values) - obsolete),
            str(obsolete),
            escape(str(detected.path.relative_to(directory))),
        )

    console.print(table)


def add_to_file_command(
    file: Path = typer.Argument(..., help="C# file declaring the enum"),
    enum_name: str = typer.Argument(..., help="Enum type name"),
    value: str = typer.Argument(..., help="Member name to append"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """
    Append a member to an enum in any C# file.

    Generated files are merged into their definition afterwards.
    """
    service = make_service(config)
    _exit_on_failure(service.add_value_to_file(file, enum_name, value))


# =============================================================================
# Inspecting
# =============================================================================


def show_command(
    name: str = typer.Argument(..., help="Enum type name"),
    source: bool = typer.Option(False, "--source", "-s", help="Print the generated C# instead"),
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """Show a definition's members and numbers."""
    service = make_service(config)
    try:
        definition = service.load(name)
    except EnumSyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if source:
        try:
            typer.echo(generate(definition, service.config), nl=False)
        except ValidationError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)
        return

    flags = " (flags)" if definition.use_flags else ""
    table = Table(title=f"{definition.namespace or '(global)'}.{definition.enum_name}{flags}")
    table.add_column("Name", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Status")
    table.add_column("Tooltip")

    numbers = definition.numbers(service.mode_for(definition))
    for value, number, tooltip in zip(definition.values, numbers, definition.tooltips, strict=True):
        status = "protected" if is_protected(definition, value, service.config) else "active"
        table.add_row(value, str(number), status, escape(tooltip))
    for value, number in zip(
        definition.removed_values, definition.removed_value_numbers, strict=True
    ):
        table.add_row(value, str(number), "[dim]removed[/dim]", "")

    console.print(table)


def list_command(
    config: str = typer.Option("enumsync.toml", "--config", "-c", help="Path to enumsync.toml"),
) -> None:
    """List stored definitions."""
    settings = load_settings(config)
    definitions = DefinitionStore(settings.definitions_path).load_all()
    if not definitions:
        typer.echo(f"No enum definitions found in {settings.definitions_path}")
        return

    table = Table(title="Enum Definitions")
    table.add_column("Enum", style="cyan")
    table.add_column("Namespace")
    table.add_column("Flags")
    table.add_column("Values", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("File")

    for definition in definitions:
        file_path = settings.enum_file_path(definition.enum_name)
        table.add_row(
            definition.enum_name,
            definition.namespace or "(global)",
            "Yes" if definition.use_flags else "No",
            str(len(definition.values)),
            str(len(definition.removed_values)),
            file_path.name if file_path.exists() else "[yellow]missing[/yellow]",
        )

    console.print(table)


__all__ = [
    "new_command",
    "add_command",
    "remove_command",
    "restore_command",
    "rename_command",
    "move_command",
    "tooltip_command",
    "apply_command",
    "sync_command",
    "scan_command",
    "watch_command",
    "find_command",
    "add_to_file_command",
    "show_command",
    "list_command",
]
