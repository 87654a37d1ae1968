"""
Sync service: reacts to triggers and keeps definitions and files in step.

Triggers arrive as SyncEvents on an EventQueue and are handled one at a
time by process_events(). Every handled trigger yields SyncResults; I/O
errors are caught here and reported, never raised to the caller, so a
watch loop keeps running after a bad file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .codec import generate, parse
from .config import SyncConfig
from .detector import add_value_to_file
from .errors import EnumSyncError, ParseError, StoreError, ValidationError
from .merge import definition_from_parsed, describe_changes, merge
from .models import EnumDefinition
from .numbering import NumberingMode, minimal_pins, numbering_mode
from .store import DefinitionStore
from .validation import is_valid_identifier
from .watcher import EventKind, EventQueue, RevisionTracker, SyncEvent

logger = logging.getLogger(__name__)

TEMPLATE_VALUES = ["None", "Value1", "Value2", "Value3"]


@dataclass
class SyncResult:
    """Outcome of handling one file or definition."""

    action: str  # created, updated, unchanged, skipped, generated, pending, failed
    path: Path | None = None
    enum_name: str | None = None
    ok: bool = True
    message: str = ""
    changes: list[str] = field(default_factory=list)


class SyncService:
    """
    Orchestrates codec, merge engine, store and file system.

    Args:
        config: Resolved settings
        store: Definition store; defaults to one at ``config.definitions_path``
        queue: Event queue to drain; a fresh one is created if omitted
        defer_until_build: Hold changed files until BUILD_FINISHED
        canonicalize: After a successful merge, rewrite the file in
            canonical form if it differs
    """

    def __init__(
        self,
        config: SyncConfig,
        store: DefinitionStore | None = None,
        queue: EventQueue | None = None,
        defer_until_build: bool = True,
        canonicalize: bool = False,
    ):
        self.config = config
        self.store = store or DefinitionStore(config.definitions_path)
        self.queue = queue if queue is not None else EventQueue()
        self.revisions = RevisionTracker()
        self.defer_until_build = defer_until_build
        self.canonicalize = canonicalize
        self._pending: list[Path] = []

    # =========================================================================
    # Events
    # =========================================================================

    def post(self, kind: EventKind, path: Path | None = None, enum_name: str | None = None) -> None:
        self.queue.put(SyncEvent(kind, path=path, enum_name=enum_name))

    def process_events(self) -> list[SyncResult]:
        """Handle every queued event in order."""
        results: list[SyncResult] = []
        for event in self.queue.drain():
            results.extend(self.handle(event))
        return results

    def handle(self, event: SyncEvent) -> list[SyncResult]:
        if event.kind == EventKind.FILE_CHANGED:
            if event.path is None:
                return []
            return [self.on_file_changed(event.path)]
        if event.kind == EventKind.BUILD_FINISHED:
            return self.on_build_finished()
        if event.kind == EventKind.STARTUP_SCAN:
            return self.scan()
        if event.kind == EventKind.APPLY_REQUESTED:
            if event.enum_name is None:
                return []
            return [self.apply(event.enum_name)]
        raise ValueError(f"Unknown event kind: {event.kind}")

    def on_file_changed(self, path: Path) -> SyncResult:
        if not self.defer_until_build:
            return self.sync_file(path)
        if path not in self._pending:
            self._pending.append(path)
        logger.debug("Holding %s until the build finishes", path)
        return SyncResult("pending", path=path, enum_name=path.stem)

    def on_build_finished(self) -> list[SyncResult]:
        pending, self._pending = self._pending, []
        return [self.sync_file(path) for path in pending]

    @property
    def pending(self) -> list[Path]:
        return list(self._pending)

    # =========================================================================
    # File -> definition
    # =========================================================================

    def scan(self) -> list[SyncResult]:
        """Sync every generated file, e.g. at startup."""
        directory = self.config.generated_path
        if not directory.is_dir():
            logger.info("Generated enums directory %s does not exist yet", directory)
            return []
        return [self.sync_file(path) for path in sorted(directory.glob("*.cs"))]

    def sync_file(self, path: Path, force: bool = False) -> SyncResult:
        """
        Merge one generated file into its definition.

        The definition is looked up by the file's stem. A file without a
        definition gets a new one, provided it declares at least one member.
        A file whose current revision was already handled is skipped unless
        ``force`` is set.
        """
        enum_name = path.stem
        try:
            mtime = path.stat().st_mtime
            if not force and not self.revisions.is_new(path, mtime):
                return SyncResult(
                    "skipped", path=path, enum_name=enum_name, message="already processed"
                )
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            return SyncResult("failed", path=path, enum_name=enum_name, ok=False, message=str(e))

        try:
            parsed = parse(text, source=path)
        except ParseError as e:
            logger.warning("Could not parse %s, definition left unchanged:\n%s", path, e)
            return SyncResult("failed", path=path, enum_name=enum_name, ok=False, message=str(e))

        if parsed.enum_name and parsed.enum_name != enum_name:
            logger.warning(
                "%s declares enum '%s'; syncing it into definition '%s'",
                path,
                parsed.enum_name,
                enum_name,
            )

        try:
            existing = self.store.find(enum_name)
            if existing is None:
                if not parsed.values:
                    self.revisions.record(path, mtime)
                    return SyncResult(
                        "skipped",
                        path=path,
                        enum_name=enum_name,
                        message="no definition and no values",
                    )
                if not is_valid_identifier(enum_name):
                    return SyncResult(
                        "failed",
                        path=path,
                        enum_name=enum_name,
                        ok=False,
                        message=f"'{enum_name}' is not a valid enum name",
                    )
                updated = definition_from_parsed(enum_name, parsed, self.config)
                self.store.save(updated)
                logger.info("Created enum definition %s from %s", enum_name, path)
                result = SyncResult(
                    "created",
                    path=path,
                    enum_name=enum_name,
                    message=f"created definition with {len(updated.values)} values",
                    changes=[f"added: {', '.join(updated.values)}"] if updated.values else [],
                )
            else:
                updated = merge(existing, parsed, self.config)
                changes = describe_changes(existing, updated, self.config)
                if updated == existing:
                    result = SyncResult("unchanged", path=path, enum_name=enum_name)
                else:
                    self.store.save(updated)
                    for line in changes:
                        logger.info("%s: %s", enum_name, line)
                    result = SyncResult(
                        "updated",
                        path=path,
                        enum_name=enum_name,
                        message=f"updated definition {enum_name}",
                        changes=changes,
                    )
        except StoreError as e:
            logger.error("%s", e)
            return SyncResult("failed", path=path, enum_name=enum_name, ok=False, message=str(e))

        self.revisions.record(path, mtime)

        if self.canonicalize:
            rewrite = self._write_generated(updated)
            if not rewrite.ok:
                return rewrite
        return result

    # =========================================================================
    # Definition -> file
    # =========================================================================

    def apply(self, target: EnumDefinition | str) -> SyncResult:
        """
        Validate a definition, save it, and (re)generate its file.

        ``target`` is either a definition or the name of a stored one.
        """
        if isinstance(target, str):
            try:
                definition = self.store.find(target)
            except StoreError as e:
                return SyncResult("failed", enum_name=target, ok=False, message=str(e))
            if definition is None:
                return SyncResult(
                    "failed", enum_name=target, ok=False, message=f"No definition named '{target}'"
                )
        else:
            definition = target

        try:
            text = generate(definition, self.config)
        except ValidationError as e:
            logger.error("%s", e)
            return SyncResult(
                "failed", enum_name=definition.enum_name, ok=False, message=str(e)
            )

        try:
            self.store.save(definition)
        except StoreError as e:
            logger.error("%s", e)
            return SyncResult(
                "failed", enum_name=definition.enum_name, ok=False, message=str(e)
            )
        return self._write_text(definition.enum_name, text)

    def _write_generated(self, definition: EnumDefinition) -> SyncResult:
        try:
            text = generate(definition, self.config)
        except ValidationError as e:
            logger.error("%s", e)
            return SyncResult(
                "failed", enum_name=definition.enum_name, ok=False, message=str(e)
            )
        return self._write_text(definition.enum_name, text)

    def _write_text(self, enum_name: str, text: str) -> SyncResult:
        """Write generated source unless the file already holds exactly ``text``."""
        path = self.config.enum_file_path(enum_name)
        try:
            if path.exists() and path.read_text(encoding="utf-8") == text:
                self.revisions.record(path, path.stat().st_mtime)
                return SyncResult(
                    "unchanged", path=path, enum_name=enum_name, message="file is up to date"
                )
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
            self.revisions.record(path, path.stat().st_mtime)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            return SyncResult("failed", path=path, enum_name=enum_name, ok=False, message=str(e))

        logger.info("Generated %s", path)
        return SyncResult("generated", path=path, enum_name=enum_name, message=f"wrote {path.name}")

    def create_enum_file(
        self,
        enum_name: str,
        namespace: str | None = None,
        use_flags: bool | None = None,
        overwrite: bool = False,
    ) -> SyncResult:
        """
        Start a new enum from the template: ``None`` plus three sample values.

        ``None`` is always 0; the samples are numbered 1, 2, 3, or 1, 2, 4
        under powers-of-two numbering.
        """
        if not is_valid_identifier(enum_name):
            return SyncResult(
                "failed",
                enum_name=enum_name,
                ok=False,
                message=f"'{enum_name}' is not a valid C# identifier",
            )

        path = self.config.enum_file_path(enum_name)
        try:
            taken = path.exists() or self.store.find(enum_name) is not None
        except StoreError as e:
            return SyncResult("failed", enum_name=enum_name, ok=False, message=str(e))
        if taken and not overwrite:
            return SyncResult(
                "failed",
                path=path,
                enum_name=enum_name,
                ok=False,
                message=f"Enum '{enum_name}' already exists",
            )

        flags = self.config.default_use_flags if use_flags is None else use_flags
        mode = numbering_mode(flags, self.config)
        if mode == NumberingMode.POWERS_OF_TWO:
            numbers = [0, 1, 2, 4]
        else:
            numbers = [0, 1, 2, 3]

        definition = EnumDefinition(
            enum_name=enum_name,
            namespace=self.config.default_namespace if namespace is None else namespace,
            use_flags=flags,
            values=list(TEMPLATE_VALUES),
            tooltips=[""] * len(TEMPLATE_VALUES),
            pinned_numbers=minimal_pins(TEMPLATE_VALUES, numbers, mode),
        )
        result = self.apply(definition)
        if result.ok:
            result.action = "created"
            result.message = f"created {enum_name} with {len(TEMPLATE_VALUES)} values"
        return result

    # =========================================================================
    # Hand-written sources
    # =========================================================================

    def is_managed(self, path: Path) -> bool:
        """True if ``path`` lies in the generated enums directory."""
        return path.resolve().is_relative_to(self.config.generated_path.resolve())

    def add_value_to_file(self, path: Path, enum_name: str, value_name: str) -> SyncResult:
        """
        Append a member to an enum declared in any C# file.

        When the file is a generated one, the edit is merged into its
        definition straight away.
        """
        try:
            number = add_value_to_file(path, enum_name, value_name, self.config)
        except EnumSyncError as e:
            logger.error("%s", e)
            return SyncResult("failed", path=path, enum_name=enum_name, ok=False, message=str(e))

        added = f"added {value_name} = {number}"
        if not self.is_managed(path):
            return SyncResult(
                "updated",
                path=path,
                enum_name=enum_name,
                message=f"{added} in {path.name}",
                changes=[f"added: {value_name}"],
            )

        result = self.sync_file(path, force=True)
        if result.ok:
            result.message = f"{added}; {result.message}" if result.message else added
        return result

    # =========================================================================
    # Definition edits
    # =========================================================================

    def mode_for(self, definition: EnumDefinition) -> NumberingMode:
        return numbering_mode(definition.use_flags, self.config)

    def load(self, enum_name: str) -> EnumDefinition:
        """
        Raises:
            StoreError: If there is no such definition or it cannot be read
        """
        definition = self.store.find(enum_name)
        if definition is None:
            raise StoreError(f"No definition named '{enum_name}'")
        return definition

    def edit(
        self, enum_name: str, change: Callable[[EnumDefinition], EnumDefinition]
    ) -> SyncResult:
        """
        Load a definition, apply ``change`` to it, then regenerate.

        ``change`` maps the loaded definition to the edited one and may
        raise EnumSyncError or ValueError to reject the edit.
        """
        try:
            definition = self.load(enum_name)
            updated = change(definition)
        except (EnumSyncError, ValueError) as e:
            return SyncResult("failed", enum_name=enum_name, ok=False, message=str(e))
        return self.apply(updated)


__all__ = [
    "TEMPLATE_VALUES",
    "SyncResult",
    "SyncService",
]
