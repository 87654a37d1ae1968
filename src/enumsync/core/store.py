"""
Definition persistence.

Each EnumDefinition is stored as ``<definitions_path>/<EnumName>.json``.
Files are plain JSON so they diff well and can be edited by hand.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .errors import StoreError
from .models import EnumDefinition

logger = logging.getLogger(__name__)

DEFINITION_SUFFIX = ".json"


class DefinitionStore:
    """Reads and writes definition records under one directory."""

    def __init__(self, root: Path):
        self.root = root

    def path_for(self, enum_name: str) -> Path:
        return self.root / f"{enum_name}{DEFINITION_SUFFIX}"

    def find_all(self) -> list[Path]:
        """Paths of every stored definition, sorted by name."""
        if not self.root.exists():
            return []
        return sorted(self.root.glob(f"*{DEFINITION_SUFFIX}"))

    def load(self, path: Path) -> EnumDefinition:
        """
        Load one definition record.

        Raises:
            StoreError: If the file is missing, unreadable, or not a definition
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return EnumDefinition.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise StoreError(f"Failed to load enum definition {path}: {e}") from e

    def locate(self, enum_name: str) -> tuple[Path, EnumDefinition] | None:
        """
        Find the record holding ``enum_name`` and the definition in it.

        The conventional file name is tried first; otherwise every record
        is scanned, since a record may have been renamed on disk.
        Unreadable records other than the conventional one are skipped
        with a warning.
        """
        direct = self.path_for(enum_name)
        if direct.exists():
            definition = self.load(direct)
            if definition.enum_name == enum_name:
                return direct, definition

        for path in self.find_all():
            if path == direct:
                continue
            try:
                definition = self.load(path)
            except StoreError as e:
                logger.warning("%s", e)
                continue
            if definition.enum_name == enum_name:
                return path, definition
        return None

    def find(self, enum_name: str) -> EnumDefinition | None:
        """Look a definition up by enum name."""
        found = self.locate(enum_name)
        return found[1] if found else None

    def load_all(self) -> list[EnumDefinition]:
        definitions: list[EnumDefinition] = []
        for path in self.find_all():
            try:
                definitions.append(self.load(path))
            except StoreError as e:
                logger.warning("%s", e)
        return definitions

    def _target_path(self, enum_name: str) -> Path:
        found = self.locate(enum_name)
        if found:
            return found[0]
        path = self.path_for(enum_name)
        if path.exists():
            raise StoreError(
                f"Refusing to overwrite {path}: it holds a different enum definition"
            )
        return path

    def save(self, definition: EnumDefinition) -> Path:
        """
        Write ``definition`` to its record file.

        An existing record is updated where it was found. The record is
        written to a temporary sibling and renamed into place, so a failed
        write never leaves a truncated record.

        Raises:
            StoreError: If the directory or file cannot be written, or the
                conventional file holds another enum's definition
        """
        path = self._target_path(definition.enum_name)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(definition.model_dump(mode="json"), indent=2, ensure_ascii=False)
                + "\n",
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except OSError as e:
            raise StoreError(f"Failed to save enum definition {path}: {e}") from e
        logger.debug("Saved definition %s to %s", definition.enum_name, path)
        return path

    def delete(self, enum_name: str) -> bool:
        """Remove a stored definition. Returns False if there was none."""
        found = self.locate(enum_name)
        if found is None:
            return False
        path = found[0]
        try:
            path.unlink()
        except OSError as e:
            raise StoreError(f"Failed to delete enum definition {path}: {e}") from e
        return True


__all__ = [
    "DEFINITION_SUFFIX",
    "DefinitionStore",
]
