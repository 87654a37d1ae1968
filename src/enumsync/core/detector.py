"""
Enum discovery and in-place edits for hand-written C# sources.

``find_enums`` walks a source tree and reports every enum declared in its
.cs files. ``add_value_to_file`` appends a member to one of those enums,
numbering it with the same policy as generated enums, and puts the
original file back if the write fails.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from .codec import find_declarations, mask_source, parse_all, parse_declaration
from .config import SyncConfig
from .errors import ParseError, SourceEditError, ValidationError
from .models import ParsedEnum
from .numbering import next_value, numbering_mode
from .validation import INT_MAX, INT_MIN, is_valid_identifier

logger = logging.getLogger(__name__)

# Unity build output and caches
EXCLUDED_DIRS = frozenset({"Library", "Temp"})
BACKUP_SUFFIX = ".backup"
MEMBER_INDENT = "    "


@dataclass(frozen=True)
class DetectedEnum:
    """An enum declaration found in a source file."""

    path: Path
    enum: ParsedEnum

    @property
    def name(self) -> str:
        return self.enum.enum_name

    @property
    def qualified_name(self) -> str:
        if self.enum.namespace:
            return f"{self.enum.namespace}.{self.enum.enum_name}"
        return self.enum.enum_name


# =============================================================================
# Discovery
# =============================================================================


def find_enums_in_file(path: Path) -> list[DetectedEnum]:
    """
    Every enum declared in one file.

    Raises:
        OSError: If the file cannot be read
        ParseError: If an enum in it cannot be read
    """
    text = path.read_text(encoding="utf-8")
    return [DetectedEnum(path, parsed) for parsed in parse_all(text, source=path)]


def find_enums(directory: Path, pattern: str = "*.cs") -> list[DetectedEnum]:
    """
    Every enum declared under ``directory``, in path order.

    Files that cannot be read or parsed are skipped with a warning.
    """
    if not directory.is_dir():
        return []

    found: list[DetectedEnum] = []
    for path in sorted(directory.rglob(pattern)):
        if EXCLUDED_DIRS.intersection(path.relative_to(directory).parts):
            continue
        try:
            found.extend(find_enums_in_file(path))
        except (OSError, UnicodeDecodeError, ParseError) as e:
            logger.warning("Failed to read enums from %s: %s", path, e)
    logger.debug("Found %d enum(s) under %s", len(found), directory)
    return found


def find_enum(
    directory: Path, enum_name: str, preferred: Path | None = None
) -> DetectedEnum | None:
    """
    Look an enum up by name, trying ``preferred`` before the whole tree.
    """
    if preferred is not None and preferred.is_file():
        try:
            for detected in find_enums_in_file(preferred):
                if detected.name == enum_name:
                    return detected
        except (OSError, UnicodeDecodeError, ParseError) as e:
            logger.warning("Failed to read enums from %s: %s", preferred, e)

    for detected in find_enums(directory):
        if detected.name == enum_name:
            return detected
    return None


# =============================================================================
# Editing
# =============================================================================


def _indent_of(line: str) -> str:
    return re.match(r"[ \t]*", line).group(0)


def add_value_to_text(
    text: str,
    enum_name: str,
    value_name: str,
    config: SyncConfig | None = None,
    source: Path | None = None,
) -> tuple[str, int]:
    """
    Append ``value_name`` to the enum ``enum_name`` declared in ``text``.

    The member goes on its own line after the last existing member, with
    an explicit number: the next power of two for flags enums, otherwise
    the next number in the configured mode. Numbers of obsolete members
    are never reused. The rest of the text is left untouched.

    Returns:
        The edited text and the new member's number

    Raises:
        ValidationError: If the name is not a valid identifier, is already
            declared in the enum, or the number does not fit in an int
        SourceEditError: If the enum is not declared in ``text``
        ParseError: If the enum cannot be read
    """
    if not is_valid_identifier(value_name):
        raise ValidationError(f"'{value_name}' is not a valid C# identifier")

    declaration = next((d for d in find_declarations(text, source) if d.name == enum_name), None)
    if declaration is None:
        raise SourceEditError(f"No enum named '{enum_name}' in {source or 'the source text'}")

    masked = mask_source(text)
    parsed = parse_declaration(text, declaration, source, masked)
    if value_name in parsed.value_names():
        raise ValidationError(f"Value '{value_name}' already exists in enum {enum_name}")

    mode = numbering_mode(parsed.use_flags, config)
    number = next_value(
        [v.numeric_value for v in parsed.values if not v.is_obsolete],
        mode,
        [v.numeric_value for v in parsed.values if v.is_obsolete],
    )
    if not INT_MIN <= number <= INT_MAX:
        raise ValidationError(f"Next value {number} for enum {enum_name} does not fit in an int")

    lines = text.split("\n")
    if parsed.values:
        indent = _indent_of(lines[parsed.values[-1].line - 1])
    else:
        enum_line = text.count("\n", 0, declaration.start)
        indent = _indent_of(lines[enum_line]) + MEMBER_INDENT

    body_start = declaration.open_brace + 1
    body = masked[body_start : declaration.close_brace].rstrip()
    anchor = body_start + len(body)
    comma = "," if body.strip() and not body.endswith(",") else ""
    member = f"{value_name} = {number},"

    eol = text.find("\n", anchor, declaration.close_brace)
    if eol < 0:
        # Body closes on the same line as its last member
        edited = text[:anchor] + comma + " " + member + text[anchor:]
    else:
        edited = text[:anchor] + comma + text[anchor:eol] + "\n" + indent + member + text[eol:]
    return edited, number


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def add_value_to_file(
    path: Path, enum_name: str, value_name: str, config: SyncConfig | None = None
) -> int:
    """
    Append a member to an enum in ``path`` and return its number.

    The file is copied to ``<name>.backup`` before writing. If the write
    fails the copy is put back; either way the backup is removed once the
    file is whole again.

    Raises:
        SourceEditError: If the file cannot be read or written, or does
            not declare the enum
        ValidationError: See ``add_value_to_text``
        ParseError: If the enum cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceEditError(f"Failed to read {path}: {e}") from e

    edited, number = add_value_to_text(text, enum_name, value_name, config, source=path)

    backup = backup_path(path)
    try:
        shutil.copy2(path, backup)
    except OSError as e:
        raise SourceEditError(f"Failed to back up {path}: {e}") from e

    try:
        path.write_text(edited, encoding="utf-8")
    except OSError as e:
        # If restoring fails too, the backup stays for manual recovery
        shutil.copy2(backup, path)
        backup.unlink()
        logger.error("Failed to write %s, restored the original: %s", path, e)
        raise SourceEditError(f"Failed to write {path}: {e}") from e

    backup.unlink()
    logger.info("Added %s = %d to enum %s in %s", value_name, number, enum_name, path)
    return number


__all__ = [
    "BACKUP_SUFFIX",
    "DetectedEnum",
    "add_value_to_file",
    "add_value_to_text",
    "backup_path",
    "find_enum",
    "find_enums",
    "find_enums_in_file",
]
