"""
Value-name protection.

With ``prevent_value_name_changes`` enabled, members that already exist in
the generated file cannot be renamed: other code (and serialized data) may
refer to them by name. Newly added members stay editable until the next
generation writes them out.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .codec import parse
from .config import SyncConfig
from .errors import ParseError, ValidationError
from .models import EnumDefinition

logger = logging.getLogger(__name__)


def existing_value_names(path: Path) -> set[str]:
    """
    Member names (active and obsolete) present in a generated file.

    A missing or unparseable file protects nothing.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return set()
    except OSError as e:
        logger.warning("Failed to read existing enum values from %s: %s", path, e)
        return set()

    try:
        parsed = parse(text, source=path)
    except ParseError as e:
        logger.warning("%s", e)
        return set()
    return set(parsed.value_names())


def is_protected(definition: EnumDefinition, name: str, config: SyncConfig) -> bool:
    """True if ``name`` must not be renamed under the current settings."""
    if not config.prevent_value_name_changes:
        return False
    return name in existing_value_names(config.enum_file_path(definition.enum_name))


def rename_value(
    definition: EnumDefinition,
    old: str,
    new: str,
    config: SyncConfig,
) -> EnumDefinition:
    """
    Rename a member unless it is protected.

    Raises:
        ValidationError: If ``old`` is protected or ``new`` is not usable
    """
    if old != new and is_protected(definition, old, config):
        raise ValidationError(
            f"'{old}' already exists in the generated {definition.enum_name}.cs "
            "and value name changes are disabled"
        )
    return definition.rename_value(old, new)


__all__ = [
    "existing_value_names",
    "is_protected",
    "rename_value",
]
