"""
Project configuration loaded from enumsync.toml.

Example:

    [enumsync]
    default_namespace = "Game.Enums"
    generated_path = "Assets/GeneratedEnums"
    definitions_path = "Assets/EnumDefinitions"
    default_use_flags = false
    use_powers_of_two_for_unflagged = true
    include_tooltips = true
    include_header = true
    prevent_value_name_changes = false
    poll_interval = 0.5

Relative paths are resolved against the directory holding the file.
"""

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError

CONFIG_FILENAME = "enumsync.toml"


@dataclass(frozen=True)
class SyncConfig:
    """Settings shared by the codec, merge engine, and sync service."""

    default_namespace: str = "Game.Enums"
    generated_path: Path = Path("GeneratedEnums")
    definitions_path: Path = Path("EnumDefinitions")
    default_use_flags: bool = False
    use_powers_of_two_for_unflagged: bool = False
    include_tooltips: bool = True
    include_header: bool = True
    prevent_value_name_changes: bool = False
    poll_interval: float = 0.5

    def resolved(self, root: Path) -> "SyncConfig":
        """Return a copy with relative paths anchored at ``root``."""
        return replace(
            self,
            generated_path=_anchor(root, self.generated_path),
            definitions_path=_anchor(root, self.definitions_path),
        )

    def enum_file_path(self, enum_name: str) -> Path:
        """Path of the generated source file for ``enum_name``."""
        return self.generated_path / f"{enum_name}.cs"


def _anchor(root: Path, path: Path) -> Path:
    return path if path.is_absolute() else root / path


_BOOL_KEYS = {
    "default_use_flags",
    "use_powers_of_two_for_unflagged",
    "include_tooltips",
    "include_header",
    "prevent_value_name_changes",
}
_PATH_KEYS = {"generated_path", "definitions_path"}


def config_from_dict(data: dict[str, Any]) -> SyncConfig:
    """
    Build a SyncConfig from the ``[enumsync]`` table.

    Raises:
        ConfigError: On unknown keys or wrongly typed values
    """
    known = {f.name for f in fields(SyncConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown enumsync settings: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(f"Setting '{key}' must be true or false")
            values[key] = value
        elif key in _PATH_KEYS:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Setting '{key}' must be a non-empty path string")
            values[key] = Path(value)
        elif key == "poll_interval":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError("Setting 'poll_interval' must be a positive number")
            values[key] = float(value)
        else:
            if not isinstance(value, str):
                raise ConfigError(f"Setting '{key}' must be a string")
            values[key] = value

    return SyncConfig(**values)


def load_config(path: Path) -> SyncConfig:
    """
    Load enumsync.toml and resolve its paths relative to the file.

    A missing file yields the defaults, anchored at the file's directory.

    Raises:
        ConfigError: If the file is not valid TOML or has bad settings
    """
    root = path.parent
    if not path.exists():
        return SyncConfig().resolved(root)

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    section = data.get("enumsync", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[enumsync] in {path} must be a table")

    return config_from_dict(section).resolved(root)


__all__ = [
    "CONFIG_FILENAME",
    "SyncConfig",
    "config_from_dict",
    "load_config",
]
