"""Core enumsync functionality: codec, merge engine, numbering, store, sync service."""

from .codec import generate, parse, parse_all
from .config import CONFIG_FILENAME, SyncConfig, load_config
from .detector import DetectedEnum, add_value_to_file, find_enums
from .errors import (
    ConfigError,
    EnumSyncError,
    ErrorContext,
    ParseError,
    SourceEditError,
    StoreError,
    ValidationError,
)
from .merge import definition_from_parsed, describe_changes, merge
from .models import EnumDefinition, ParsedEnum, ParsedEnumValue
from .numbering import NumberingMode, assign_numbers, next_value, numbering_mode
from .store import DefinitionStore
from .sync import SyncResult, SyncService
from .validation import is_valid_identifier, validate_definition
from .watcher import EventKind, EventQueue, FileWatcher, RevisionTracker, SyncEvent

__all__ = [
    "generate",
    "parse",
    "parse_all",
    "find_enums",
    "add_value_to_file",
    "DetectedEnum",
    "merge",
    "definition_from_parsed",
    "describe_changes",
    "next_value",
    "assign_numbers",
    "numbering_mode",
    "NumberingMode",
    "EnumDefinition",
    "ParsedEnum",
    "ParsedEnumValue",
    "SyncConfig",
    "CONFIG_FILENAME",
    "load_config",
    "DefinitionStore",
    "SyncService",
    "SyncResult",
    "EventKind",
    "EventQueue",
    "SyncEvent",
    "FileWatcher",
    "RevisionTracker",
    "is_valid_identifier",
    "validate_definition",
    "EnumSyncError",
    "ParseError",
    "ValidationError",
    "StoreError",
    "SourceEditError",
    "ConfigError",
    "ErrorContext",
]
