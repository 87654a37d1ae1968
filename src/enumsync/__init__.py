"""
enumsync - two-way sync between enum definitions and generated C# enums.

Definitions are structured records (name, namespace, flags mode, members,
tooltips, soft-deleted members). Generated files are canonical C# source
that may be edited by hand; edits are parsed and merged back.
"""

from __future__ import annotations

from ._version import get_version
from .core.codec import generate, parse
from .core.errors import EnumSyncError, ParseError, ValidationError
from .core.merge import merge
from .core.models import EnumDefinition, ParsedEnum, ParsedEnumValue
from .core.numbering import NumberingMode, next_value

__version__ = get_version()

__all__ = [
    "__version__",
    "generate",
    "parse",
    "merge",
    "next_value",
    "NumberingMode",
    "EnumDefinition",
    "ParsedEnum",
    "ParsedEnumValue",
    "EnumSyncError",
    "ParseError",
    "ValidationError",
]
