"""
Identifier rules for C# enum names, member names, and namespaces.

Duplicate detection is case-sensitive, the same as the C# compiler.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .errors import ValidationError

if TYPE_CHECKING:
    from .models import EnumDefinition
    from .numbering import NumberingMode

CSHARP_KEYWORDS: frozenset[str] = frozenset(
    {
        "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
        "char", "checked", "class", "const", "continue", "decimal", "default",
        "delegate", "do", "double", "else", "enum", "event", "explicit",
        "extern", "false", "finally", "fixed", "float", "for", "foreach",
        "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
        "lock", "long", "namespace", "new", "null", "object", "operator",
        "out", "override", "params", "private", "protected", "public",
        "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
        "stackalloc", "static", "string", "struct", "switch", "this", "throw",
        "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
        "ushort", "using", "virtual", "void", "volatile", "while",
    }
)  # fmt: skip

_IDENTIFIER_RE = re.compile(r"^[^\W\d]\w*$")

# Generated enums declare no base type, so every number must fit in an int
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


def is_valid_identifier(name: str) -> bool:
    """True if ``name`` is a usable C# identifier and not a keyword."""
    if not name or not _IDENTIFIER_RE.match(name):
        return False
    return name not in CSHARP_KEYWORDS


def is_valid_namespace(namespace: str) -> bool:
    """Dotted identifier path; the empty string is the global namespace."""
    if namespace == "":
        return True
    return all(is_valid_identifier(part) for part in namespace.split("."))


def sanitize_identifier(name: str) -> str:
    """
    Turn arbitrary text into a C# identifier.

    Invalid characters become underscores, a leading digit gets an
    underscore prefix, and keywords get a trailing underscore.
    Returns an empty string for blank input.
    """
    if not name or not name.strip():
        return ""

    sanitized = re.sub(r"\W", "_", name.strip())
    if sanitized[0].isdigit():
        sanitized = "_" + sanitized
    if sanitized in CSHARP_KEYWORDS:
        sanitized += "_"
    return sanitized


def find_duplicates(names: list[str]) -> list[str]:
    """Names occurring more than once, in order of their second occurrence."""
    seen: set[str] = set()
    dupes: list[str] = []
    for name in names:
        if name in seen and name not in dupes:
            dupes.append(name)
        seen.add(name)
    return dupes


def collect_problems(
    definition: EnumDefinition, mode: NumberingMode | None = None
) -> list[str]:
    """
    Every reason ``definition`` cannot be generated, or an empty list.

    Numbers are range-checked only when ``mode`` is given, since active
    members are numbered by it.
    """
    problems: list[str] = []

    if not definition.enum_name:
        problems.append("enum name is empty")
    elif not is_valid_identifier(definition.enum_name):
        problems.append(f"enum name '{definition.enum_name}' is not a valid identifier")

    if not is_valid_namespace(definition.namespace):
        problems.append(f"namespace '{definition.namespace}' is not a dotted identifier path")

    for index, name in enumerate(definition.values):
        if not name:
            problems.append(f"value #{index + 1} has an empty name")
        elif not is_valid_identifier(name):
            problems.append(f"value '{name}' is not a valid identifier")

    for name in find_duplicates(definition.values):
        problems.append(f"value '{name}' is declared more than once")

    for name in definition.removed_values:
        if not is_valid_identifier(name):
            problems.append(f"removed value '{name}' is not a valid identifier")

    for name in find_duplicates(definition.removed_values):
        problems.append(f"removed value '{name}' is listed more than once")

    for name in definition.removed_values:
        if name in definition.values:
            problems.append(f"value '{name}' is both active and removed")

    if mode is not None and not problems:
        numbered = list(zip(definition.values, definition.numbers(mode), strict=True))
        numbered += zip(definition.removed_values, definition.removed_value_numbers, strict=True)
        for name, number in numbered:
            if not INT_MIN <= number <= INT_MAX:
                problems.append(f"value '{name}' = {number} does not fit in an int")

    return problems


def validate_definition(definition: EnumDefinition, mode: NumberingMode | None = None) -> None:
    """
    Raise if ``definition`` cannot be turned into source text.

    Raises:
        ValidationError: Listing every offending name
    """
    problems = collect_problems(definition, mode)
    if problems:
        raise ValidationError(
            f"Enum definition '{definition.enum_name}' is invalid",
            problems=problems,
        )


__all__ = [
    "CSHARP_KEYWORDS",
    "INT_MIN",
    "INT_MAX",
    "is_valid_identifier",
    "is_valid_namespace",
    "sanitize_identifier",
    "find_duplicates",
    "collect_problems",
    "validate_definition",
]
