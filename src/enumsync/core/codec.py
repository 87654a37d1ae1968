"""
C# enum source codec.

``generate`` renders an EnumDefinition as canonical C# source.
``parse`` reads such source (possibly hand-edited) back into a ParsedEnum.

Parsing is pattern matching over a masked copy of the text in which
comments and string-literal contents are blanked out, so structural
searches (braces, commas, keywords) never trip over text inside a tooltip.
Offsets are shared between the masked and original text, which is where
tooltip strings are read from. This is not a C# front end: enum
declarations are found by pattern, and ``parse_all`` reads every one in a
file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .config import SyncConfig
from .errors import ParseError, make_parse_error
from .models import EnumDefinition, ParsedEnum, ParsedEnumValue
from .numbering import numbering_mode
from .validation import validate_definition

logger = logging.getLogger(__name__)

INDENT = "    "
FLAGS_ATTRIBUTE = "[System.Flags]"
OBSOLETE_ATTRIBUTE = '[System.Obsolete("Removed from the enum definition")]'
TOOLTIP_ATTRIBUTE = '[UnityEngine.Tooltip("{text}")]'

_NAMESPACE_RE = re.compile(r"\bnamespace\s+([^\W\d][\w.]*)")
_ENUM_RE = re.compile(r"\benum\s+([^\W\d]\w*)\s*(?::\s*[\w.]+\s*)?\{")
_FLAGS_RE = re.compile(r"\[\s*(?:[^\]]*,\s*)?(?:System\s*\.\s*)?Flags(?:Attribute)?\s*(?:\(\s*\))?\s*[\],]")
_MEMBER_RE = re.compile(r"\s*([^\W\d]\w*)\s*(?:=\s*(\S.*?))?\s*$", re.DOTALL)
_ATTRIBUTE_NAME_RE = re.compile(r"\s*([^\W\d][\w.]*)\s*")
_STRING_RE = re.compile(r'@"(?:[^"]|"")*"|"(?:[^"\\\n]|\\.)*"')

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
    # C# line terminators, not allowed raw inside a regular literal
    "\u0085": "\\u0085",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_UNESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


# =============================================================================
# Generation
# =============================================================================


def escape_string(text: str) -> str:
    """Escape ``text`` for a regular C# string literal."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def render_header(enum_name: str) -> list[str]:
    return [
        "// <auto-generated>",
        f"//     Generated by enumsync from the {enum_name} enum definition.",
        "//     Member names, values, tooltips and obsolete markers edited",
        "//     in this file are synced back into the definition.",
        "// </auto-generated>",
        "",
    ]


def generate(definition: EnumDefinition, config: SyncConfig | None = None) -> str:
    """
    Render ``definition`` as C# enum source.

    Active members come first, in ``values`` order, numbered by the
    numbering policy with pins taking precedence. Soft-deleted members
    follow, marked obsolete, with their frozen numbers. The output is a
    pure function of the definition and config.

    Raises:
        ValidationError: If any name or the namespace is invalid, or a
            number does not fit in an int; nothing is generated in that case
    """
    config = config or SyncConfig()
    mode = numbering_mode(definition.use_flags, config)
    validate_definition(definition, mode)

    numbers = definition.numbers(mode)

    body: list[str] = []
    for name, tooltip, number in zip(definition.values, definition.tooltips, numbers, strict=True):
        if tooltip and config.include_tooltips:
            body.append(TOOLTIP_ATTRIBUTE.format(text=escape_string(tooltip)))
        body.append(f"{name} = {number},")
    for name, number in zip(
        definition.removed_values, definition.removed_value_numbers, strict=True
    ):
        body.append(OBSOLETE_ATTRIBUTE)
        body.append(f"{name} = {number},")

    enum_lines: list[str] = []
    if definition.use_flags:
        enum_lines.append(FLAGS_ATTRIBUTE)
    enum_lines.append(f"public enum {definition.enum_name}")
    enum_lines.append("{")
    enum_lines.extend(INDENT + line for line in body)
    enum_lines.append("}")

    lines: list[str] = render_header(definition.enum_name) if config.include_header else []
    if definition.namespace:
        lines.append(f"namespace {definition.namespace}")
        lines.append("{")
        lines.extend(INDENT + line for line in enum_lines)
        lines.append("}")
    else:
        lines.extend(enum_lines)

    return "\n".join(lines) + "\n"


# =============================================================================
# Parsing
# =============================================================================


def mask_source(text: str) -> str:
    """
    Blank out comments and the contents of string and char literals.

    The result has the same length and line breaks as ``text``; literal
    delimiters are kept so literals remain locatable.
    """
    out = list(text)
    i = 0
    n = len(text)

    def blank(start: int, end: int) -> None:
        for k in range(start, end):
            if out[k] != "\n":
                out[k] = " "

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = text.find("\n", i)
            end = n if end < 0 else end
            blank(i, end)
            i = end
        elif ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            end = n if end < 0 else end + 2
            blank(i, end)
            i = end
        elif ch == "@" and nxt == '"':
            j = i + 2
            while j < n:
                if text[j] == '"':
                    if j + 1 < n and text[j + 1] == '"':
                        j += 2
                        continue
                    break
                j += 1
            blank(i + 2, j)
            i = j + 1
        elif ch in "\"'":
            j = i + 1
            while j < n and text[j] != ch and text[j] != "\n":
                j += 2 if text[j] == "\\" else 1
            j = min(j, n)
            blank(i + 1, j)
            i = j + 1
        else:
            i += 1
    return "".join(out)


def unescape_string(literal: str) -> str:
    """Decode a C# string literal (regular or verbatim, quotes included)."""
    if literal.startswith('@"'):
        return literal[2:-1].replace('""', '"')

    body = literal[1:-1]
    result: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            result.append(ch)
            i += 1
            continue
        code = body[i + 1]
        if code in _UNESCAPES:
            result.append(_UNESCAPES[code])
            i += 2
        elif code == "u" and re.fullmatch(r"[0-9A-Fa-f]{4}", body[i + 2 : i + 6]):
            result.append(chr(int(body[i + 2 : i + 6], 16)))
            i += 6
        elif code == "x":
            digits = re.match(r"[0-9A-Fa-f]{1,4}", body[i + 2 :])
            if digits:
                result.append(chr(int(digits.group(0), 16)))
                i += 2 + len(digits.group(0))
            else:
                result.append(code)
                i += 2
        else:
            result.append(code)
            i += 2
    return "".join(result)


def _matching_close(masked: str, open_index: int, open_ch: str, close_ch: str) -> int:
    depth = 0
    for i in range(open_index, len(masked)):
        if masked[i] == open_ch:
            depth += 1
        elif masked[i] == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _split_top_level(masked: str, start: int, end: int) -> list[tuple[int, int]]:
    """Spans between commas that are not nested in () or []."""
    spans: list[tuple[int, int]] = []
    depth = 0
    seg_start = start
    for i in range(start, end):
        ch = masked[i]
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "," and depth == 0:
            spans.append((seg_start, i))
            seg_start = i + 1
    spans.append((seg_start, end))
    return spans


class _MemberParser:
    """Parses the members of one enum body."""

    def __init__(self, text: str, masked: str, enum_name: str, source: Path | None):
        self.text = text
        self.masked = masked
        self.enum_name = enum_name
        self.source = source
        self.known: dict[str, int] = {}

    def error(self, message: str, offset: int) -> ParseError:
        return make_parse_error(message, self.source, self.text, offset)

    def parse_body(self, start: int, end: int) -> list[ParsedEnumValue]:
        values: list[ParsedEnumValue] = []
        previous: int | None = None
        for seg_start, seg_end in _split_top_level(self.masked, start, end):
            if not self.masked[seg_start:seg_end].strip():
                continue
            member = self.parse_member(seg_start, seg_end, previous)
            values.append(member)
            previous = member.numeric_value
            self.known.setdefault(member.name, member.numeric_value)
        return values

    def parse_member(self, start: int, end: int, previous: int | None) -> ParsedEnumValue:
        tooltip = ""
        obsolete = False
        pos = start

        # Attribute sections, in any order and number
        while True:
            while pos < end and self.masked[pos].isspace():
                pos += 1
            if pos >= end or self.masked[pos] != "[":
                break
            close = _matching_close(self.masked, pos, "[", "]")
            if close < 0 or close >= end:
                raise self.error("Unterminated attribute section", pos)
            for a_start, a_end in _split_top_level(self.masked, pos + 1, close):
                kind, text = self.parse_attribute(a_start, a_end)
                if kind == "tooltip":
                    tooltip = text
                elif kind == "obsolete":
                    obsolete = True
            pos = close + 1

        match = _MEMBER_RE.match(self.masked, pos, end)
        if not match:
            raise self.error(f"Unrecognized member declaration in enum {self.enum_name}", pos)

        name = match.group(1)
        line = self.text.count("\n", 0, match.start(1)) + 1
        if match.group(2) is None:
            number = 0 if previous is None else previous + 1
            explicit = False
        else:
            number = _ExpressionEvaluator(self, match.start(2), match.end(2)).evaluate()
            explicit = True

        return ParsedEnumValue(
            name=name,
            numeric_value=number,
            is_obsolete=obsolete,
            tooltip=tooltip,
            explicit=explicit,
            line=line,
        )

    def parse_attribute(self, start: int, end: int) -> tuple[str, str]:
        match = _ATTRIBUTE_NAME_RE.match(self.masked, start, end)
        if not match:
            return "", ""
        name = re.sub(r"\s+", "", match.group(1)).split(".")[-1]
        if name.endswith("Attribute"):
            name = name[: -len("Attribute")]
        if name == "Obsolete":
            return "obsolete", ""
        if name == "Tooltip":
            literal = _STRING_RE.search(self.text, match.end(), end)
            if literal is None:
                logger.debug("Tooltip attribute without a string literal at offset %d", start)
                return "tooltip", ""
            return "tooltip", unescape_string(literal.group(0))
        return "", ""


_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<num>0[xX][0-9A-Fa-f_]+|0[bB][01_]+|\d[\d_]*)(?:[uU][lL]?|[lL][uU]?)?"
    r"|(?P<name>[^\W\d][\w.]*)"
    r"|(?P<op><<|>>|[|&^+\-~()*])"
    r")"
)


class _ExpressionEvaluator:
    """
    Integer constant expressions over literals and earlier members.

    Precedence, lowest first: |  ^  &  << >>  + -  *  unary (- ~ +).
    """

    def __init__(self, owner: _MemberParser, start: int, end: int):
        self.owner = owner
        self.start = start
        self.tokens: list[tuple[str, str, int]] = []
        pos = start
        masked = owner.masked
        while pos < end:
            if not masked[pos:end].strip():
                break
            match = _TOKEN_RE.match(masked, pos, end)
            if not match or match.end() == pos:
                raise owner.error("Unsupported enum value expression", pos)
            kind = match.lastgroup or ""
            self.tokens.append((kind, match.group(kind), match.start(kind)))
            pos = match.end()
        self.index = 0

    def evaluate(self) -> int:
        if not self.tokens:
            raise self.owner.error("Missing enum value after '='", self.start)
        value = self._or()
        if self.index < len(self.tokens):
            raise self.owner.error("Unexpected token in enum value", self.tokens[self.index][2])
        return value

    def _peek(self) -> str | None:
        if self.index < len(self.tokens) and self.tokens[self.index][0] == "op":
            return self.tokens[self.index][1]
        return None

    def _binary(self, ops: dict, operand) -> int:
        value = operand()
        while self._peek() in ops:
            op = self.tokens[self.index][1]
            self.index += 1
            value = ops[op](value, operand())
        return value

    def _or(self) -> int:
        return self._binary({"|": lambda a, b: a | b}, self._xor)

    def _xor(self) -> int:
        return self._binary({"^": lambda a, b: a ^ b}, self._and)

    def _and(self) -> int:
        return self._binary({"&": lambda a, b: a & b}, self._shift)

    def _shift(self) -> int:
        return self._binary({"<<": lambda a, b: a << b, ">>": lambda a, b: a >> b}, self._sum)

    def _sum(self) -> int:
        return self._binary({"+": lambda a, b: a + b, "-": lambda a, b: a - b}, self._product)

    def _product(self) -> int:
        return self._binary({"*": lambda a, b: a * b}, self._unary)

    def _unary(self) -> int:
        op = self._peek()
        if op in ("-", "~", "+"):
            self.index += 1
            value = self._unary()
            return {"-": -value, "~": ~value, "+": value}[op]
        return self._atom()

    def _atom(self) -> int:
        if self.index >= len(self.tokens):
            raise self.owner.error("Incomplete enum value expression", self.start)
        kind, token, offset = self.tokens[self.index]
        self.index += 1
        if kind == "num":
            digits = token.replace("_", "")
            if digits[:2] in ("0x", "0X"):
                return int(digits, 16)
            if digits[:2] in ("0b", "0B"):
                return int(digits, 2)
            return int(digits)
        if kind == "name":
            member = token.split(".")[-1]
            if token.count(".") and token.split(".")[-2] != self.owner.enum_name:
                raise self.owner.error(f"Cannot resolve '{token}'", offset)
            if member not in self.owner.known:
                raise self.owner.error(f"Unknown enum member '{token}'", offset)
            return self.owner.known[member]
        if token == "(":
            value = self._or()
            if self._peek() != ")":
                raise self.owner.error("Missing ')' in enum value", offset)
            self.index += 1
            return value
        raise self.owner.error(f"Unexpected '{token}' in enum value", offset)


@dataclass(frozen=True)
class EnumDeclaration:
    """Offsets of one enum declaration in a source text."""

    name: str
    start: int
    open_brace: int
    close_brace: int


def find_declarations(
    text: str, source: Path | None = None, limit: int | None = None
) -> list[EnumDeclaration]:
    """
    Locate enum declarations in ``text``, in file order.

    Raises:
        ParseError: If a declaration's body is never closed
    """
    masked = mask_source(text)
    declarations: list[EnumDeclaration] = []
    pos = 0
    while limit is None or len(declarations) < limit:
        match = _ENUM_RE.search(masked, pos)
        if not match:
            break
        open_brace = match.end() - 1
        close_brace = _matching_close(masked, open_brace, "{", "}")
        if close_brace < 0:
            raise make_parse_error(
                f"Enum {match.group(1)} is never closed", source, text, open_brace
            )
        declarations.append(EnumDeclaration(match.group(1), match.start(), open_brace, close_brace))
        pos = close_brace + 1
    return declarations


def parse_declaration(
    text: str,
    declaration: EnumDeclaration,
    source: Path | None = None,
    masked: str | None = None,
) -> ParsedEnum:
    """Read the enum at ``declaration``, one of ``find_declarations(text)``."""
    if masked is None:
        masked = mask_source(text)

    namespace = ""
    for namespace_match in _NAMESPACE_RE.finditer(masked, 0, declaration.start):
        namespace = namespace_match.group(1)
    if not namespace:
        namespace_match = _NAMESPACE_RE.search(masked)
        namespace = namespace_match.group(1) if namespace_match else ""

    # Attributes for the enum sit between the previous statement and `enum`
    prefix_start = max(masked.rfind(ch, 0, declaration.start) for ch in "{};") + 1
    use_flags = bool(_FLAGS_RE.search(masked, prefix_start, declaration.start))

    parser = _MemberParser(text, masked, declaration.name, source)
    values = parser.parse_body(declaration.open_brace + 1, declaration.close_brace)

    logger.debug("Parsed enum %s with %d value(s)", declaration.name, len(values))
    return ParsedEnum(
        enum_name=declaration.name,
        namespace=namespace,
        use_flags=use_flags,
        values=values,
    )


def parse(text: str, source: Path | None = None) -> ParsedEnum:
    """
    Read the first enum declaration in ``text``.

    Args:
        text: C# source text
        source: File the text came from, used for error locations

    Returns:
        ParsedEnum; an enum with an empty body yields zero values

    Raises:
        ParseError: If there is no enum declaration, its body is not
            closed, or a member cannot be read
    """
    declarations = find_declarations(text, source, limit=1)
    if not declarations:
        raise make_parse_error("No enum declaration found", source, text, 0)
    return parse_declaration(text, declarations[0], source)


def parse_all(text: str, source: Path | None = None) -> list[ParsedEnum]:
    """
    Read every enum declaration in ``text``.

    A file without enums yields an empty list.

    Raises:
        ParseError: If any declaration cannot be read
    """
    masked = mask_source(text)
    return [
        parse_declaration(text, declaration, source, masked)
        for declaration in find_declarations(text, source)
    ]


__all__ = [
    "EnumDeclaration",
    "generate",
    "parse",
    "parse_all",
    "parse_declaration",
    "find_declarations",
    "escape_string",
    "unescape_string",
    "mask_source",
    "render_header",
]
