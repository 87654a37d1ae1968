"""
Data models for enum definitions and parsed enum source.

EnumDefinition is the persisted record edited by users and rewritten by the
merge engine. ParsedEnum is the throwaway result of reading a generated
file back.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import ValidationError
from .numbering import NumberingMode, assign_numbers, minimal_pins
from .validation import is_valid_identifier


class ParsedEnumValue(BaseModel):
    """
    One member declaration read from source text.

    Attributes:
        name: Member identifier
        numeric_value: Explicit or implied integer value
        is_obsolete: Whether an Obsolete attribute marks it soft-deleted
        tooltip: Unescaped Tooltip attribute text, or empty
        explicit: False when the value was implied by position
        line: 1-indexed line of the member name
    """

    name: str
    numeric_value: int
    is_obsolete: bool = False
    tooltip: str = ""
    explicit: bool = True
    line: int = 0

    model_config = ConfigDict(frozen=True)


class ParsedEnum(BaseModel):
    """Everything the codec recovers from one enum source file."""

    enum_name: str = ""
    namespace: str = ""
    use_flags: bool = False
    values: list[ParsedEnumValue] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def value_names(self) -> list[str]:
        return [v.name for v in self.values]


class EnumDefinition(BaseModel):
    """
    Structured definition of one enum.

    Attributes:
        enum_name: C# identifier of the enum
        namespace: Dotted namespace, empty for the global namespace
        use_flags: Emit [System.Flags] and number with powers of two
        values: Active member names in generation order
        tooltips: Per-member tooltip, index-aligned with ``values``
        removed_values: Soft-deleted member names
        removed_value_numbers: Frozen numbers, index-aligned with ``removed_values``
        pinned_numbers: Numbers for active members that differ from the
            numbering default at their position

    Index-aligned lists are padded or truncated to their primary list and
    stale pins dropped on construction, so a definition is always
    internally consistent. Mutation methods return a new definition.
    """

    enum_name: str = "MyEnum"
    namespace: str = "Game.Enums"
    use_flags: bool = False
    values: list[str] = Field(default_factory=list)
    tooltips: list[str] = Field(default_factory=list)
    removed_values: list[str] = Field(default_factory=list)
    removed_value_numbers: list[int] = Field(default_factory=list)
    pinned_numbers: dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _heal_aligned_lists(self) -> EnumDefinition:
        self.tooltips = _fit(self.tooltips, len(self.values), "")
        self.removed_value_numbers = _fit(
            self.removed_value_numbers, len(self.removed_values), 0
        )
        active = set(self.values)
        self.pinned_numbers = {k: v for k, v in self.pinned_numbers.items() if k in active}
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_value(self, name: str) -> bool:
        """Case-sensitive membership test over active values."""
        return name in self.values

    def is_removed(self, name: str) -> bool:
        return name in self.removed_values

    def tooltip_for(self, name: str) -> str:
        return self.tooltips[self.values.index(name)]

    def removed_number_for(self, name: str) -> int:
        return self.removed_value_numbers[self.removed_values.index(name)]

    def numbers(self, mode: NumberingMode) -> list[int]:
        """Numbers of the active members, in ``values`` order."""
        return assign_numbers(
            self.values, mode, self.pinned_numbers, self.removed_value_numbers
        )

    def number_map(self, mode: NumberingMode) -> dict[str, int]:
        return dict(zip(self.values, self.numbers(mode), strict=True))

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------

    def _replace(self, **changes: Any) -> EnumDefinition:
        data = self.model_dump()
        data.update(changes)
        return EnumDefinition.model_validate(data)

    def rename(self, enum_name: str) -> EnumDefinition:
        if not is_valid_identifier(enum_name):
            raise ValidationError(f"'{enum_name}' is not a valid enum name")
        return self._replace(enum_name=enum_name)

    def set_namespace(self, namespace: str) -> EnumDefinition:
        return self._replace(namespace=namespace)

    def set_use_flags(self, use_flags: bool) -> EnumDefinition:
        """Toggle flags mode. Unpinned members follow the new numbering."""
        return self._replace(use_flags=use_flags)

    def add_value(self, name: str, tooltip: str = "") -> EnumDefinition:
        """Append a new active member; earlier members keep their numbers."""
        self._check_new_name(name)
        return self._replace(values=[*self.values, name], tooltips=[*self.tooltips, tooltip])

    def set_tooltip(self, name: str, tooltip: str) -> EnumDefinition:
        index = self._active_index(name)
        tooltips = list(self.tooltips)
        tooltips[index] = tooltip
        return self._replace(tooltips=tooltips)

    def rename_value(self, old: str, new: str) -> EnumDefinition:
        index = self._active_index(old)
        if new == old:
            return self
        self._check_new_name(new)
        values = list(self.values)
        values[index] = new
        pins = {(new if k == old else k): v for k, v in self.pinned_numbers.items()}
        return self._replace(values=values, pinned_numbers=pins)

    def move_value(self, name: str, index: int, mode: NumberingMode) -> EnumDefinition:
        """Reorder a member while keeping every member's number."""
        current = self._active_index(name)
        numbers = self.number_map(mode)
        values = list(self.values)
        tooltips = list(self.tooltips)
        value = values.pop(current)
        tooltip = tooltips.pop(current)
        index = max(0, min(index, len(values)))
        values.insert(index, value)
        tooltips.insert(index, tooltip)
        pins = minimal_pins(
            values, [numbers[v] for v in values], mode, self.removed_value_numbers
        )
        return self._replace(values=values, tooltips=tooltips, pinned_numbers=pins)

    def remove_value(self, name: str, mode: NumberingMode) -> EnumDefinition:
        """
        Soft-delete an active member.

        Its current number is frozen in ``removed_value_numbers`` and the
        surviving members are re-pinned so none of them is renumbered.
        """
        index = self._active_index(name)
        numbers = self.number_map(mode)
        values = [v for v in self.values if v != name]
        tooltips = [t for i, t in enumerate(self.tooltips) if i != index]
        removed = [*self.removed_values, name]
        removed_numbers = [*self.removed_value_numbers, numbers[name]]
        pins = minimal_pins(values, [numbers[v] for v in values], mode, removed_numbers)
        return self._replace(
            values=values,
            tooltips=tooltips,
            removed_values=removed,
            removed_value_numbers=removed_numbers,
            pinned_numbers=pins,
        )

    def restore_value(self, name: str, mode: NumberingMode) -> EnumDefinition:
        """Reactivate a soft-deleted member with its frozen number."""
        if name not in self.removed_values:
            raise ValueError(f"'{name}' is not a removed value of {self.enum_name}")
        if name in self.values:
            raise ValidationError(f"'{name}' is already an active value of {self.enum_name}")
        numbers = self.number_map(mode)
        index = self.removed_values.index(name)
        numbers[name] = self.removed_value_numbers[index]
        removed = [v for i, v in enumerate(self.removed_values) if i != index]
        removed_numbers = [n for i, n in enumerate(self.removed_value_numbers) if i != index]
        values = [*self.values, name]
        pins = minimal_pins(values, [numbers[v] for v in values], mode, removed_numbers)
        return self._replace(
            values=values,
            tooltips=[*self.tooltips, ""],
            removed_values=removed,
            removed_value_numbers=removed_numbers,
            pinned_numbers=pins,
        )

    def _active_index(self, name: str) -> int:
        try:
            return self.values.index(name)
        except ValueError:
            raise ValueError(f"'{name}' is not an active value of {self.enum_name}") from None

    def _check_new_name(self, name: str) -> None:
        if not is_valid_identifier(name):
            raise ValidationError(f"'{name}' is not a valid value name")
        if name in self.values:
            raise ValidationError(f"'{name}' already exists in {self.enum_name}")
        if name in self.removed_values:
            raise ValidationError(
                f"'{name}' was removed from {self.enum_name}; restore it instead"
            )


def _fit(items: list[Any], length: int, filler: Any) -> list[Any]:
    if len(items) == length:
        return items
    if len(items) > length:
        return items[:length]
    return items + [filler] * (length - len(items))


__all__ = [
    "EnumDefinition",
    "ParsedEnum",
    "ParsedEnumValue",
]
