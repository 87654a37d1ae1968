"""
Numeric value assignment for enum members.

Two modes:
- SEQUENTIAL: 0, 1, 2, ... (next = running max + 1)
- POWERS_OF_TWO: 1, 2, 4, ... (next = smallest power of two above the
  running max); always used for flags enums, optionally for plain ones so
  a later switch to flags keeps every number.

Numbers held by soft-deleted members are retired: a candidate equal to a
retired number is skipped. Retired numbers themselves are never recomputed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import SyncConfig


class NumberingMode(StrEnum):
    """How new members are numbered."""

    SEQUENTIAL = "sequential"
    POWERS_OF_TWO = "powers_of_two"


def numbering_mode(use_flags: bool, config: SyncConfig | None = None) -> NumberingMode:
    """Pick the mode for a definition under the given settings."""
    if use_flags:
        return NumberingMode.POWERS_OF_TWO
    if config is not None and config.use_powers_of_two_for_unflagged:
        return NumberingMode.POWERS_OF_TWO
    return NumberingMode.SEQUENTIAL


def _candidate_after(value: int | None, mode: NumberingMode) -> int:
    if mode == NumberingMode.POWERS_OF_TWO:
        if value is None or value < 1:
            return 1
        power = 1
        while power <= value:
            power <<= 1
        return power
    if value is None:
        return 0
    return value + 1


def next_value(
    current_values: Iterable[int],
    mode: NumberingMode,
    retired: Iterable[int] = (),
) -> int:
    """
    Number for a member appended after ``current_values``.

    Args:
        current_values: Numbers already held by active members
        mode: Numbering mode
        retired: Numbers frozen on soft-deleted members

    Returns:
        The next number, strictly above every current value, never retired
    """
    values = list(current_values)
    retired_set = set(retired)
    candidate = _candidate_after(max(values) if values else None, mode)
    while candidate in retired_set:
        candidate = _candidate_after(candidate, mode)
    return candidate


def assign_numbers(
    names: Iterable[str],
    mode: NumberingMode,
    pinned: Mapping[str, int] | None = None,
    retired: Iterable[int] = (),
) -> list[int]:
    """
    Number every member in order.

    A pinned member keeps its pin; any other member gets ``next_value`` of
    everything assigned before it, so the running max is recomputed after
    each assignment and unpinned members never collide.
    """
    pins = pinned or {}
    retired_list = list(retired)
    assigned: list[int] = []
    for name in names:
        if name in pins:
            assigned.append(pins[name])
        else:
            assigned.append(next_value(assigned, mode, retired_list))
    return assigned


def minimal_pins(
    names: Iterable[str],
    numbers: Iterable[int],
    mode: NumberingMode,
    retired: Iterable[int] = (),
) -> dict[str, int]:
    """
    Smallest pin set for which ``assign_numbers`` reproduces ``numbers``.

    A member is pinned only where its number differs from the default the
    policy would give it at that position.
    """
    retired_list = list(retired)
    pins: dict[str, int] = {}
    assigned: list[int] = []
    for name, number in zip(names, numbers, strict=True):
        if number != next_value(assigned, mode, retired_list):
            pins[name] = number
        assigned.append(number)
    return pins


__all__ = [
    "NumberingMode",
    "numbering_mode",
    "next_value",
    "assign_numbers",
    "minimal_pins",
]
