"""
Reconcile a parsed enum file with its stored definition.

The file is authoritative for which members exist, their order, their
numbers, and which are obsolete. The definition is authoritative for
tooltips the file does not carry and for the frozen numbers of members
that were already soft-deleted.
"""

from __future__ import annotations

import logging

from .config import SyncConfig
from .models import EnumDefinition, ParsedEnum
from .numbering import minimal_pins, numbering_mode

logger = logging.getLogger(__name__)


def merge(
    existing: EnumDefinition,
    parsed: ParsedEnum,
    config: SyncConfig | None = None,
) -> EnumDefinition:
    """
    Fold ``parsed`` into ``existing`` and return the updated definition.

    Rules, applied per parsed member in file order:
    - active and new: appended with the file's tooltip (or empty)
    - active and known: kept at its file position; a non-empty file
      tooltip replaces the stored one, otherwise the stored one stays
    - obsolete: goes to the removed list, keeping its frozen number if it
      was already removed, else adopting the parsed number
    - previously removed but no longer obsolete: active again and dropped
      from the removed list

    Namespace and flags mode are taken from the file when they differ.
    ``existing`` is never modified; all lists of the result are built
    first and swapped in together.

    Args:
        existing: Stored definition
        parsed: Freshly parsed file contents
        config: Settings that choose the numbering mode

    Returns:
        New EnumDefinition
    """
    # Index-aligned lists are already healed on construction, so the
    # lookups below can index tooltips/numbers directly.
    old_tooltips = dict(zip(existing.values, existing.tooltips, strict=True))
    old_removed = dict(
        zip(existing.removed_values, existing.removed_value_numbers, strict=True)
    )

    values: list[str] = []
    tooltips: list[str] = []
    numbers: list[int] = []
    removed_values: list[str] = []
    removed_numbers: list[int] = []
    seen: set[str] = set()

    for member in parsed.values:
        if member.name in seen:
            logger.warning(
                "Skipping repeated member '%s' in %s (line %d)",
                member.name,
                parsed.enum_name or existing.enum_name,
                member.line,
            )
            continue
        seen.add(member.name)

        if member.is_obsolete:
            removed_values.append(member.name)
            removed_numbers.append(old_removed.get(member.name, member.numeric_value))
            continue

        if member.name in old_tooltips:
            tooltip = member.tooltip or old_tooltips[member.name]
        else:
            if member.name in old_removed:
                logger.info("Reactivating removed value '%s'", member.name)
            tooltip = member.tooltip

        values.append(member.name)
        tooltips.append(tooltip)
        numbers.append(member.numeric_value)

    namespace = existing.namespace
    if parsed.namespace != existing.namespace:
        namespace = parsed.namespace
    use_flags = existing.use_flags
    if parsed.use_flags != existing.use_flags:
        use_flags = parsed.use_flags

    mode = numbering_mode(use_flags, config)
    pins = minimal_pins(values, numbers, mode, removed_numbers)

    return EnumDefinition(
        enum_name=existing.enum_name,
        namespace=namespace,
        use_flags=use_flags,
        values=values,
        tooltips=tooltips,
        removed_values=removed_values,
        removed_value_numbers=removed_numbers,
        pinned_numbers=pins,
    )


def definition_from_parsed(
    enum_name: str,
    parsed: ParsedEnum,
    config: SyncConfig | None = None,
) -> EnumDefinition:
    """
    Build a definition for a generated file that has none yet.

    The namespace falls back to ``config.default_namespace`` when the file
    declares none.
    """
    config = config or SyncConfig()
    seed = EnumDefinition(
        enum_name=enum_name,
        namespace=parsed.namespace,
        use_flags=parsed.use_flags,
    )
    merged = merge(seed, parsed, config)
    if not parsed.namespace:
        merged = merged.set_namespace(config.default_namespace)
    return merged


def describe_changes(
    before: EnumDefinition,
    after: EnumDefinition,
    config: SyncConfig | None = None,
) -> list[str]:
    """Human-readable summary of what a merge changed."""
    lines: list[str] = []

    if before.namespace != after.namespace:
        lines.append(f"namespace: {before.namespace or '(global)'} -> {after.namespace or '(global)'}")
    if before.use_flags != after.use_flags:
        lines.append(f"flags: {before.use_flags} -> {after.use_flags}")

    added = [v for v in after.values if v not in before.values and v not in before.removed_values]
    reactivated = [v for v in after.values if v in before.removed_values]
    removed = [v for v in after.removed_values if v in before.values]
    dropped = [
        v
        for v in [*before.values, *before.removed_values]
        if v not in after.values and v not in after.removed_values
    ]
    if added:
        lines.append(f"added: {', '.join(added)}")
    if reactivated:
        lines.append(f"reactivated: {', '.join(reactivated)}")
    if removed:
        lines.append(f"removed: {', '.join(removed)}")
    if dropped:
        lines.append(f"dropped: {', '.join(dropped)}")

    kept = [v for v in after.values if v in before.values]
    if [v for v in before.values if v in kept] != kept:
        lines.append("order changed")
    retooltipped = [v for v in kept if before.tooltip_for(v) != after.tooltip_for(v)]
    if retooltipped:
        lines.append(f"tooltips: {', '.join(retooltipped)}")
    before_numbers = before.number_map(numbering_mode(before.use_flags, config))
    after_numbers = after.number_map(numbering_mode(after.use_flags, config))
    renumbered = [v for v in kept if before_numbers[v] != after_numbers[v]]
    if renumbered:
        lines.append(f"renumbered: {', '.join(renumbered)}")

    return lines


__all__ = [
    "merge",
    "definition_from_parsed",
    "describe_changes",
]
