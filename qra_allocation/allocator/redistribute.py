"""Fill-remainder redistribution of sibling allocations.

After one member changes, every other unlocked member is rescaled so the set
again sums to ``100 - reserved``. Proportions among those members are kept;
members with no current value share the budget equally. Locked members
never move.
"""

import logging
from collections.abc import Hashable, Iterable

from qra_allocation.allocator._common import (
    STEP_PRECISION,
    TOLERANCE,
    clamp_percent,
    equal_split,
    round_half_up,
    scale_to,
)
from qra_allocation.models import FULL_BUDGET, AllocationEntry, AllocationSet

logger = logging.getLogger(__name__)


def _require_key(allocation: AllocationSet, key: Hashable) -> None:
    if key not in allocation:
        raise KeyError(f"Unknown allocation key: {key!r}")


def _warn_if_unbalanced(result: AllocationSet, context: str) -> None:
    if not result.is_balanced(TOLERANCE):
        logger.warning(
            "%s left %.2f%% unallocated (total=%.2f, reserved=%.2f)",
            context,
            result.unallocated,
            result.total,
            result.reserved,
        )


def redistribute(allocation: AllocationSet, changed_key: Hashable, new_value: float) -> AllocationSet:
    """Set one member and rebalance the other unlocked members.

    Does not mutate ``allocation``.

    Parameters
    ----------
    allocation : AllocationSet
        Current state.
    changed_key : Hashable
        Member being edited. Its lock flag is left as is.
    new_value : float
        Requested value; clamped to ``[0, 100]`` and rounded to the set's
        precision.

    Returns
    -------
    AllocationSet
        New state. If no other unlocked member exists, or ``new_value``
        exceeds the headroom, the difference shows up in
        :attr:`AllocationSet.unallocated`.

    Raises
    ------
    KeyError
        If ``changed_key`` is not a member.
    """
    _require_key(allocation, changed_key)
    precision = allocation.precision
    new_value = round_half_up(clamp_percent(new_value), precision)

    others = {k: e for k, e in allocation.entries.items() if k != changed_key}
    locked_total = sum(e.value for e in others.values() if e.locked)
    unlocked = {k: e.value for k, e in others.items() if not e.locked}
    remaining = max(0.0, FULL_BUDGET - allocation.reserved - locked_total - new_value)

    values = {changed_key: new_value}
    if unlocked:
        values.update(scale_to(unlocked, remaining, precision))
    logger.debug(
        "Redistributed %r=%.2f: locked=%.2f, remaining=%.2f over %d unlocked",
        changed_key,
        new_value,
        locked_total,
        remaining,
        len(unlocked),
    )

    result = allocation.replace_values(values)
    _warn_if_unbalanced(result, f"Change of {changed_key!r}")
    return result


def redistribute_all(allocation: AllocationSet, new_reserved: float) -> AllocationSet:
    """Change the reserved budget and rebalance every unlocked member.

    Parameters
    ----------
    allocation : AllocationSet
        Current state.
    new_reserved : float
        New reserved budget (e.g. non-R&D time); clamped to ``[0, 100]``.

    Returns
    -------
    AllocationSet
    """
    precision = allocation.precision
    reserved = round_half_up(clamp_percent(new_reserved), precision)
    locked_total = allocation.locked_total
    unlocked = {k: e.value for k, e in allocation.entries.items() if not e.locked}
    remaining = max(0.0, FULL_BUDGET - reserved - locked_total)

    result = allocation.replace_values(scale_to(unlocked, remaining, precision), reserved=reserved)
    _warn_if_unbalanced(result, f"Reserved budget {reserved:.2f}")
    return result


def toggle_lock(allocation: AllocationSet, key: Hashable) -> AllocationSet:
    """Flip the lock flag of one member. No value changes.

    Raises
    ------
    KeyError
        If ``key`` is not a member.
    """
    _require_key(allocation, key)
    entries = dict(allocation.entries)
    entry = entries[key]
    entries[key] = AllocationEntry(entry.key, entry.value, not entry.locked)
    return AllocationSet(entries=entries, reserved=allocation.reserved, precision=allocation.precision)


def create_allocation_set(
    keys: Iterable[Hashable],
    reserved: float = 0.0,
    precision: int = STEP_PRECISION,
) -> AllocationSet:
    """Build a set splitting ``100 - reserved`` equally among ``keys``.

    Parameters
    ----------
    keys : Iterable[Hashable]
        Members in display order. Duplicates are dropped.
    reserved : float
        Reserved budget; clamped to ``[0, 100]``.
    precision : int
        Decimal places for this hierarchy level.

    Returns
    -------
    AllocationSet
    """
    ordered = list(dict.fromkeys(keys))
    reserved = round_half_up(clamp_percent(reserved), precision)
    shares = equal_split(FULL_BUDGET - reserved, len(ordered), precision)
    entries = {key: AllocationEntry(key, share) for key, share in zip(ordered, shares)}
    return AllocationSet(entries=entries, reserved=reserved, precision=precision)


def add_entry(allocation: AllocationSet, key: Hashable) -> AllocationSet:
    """Add an unlocked member and re-split the unlocked budget equally.

    Adding an existing key returns the set unchanged.
    """
    if key in allocation:
        return allocation
    entries = dict(allocation.entries)
    entries[key] = AllocationEntry(key, 0.0)
    unlocked = [k for k, e in entries.items() if not e.locked]
    remaining = max(0.0, FULL_BUDGET - allocation.reserved - allocation.locked_total)
    shares = dict(zip(unlocked, equal_split(remaining, len(unlocked), allocation.precision)))
    grown = AllocationSet(entries=entries, reserved=allocation.reserved, precision=allocation.precision)
    return grown.replace_values(shares)


def remove_entry(allocation: AllocationSet, key: Hashable) -> AllocationSet:
    """Remove a member and return its budget to the remaining unlocked members.

    Raises
    ------
    KeyError
        If ``key`` is not a member.
    """
    _require_key(allocation, key)
    entries = {k: e for k, e in allocation.entries.items() if k != key}
    shrunk = AllocationSet(entries=entries, reserved=allocation.reserved, precision=allocation.precision)
    if not entries:
        return shrunk
    return redistribute_all(shrunk, shrunk.reserved)
