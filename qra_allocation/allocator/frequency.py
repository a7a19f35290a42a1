"""Frequency normalization for the subcomponents of one step.

Unlike the fill-remainder rule, an edit here rescales the whole step group
(including the edited leaf) back to exactly 100. There are no locks and no
reserved budget.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from qra_allocation.allocator._common import (
    MAX_PERCENT,
    STEP_PRECISION,
    TOLERANCE,
    clamp_percent,
    equal_split,
    round_half_up,
    settle_residual,
)
from qra_allocation.models import AllocationSet, LeafKey, StepKey, SubcomponentMetric

logger = logging.getLogger(__name__)

NON_RD_MARKER = "non-r&d alternative"


def is_non_rd_alternative(name: str) -> bool:
    """Whether a subcomponent name marks a "Non-R&D Alternative"."""
    return NON_RD_MARKER in name.lower()


def _index_of(leaves: Sequence[SubcomponentMetric], key: LeafKey) -> int:
    for index, leaf in enumerate(leaves):
        if leaf.key == key:
            return index
    raise KeyError(f"Unknown subcomponent: {key!r}")


def normalize_frequencies(
    leaves: Sequence[SubcomponentMetric],
    changed_key: LeafKey,
    new_value: float,
) -> list[SubcomponentMetric]:
    """Set one leaf's frequency and rescale its step group to 100.

    Leaves of other steps are returned untouched. A group whose total is
    zero is left as is.

    Parameters
    ----------
    leaves : Sequence[SubcomponentMetric]
        All selected leaves, in display order.
    changed_key : LeafKey
        Leaf being edited.
    new_value : float
        Requested frequency; clamped to ``[0, 100]``.

    Returns
    -------
    list[SubcomponentMetric]
        New list in the same order.

    Raises
    ------
    KeyError
        If ``changed_key`` is not among ``leaves``.
    """
    _index_of(leaves, changed_key)
    step = changed_key.step_key
    new_value = round_half_up(clamp_percent(new_value), STEP_PRECISION)

    frequencies = {
        leaf.key: (new_value if leaf.key == changed_key else leaf.frequency_percent)
        for leaf in leaves
        if leaf.step_key == step
    }
    group_total = sum(frequencies.values())

    if group_total == 0:
        logger.debug("Frequency group %r totals zero, skipping rescale", step)
    elif abs(group_total - MAX_PERCENT) > TOLERANCE:
        factor = MAX_PERCENT / group_total
        scaled = {k: clamp_percent(round_half_up(v * factor, STEP_PRECISION)) for k, v in frequencies.items()}
        frequencies = settle_residual(scaled, MAX_PERCENT, STEP_PRECISION)

    return [
        replace(leaf, frequency_percent=frequencies[leaf.key]) if leaf.key in frequencies else leaf
        for leaf in leaves
    ]


def _resplit(leaves: list[SubcomponentMetric], step: StepKey) -> list[SubcomponentMetric]:
    group = [leaf.key for leaf in leaves if leaf.step_key == step]
    shares = dict(zip(group, equal_split(MAX_PERCENT, len(group), STEP_PRECISION)))
    return [replace(leaf, frequency_percent=shares[leaf.key]) if leaf.key in shares else leaf for leaf in leaves]


def new_leaf(
    key: LeafKey,
    time_percent: float = 0.0,
    selected_roles: Iterable[str] = (),
    start_year: int | None = None,
) -> SubcomponentMetric:
    """Build a freshly selected leaf with full-year coverage."""
    return SubcomponentMetric(
        key=key,
        time_percent=clamp_percent(time_percent),
        frequency_percent=0.0,
        year_percent=MAX_PERCENT,
        selected_roles=frozenset(selected_roles),
        is_non_rd=is_non_rd_alternative(key.subcomponent),
        start_year=start_year,
    )


def add_leaf(leaves: Sequence[SubcomponentMetric], leaf: SubcomponentMetric) -> list[SubcomponentMetric]:
    """Select a leaf and split its step's frequency equally.

    The rounding remainder goes to the first leaf of the step. Adding an
    already selected key returns the leaves unchanged.
    """
    if any(existing.key == leaf.key for existing in leaves):
        return list(leaves)
    return _resplit([*leaves, leaf], leaf.step_key)


def remove_leaf(leaves: Sequence[SubcomponentMetric], key: LeafKey) -> list[SubcomponentMetric]:
    """Deselect a leaf and re-split the remaining frequency of its step equally.

    Raises
    ------
    KeyError
        If ``key`` is not among ``leaves``.
    """
    index = _index_of(leaves, key)
    remaining = [leaf for i, leaf in enumerate(leaves) if i != index]
    return _resplit(remaining, key.step_key)


def sync_step_time(leaves: Sequence[SubcomponentMetric], step_allocation: AllocationSet) -> list[SubcomponentMetric]:
    """Copy each step's time allocation onto the leaves under it.

    Leaves whose step is not part of ``step_allocation`` keep their time.
    """
    return [
        replace(leaf, time_percent=step_allocation[leaf.step_key].value)
        if leaf.step_key in step_allocation
        else leaf
        for leaf in leaves
    ]


def toggle_role(leaves: Sequence[SubcomponentMetric], key: LeafKey, role: str) -> list[SubcomponentMetric]:
    """Add ``role`` to a leaf, or remove it if already selected."""
    index = _index_of(leaves, key)
    leaf = leaves[index]
    roles = leaf.selected_roles - {role} if role in leaf.selected_roles else leaf.selected_roles | {role}
    updated = list(leaves)
    updated[index] = replace(leaf, selected_roles=roles)
    return updated


def step_frequencies(leaves: Iterable[SubcomponentMetric]) -> dict[StepKey, float]:
    """Sum R&D frequencies per step; steps with only alternatives report 0."""
    totals: dict[StepKey, float] = {}
    for leaf in leaves:
        totals.setdefault(leaf.step_key, 0.0)
        if not leaf.is_non_rd:
            totals[leaf.step_key] += leaf.frequency_percent
    return {step: round_half_up(total, STEP_PRECISION) for step, total in totals.items()}
