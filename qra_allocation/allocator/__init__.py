"""Allocation rules for QRA percentages.

Provides the fill-remainder redistributor shared by every hierarchy level,
the level allocators built on it, the frequency normalizer, the applied
percentage calculator, and the ``AllocationRule`` protocol.
"""

from qra_allocation.allocator._common import (
    ACTIVITY_PRECISION,
    DEFAULT_NON_RD_TIME,
    STEP_PRECISION,
    TOLERANCE,
    clamp_percent,
    equal_split,
    round_half_up,
)
from qra_allocation.allocator._types import AllocationRule, SelectionSummary, StepSummary
from qra_allocation.allocator.applied import (
    CALCULATION_FORMULA,
    calculate_applied,
    capped_applied,
    leaf_applied,
    month_for_year_percent,
    scale_to_practice,
    step_summaries,
    total_applied,
    year_percent_for_month,
)
from qra_allocation.allocator.frequency import (
    add_leaf,
    is_non_rd_alternative,
    new_leaf,
    normalize_frequencies,
    remove_leaf,
    step_frequencies,
    sync_step_time,
    toggle_role,
)
from qra_allocation.allocator.levels import LevelAllocator, PracticeAllocator, StepTimeAllocator
from qra_allocation.allocator.redistribute import (
    add_entry,
    create_allocation_set,
    redistribute,
    redistribute_all,
    remove_entry,
    toggle_lock,
)

__all__ = [
    "ACTIVITY_PRECISION",
    "AllocationRule",
    "CALCULATION_FORMULA",
    "DEFAULT_NON_RD_TIME",
    "LevelAllocator",
    "PracticeAllocator",
    "STEP_PRECISION",
    "SelectionSummary",
    "StepSummary",
    "StepTimeAllocator",
    "TOLERANCE",
    "add_entry",
    "add_leaf",
    "calculate_applied",
    "capped_applied",
    "clamp_percent",
    "create_allocation_set",
    "equal_split",
    "is_non_rd_alternative",
    "leaf_applied",
    "month_for_year_percent",
    "new_leaf",
    "normalize_frequencies",
    "redistribute",
    "redistribute_all",
    "remove_entry",
    "remove_leaf",
    "round_half_up",
    "scale_to_practice",
    "step_frequencies",
    "step_summaries",
    "sync_step_time",
    "toggle_lock",
    "toggle_role",
    "total_applied",
    "year_percent_for_month",
]
