"""Applied percentage of subcomponents.

The applied percentage of a leaf is the product of four 0-100 axes
(practice, time, frequency, year coverage) brought back onto a 0-100 scale::

    applied = practice * time * frequency * year / 1_000_000

rounded half-up to two decimals. Non-R&D alternatives get their own value
but never count towards a total.
"""

import logging
import math
from collections.abc import Iterable, Sequence

from qra_allocation.allocator._common import (
    MAX_PERCENT,
    STEP_PRECISION,
    clamp_percent,
    round_half_up,
    settle_residual,
)
from qra_allocation.allocator._types import StepSummary
from qra_allocation.allocator.frequency import sync_step_time
from qra_allocation.models import AllocationSet, LeafKey, StepKey, SubcomponentMetric

logger = logging.getLogger(__name__)

APPLIED_DIVISOR = 1_000_000
CALCULATION_FORMULA = "(practice_percent * step_time * frequency * year) / 1000000"
MONTHS_PER_YEAR = 12
YEAR_STEP = MAX_PERCENT / (MONTHS_PER_YEAR - 1)


def calculate_applied(practice_percent: float, time_percent: float, frequency_percent: float, year_percent: float) -> float:
    """Applied percentage from the four percentage axes.

    Parameters
    ----------
    practice_percent : float
        Activity share of total working time.
    time_percent : float
        Step share of the activity.
    frequency_percent : float
        Subcomponent share of the step.
    year_percent : float
        Fraction of the year the work occurs.

    Returns
    -------
    float
        Applied percentage rounded to 2 decimals. Inputs outside
        ``[0, 100]`` are clamped first.
    """
    product = (
        clamp_percent(practice_percent)
        * clamp_percent(time_percent)
        * clamp_percent(frequency_percent)
        * clamp_percent(year_percent)
    )
    return round_half_up(product / APPLIED_DIVISOR, STEP_PRECISION)


def leaf_applied(practice_percent: float, leaf: SubcomponentMetric) -> float:
    """Applied percentage of a single leaf."""
    return calculate_applied(practice_percent, leaf.time_percent, leaf.frequency_percent, leaf.year_percent)


def total_applied(practice_percent: float, leaves: Iterable[SubcomponentMetric]) -> float:
    """Sum of applied percentages, excluding non-R&D alternatives."""
    total = sum(leaf_applied(practice_percent, leaf) for leaf in leaves if not leaf.is_non_rd)
    return round_half_up(total, STEP_PRECISION)


def capped_applied(practice_percent: float, leaves: Iterable[SubcomponentMetric]) -> float:
    """Activity contribution: total applied, never above the practice percent."""
    return min(clamp_percent(practice_percent), total_applied(practice_percent, leaves))


def scale_to_practice(practice_percent: float, leaves: Sequence[SubcomponentMetric]) -> dict[LeafKey, float]:
    """Per-leaf applied percentages, scaled down to fit the practice percent.

    When the R&D total exceeds ``practice_percent``, every R&D leaf is scaled
    by ``practice / total`` so the total equals the practice percent.
    Alternatives keep their unscaled value.

    Parameters
    ----------
    practice_percent : float
        Practice percent of the owning activity.
    leaves : Sequence[SubcomponentMetric]
        Leaves of that activity.

    Returns
    -------
    dict[LeafKey, float]
    """
    applied = {leaf.key: leaf_applied(practice_percent, leaf) for leaf in leaves}
    rd_applied = {leaf.key: applied[leaf.key] for leaf in leaves if not leaf.is_non_rd}
    total = sum(rd_applied.values())
    practice = clamp_percent(practice_percent)
    if total <= practice or total == 0:
        return applied

    factor = practice / total
    logger.info("Scaling applied percentages by %.4f to fit practice percent %.2f", factor, practice)
    scaled = {k: round_half_up(v * factor, STEP_PRECISION) for k, v in rd_applied.items()}
    applied.update(settle_residual(scaled, practice, STEP_PRECISION))
    return applied


def step_summaries(
    practice_percent: float,
    step_allocation: AllocationSet,
    leaves: Sequence[SubcomponentMetric],
) -> dict[StepKey, StepSummary]:
    """Roll leaves up per step of ``step_allocation``.

    Leaf time is taken from the step allocation; alternatives are counted
    as subcomponents but excluded from the applied total.
    """
    synced = sync_step_time(leaves, step_allocation)
    summaries: dict[StepKey, StepSummary] = {}
    for step, entry in step_allocation.entries.items():
        under_step = [leaf for leaf in synced if leaf.step_key == step]
        summaries[step] = {
            "step_name": step.step if isinstance(step, StepKey) else str(step),
            "time_percent": entry.value,
            "subcomponent_count": len(under_step),
            "total_applied_percent": total_applied(practice_percent, under_step),
            "is_locked": entry.locked,
        }
    return summaries


def year_percent_for_month(month_index: int) -> float:
    """Year coverage for work starting in month ``month_index`` (0 = January).

    Each later start month removes ``100/11`` percent; the index is clamped
    to ``0..11``.
    """
    index = min(MONTHS_PER_YEAR - 1, max(0, month_index))
    return max(0.0, round_half_up(MAX_PERCENT - index * YEAR_STEP, STEP_PRECISION))


def month_for_year_percent(year_percent: float) -> int:
    """Start-month index closest to a year coverage percentage."""
    index = math.floor((MAX_PERCENT - clamp_percent(year_percent)) / YEAR_STEP + 0.5)
    return min(MONTHS_PER_YEAR - 1, max(0, index))
