"""Allocators for the activity and step hierarchy levels.

Both levels use the same fill-remainder rule and differ only in rounding
precision and in what their reserved budget means. Activities share
``100 - non-R&D time`` as practice percent at one decimal. Steps share an
activity's time at two decimals.
"""

import logging
from collections.abc import Hashable, Iterable

from qra_allocation.allocator._common import (
    ACTIVITY_PRECISION,
    DEFAULT_NON_RD_TIME,
    STEP_PRECISION,
    round_half_up,
    settle_residual,
)
from qra_allocation.allocator.redistribute import (
    add_entry,
    create_allocation_set,
    redistribute,
    redistribute_all,
    remove_entry,
    toggle_lock,
)
from qra_allocation.models import AllocationSet

logger = logging.getLogger(__name__)


class LevelAllocator:
    """Fill-remainder allocator bound to one hierarchy level.

    Parameters
    ----------
    precision : int
        Decimal places values at this level are rounded to.
    default_reserved : float
        Reserved budget used by :meth:`create` when none is given.
    """

    level = "generic"

    def __init__(self, precision: int = STEP_PRECISION, default_reserved: float = 0.0) -> None:
        if precision < 0:
            raise ValueError("Precision must be non-negative.")
        self.precision = precision
        self.default_reserved = default_reserved

    def __call__(self, allocation: AllocationSet, changed_key: Hashable, new_value: float) -> AllocationSet:
        """Alias for :meth:`change`, satisfying ``AllocationRule``."""
        return self.change(allocation, changed_key, new_value)

    def _bind(self, allocation: AllocationSet) -> AllocationSet:
        """Re-round ``allocation`` to this level's precision, keeping its total."""
        if allocation.precision == self.precision:
            return allocation
        precision = self.precision
        rounded = {key: round_half_up(entry.value, precision) for key, entry in allocation.entries.items()}
        locked_total = sum(value for key, value in rounded.items() if allocation[key].locked)
        unlocked = {key: value for key, value in rounded.items() if not allocation[key].locked}
        rounded.update(settle_residual(unlocked, round_half_up(allocation.total, precision) - locked_total, precision))
        rebound = AllocationSet(
            entries=allocation.entries,
            reserved=round_half_up(allocation.reserved, precision),
            precision=precision,
        )
        return rebound.replace_values(rounded)

    def create(self, keys: Iterable[Hashable], reserved: float | None = None) -> AllocationSet:
        """Equal split of the available budget among ``keys``."""
        if reserved is None:
            reserved = self.default_reserved
        allocation = create_allocation_set(keys, reserved, self.precision)
        logger.debug("Created %s allocation with %d members", self.level, len(allocation))
        return allocation

    def change(self, allocation: AllocationSet, changed_key: Hashable, new_value: float) -> AllocationSet:
        """Set one member and rebalance unlocked siblings."""
        return redistribute(self._bind(allocation), changed_key, new_value)

    def change_reserved(self, allocation: AllocationSet, new_reserved: float) -> AllocationSet:
        """Change the reserved budget and rebalance all unlocked members."""
        return redistribute_all(self._bind(allocation), new_reserved)

    def toggle_lock(self, allocation: AllocationSet, key: Hashable) -> AllocationSet:
        """Flip one member's lock."""
        return toggle_lock(self._bind(allocation), key)

    def add(self, allocation: AllocationSet, key: Hashable) -> AllocationSet:
        """Add a member, re-splitting the unlocked budget equally."""
        return add_entry(self._bind(allocation), key)

    def remove(self, allocation: AllocationSet, key: Hashable) -> AllocationSet:
        """Remove a member, returning its budget to unlocked siblings."""
        return remove_entry(self._bind(allocation), key)


class PracticeAllocator(LevelAllocator):
    """Practice percent per research activity.

    The reserved budget is the business's non-R&D time for the year.

    Parameters
    ----------
    precision : int
        Defaults to one decimal place.
    default_non_rd_time : float
        Non-R&D time applied to a newly created year, 10 by default.
    """

    level = "activity"

    def __init__(
        self,
        precision: int = ACTIVITY_PRECISION,
        default_non_rd_time: float = DEFAULT_NON_RD_TIME,
    ) -> None:
        super().__init__(precision=precision, default_reserved=default_non_rd_time)

    def change_non_rd_time(self, allocation: AllocationSet, non_rd_time: float) -> AllocationSet:
        """Alias of :meth:`change_reserved` named for the practice level."""
        return self.change_reserved(allocation, non_rd_time)


class StepTimeAllocator(LevelAllocator):
    """Time percent per step of one research activity.

    Parameters
    ----------
    precision : int
        Defaults to two decimal places.
    """

    level = "step"

    def __init__(self, precision: int = STEP_PRECISION) -> None:
        super().__init__(precision=precision, default_reserved=0.0)
