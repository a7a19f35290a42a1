"""Data models for the QRA allocation engine."""

import math
from collections.abc import Hashable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import NamedTuple

FULL_BUDGET = 100.0


class StepKey(NamedTuple):
    """Identifies one processing step of a research activity."""

    activity: str
    phase: str
    step: str


class LeafKey(NamedTuple):
    """Identifies one selected subcomponent under a step."""

    activity: str
    phase: str
    step: str
    subcomponent: str

    @property
    def step_key(self) -> StepKey:
        """The step this subcomponent belongs to."""
        return StepKey(self.activity, self.phase, self.step)


@dataclass(frozen=True)
class AllocationEntry:
    """One percentage value within an :class:`AllocationSet`.

    Parameters
    ----------
    key : Hashable
        Identifier of the member (activity name, :class:`StepKey`, ...).
    value : float
        Allocated percentage, 0-100.
    locked : bool
        Locked entries are excluded from automatic redistribution.
    """

    key: Hashable
    value: float
    locked: bool = False

    def __post_init__(self) -> None:
        """Reject values that cannot be clamped into a percentage."""
        if not math.isfinite(self.value):
            raise ValueError(f"Allocation value for {self.key!r} must be finite.")


@dataclass(frozen=True)
class AllocationSet:
    """Ordered group of sibling allocations sharing a budget.

    Once a redistribution completes, ``total + reserved`` equals 100 within
    tolerance unless the set has no unlocked member left to absorb the
    difference. In that case :attr:`unallocated` reports the drift.

    Parameters
    ----------
    entries : dict[Hashable, AllocationEntry]
        Members keyed by their own ``key``, in display order.
    reserved : float
        Budget held back from the members (e.g. non-R&D time), 0-100.
    precision : int
        Decimal places values at this hierarchy level are rounded to.
    """

    entries: dict[Hashable, AllocationEntry] = field(default_factory=dict)
    reserved: float = 0.0
    precision: int = 2

    def __post_init__(self) -> None:
        """Validate keys and the reserved budget."""
        for key, entry in self.entries.items():
            if entry.key != key:
                raise ValueError(f"Entry stored under {key!r} has key {entry.key!r}.")
        if not (0 <= self.reserved <= FULL_BUDGET):
            raise ValueError("Reserved budget must be between 0 and 100.")
        if self.precision < 0:
            raise ValueError("Precision must be non-negative.")

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: Hashable) -> AllocationEntry:
        return self.entries[key]

    @property
    def total(self) -> float:
        """Sum of all member values."""
        return sum(entry.value for entry in self.entries.values())

    @property
    def locked_total(self) -> float:
        """Sum of locked member values."""
        return sum(entry.value for entry in self.entries.values() if entry.locked)

    @property
    def available(self) -> float:
        """Budget the members share, ``100 - reserved``."""
        return FULL_BUDGET - self.reserved

    @property
    def unallocated(self) -> float:
        """Budget not held by any member. Negative when over-allocated."""
        return self.available - self.total

    def values(self) -> dict[Hashable, float]:
        """Plain ``key -> value`` mapping."""
        return {key: entry.value for key, entry in self.entries.items()}

    def locks(self) -> dict[Hashable, bool]:
        """Plain ``key -> locked`` mapping."""
        return {key: entry.locked for key, entry in self.entries.items()}

    def is_balanced(self, tolerance: float = 0.01) -> bool:
        """Whether ``total + reserved`` is within ``tolerance`` of 100."""
        return abs(self.unallocated) <= tolerance

    def replace_values(self, values: Mapping[Hashable, float], reserved: float | None = None) -> "AllocationSet":
        """Return a copy with the given values swapped in; locks are kept."""
        entries = {
            key: AllocationEntry(key, values.get(key, entry.value), entry.locked)
            for key, entry in self.entries.items()
        }
        return AllocationSet(
            entries=entries,
            reserved=self.reserved if reserved is None else reserved,
            precision=self.precision,
        )


@dataclass(frozen=True)
class SubcomponentMetric:
    """Metrics for one selected subcomponent (a leaf of the hierarchy).

    Parameters
    ----------
    key : LeafKey
        Activity, phase, step and subcomponent the metrics belong to.
    time_percent : float
        Share of activity time, usually inherited from the step allocation.
    frequency_percent : float
        Share of the step; leaves of one step sum to 100.
    year_percent : float
        Fraction of the year the work occurs.
    selected_roles : frozenset[str]
        Roles performing this subcomponent.
    is_non_rd : bool
        Marks a "Non-R&D Alternative"; excluded from applied totals.
    start_year : int, optional
        Year the work started, carried through to the summary.
    """

    key: LeafKey
    time_percent: float = 100.0
    frequency_percent: float = 100.0
    year_percent: float = 100.0
    selected_roles: frozenset[str] = frozenset()
    is_non_rd: bool = False
    start_year: int | None = None

    @property
    def step_key(self) -> StepKey:
        """Owning step."""
        return self.key.step_key


@dataclass
class ValidationResult:
    """Outcome of validating a full selection.

    Parameters
    ----------
    is_valid : bool
        ``True`` when there are no errors. Warnings do not block completion.
    errors : list[str]
        Blocking problems.
    warnings : list[str]
        Non-blocking problems.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
