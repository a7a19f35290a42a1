"""Type definitions for the allocation rule protocol and payload contracts."""

from collections.abc import Hashable
from typing import Any, Protocol, TypedDict

from qra_allocation.models import AllocationSet


class StepSummary(TypedDict):
    """Per-step roll-up handed to the persistence layer.

    Parameters
    ----------
    step_name : str
        Display name of the step.
    time_percent : float
        Step time allocation.
    subcomponent_count : int
        Number of selected subcomponents under the step.
    total_applied_percent : float
        Sum of the step's applied percentages, rounded to 2 decimals.
    is_locked : bool
        Whether the step time is locked.
    """

    step_name: str
    time_percent: float
    subcomponent_count: int
    total_applied_percent: float
    is_locked: bool


class SelectionSummary(TypedDict):
    """Serialized outcome of a subcomponent selection for one activity.

    Parameters
    ----------
    activity_name : str
        Research activity the selection belongs to.
    practice_percent : float
        Practice percent of the activity.
    current_year : int | None
        Tax year the configuration applies to.
    selected_subcomponents : dict[str, dict[str, Any]]
        Leaf metrics keyed by ``"{phase}__{step}-{subcomponent}"``, with applied percent.
    total_applied_percent : float
        Sum of applied percentages of R&D subcomponents.
    step_frequencies : dict[str, float]
        R&D-only frequency total per ``"{phase}__{step}"`` label.
    step_time_map : dict[str, float]
        Step time allocation per step.
    step_time_locked : dict[str, bool]
        Lock flag per step.
    step_summaries : dict[str, StepSummary]
        Per-step roll-ups.
    total_subcomponents : int
        Number of selected subcomponents.
    rd_subcomponents : int
        Number of selected R&D subcomponents.
    non_rd_subcomponents : int
        Number of selected Non-R&D alternatives.
    calculation_formula : str
        Human-readable applied-percentage formula.
    validation : dict[str, Any]
        Serialized :class:`~qra_allocation.models.ValidationResult`.
    """

    activity_name: str
    practice_percent: float
    current_year: int | None
    selected_subcomponents: dict[str, dict[str, Any]]
    total_applied_percent: float
    step_frequencies: dict[str, float]
    step_time_map: dict[str, float]
    step_time_locked: dict[str, bool]
    step_summaries: dict[str, StepSummary]
    total_subcomponents: int
    rd_subcomponents: int
    non_rd_subcomponents: int
    calculation_formula: str
    validation: dict[str, Any]


class AllocationRule(Protocol):
    """Protocol for single-edit allocation rules.

    Implementations receive the previous set plus one edit and return the
    recomputed set without mutating the input.
    """

    def __call__(
        self,
        allocation: AllocationSet,
        changed_key: Hashable,
        new_value: float,
    ) -> AllocationSet: ...
