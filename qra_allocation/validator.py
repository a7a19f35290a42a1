"""Configuration checks for a full subcomponent selection.

Errors block completing the selection; warnings are informational. Checks run
in a fixed order so messages are stable for the caller.
"""

import logging
from collections import Counter, defaultdict
from collections.abc import Mapping, Sequence

from qra_allocation.allocator._common import MAX_PERCENT, MIN_PERCENT, TOLERANCE
from qra_allocation.allocator.applied import total_applied
from qra_allocation.models import AllocationSet, SubcomponentMetric, ValidationResult

logger = logging.getLogger(__name__)

NO_SELECTION_ERROR = "No subcomponents selected"


def _out_of_range(leaf: SubcomponentMetric) -> bool:
    return any(
        not (MIN_PERCENT <= value <= MAX_PERCENT)
        for value in (leaf.time_percent, leaf.frequency_percent, leaf.year_percent)
    )


class ConfigurationValidator:
    """Validate allocation sets and selected leaves together.

    Parameters
    ----------
    tolerance : float
        Allowed deviation of a set's ``total + reserved`` from 100.
    practice_overshoot : float
        Relative amount by which an activity's applied total may exceed its
        practice percent before a warning is raised.

    Raises
    ------
    ValueError
        If either parameter is negative.
    """

    def __init__(self, tolerance: float = TOLERANCE, practice_overshoot: float = 0.10) -> None:
        if tolerance < 0:
            raise ValueError("Tolerance must be non-negative.")
        if practice_overshoot < 0:
            raise ValueError("Practice overshoot must be non-negative.")
        self.tolerance = tolerance
        self.practice_overshoot = practice_overshoot

    def __call__(
        self,
        step_sets: Mapping[str, AllocationSet],
        leaves: Sequence[SubcomponentMetric],
        practice_set: AllocationSet | None = None,
    ) -> ValidationResult:
        """Validate a selection.

        Parameters
        ----------
        step_sets : Mapping[str, AllocationSet]
            Step time allocation per activity name, keyed by ``StepKey``.
        leaves : Sequence[SubcomponentMetric]
            Selected leaves across those activities.
        practice_set : AllocationSet, optional
            Practice percent per activity name. Enables the practice balance
            and applied overshoot checks.

        Returns
        -------
        ValidationResult
        """
        if not leaves:
            logger.warning("Validation failed: %s", NO_SELECTION_ERROR)
            return ValidationResult(is_valid=False, errors=[NO_SELECTION_ERROR])

        errors: list[str] = []
        warnings: list[str] = []

        for activity, step_set in step_sets.items():
            if not step_set.is_balanced(self.tolerance):
                current = step_set.total + step_set.reserved
                errors.append(f"Total time allocation for {activity} must be 100% (current: {current:.1f}%)")

        allocated_steps = {step for step_set in step_sets.values() for step in step_set}
        missing = len({leaf.step_key for leaf in leaves} - allocated_steps)
        if missing:
            errors.append(f"Missing time allocation for {missing} steps")

        if practice_set is not None and not practice_set.is_balanced(self.tolerance):
            errors.append(
                f"Practice allocation plus {practice_set.reserved:.1f}% non-R&D time must be 100% "
                f"(current: {practice_set.total + practice_set.reserved:.1f}%)"
            )

        invalid = sum(1 for leaf in leaves if _out_of_range(leaf))
        if invalid:
            errors.append(f"Invalid metrics found for {invalid} subcomponents")

        duplicates = sum(count - 1 for count in Counter(leaf.key for leaf in leaves).values() if count > 1)
        if duplicates:
            errors.append(f"Duplicate selections found: {duplicates}")

        selected_steps = {leaf.step_key for leaf in leaves}
        for activity, step_set in step_sets.items():
            for step, entry in step_set.entries.items():
                if entry.value > 0 and step not in selected_steps:
                    name = getattr(step, "step", step)
                    warnings.append(
                        f"Step '{name}' of {activity} has {entry.value:.2f}% time but no selected subcomponents"
                    )

        for leaf in leaves:
            if leaf.frequency_percent == 0:
                warnings.append(f"Subcomponent '{leaf.key.subcomponent}' has 0% frequency and contributes nothing")

        for leaf in leaves:
            if not leaf.is_non_rd and not leaf.selected_roles:
                warnings.append(f"Subcomponent '{leaf.key.subcomponent}' has no roles assigned")

        if practice_set is not None:
            by_activity: dict[str, list[SubcomponentMetric]] = defaultdict(list)
            for leaf in leaves:
                by_activity[leaf.key.activity].append(leaf)
            for activity, activity_leaves in by_activity.items():
                if activity not in practice_set:
                    continue
                practice = practice_set[activity].value
                applied = total_applied(practice, activity_leaves)
                if applied > practice * (1 + self.practice_overshoot):
                    warnings.append(
                        f"Total applied percentage {applied:.2f}% for {activity} exceeds practice "
                        f"percent {practice:.2f}% and will be scaled on save"
                    )

        if errors:
            logger.warning("Validation failed with %d errors", len(errors))
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate(
    step_sets: Mapping[str, AllocationSet],
    leaves: Sequence[SubcomponentMetric],
    practice_set: AllocationSet | None = None,
) -> ValidationResult:
    """Validate with default tolerances. See :class:`ConfigurationValidator`."""
    return ConfigurationValidator()(step_sets, leaves, practice_set)
