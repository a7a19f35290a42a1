"""SELECTION component: summarize one activity's subcomponent selection."""

import logging
from dataclasses import asdict
from typing import Any, Protocol

from qra_allocation.allocator._common import STEP_PRECISION, clamp_percent
from qra_allocation.allocator._types import SelectionSummary
from qra_allocation.allocator.applied import CALCULATION_FORMULA, leaf_applied, step_summaries, total_applied
from qra_allocation.allocator.frequency import is_non_rd_alternative, step_frequencies, sync_step_time
from qra_allocation.models import (
    FULL_BUDGET,
    AllocationEntry,
    AllocationSet,
    LeafKey,
    StepKey,
    SubcomponentMetric,
)
from qra_allocation.validator import ConfigurationValidator

logger = logging.getLogger(__name__)


class PipelineComponent(Protocol):
    """Structural interface for components handing results to persistence."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


_FIELD_MAP_IN: dict[str, str] = {
    "timePercent": "time_percent",
    "frequencyPercent": "frequency_percent",
    "yearPercent": "year_percent",
    "selectedRoles": "selected_roles",
    "isNonRD": "is_non_rd",
    "startYear": "start_year",
}


def _to_model_format(record: dict[str, Any]) -> dict[str, Any]:
    """Map a client-side record to model field names.

    Parameters
    ----------
    record : dict[str, Any]
        Record with camelCase client field names.

    Returns
    -------
    dict[str, Any]
        Record with model field names.
    """
    return {_FIELD_MAP_IN.get(key, key): value for key, value in record.items()}


def _step_label(key: StepKey | LeafKey) -> str:
    return f"{key.phase}__{key.step}"


def _leaf_label(key: LeafKey) -> str:
    return f"{_step_label(key)}-{key.subcomponent}"


class SelectionComponent(PipelineComponent):
    """Turn a subcomponent selection into its persisted summary.

    Rebuilds the step allocation and leaves from the event, copies step time
    onto the leaves, computes applied percentages and step roll-ups, and
    attaches validation diagnostics.

    Parameters
    ----------
    validator : ConfigurationValidator, optional
        Validation rules to apply. Defaults to :class:`ConfigurationValidator`.
    step_precision : int
        Decimal places of step time allocations.
    """

    def __init__(
        self,
        validator: ConfigurationValidator | None = None,
        step_precision: int = STEP_PRECISION,
    ) -> None:
        self._validator = validator or ConfigurationValidator()
        self.step_precision = step_precision

    def _step_set(self, activity: str, event: dict) -> AllocationSet:
        entries: dict[StepKey, AllocationEntry] = {}
        for raw in event.get("steps", []):
            step = _to_model_format(raw)
            key = StepKey(activity, step.get("phase", ""), step["step"])
            entries[key] = AllocationEntry(key, clamp_percent(step.get("time_percent", 0.0)), bool(step.get("locked")))
        return AllocationSet(
            entries=entries,
            reserved=clamp_percent(event.get("non_rd_time", 0.0)),
            precision=self.step_precision,
        )

    @staticmethod
    def _leaves(activity: str, event: dict) -> list[SubcomponentMetric]:
        leaves = []
        for raw in event.get("subcomponents", []):
            sub = _to_model_format(raw)
            key = LeafKey(activity, sub.get("phase", ""), sub["step"], sub["subcomponent"])
            leaves.append(
                SubcomponentMetric(
                    key=key,
                    time_percent=sub.get("time_percent", 0.0),
                    frequency_percent=sub.get("frequency_percent", 0.0),
                    year_percent=sub.get("year_percent", FULL_BUDGET),
                    selected_roles=frozenset(sub.get("selected_roles", ())),
                    is_non_rd=sub.get("is_non_rd", is_non_rd_alternative(key.subcomponent)),
                    start_year=sub.get("start_year"),
                )
            )
        return leaves

    def execute(self, event: dict) -> dict:
        """Summarize a selection and return a ``SelectionSummary`` dict.

        Parameters
        ----------
        event : dict
            Must contain ``activity`` (str) and ``practice_percent`` (float).
            Optional: ``year`` (int), ``non_rd_time`` (float), ``steps``
            (dicts with ``phase``, ``step``, ``timePercent``, ``locked``) and
            ``subcomponents`` (dicts with ``phase``, ``step``,
            ``subcomponent`` and camelCase metric fields).

        Returns
        -------
        dict
            Serialized ``SelectionSummary``.
        """
        activity = event["activity"]
        practice = clamp_percent(event["practice_percent"])

        step_set = self._step_set(activity, event)
        leaves = sync_step_time(self._leaves(activity, event), step_set)

        # Balanced by construction; only feeds the applied-vs-practice warning.
        practice_set = AllocationSet(
            entries={activity: AllocationEntry(activity, practice)},
            reserved=FULL_BUDGET - practice,
        )
        validation = self._validator({activity: step_set}, leaves, practice_set)

        if validation.is_valid:
            logger.info("Selection complete: activity=%s, subcomponents=%d", activity, len(leaves))
        else:
            logger.warning(
                "Selection for %s has %d validation errors: %s",
                activity,
                len(validation.errors),
                "; ".join(validation.errors),
            )

        selected = {}
        for leaf in leaves:
            record = asdict(leaf)
            record.pop("key")
            record.update(
                phase=leaf.key.phase,
                step=leaf.key.step,
                subcomponent=leaf.key.subcomponent,
                selected_roles=sorted(leaf.selected_roles),
                applied_percent=leaf_applied(practice, leaf),
            )
            selected[_leaf_label(leaf.key)] = record

        rd_count = sum(1 for leaf in leaves if not leaf.is_non_rd)
        summary: SelectionSummary = {
            "activity_name": activity,
            "practice_percent": practice,
            "current_year": event.get("year"),
            "selected_subcomponents": selected,
            "total_applied_percent": total_applied(practice, leaves),
            "step_frequencies": {_step_label(step): total for step, total in step_frequencies(leaves).items()},
            "step_time_map": {_step_label(step): entry.value for step, entry in step_set.entries.items()},
            "step_time_locked": {_step_label(step): entry.locked for step, entry in step_set.entries.items()},
            "step_summaries": {
                _step_label(step): step_summary for step, step_summary in step_summaries(practice, step_set, leaves).items()
            },
            "total_subcomponents": len(leaves),
            "rd_subcomponents": rd_count,
            "non_rd_subcomponents": len(leaves) - rd_count,
            "calculation_formula": CALCULATION_FORMULA,
            "validation": asdict(validation),
        }
        return dict(summary)
