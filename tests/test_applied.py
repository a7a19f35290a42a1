"""Unit tests for the applied percentage calculator."""

import pytest

from qra_allocation.allocator import (
    calculate_applied,
    capped_applied,
    leaf_applied,
    month_for_year_percent,
    redistribute,
    scale_to_practice,
    step_summaries,
    toggle_lock,
    total_applied,
    year_percent_for_month,
)
from qra_allocation.models import LeafKey, SubcomponentMetric

ACTIVITY = "Prototype Development"


@pytest.fixture()
def full_time_leaves(step_keys):
    """Two leaves in different steps that each claim the whole activity."""
    return [
        SubcomponentMetric(key=LeafKey(ACTIVITY, step.phase, step.step, f"Work {i}"), time_percent=100)
        for i, step in enumerate(step_keys[:2])
    ]


class TestCalculateApplied:
    def test_all_full(self):
        assert calculate_applied(100, 100, 100, 100) == 100.00

    def test_all_half(self):
        assert calculate_applied(50, 50, 50, 50) == 6.25

    def test_zero_axis(self):
        assert calculate_applied(30, 25, 0, 100) == 0

    def test_rounds_half_up(self):
        # 50 * 50 * 50 * 1 / 1e6 == 0.125 exactly
        assert calculate_applied(50, 50, 50, 1) == 0.13

    def test_rounds_to_two_decimals(self):
        assert calculate_applied(33.3, 33.3, 33.3, 100) == 3.69

    def test_inputs_clamped(self):
        assert calculate_applied(150, 100, 100, 100) == 100
        assert calculate_applied(-10, 100, 100, 100) == 0


class TestTotals:
    def test_leaf_applied(self, sample_leaves):
        assert [leaf_applied(30, leaf) for leaf in sample_leaves] == [4.5, 3.0, 3.75]

    def test_total_applied(self, sample_leaves):
        assert total_applied(30, sample_leaves) == 11.25

    def test_alternatives_excluded_from_total(self, sample_leaves, step_keys):
        step = step_keys[1]
        alternative = SubcomponentMetric(
            key=LeafKey(ACTIVITY, step.phase, step.step, "Non-R&D Alternative"),
            time_percent=25,
            is_non_rd=True,
        )
        assert leaf_applied(30, alternative) == 7.5
        assert total_applied(30, [*sample_leaves, alternative]) == 11.25

    def test_capped_at_practice(self, full_time_leaves):
        assert total_applied(30, full_time_leaves) == 60
        assert capped_applied(30, full_time_leaves) == 30

    def test_capped_below_practice_unchanged(self, sample_leaves):
        assert capped_applied(30, sample_leaves) == 11.25

    def test_empty(self):
        assert total_applied(30, []) == 0


class TestScaleToPractice:
    def test_scales_down_overshoot(self, full_time_leaves):
        applied = scale_to_practice(30, full_time_leaves)
        assert list(applied.values()) == [15, 15]
        assert sum(applied.values()) == pytest.approx(30)

    def test_within_practice_unscaled(self, sample_leaves):
        applied = scale_to_practice(30, sample_leaves)
        assert list(applied.values()) == [4.5, 3.0, 3.75]

    def test_alternatives_not_scaled(self, full_time_leaves, step_keys):
        step = step_keys[2]
        alternative = SubcomponentMetric(key=LeafKey(ACTIVITY, step.phase, step.step, "Non-R&D Alternative"), is_non_rd=True)
        applied = scale_to_practice(30, [*full_time_leaves, alternative])
        assert applied[alternative.key] == 30
        assert applied[full_time_leaves[0].key] == 15


class TestStepSummaries:
    def test_summaries_per_step(self, sample_leaves, step_set, step_keys):
        summaries = step_summaries(30, step_set, sample_leaves)
        assert list(summaries) == step_keys
        requirements = summaries[step_keys[0]]
        assert requirements == {
            "step_name": "Requirements",
            "time_percent": 25,
            "subcomponent_count": 2,
            "total_applied_percent": 7.5,
            "is_locked": False,
        }
        assert summaries[step_keys[3]]["subcomponent_count"] == 0
        assert summaries[step_keys[3]]["total_applied_percent"] == 0

    def test_uses_step_time(self, sample_leaves, step_set, step_keys):
        changed = toggle_lock(redistribute(step_set, step_keys[0], 40), step_keys[0])
        summary = step_summaries(30, changed, sample_leaves)[step_keys[0]]
        assert summary["time_percent"] == 40
        assert summary["total_applied_percent"] == 12
        assert summary["is_locked"]


class TestYearCoverage:
    @pytest.mark.parametrize(
        "month, expected",
        [(0, 100), (1, 90.91), (5, 54.55), (10, 9.09), (11, 0), (15, 0), (-1, 100)],
    )
    def test_year_percent_for_month(self, month, expected):
        assert year_percent_for_month(month) == pytest.approx(expected)

    @pytest.mark.parametrize("month", range(12))
    def test_month_roundtrip(self, month):
        assert month_for_year_percent(year_percent_for_month(month)) == month

    def test_month_for_out_of_range_percent(self):
        assert month_for_year_percent(120) == 0
        assert month_for_year_percent(-5) == 11
