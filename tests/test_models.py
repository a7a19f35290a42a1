"""Unit tests for the allocation data models."""

import math

import pytest

from qra_allocation.models import AllocationEntry, AllocationSet, LeafKey, StepKey, SubcomponentMetric


class TestAllocationEntry:
    def test_defaults_unlocked(self):
        assert AllocationEntry("A", 10).locked is False

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_raises(self, value):
        with pytest.raises(ValueError, match="finite"):
            AllocationEntry("A", value)


class TestAllocationSet:
    def test_mismatched_key_raises(self):
        with pytest.raises(ValueError, match="has key"):
            AllocationSet(entries={"A": AllocationEntry("B", 10)})

    @pytest.mark.parametrize("reserved", [-1, 101])
    def test_reserved_out_of_range_raises(self, reserved):
        with pytest.raises(ValueError, match="between 0 and 100"):
            AllocationSet(reserved=reserved)

    def test_negative_precision_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            AllocationSet(precision=-1)

    def test_totals(self):
        allocation = AllocationSet(
            entries={"A": AllocationEntry("A", 30, locked=True), "B": AllocationEntry("B", 50)},
            reserved=10,
        )
        assert allocation.total == 80
        assert allocation.locked_total == 30
        assert allocation.available == 90
        assert allocation.unallocated == pytest.approx(10)
        assert not allocation.is_balanced()
        assert allocation.locks() == {"A": True, "B": False}

    def test_container_protocol(self, three_activities):
        assert len(three_activities) == 3
        assert "A" in three_activities
        assert list(three_activities) == ["A", "B", "C"]
        assert three_activities["B"].value == 30

    def test_replace_values_keeps_locks(self, three_activities):
        locked = AllocationSet(
            entries={k: AllocationEntry(k, e.value, k == "A") for k, e in three_activities.entries.items()},
            reserved=three_activities.reserved,
            precision=three_activities.precision,
        )
        result = locked.replace_values({"B": 45}, reserved=0)
        assert result["A"].locked
        assert result["B"].value == 45
        assert result.reserved == 0


class TestKeys:
    def test_leaf_step_key(self):
        leaf = LeafKey("Activity", "Phase", "Step", "Sub")
        assert leaf.step_key == StepKey("Activity", "Phase", "Step")

    def test_keys_distinguish_same_step_name_in_different_phases(self):
        assert StepKey("A", "Design", "Review") != StepKey("A", "Testing", "Review")

    def test_metric_step_key(self):
        metric = SubcomponentMetric(key=LeafKey("A", "P", "S", "X"))
        assert metric.step_key == StepKey("A", "P", "S")
        assert metric.frequency_percent == 100
        assert metric.selected_roles == frozenset()
