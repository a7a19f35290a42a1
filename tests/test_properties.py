"""Property-based tests for the redistribution and normalization laws.

Inputs are kept on the integer grid so every remaining budget is either
zero or large enough for the rounding residual to be absorbed without
clamping.
"""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from qra_allocation.allocator import (
    create_allocation_set,
    normalize_frequencies,
    redistribute,
    round_half_up,
    toggle_lock,
)
from qra_allocation.models import LeafKey, SubcomponentMetric

MEMBERS = ["A", "B", "C", "D", "E", "F"]


@st.composite
def allocation_sets(draw, max_reserved=90):
    count = draw(st.integers(min_value=2, max_value=len(MEMBERS)))
    reserved = draw(st.integers(min_value=0, max_value=max_reserved))
    return create_allocation_set(MEMBERS[:count], reserved=reserved)


class TestRedistributeProperties:
    @settings(max_examples=200, deadline=None)
    @given(allocation=allocation_sets(), data=st.data())
    def test_budget_holds_over_edit_sequences(self, allocation, data):
        keys = list(allocation)
        edits = data.draw(st.integers(min_value=1, max_value=10))
        for _ in range(edits):
            key = data.draw(st.sampled_from(keys))
            value = data.draw(st.integers(min_value=0, max_value=int(allocation.available)))
            allocation = redistribute(allocation, key, value)
            assert allocation.is_balanced()
            assert all(0 <= v <= 100 for v in allocation.values().values())

    @settings(max_examples=200, deadline=None)
    @given(allocation=allocation_sets(), data=st.data())
    def test_locked_members_never_move(self, allocation, data):
        keys = list(allocation)
        changed = data.draw(st.sampled_from(keys))
        to_lock = data.draw(st.lists(st.sampled_from([k for k in keys if k != changed]), unique=True))
        for key in to_lock:
            allocation = toggle_lock(allocation, key)
        value = data.draw(st.floats(min_value=-50, max_value=150, allow_nan=False))

        result = redistribute(allocation, changed, value)

        for key in to_lock:
            assert result[key].value == allocation[key].value
            assert result[key].locked
        assert result[changed].value == round_half_up(min(max(value, 0), 100), allocation.precision)

    @settings(max_examples=200, deadline=None)
    @given(allocation=allocation_sets(), data=st.data())
    def test_repeating_an_edit_changes_nothing(self, allocation, data):
        key = data.draw(st.sampled_from(list(allocation)))
        value = data.draw(st.integers(min_value=0, max_value=int(allocation.available)))
        once = redistribute(allocation, key, value)
        twice = redistribute(once, key, value)
        assert twice.values() == pytest.approx(once.values())


class TestFrequencyProperties:
    @settings(max_examples=200, deadline=None)
    @given(
        frequencies=st.lists(st.integers(min_value=0, max_value=100), min_size=1, max_size=6),
        data=st.data(),
    )
    def test_group_sums_to_full(self, frequencies, data):
        leaves = [
            SubcomponentMetric(key=LeafKey("Activity", "Design", "Review", f"Sub {i}"), frequency_percent=f)
            for i, f in enumerate(frequencies)
        ]
        index = data.draw(st.integers(min_value=0, max_value=len(leaves) - 1))
        value = data.draw(st.integers(min_value=0, max_value=100))
        assume(sum(frequencies) - frequencies[index] + value > 0)

        result = normalize_frequencies(leaves, leaves[index].key, value)

        assert sum(leaf.frequency_percent for leaf in result) == pytest.approx(100, abs=0.01)
        assert [leaf.key for leaf in result] == [leaf.key for leaf in leaves]
