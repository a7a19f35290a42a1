"""Shared fixtures for QRA allocation tests."""

import pytest

from qra_allocation.allocator import create_allocation_set
from qra_allocation.models import LeafKey, StepKey, SubcomponentMetric

ACTIVITY = "Prototype Development"


@pytest.fixture()
def three_activities():
    """Practice allocation of three activities with 10% non-R&D time."""
    return create_allocation_set(["A", "B", "C"], reserved=10, precision=1)


@pytest.fixture()
def step_keys():
    return [
        StepKey(ACTIVITY, "Design", "Requirements"),
        StepKey(ACTIVITY, "Design", "Modeling"),
        StepKey(ACTIVITY, "Testing", "Validation"),
        StepKey(ACTIVITY, "Testing", "Iteration"),
    ]


@pytest.fixture()
def step_set(step_keys):
    """Four steps with 25% time each."""
    return create_allocation_set(step_keys)


@pytest.fixture()
def sample_leaves(step_keys):
    """Selected subcomponents across two steps, roles and frequencies filled in."""
    requirements, modeling = step_keys[0], step_keys[1]
    return [
        SubcomponentMetric(
            key=LeafKey(ACTIVITY, requirements.phase, requirements.step, "Gather specs"),
            time_percent=25,
            frequency_percent=60,
            year_percent=100,
            selected_roles=frozenset({"Engineer"}),
        ),
        SubcomponentMetric(
            key=LeafKey(ACTIVITY, requirements.phase, requirements.step, "Review constraints"),
            time_percent=25,
            frequency_percent=40,
            year_percent=100,
            selected_roles=frozenset({"Engineer", "Manager"}),
        ),
        SubcomponentMetric(
            key=LeafKey(ACTIVITY, modeling.phase, modeling.step, "CAD model"),
            time_percent=25,
            frequency_percent=100,
            year_percent=50,
            selected_roles=frozenset({"Designer"}),
        ),
    ]
