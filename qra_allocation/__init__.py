"""Percentage allocation and applied-percentage engine for QRA documentation."""

from qra_allocation.adapter import SelectionComponent
from qra_allocation.allocator import (
    PracticeAllocator,
    StepTimeAllocator,
    calculate_applied,
    create_allocation_set,
    normalize_frequencies,
    redistribute,
    redistribute_all,
    toggle_lock,
)
from qra_allocation.models import (
    AllocationEntry,
    AllocationSet,
    LeafKey,
    StepKey,
    SubcomponentMetric,
    ValidationResult,
)
from qra_allocation.validator import ConfigurationValidator, validate

__all__ = [
    "AllocationEntry",
    "AllocationSet",
    "ConfigurationValidator",
    "LeafKey",
    "PracticeAllocator",
    "SelectionComponent",
    "StepKey",
    "StepTimeAllocator",
    "SubcomponentMetric",
    "ValidationResult",
    "calculate_applied",
    "create_allocation_set",
    "normalize_frequencies",
    "redistribute",
    "redistribute_all",
    "toggle_lock",
    "validate",
]
