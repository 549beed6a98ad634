"""Design rule checking for tape boards."""

from .drc import (
    VIOLATION_TYPES,
    Violation,
    DRCChecker,
    run_drc_checks,
    required_bend_radius,
    estimate_component_size,
)

__all__ = [
    "VIOLATION_TYPES",
    "Violation",
    "DRCChecker",
    "run_drc_checks",
    "required_bend_radius",
    "estimate_component_size",
]
