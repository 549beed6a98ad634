"""Connection inference from catalog pin roles."""

from .inference import (
    ExpandedComponent,
    DetectionResult,
    component_id,
    expand_components,
    generate_net_name,
    infer_component_role,
    infer_connections,
    validate_connections,
    build_nets,
)

__all__ = [
    "ExpandedComponent",
    "DetectionResult",
    "component_id",
    "expand_components",
    "generate_net_name",
    "infer_component_role",
    "infer_connections",
    "validate_connections",
    "build_nets",
]
