"""
Design Rule Profiles

Numeric rule sets used by the DRC engine. A tape board is printed (FDM)
and then lined with copper tape, so the rules mix printer limits (nozzle
width, layer height, wall thickness) with tape limits (spacing between
channels, bend radius, clearance around pads).
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List


@dataclass
class DRCRules:
    """Design rule limits for one printer/tape combination."""

    name: str = "default"
    description: str = ""

    # Channel rules (mm)
    min_spacing: float = 1.0  # Closest approach between two routes
    min_wall: float = 0.8  # Printed wall left between adjacent channels

    # Printer rules (mm)
    nozzle_width: float = 0.4
    layer_height: float = 0.2

    # Tape rules (mm)
    min_bend_radius: float = 2.0
    min_pad_clearance: float = 0.5
    # Skip pad clearance for a route on the pad it terminates on
    exempt_route_endpoints: bool = False

    def validate_spacing(self, spacing: float) -> bool:
        """Check if a route-to-route distance meets the minimum."""
        return spacing >= self.min_spacing

    def validate_wall(self, wall: float) -> bool:
        """Check if a wall between channels is thick enough to print."""
        return wall >= self.min_wall

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DRCRules":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        defaults = cls()
        for key, value in values.items():
            current = getattr(defaults, key)
            if isinstance(current, bool):
                values[key] = bool(value)
            elif isinstance(current, float):
                values[key] = float(value)
        return cls(**values)


# Pre-defined rule sets

DEFAULT_RULES = DRCRules(
    name="default",
    description="0.4mm nozzle, 0.2mm layers, 3-5mm copper tape",
    min_spacing=1.0,
    min_wall=0.8,
    nozzle_width=0.4,
    layer_height=0.2,
    min_bend_radius=2.0,
    min_pad_clearance=0.5,
)

FINE_NOZZLE = DRCRules(
    name="fine_nozzle",
    description="0.25mm nozzle for dense boards with narrow tape",
    min_spacing=0.6,
    min_wall=0.5,
    nozzle_width=0.25,
    layer_height=0.12,
    min_bend_radius=1.5,
    min_pad_clearance=0.4,
)

WIDE_TAPE = DRCRules(
    name="wide_tape",
    description="0.6mm nozzle, 5mm tape laid by hand",
    min_spacing=2.0,
    min_wall=1.2,
    nozzle_width=0.6,
    layer_height=0.3,
    min_bend_radius=5.0,
    min_pad_clearance=1.0,
)


# Rule set registry
RULESETS: Dict[str, DRCRules] = {
    "default": DEFAULT_RULES,
    "fine_nozzle": FINE_NOZZLE,
    "wide_tape": WIDE_TAPE,
}


def get_rules(name: str) -> DRCRules:
    """
    Get a DRC rule set by name.

    Args:
        name: Rule set identifier (e.g., "default")

    Returns:
        A copy of the registered DRCRules, safe to modify

    Raises:
        ValueError: If the rule set name is not found
    """
    if name not in RULESETS:
        available = ", ".join(sorted(RULESETS.keys()))
        raise ValueError(f"Unknown DRC rule set '{name}'. Available: {available}")
    return replace(RULESETS[name])


def list_rules() -> List[str]:
    """List all available rule set names."""
    return sorted(RULESETS.keys())
