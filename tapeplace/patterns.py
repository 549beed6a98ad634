"""
Component Classification Patterns

Loads the keyword heuristics used to classify component types (roles,
signal-flow columns, power sources, controllers, heights) from a YAML
configuration file, so detection can be tuned without touching code.
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple
from pathlib import Path
import yaml

from .exceptions import CatalogError


class ComponentPatterns:
    """
    Manager for component classification patterns.

    Loads patterns from component_patterns.yaml by default, but allows
    users to provide custom configuration files.
    """

    REQUIRED_SECTIONS = [
        'role_keywords',
        'flow_keywords',
        'control_output_keywords',
        'controller_keywords',
        'analog_pin_pattern',
        'power_source_keywords',
        'ic_keywords',
        'mechanical_prefixes',
        'component_heights',
    ]

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize pattern manager.

        Args:
            config_path: Optional path to custom patterns YAML file.
                        If None, uses default component_patterns.yaml.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "component_patterns.yaml"

        self.config_path = Path(config_path)
        self._config: Dict = {}
        self._analog_re: Optional[Pattern] = None
        self._load_config()

    def _load_config(self):
        """Load patterns from YAML configuration file."""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Pattern configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r') as f:
            self._config = yaml.safe_load(f) or {}

        missing = [s for s in self.REQUIRED_SECTIONS if s not in self._config]
        if missing:
            raise CatalogError(
                f"Configuration file missing required sections: {missing}",
                context={"file": str(self.config_path)},
            )

        self._analog_re = re.compile(self._config['analog_pin_pattern'])

    # ==========================================================================
    # Classification keywords
    # ==========================================================================

    @property
    def role_keywords(self) -> Dict[str, List[str]]:
        """Role name -> keywords, in priority order."""
        return self._config.get('role_keywords', {})

    @property
    def flow_keywords(self) -> Dict[str, List[str]]:
        """Signal-flow column -> keywords ('input', 'output')."""
        return self._config.get('flow_keywords', {})

    @property
    def control_output_keywords(self) -> List[str]:
        return self._config.get('control_output_keywords', [])

    @property
    def controller_keywords(self) -> List[str]:
        return self._config.get('controller_keywords', [])

    @property
    def power_source_keywords(self) -> List[str]:
        return self._config.get('power_source_keywords', [])

    @property
    def ic_keywords(self) -> List[str]:
        return self._config.get('ic_keywords', [])

    @property
    def mechanical_prefixes(self) -> List[str]:
        return self._config.get('mechanical_prefixes', [])

    @property
    def default_supply_voltage(self) -> float:
        return float(self._config.get('default_supply_voltage', 5.0))

    @property
    def component_heights(self) -> List[Tuple[str, float]]:
        return [(str(p), float(h)) for p, h in self._config.get('component_heights', [])]

    # ==========================================================================
    # Matchers
    # ==========================================================================

    @staticmethod
    def matches_any(component_type: str, keywords: List[str]) -> bool:
        """Case-insensitive substring match against a keyword list."""
        lower = component_type.lower()
        return any(k in lower for k in keywords)

    def is_analog_pin(self, pin_name: str) -> bool:
        return bool(self._analog_re.search(pin_name))

    def is_mechanical(self, component_type: str) -> bool:
        return any(component_type.startswith(p) for p in self.mechanical_prefixes)

    def is_power_source(self, component_type: str) -> bool:
        return self.matches_any(component_type, self.power_source_keywords)

    def is_ic(self, component_type: str) -> bool:
        return self.matches_any(component_type, self.ic_keywords)

    def is_controller(self, component_type: str) -> bool:
        return self.matches_any(component_type, self.controller_keywords)

    def is_control_output(self, component_type: str) -> bool:
        return self.matches_any(component_type, self.control_output_keywords)

    def power_net_name(self, voltage: float) -> str:
        """Net name for a supply rail at the given voltage."""
        for level, name in self._config.get('power_net_names', {}).items():
            if abs(float(level) - voltage) < 1e-6:
                return str(name)
        return "VCC"

    def height_for(self, component_type: str) -> float:
        """Default height above the board for a component type."""
        for pattern, height in self.component_heights:
            if pattern in component_type:
                return height
        return float(self._config.get('default_height', 5))

    def reload(self):
        """Reload configuration from file (useful during development)."""
        self._load_config()


# Global instance for convenience
_default_patterns: Optional[ComponentPatterns] = None


def get_patterns(config_path: Optional[str] = None) -> ComponentPatterns:
    """
    Get component patterns instance.

    Args:
        config_path: Optional path to custom patterns file.
                    If None, uses cached default instance.

    Returns:
        ComponentPatterns instance
    """
    global _default_patterns

    if config_path is not None:
        return ComponentPatterns(config_path)

    if _default_patterns is None:
        _default_patterns = ComponentPatterns()

    return _default_patterns
