"""Design rule presets for printed tape boards."""

from .profiles import DRCRules, get_rules, list_rules, DEFAULT_RULES, FINE_NOZZLE, WIDE_TAPE

__all__ = ["DRCRules", "get_rules", "list_rules", "DEFAULT_RULES", "FINE_NOZZLE", "WIDE_TAPE"]
