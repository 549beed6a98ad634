"""Placement engine for tapeplace.

- Strategies: grid, compact, symmetric, signal flow, radial
- PlacementLegalizer: clamp into the margin and clear overlaps
- PlacementAnnealer: simulated annealing on the wiring score
- PlacementEngine: runs all of the above per strategy and ranks the results
"""

from .bounds import (
    GRID_SIZE,
    COMPONENT_SPACING,
    BOARD_MARGIN,
    Bounds,
    PlacedComponent,
    calculate_component_bounds,
    check_overlap,
    find_overlaps,
)
from .strategies import (
    STRATEGIES,
    PlacementConfig,
    place_grid,
    place_compact,
    place_symmetric,
    place_flow,
    place_radial,
    place_components,
    find_compact_position,
    flow_column,
)
from .legalizer import PlacementLegalizer, LegalizationResult, legalize_placement
from .scoring import calculate_metrics, score_metrics, score_arrangement
from .annealing import AnnealingConfig, AnnealingResult, PlacementAnnealer, optimize_placement
from .engine import (
    STRATEGY_LABELS,
    PlacementEngine,
    bind_connections,
    generate_placements,
    placed_to_components,
)

__all__ = [
    # Bounds
    "GRID_SIZE",
    "COMPONENT_SPACING",
    "BOARD_MARGIN",
    "Bounds",
    "PlacedComponent",
    "calculate_component_bounds",
    "check_overlap",
    "find_overlaps",
    # Strategies
    "STRATEGIES",
    "PlacementConfig",
    "place_grid",
    "place_compact",
    "place_symmetric",
    "place_flow",
    "place_radial",
    "place_components",
    "find_compact_position",
    "flow_column",
    # Legalizer
    "PlacementLegalizer",
    "LegalizationResult",
    "legalize_placement",
    # Scoring
    "calculate_metrics",
    "score_metrics",
    "score_arrangement",
    # Optimizer
    "AnnealingConfig",
    "AnnealingResult",
    "PlacementAnnealer",
    "optimize_placement",
    # Engine
    "STRATEGY_LABELS",
    "PlacementEngine",
    "bind_connections",
    "generate_placements",
    "placed_to_components",
]
