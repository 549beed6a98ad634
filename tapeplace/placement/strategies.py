"""
Initial Placement Strategies

Five deterministic ways to lay components out before optimization:
grid, compact, symmetric, flow and radial. Each takes the expanded
component list and the board and returns one PlacedComponent per
component whose type has a footprint; unknown types are skipped.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..board.abstraction import Board
from ..catalog import Footprint, get_footprint
from ..geometry import BBox, snap_value
from ..patterns import get_patterns
from .bounds import (
    BOARD_MARGIN,
    COMPONENT_SPACING,
    GRID_SIZE,
    Bounds,
    PlacedComponent,
    calculate_component_bounds,
    check_overlap,
)

logger = logging.getLogger(__name__)

STRATEGIES = ("grid", "compact", "symmetric", "flow", "radial")


@dataclass
class PlacementConfig:
    """Spacing rules shared by the placement strategies."""
    grid_size: float = GRID_SIZE  # Positions snap to this pitch (mm)
    component_spacing: float = COMPONENT_SPACING  # Min gap between bounds (mm)
    board_margin: float = BOARD_MARGIN  # Keep-out along the board edge (mm)

    # Compact strategy
    compact_step: float = GRID_SIZE * 2  # Scan step of the bottom-left search

    # Radial strategy
    radial_step: float = 8.0  # Radius added per component (mm)
    radial_inset: float = 15.0  # Extra inset from the margin for the max radius

    def snap(self, value: float) -> float:
        return snap_value(value, self.grid_size)


def _with_footprints(components: Sequence) -> List[Tuple[object, Footprint]]:
    resolved = []
    for comp in components:
        footprint = get_footprint(comp.type)
        if footprint is None:
            logger.warning(f"No footprint for {comp.type} ({comp.id}), not placed")
            continue
        resolved.append((comp, footprint))
    return resolved


def place_grid(components: Sequence, board: Board,
               config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """Rows left to right from the top-left margin, wrapping at the right margin."""
    config = config or PlacementConfig()
    min_x, min_y, max_x, _ = board.get_bounding_box()
    margin = config.board_margin
    spacing = config.component_spacing

    placed: List[PlacedComponent] = []
    current_x = min_x + margin
    current_y = min_y + margin
    row_height = 0.0
    row_count = 0

    for comp, footprint in _with_footprints(components):
        bounds = calculate_component_bounds(footprint, 0)

        if row_count and current_x + bounds.width > max_x - margin:
            current_x = min_x + margin
            current_y += row_height + spacing
            row_height = 0.0
            row_count = 0

        # Left and top edges of the box land on the cursor
        placed.append(PlacedComponent(
            id=comp.id,
            type=comp.type,
            x=config.snap(current_x - bounds.min_x),
            y=config.snap(current_y - bounds.min_y),
            rotation=0.0,
            bounds=bounds,
        ))

        current_x += bounds.width + spacing
        row_height = max(row_height, bounds.height)
        row_count += 1

    return placed


def _scan_count(start: float, extent: float, limit: float, step: float) -> int:
    """Scan positions along one axis; at least one when the box is too big to fit."""
    if start + extent > limit:
        return 1
    return int((limit - start - extent) / step + 1e-9) + 1


def find_compact_position(placed: List[PlacedComponent], bounds: Bounds,
                          board_box: BBox, config: PlacementConfig) -> Tuple[float, float]:
    """
    Bottom-left search: scan rows top to bottom, then columns left to
    right, for the first position whose box fits inside the margin and
    clears every placed component. An axis the box is too big for is
    pinned to the near margin and the other axis is still scanned.
    Falls back to the start position.
    """
    min_x, min_y, max_x, max_y = board_box
    margin = config.board_margin
    step = config.compact_step

    start_x = min_x + margin - bounds.min_x
    start_y = min_y + margin - bounds.min_y
    candidate = PlacedComponent(id="", type="", x=0.0, y=0.0, rotation=0.0, bounds=bounds)

    rows = _scan_count(start_y, bounds.max_y, max_y - margin, step)
    cols = _scan_count(start_x, bounds.max_x, max_x - margin, step)
    for row in range(rows):
        candidate.y = config.snap(start_y + row * step)
        for col in range(cols):
            candidate.x = config.snap(start_x + col * step)
            if not any(check_overlap(candidate, p, config.component_spacing) for p in placed):
                return (candidate.x, candidate.y)

    return (config.snap(start_x), config.snap(start_y))


def place_compact(components: Sequence, board: Board,
                  config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """Largest first, each at its first free bottom-left position."""
    config = config or PlacementConfig()
    board_box = board.get_bounding_box()

    sized = [(comp, calculate_component_bounds(fp, 0)) for comp, fp in _with_footprints(components)]
    sized.sort(key=lambda item: -item[1].area)

    placed: List[PlacedComponent] = []
    for comp, bounds in sized:
        x, y = find_compact_position(placed, bounds, board_box, config)
        placed.append(PlacedComponent(id=comp.id, type=comp.type, x=x, y=y,
                                      rotation=0.0, bounds=bounds))
    return placed


def place_symmetric(components: Sequence, board: Board,
                    config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """
    Consecutive pairs mirrored about the vertical centre line.

    Box centres sit at centre -/+ (w/2 + spacing); an odd last component
    is centred on the line. Rows stack downward from the top margin.
    """
    config = config or PlacementConfig()
    min_x, min_y, max_x, _ = board.get_bounding_box()
    center_x = (min_x + max_x) / 2
    spacing = config.component_spacing

    resolved = _with_footprints(components)
    placed: List[PlacedComponent] = []
    current_y = min_y + config.board_margin

    i = 0
    while i < len(resolved):
        comp, footprint = resolved[i]
        bounds = calculate_component_bounds(footprint, 0)

        if i + 1 < len(resolved):
            comp2, footprint2 = resolved[i + 1]
            bounds2 = calculate_component_bounds(footprint2, 0)
            left_center = center_x - (bounds.width / 2 + spacing)
            right_center = center_x + (bounds2.width / 2 + spacing)

            placed.append(PlacedComponent(
                id=comp.id, type=comp.type,
                x=config.snap(left_center - bounds.center[0]),
                y=config.snap(current_y - bounds.min_y),
                rotation=0.0, bounds=bounds,
            ))
            placed.append(PlacedComponent(
                id=comp2.id, type=comp2.type,
                x=config.snap(right_center - bounds2.center[0]),
                y=config.snap(current_y - bounds2.min_y),
                rotation=0.0, bounds=bounds2,
            ))
            current_y += max(bounds.height, bounds2.height) + spacing
            i += 2
        else:
            placed.append(PlacedComponent(
                id=comp.id, type=comp.type,
                x=config.snap(center_x - bounds.center[0]),
                y=config.snap(current_y - bounds.min_y),
                rotation=0.0, bounds=bounds,
            ))
            current_y += bounds.height + spacing
            i += 1

    return placed


def flow_column(component_type: str) -> int:
    """Signal-flow column: 0 input, 1 processing, 2 output."""
    patterns = get_patterns()
    flow = patterns.flow_keywords
    if patterns.matches_any(component_type, flow.get("input", [])):
        return 0
    if patterns.matches_any(component_type, flow.get("output", [])):
        return 2
    return 1


def place_flow(components: Sequence, board: Board,
               config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """Three columns, input | processing | output, each stacked from the top."""
    config = config or PlacementConfig()
    min_x, min_y, max_x, _ = board.get_bounding_box()
    margin = config.board_margin
    col_width = ((max_x - min_x) - 2 * margin) / 3

    columns: List[List[Tuple[object, Footprint]]] = [[], [], []]
    for comp, footprint in _with_footprints(components):
        columns[flow_column(comp.type)].append((comp, footprint))

    placed: List[PlacedComponent] = []
    for col, members in enumerate(columns):
        center_x = min_x + margin + col * col_width + col_width / 2
        current_y = min_y + margin
        for comp, footprint in members:
            bounds = calculate_component_bounds(footprint, 0)
            placed.append(PlacedComponent(
                id=comp.id, type=comp.type,
                x=config.snap(center_x - bounds.center[0]),
                y=config.snap(current_y - bounds.min_y),
                rotation=0.0, bounds=bounds,
            ))
            current_y += bounds.height + config.component_spacing

    return placed


def place_radial(components: Sequence, board: Board,
                 config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """Evenly spaced on a circle around the board centre, starting at the top.

    Each component is turned to face outward; its bounds are taken at
    that rotation.
    """
    config = config or PlacementConfig()
    min_x, min_y, max_x, max_y = board.get_bounding_box()
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2

    resolved = _with_footprints(components)
    count = len(resolved)
    if count == 0:
        return []

    max_radius = min(max_x - min_x, max_y - min_y) / 2 - config.board_margin - config.radial_inset
    radius = max(0.0, min(max_radius, count * config.radial_step))

    placed: List[PlacedComponent] = []
    for i, (comp, footprint) in enumerate(resolved):
        angle = 2 * math.pi * i / count - math.pi / 2
        rotation = float(math.floor(math.degrees(angle) + 90 + 0.5) % 360)
        placed.append(PlacedComponent(
            id=comp.id, type=comp.type,
            x=config.snap(center_x + radius * math.cos(angle)),
            y=config.snap(center_y + radius * math.sin(angle)),
            rotation=rotation,
            bounds=calculate_component_bounds(footprint, rotation),
        ))

    return placed


STRATEGY_FUNCTIONS: Dict[str, Callable[..., List[PlacedComponent]]] = {
    "grid": place_grid,
    "compact": place_compact,
    "symmetric": place_symmetric,
    "flow": place_flow,
    "radial": place_radial,
}


def place_components(strategy: str, components: Sequence, board: Board,
                     config: Optional[PlacementConfig] = None) -> List[PlacedComponent]:
    """Run one named strategy.

    Raises:
        ValueError: If the strategy name is unknown
    """
    try:
        place = STRATEGY_FUNCTIONS[strategy]
    except KeyError:
        raise ValueError(f"Unknown placement strategy '{strategy}'. "
                         f"Available: {', '.join(STRATEGIES)}") from None
    return place(components, board, config)
