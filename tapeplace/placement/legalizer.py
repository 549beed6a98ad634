"""
Placement Legalizer

Makes a strategy's raw placement free of overlaps before
optimization starts, since the annealer only ever rejects moves that
create overlaps and cannot repair a placement that starts with them.

Two passes:
1. Clamp - pull every component's box inside the board margin
2. Relocate - largest box first, move each component that overlaps one
   already settled to the first free bottom-left scan position
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..board.abstraction import Board
from .bounds import PlacedComponent, check_overlap, find_overlaps
from .strategies import PlacementConfig, find_compact_position

logger = logging.getLogger(__name__)


@dataclass
class LegalizationResult:
    """Result of a legalization pass."""
    clamped: int = 0  # components pulled inside the margin
    relocated: int = 0  # components moved to clear an overlap
    final_overlaps: int = 0  # overlapping pairs left afterwards
    unresolved: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.final_overlaps == 0


class PlacementLegalizer:
    """
    Removes boundary and overlap violations from a placement.

    The input list is never modified; ``legalize`` returns new records.
    """

    def __init__(self, board: Board, config: Optional[PlacementConfig] = None):
        self.board = board
        self.config = config or PlacementConfig()
        self.board_box = board.get_bounding_box()

    def legalize(self, placement: List[PlacedComponent]) -> Tuple[List[PlacedComponent], LegalizationResult]:
        """
        Run both passes.

        Returns:
            (legalized placement, LegalizationResult)
        """
        result = LegalizationResult()
        working = [p.copy() for p in placement]

        for comp in working:
            if self._clamp_to_bounds(comp):
                result.clamped += 1

        # Largest first so big parts keep their spot and small ones move
        spacing = self.config.component_spacing
        settled: List[PlacedComponent] = []
        for comp in sorted(working, key=lambda p: -p.bounds.area):
            if any(check_overlap(comp, other, spacing) for other in settled):
                comp.x, comp.y = find_compact_position(settled, comp.bounds, self.board_box, self.config)
                result.relocated += 1
                logger.debug(f"Relocated {comp.id} to ({comp.x:.2f}, {comp.y:.2f})")
            settled.append(comp)

        result.unresolved = find_overlaps(working, spacing)
        result.final_overlaps = len(result.unresolved)

        if result.final_overlaps:
            logger.warning(f"Legalization left {result.final_overlaps} overlapping pairs "
                           f"(board too small for {len(working)} components?)")
        else:
            logger.debug(f"Legalization: {result.clamped} clamped, {result.relocated} relocated")

        return working, result

    def clamp_range(self, comp: PlacedComponent) -> Tuple[float, float, float, float]:
        """Allowed (lo_x, hi_x, lo_y, hi_y) for a component's position."""
        min_x, min_y, max_x, max_y = self.board_box
        margin = self.config.board_margin
        b = comp.bounds
        return (min_x + margin - b.min_x, max_x - margin - b.max_x,
                min_y + margin - b.min_y, max_y - margin - b.max_y)

    def _clamp_to_bounds(self, comp: PlacedComponent) -> bool:
        """Clamp and re-snap a position; True if it moved."""
        lo_x, hi_x, lo_y, hi_y = self.clamp_range(comp)
        new_x = self._clamp_axis(comp.x, lo_x, hi_x)
        new_y = self._clamp_axis(comp.y, lo_y, hi_y)
        moved = abs(new_x - comp.x) > 1e-9 or abs(new_y - comp.y) > 1e-9
        comp.x, comp.y = new_x, new_y
        return moved

    def _clamp_axis(self, value: float, lo: float, hi: float) -> float:
        if lo > hi:
            # Wider than the usable area: pin to the near edge
            return lo
        if lo <= value <= hi:
            return value

        clamped = min(max(value, lo), hi)
        snapped = self.config.snap(clamped)
        grid = self.config.grid_size
        if snapped < lo:
            snapped += grid
        elif snapped > hi:
            snapped -= grid
        return snapped if lo <= snapped <= hi else clamped


def legalize_placement(placement: List[PlacedComponent], board: Board,
                       config: Optional[PlacementConfig] = None) -> Tuple[List[PlacedComponent], LegalizationResult]:
    """Convenience wrapper around PlacementLegalizer."""
    return PlacementLegalizer(board, config).legalize(placement)
