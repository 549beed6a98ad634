"""
Component bounds and collision tests for placement.

A PlacedComponent carries its footprint bounds relative to its own
position, computed at its rotation. The padded AABB test in
``check_overlap`` is the only notion of collision the placer uses.
"""

from dataclasses import dataclass, replace
from typing import List, Tuple

from ..catalog import Footprint
from ..geometry import BBox, Vec2, rotate_point

GRID_SIZE = 2.54  # Standard 0.1" pitch in mm
COMPONENT_SPACING = 5.0  # Min spacing between components (mm)
BOARD_MARGIN = 10.0  # Min distance from board edge (mm)

# Fallback pad diameter for bounds when a pad states no size
DEFAULT_PAD_SIZE = 2.0


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box relative to a component's position."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Vec2:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)


# Used when a footprint has no pads, holes or outline
DEFAULT_BOUNDS = Bounds(-2.0, -2.0, 2.0, 2.0)


def calculate_component_bounds(footprint: Footprint, rotation: float = 0.0) -> Bounds:
    """
    Bounds of a footprint at the origin with the given rotation (degrees).

    Pads contribute squares of side (dia or width or 2), holes squares of
    their diameter, and the outline its vertices. The points are rotated
    and their AABB taken.
    """
    points: List[Vec2] = []

    for pad in footprint.pads:
        x, y = pad.pos
        r = (pad.dia or pad.width or DEFAULT_PAD_SIZE) / 2
        points.extend([(x - r, y - r), (x + r, y + r)])

    for hole in footprint.holes:
        x, y = hole.pos
        r = hole.dia / 2
        points.extend([(x - r, y - r), (x + r, y + r)])

    if footprint.outline:
        points.extend(footprint.outline)

    if not points:
        return DEFAULT_BOUNDS

    rotated = [rotate_point(p, rotation) for p in points]
    xs = [p[0] for p in rotated]
    ys = [p[1] for p in rotated]
    return Bounds(min(xs), min(ys), max(xs), max(ys))


@dataclass
class PlacedComponent:
    """Working placement record for one component instance."""
    id: str
    type: str
    x: float
    y: float
    rotation: float
    bounds: Bounds

    @property
    def position(self) -> Vec2:
        return (self.x, self.y)

    def world_bounds(self) -> BBox:
        return (self.bounds.min_x + self.x, self.bounds.min_y + self.y,
                self.bounds.max_x + self.x, self.bounds.max_y + self.y)

    def copy(self) -> "PlacedComponent":
        return replace(self)


def check_overlap(a: PlacedComponent, b: PlacedComponent,
                  spacing: float = COMPONENT_SPACING) -> bool:
    """True when the boxes come closer than ``spacing`` on both axes."""
    a_min_x, a_min_y, a_max_x, a_max_y = a.world_bounds()
    b_min_x, b_min_y, b_max_x, b_max_y = b.world_bounds()

    return not (a_max_x + spacing < b_min_x or
                b_max_x + spacing < a_min_x or
                a_max_y + spacing < b_min_y or
                b_max_y + spacing < a_min_y)


def find_overlaps(placement: List[PlacedComponent],
                  spacing: float = COMPONENT_SPACING) -> List[Tuple[str, str]]:
    """All overlapping (id, id) pairs, in index order."""
    pairs = []
    for i in range(len(placement)):
        for j in range(i + 1, len(placement)):
            if check_overlap(placement[i], placement[j], spacing):
                pairs.append((placement[i].id, placement[j].id))
    return pairs
