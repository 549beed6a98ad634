"""Spatial hash of routing obstacles.

Obstacles are polygons (component outlines, expanded route envelopes)
with a cached axis-aligned bounding box. The hash only narrows a query
down to candidates; the exact test is point-in-polygon.

Obstacles are deliberately coarse: a route blocks its whole bounding box
and a component without an outline blocks the box around its pads.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..board.abstraction import Component, Route
from ..catalog import get_footprint
from ..geometry import Vec2, bounding_box, point_in_polygon, rect_polygon

# Padding around pad centres when a footprint has no outline (mm)
PAD_OBSTACLE_MARGIN = 2.0


@dataclass(frozen=True)
class Obstacle:
    """A polygon that routes must not enter."""
    polygon: Tuple[Vec2, ...]
    kind: str = "generic"  # "component", "route"
    ref: Optional[str] = None  # Component id or connection id

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        return bounding_box(self.polygon) or (0.0, 0.0, 0.0, 0.0)

    def contains_point(self, x: float, y: float) -> bool:
        min_x, min_y, max_x, max_y = self.bbox
        if x < min_x or x > max_x or y < min_y or y > max_y:
            return False
        return point_in_polygon((x, y), self.polygon)


@dataclass
class ObstacleMap:
    """Grid-based spatial hash over obstacle bounding boxes.

    Cell size should be a few times the typical query size; 10 mm suits
    tape-scale boards.
    """
    cell_size: float = 10.0
    cells: Dict[Tuple[int, int], List[Obstacle]] = field(default_factory=dict)
    obstacles: List[Obstacle] = field(default_factory=list)

    def _get_cells_for_rect(self, min_x: float, min_y: float,
                            max_x: float, max_y: float) -> Set[Tuple[int, int]]:
        start_x = int(math.floor(min_x / self.cell_size))
        end_x = int(math.floor(max_x / self.cell_size))
        start_y = int(math.floor(min_y / self.cell_size))
        end_y = int(math.floor(max_y / self.cell_size))
        return {(cx, cy)
                for cx in range(start_x, end_x + 1)
                for cy in range(start_y, end_y + 1)}

    def add(self, obstacle: Obstacle):
        """Add obstacle to index."""
        if len(obstacle.polygon) < 3:
            return
        for cell in self._get_cells_for_rect(*obstacle.bbox):
            self.cells.setdefault(cell, []).append(obstacle)
        self.obstacles.append(obstacle)

    def extend(self, obstacles: Iterable[Obstacle]):
        for obstacle in obstacles:
            self.add(obstacle)

    def query_rect(self, min_x: float, min_y: float,
                   max_x: float, max_y: float) -> List[Obstacle]:
        """Obstacles whose cells overlap the rectangle (candidates only)."""
        candidates = []
        seen = set()
        for cell in self._get_cells_for_rect(min_x, min_y, max_x, max_y):
            for obs in self.cells.get(cell, ()):
                if id(obs) in seen:
                    continue
                seen.add(id(obs))
                candidates.append(obs)
        return candidates

    def is_blocked(self, x: float, y: float, margin: float = 0.0) -> bool:
        """
        True if the point, or any corner of the square of half-size
        ``margin`` around it, lies inside an obstacle.
        """
        test_points = [(x, y),
                       (x - margin, y - margin), (x + margin, y - margin),
                       (x - margin, y + margin), (x + margin, y + margin)]
        for obs in self.query_rect(x - margin, y - margin, x + margin, y + margin):
            for px, py in test_points:
                if obs.contains_point(px, py):
                    return True
        return False

    def polygons(self) -> List[Tuple[Vec2, ...]]:
        return [obs.polygon for obs in self.obstacles]

    def __len__(self) -> int:
        return len(self.obstacles)

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(self.obstacles)


def component_obstacle(component: Component) -> Optional[Obstacle]:
    """
    Keep-out polygon for a placed component, in world coordinates.

    Uses the footprint outline when it has at least three points, else the
    box around the pad centres padded by 2 mm. Components with neither
    yield None.
    """
    footprint = get_footprint(component.type)
    if footprint is not None and footprint.outline and len(footprint.outline) >= 3:
        local: Sequence[Vec2] = footprint.outline
    else:
        box = bounding_box([pad.pos for pad in component.pads])
        if box is None:
            return None
        local = rect_polygon(box[0] - PAD_OBSTACLE_MARGIN, box[1] - PAD_OBSTACLE_MARGIN,
                             box[2] + PAD_OBSTACLE_MARGIN, box[3] + PAD_OBSTACLE_MARGIN)

    polygon = tuple(component.world_point(p) for p in local)
    return Obstacle(polygon=polygon, kind="component", ref=component.id)


def component_obstacles(components: Iterable[Component],
                        exclude: Iterable[str] = ()) -> List[Obstacle]:
    """Obstacles for every component whose id is not in ``exclude``."""
    skip = set(exclude)
    result = []
    for comp in components:
        if comp.id in skip:
            continue
        obstacle = component_obstacle(comp)
        if obstacle is not None:
            result.append(obstacle)
    return result


def route_obstacle(route: Route, spacing: float) -> Optional[Obstacle]:
    """Bounding box of a route grown by half its width plus half the spacing."""
    box = bounding_box(route.polyline)
    if box is None:
        return None
    pad = route.width / 2 + spacing / 2
    polygon = rect_polygon(box[0] - pad, box[1] - pad, box[2] + pad, box[3] + pad)
    return Obstacle(polygon=polygon, kind="route", ref=route.connection_id or route.net)


def build_obstacle_map(components: Iterable[Component], routes: Iterable[Route],
                       spacing: float, exclude: Iterable[str] = (),
                       cell_size: float = 10.0) -> ObstacleMap:
    """Hash every component (minus ``exclude``) and route into one map."""
    obstacle_map = ObstacleMap(cell_size=cell_size)
    obstacle_map.extend(component_obstacles(components, exclude))
    for route in routes:
        obstacle = route_obstacle(route, spacing)
        if obstacle is not None:
            obstacle_map.add(obstacle)
    return obstacle_map
