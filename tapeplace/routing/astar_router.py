"""A* grid router for copper tape channels.

Searches a 4-connected grid over the board's bounding box, so every route
it produces is Manhattan before filleting. Nodes are integer grid
indices, which keeps hashing exact regardless of the pitch.

The search is iterative over an explicit heap. The goal node is exempt
from the obstacle test so a route can always land on its target pad.
"""

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..cancellation import CancellationToken
from ..geometry import BBox, Vec2, polyline_length
from .obstacles import Obstacle, ObstacleMap
from .paths import simplify_path

logger = logging.getLogger(__name__)

GridNode = Tuple[int, int]


@dataclass
class RouterConfig:
    """Configuration for tape routing."""
    # Tape channel
    route_width: float = 5.0   # Tape width in mm
    route_depth: float = 0.8   # Channel depth in mm
    route_spacing: float = 3.0  # Clearance kept between routes in mm
    layer: str = "top"
    profile: str = "U"

    # A* parameters
    grid_size: float = 2.5      # Search pitch in mm
    max_iterations: int = 10000  # Heap pops per connection before giving up

    # Post-processing
    min_bend_radius: float = 5.0  # Corner fillet radius in mm

    @property
    def clearance(self) -> float:
        """Distance from a node to the corners tested against obstacles."""
        return self.route_width / 2 + 1


@dataclass
class RoutingResult:
    """Result of one point-to-point search."""
    success: bool
    path: List[Vec2] = field(default_factory=list)
    iterations: int = 0
    explored_count: int = 0
    total_length: float = 0.0
    failure_reason: str = ""


class AStarRouter:
    """A* pathfinding over an ObstacleMap.

    Args:
        obstacles: Spatial hash of everything the route must avoid
        bounds: (min_x, min_y, max_x, max_y) the search may not leave
        config: Router configuration
    """

    def __init__(self, obstacles: ObstacleMap, bounds: BBox,
                 config: Optional[RouterConfig] = None):
        self.obstacles = obstacles
        self.bounds = bounds
        self.config = config or RouterConfig()

        g = self.config.grid_size
        min_x, min_y, max_x, max_y = bounds
        # Grid index range that stays inside the bounds
        self._ix_range = (math.ceil(min_x / g), math.floor(max_x / g))
        self._iy_range = (math.ceil(min_y / g), math.floor(max_y / g))

    def _to_node(self, point: Vec2) -> GridNode:
        g = self.config.grid_size
        ix = math.floor(point[0] / g + 0.5)
        iy = math.floor(point[1] / g + 0.5)
        ix = max(self._ix_range[0], min(self._ix_range[1], ix))
        iy = max(self._iy_range[0], min(self._iy_range[1], iy))
        return (ix, iy)

    def _to_point(self, node: GridNode) -> Vec2:
        g = self.config.grid_size
        return (node[0] * g, node[1] * g)

    def _in_bounds(self, node: GridNode) -> bool:
        return (self._ix_range[0] <= node[0] <= self._ix_range[1] and
                self._iy_range[0] <= node[1] <= self._iy_range[1])

    def _is_blocked(self, node: GridNode) -> bool:
        x, y = self._to_point(node)
        return self.obstacles.is_blocked(x, y, self.config.clearance)

    def find_path(self, start: Vec2, end: Vec2,
                  token: Optional[CancellationToken] = None) -> RoutingResult:
        """
        Route between two points.

        Start and end are snapped to the grid (and clamped into the bounds)
        for the search. When a pad centre is off-grid it is added back as
        the first or last point so the route still lands on the pad.
        """
        start_node = self._to_node(start)
        goal = self._to_node(end)

        def heuristic(node: GridNode) -> int:
            return abs(node[0] - goal[0]) + abs(node[1] - goal[1])

        # Costs are counted in grid steps
        open_set = [(heuristic(start_node), 0, start_node)]
        g_scores: Dict[GridNode, int] = {start_node: 0}
        came_from: Dict[GridNode, GridNode] = {}
        closed: Set[GridNode] = set()

        iterations = 0
        while open_set:
            if iterations >= self.config.max_iterations:
                return RoutingResult(
                    success=False,
                    iterations=iterations,
                    explored_count=len(closed),
                    failure_reason=f"Max iterations ({self.config.max_iterations}) exceeded",
                )
            if token is not None and token.tick():
                return RoutingResult(
                    success=False,
                    iterations=iterations,
                    explored_count=len(closed),
                    failure_reason="Cancelled",
                )
            iterations += 1

            _, current_g, current = heapq.heappop(open_set)
            if current in closed:
                continue

            if current == goal:
                path = self._finish_path(self._reconstruct_path(came_from, current), start, end)
                return RoutingResult(
                    success=True,
                    path=path,
                    iterations=iterations,
                    explored_count=len(closed),
                    total_length=polyline_length(path),
                )

            closed.add(current)

            for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                neighbor = (current[0] + dx, current[1] + dy)
                if neighbor in closed or not self._in_bounds(neighbor):
                    continue
                if neighbor != goal and self._is_blocked(neighbor):
                    continue

                tentative_g = current_g + 1
                if neighbor in g_scores and tentative_g >= g_scores[neighbor]:
                    continue

                g_scores[neighbor] = tentative_g
                came_from[neighbor] = current
                heapq.heappush(open_set, (tentative_g + heuristic(neighbor), tentative_g, neighbor))

        return RoutingResult(
            success=False,
            iterations=iterations,
            explored_count=len(closed),
            failure_reason="No path found (open set exhausted)",
        )

    def _reconstruct_path(self, came_from: Dict[GridNode, GridNode],
                          current: GridNode) -> List[Vec2]:
        nodes = [current]
        while current in came_from:
            current = came_from[current]
            nodes.append(current)
        nodes.reverse()
        return [self._to_point(n) for n in nodes]

    def _finish_path(self, path: List[Vec2], start: Vec2, end: Vec2) -> List[Vec2]:
        path = simplify_path(path)
        if _differs(path[0], start):
            path.insert(0, (start[0], start[1]))
        if _differs(path[-1], end):
            path.append((end[0], end[1]))
        return path


def _differs(a: Vec2, b: Vec2, tol: float = 1e-9) -> bool:
    return abs(a[0] - b[0]) > tol or abs(a[1] - b[1]) > tol


def astar_pathfind(start: Vec2, end: Vec2,
                   obstacles: Sequence[Sequence[Vec2]],
                   bounds: BBox,
                   grid_size: float = 2.5,
                   route_width: float = 5.0,
                   max_iterations: int = 10000,
                   token: Optional[CancellationToken] = None) -> Optional[List[Vec2]]:
    """
    Functional wrapper: route around plain polygons.

    Returns:
        The simplified path, or None when no path was found
    """
    obstacle_map = ObstacleMap()
    obstacle_map.extend(Obstacle(polygon=tuple(p)) for p in obstacles)
    config = RouterConfig(route_width=route_width, grid_size=grid_size,
                          max_iterations=max_iterations)
    result = AStarRouter(obstacle_map, bounds, config).find_path(start, end, token)
    if not result.success:
        logger.debug(f"A* failed: {result.failure_reason}")
        return None
    return result.path
