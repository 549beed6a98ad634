"""Tape routing for tapeplace.

Routing pipeline per arrangement:
1. Obstacles: component keep-outs and expanded route envelopes in a spatial hash
2. A* grid search between the two pads of each connection
3. Fallbacks: Manhattan L/Z shapes, then a direct line
4. Post-processing: corner fillets at the tape's minimum bend radius
5. Conflict pass: re-route the shorter of each crossing pair once
"""

from .paths import (
    segment_intersects_polygon,
    route_intersects_obstacles,
    routes_intersect,
    manhattan_route,
    manhattan_route_with_avoidance,
    simplify_path,
    fillet_polyline,
    spline_route,
)
from .obstacles import (
    Obstacle,
    ObstacleMap,
    component_obstacle,
    component_obstacles,
    route_obstacle,
    build_obstacle_map,
)
from .astar_router import AStarRouter, RouterConfig, RoutingResult, astar_pathfind
from .auto_router import (
    SkippedConnection,
    RoutingReport,
    RoutingContext,
    connection_problem,
    order_connections,
    route_connection,
    route_all_connections,
    find_conflicts,
    resolve_conflicts,
    route_arrangement,
)

__all__ = [
    # Paths
    "segment_intersects_polygon",
    "route_intersects_obstacles",
    "routes_intersect",
    "manhattan_route",
    "manhattan_route_with_avoidance",
    "simplify_path",
    "fillet_polyline",
    "spline_route",
    # Obstacles
    "Obstacle",
    "ObstacleMap",
    "component_obstacle",
    "component_obstacles",
    "route_obstacle",
    "build_obstacle_map",
    # A* router
    "AStarRouter",
    "RouterConfig",
    "RoutingResult",
    "astar_pathfind",
    # Auto router
    "SkippedConnection",
    "RoutingReport",
    "RoutingContext",
    "connection_problem",
    "order_connections",
    "route_connection",
    "route_all_connections",
    "find_conflicts",
    "resolve_conflicts",
    "route_arrangement",
]
