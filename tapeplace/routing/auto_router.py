"""Auto router - turns connections into tape routes for one arrangement.

Flow per arrangement:
1. Order connections (power first, then shortest estimated run)
2. Route each one: A* on the grid, Manhattan L/Z fallback, direct line as
   the last resort; fillet the corners
3. Every finished route becomes an obstacle for the ones after it
4. One conflict pass: for each crossing pair found, re-route the shorter
   route against the components and all other routes

Connections whose endpoints cannot be resolved are reported as
SkippedConnection entries rather than dropped.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from ..board.abstraction import (
    Arrangement,
    Board,
    ChannelProfile,
    Component,
    ComponentLookup,
    Connection,
    Layer,
    Route,
)
from ..cancellation import CancellationToken
from ..geometry import Vec2
from .astar_router import AStarRouter, RouterConfig
from .obstacles import build_obstacle_map
from .paths import (
    fillet_polyline,
    manhattan_route,
    manhattan_route_with_avoidance,
    routes_intersect,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedConnection:
    """A connection the router could not attempt."""
    connection_id: str
    reason: str


@dataclass
class RoutingReport:
    """What happened while routing one arrangement."""
    routed: int = 0
    skipped: List[SkippedConnection] = field(default_factory=list)
    methods: Counter = field(default_factory=Counter)  # "astar" / "manhattan" / "direct"
    conflicts_found: int = 0
    rerouted: int = 0
    unresolved_conflicts: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.routed + len(self.skipped)

    @property
    def completion_rate(self) -> float:
        """Percentage of connections that got a route."""
        if self.total == 0:
            return 100.0
        return (self.routed / self.total) * 100


@dataclass
class RoutingContext:
    """Everything route_connection needs besides the connection itself."""
    components: Sequence[Component]
    board: Board
    config: RouterConfig = field(default_factory=RouterConfig)
    routes: List[Route] = field(default_factory=list)
    report: RoutingReport = field(default_factory=RoutingReport)
    token: Optional[CancellationToken] = None

    def __post_init__(self):
        self.lookup = ComponentLookup(self.components)


def connection_problem(conn: Connection, lookup: ComponentLookup) -> Optional[str]:
    """Why the connection's pads cannot be located, None if they can."""
    for side, ref in (("from", conn.from_ref), ("to", conn.to_ref)):
        problem = lookup.problem(ref)
        if problem:
            return f"{side}: {problem}"
    return None


def _endpoints(conn: Connection, lookup: ComponentLookup) -> Optional[Tuple[Vec2, Vec2]]:
    if connection_problem(conn, lookup) is not None:
        return None
    from_comp = lookup.get(conn.from_ref)
    to_comp = lookup.get(conn.to_ref)
    return (from_comp.pad_position(conn.from_ref.pad_index),
            to_comp.pad_position(conn.to_ref.pad_index))


def order_connections(connections: Iterable[Connection],
                      components: Sequence[Component]) -> List[Connection]:
    """Power connections first, then by Manhattan pad distance (stable).

    Unresolvable connections sort as infinitely long.
    """
    lookup = ComponentLookup(components)

    def estimate(conn: Connection) -> float:
        ends = _endpoints(conn, lookup)
        if ends is None:
            return math.inf
        (x1, y1), (x2, y2) = ends
        return abs(x2 - x1) + abs(y2 - y1)

    return sorted(connections, key=lambda c: (0 if c.is_power else 1, estimate(c)))


def _route_points(start: Vec2, end: Vec2, conn: Connection,
                  context: RoutingContext, others: Sequence[Route]) -> List[Vec2]:
    """Polyline from start to end, degrading A* -> Manhattan -> direct."""
    config = context.config
    exclude = {context.lookup.get(ref).id for ref in (conn.from_ref, conn.to_ref)}
    obstacles = build_obstacle_map(context.components, others,
                                   config.route_spacing, exclude=exclude)

    router = AStarRouter(obstacles, context.board.get_bounding_box(), config)
    result = router.find_path(start, end, context.token)
    if result.success:
        context.report.methods["astar"] += 1
        return result.path

    logger.warning(f"A* failed for {conn.id} ({result.failure_reason}); "
                   f"falling back to Manhattan routing")
    path = manhattan_route_with_avoidance(start, end, obstacles.polygons())
    if len(path) == 2 and len(manhattan_route(start, end)) == 3:
        logger.warning(f"No clear Manhattan route for {conn.id}; using a direct line")
        context.report.methods["direct"] += 1
    else:
        context.report.methods["manhattan"] += 1
    return path


def route_connection(conn: Connection, context: RoutingContext,
                     others: Optional[Sequence[Route]] = None) -> Optional[Route]:
    """
    Route one connection.

    Args:
        conn: Connection to route
        context: Components, board, config and the routes laid so far
        others: Routes to avoid; defaults to ``context.routes``

    Returns:
        The new Route, or None if its pads cannot be resolved
    """
    ends = _endpoints(conn, context.lookup)
    if ends is None:
        return None
    start, end = ends

    config = context.config
    path = _route_points(start, end, conn, context,
                         context.routes if others is None else others)
    polyline = fillet_polyline(path, config.min_bend_radius)

    return Route(
        net=conn.net_name or f"net_{conn.id}",
        polyline=tuple(polyline),
        width=config.route_width,
        layer=Layer(config.layer),
        profile=ChannelProfile(config.profile),
        depth=config.route_depth,
        connection_id=conn.id,
    )


def route_all_connections(components: Sequence[Component],
                          connections: Iterable[Connection],
                          board: Board,
                          config: Optional[RouterConfig] = None,
                          token: Optional[CancellationToken] = None) -> Tuple[List[Route], RoutingReport]:
    """Route every connection in order, each avoiding the ones before it."""
    context = RoutingContext(components=components, board=board,
                             config=config or RouterConfig(), token=token)

    for conn in order_connections(connections, components):
        problem = connection_problem(conn, context.lookup)
        if problem is not None:
            logger.warning(f"Skipping connection {conn.id}: {problem}")
            context.report.skipped.append(SkippedConnection(conn.id, problem))
            continue

        route = route_connection(conn, context)
        context.routes.append(route)
        context.report.routed += 1
        logger.debug(f"Routed {conn.id}: {len(route.polyline)} points, {route.length:.1f}mm")

    return context.routes, context.report


def find_conflicts(routes: Sequence[Route]) -> List[Tuple[int, int]]:
    """Index pairs (i < j) of routes that cross each other."""
    conflicts = []
    for i in range(len(routes)):
        for j in range(i + 1, len(routes)):
            if routes_intersect(routes[i].polyline, routes[j].polyline):
                conflicts.append((i, j))
    return conflicts


def resolve_conflicts(routes: Sequence[Route], connections: Iterable[Connection],
                      context: RoutingContext) -> List[Route]:
    """
    Single pass over the crossings present on entry.

    For each pair the shorter route (the second one on a tie) is re-routed
    against the components and every other current route. Crossings that a
    re-route introduces are not revisited; they end up in
    ``context.report.unresolved_conflicts``.
    """
    by_id = {conn.id: conn for conn in connections}
    current = list(routes)
    conflicts = find_conflicts(current)
    context.report.conflicts_found += len(conflicts)

    for i, j in conflicts:
        target = i if current[i].length < current[j].length else j
        conn = by_id.get(current[target].connection_id)
        if conn is None:
            logger.debug(f"No connection for route {target} ({current[target].net}); not re-routing")
            continue

        others = [r for k, r in enumerate(current) if k != target]
        rerouted = route_connection(conn, context, others)
        if rerouted is None:
            continue
        current[target] = rerouted
        context.report.rerouted += 1

    remaining = find_conflicts(current)
    context.report.unresolved_conflicts = [
        (current[i].connection_id or current[i].net, current[j].connection_id or current[j].net)
        for i, j in remaining
    ]
    if remaining:
        logger.warning(f"{len(remaining)} route crossings remain after conflict resolution")
    return current


def route_arrangement(arrangement: Arrangement, connections: Sequence[Connection],
                      board: Board, config: Optional[RouterConfig] = None,
                      token: Optional[CancellationToken] = None) -> Tuple[Arrangement, RoutingReport]:
    """
    Route an arrangement's connections.

    Returns:
        (copy of the arrangement carrying the routes, RoutingReport)
    """
    routes, report = route_all_connections(arrangement.components, connections,
                                           board, config, token)
    context = RoutingContext(components=arrangement.components, board=board,
                             config=config or RouterConfig(), report=report, token=token)
    routes = resolve_conflicts(routes, connections, context)

    logger.info(f"Routing complete: {report.routed}/{report.total} connections routed "
                f"({len(report.skipped)} skipped, {len(report.unresolved_conflicts)} crossings left)")
    return replace(arrangement, routes=routes), report
