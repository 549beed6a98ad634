"""
Polyline construction for tape routes.

Manhattan L/Z shapes, collinear simplification, corner filleting and
Catmull-Rom smoothing. Everything here works on plain point lists and
obstacle polygons; the grid search lives in ``astar_router``.
"""

import math
from typing import List, Sequence

from ..geometry import (
    Vec2,
    polyline_length,
    segments_intersect,
    snap_point,
    vertex_angle,
)

Polygon = Sequence[Vec2]

# Corners straighter than this (radians short of pi) are left alone
STRAIGHT_TOLERANCE = 0.1

__all__ = [
    "snap_point",
    "polyline_length",
    "segments_intersect",
    "segment_intersects_polygon",
    "route_intersects_obstacles",
    "routes_intersect",
    "manhattan_route",
    "manhattan_route_with_avoidance",
    "simplify_path",
    "fillet_polyline",
    "spline_route",
]


def segment_intersects_polygon(p1: Vec2, p2: Vec2, polygon: Polygon) -> bool:
    """True if the segment strictly crosses any edge of the polygon."""
    n = len(polygon)
    for i in range(n):
        if segments_intersect(p1, p2, polygon[i], polygon[(i + 1) % n]):
            return True
    return False


def route_intersects_obstacles(route: Sequence[Vec2], obstacles: Sequence[Polygon]) -> bool:
    for i in range(len(route) - 1):
        for polygon in obstacles:
            if segment_intersects_polygon(route[i], route[i + 1], polygon):
                return True
    return False


def routes_intersect(a: Sequence[Vec2], b: Sequence[Vec2]) -> bool:
    """True if any segment of one polyline strictly crosses a segment of the other."""
    for i in range(len(a) - 1):
        for j in range(len(b) - 1):
            if segments_intersect(a[i], a[i + 1], b[j], b[j + 1]):
                return True
    return False


def manhattan_route(start: Vec2, end: Vec2, horizontal_first: bool = True) -> List[Vec2]:
    """
    L-shaped route with a single 90 degree bend.

    Nearly aligned endpoints (less than 1 mm apart on either axis) get a
    straight two-point route instead.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]

    if abs(dx) < 1 or abs(dy) < 1:
        return [start, end]

    if horizontal_first:
        return [start, (end[0], start[1]), end]
    return [start, (start[0], end[1]), end]


def manhattan_route_with_avoidance(start: Vec2, end: Vec2,
                                   obstacles: Sequence[Polygon]) -> List[Vec2]:
    """
    Cheap obstacle-aware Manhattan route.

    Tries both L shapes (the shorter one when both are clear), then a Z
    through the x midpoint, then a Z through the y midpoint. When every
    candidate is blocked the direct line is returned.
    """
    route1 = manhattan_route(start, end, True)
    route2 = manhattan_route(start, end, False)

    valid1 = not route_intersects_obstacles(route1, obstacles)
    valid2 = not route_intersects_obstacles(route2, obstacles)

    if valid1 and valid2:
        return route1 if polyline_length(route1) <= polyline_length(route2) else route2
    if valid1:
        return route1
    if valid2:
        return route2

    mid_x = (start[0] + end[0]) / 2
    mid_y = (start[1] + end[1]) / 2
    z_route1 = [start, (mid_x, start[1]), (mid_x, end[1]), end]
    z_route2 = [start, (start[0], mid_y), (end[0], mid_y), end]

    if not route_intersects_obstacles(z_route1, obstacles):
        return z_route1
    if not route_intersects_obstacles(z_route2, obstacles):
        return z_route2

    return [start, end]


def simplify_path(path: Sequence[Vec2], tolerance: float = 1e-9) -> List[Vec2]:
    """Drop interior points that continue in the same direction."""
    if len(path) < 3:
        return list(path)

    simplified = [path[0]]
    for i in range(1, len(path) - 1):
        prev = simplified[-1]
        curr = path[i]
        nxt = path[i + 1]

        dx1, dy1 = curr[0] - prev[0], curr[1] - prev[1]
        dx2, dy2 = nxt[0] - curr[0], nxt[1] - curr[1]

        cross = dx1 * dy2 - dy1 * dx2
        dot = dx1 * dx2 + dy1 * dy2
        if abs(cross) <= tolerance and dot > 0:
            continue
        simplified.append(curr)

    simplified.append(path[-1])
    return simplified


def _unit(x: float, y: float) -> Vec2:
    mag = math.hypot(x, y)
    return (x / mag, y / mag)


def _arc_points(p0: Vec2, p1: Vec2, p2: Vec2, radius: float) -> List[Vec2]:
    """
    Arc tangent to p0-p1 and p1-p2 replacing the corner at p1.

    The tangent length is clamped to half of each adjacent segment so that
    neighbouring fillets never overlap; the radius shrinks to match.
    """
    angle = vertex_angle(p0, p1, p2)
    if angle is None or angle < 1e-6 or angle >= math.pi - STRAIGHT_TOLERANCE:
        return [p1]

    half = angle / 2
    tangent = radius / math.tan(half)
    tangent = min(tangent,
                  math.hypot(p0[0] - p1[0], p0[1] - p1[1]) / 2,
                  math.hypot(p2[0] - p1[0], p2[1] - p1[1]) / 2)
    r = tangent * math.tan(half)
    if r <= 1e-9:
        return [p1]

    u1 = _unit(p0[0] - p1[0], p0[1] - p1[1])
    u2 = _unit(p2[0] - p1[0], p2[1] - p1[1])
    bisector = _unit(u1[0] + u2[0], u1[1] + u2[1])
    centre_dist = r / math.sin(half)
    cx = p1[0] + bisector[0] * centre_dist
    cy = p1[1] + bisector[1] * centre_dist

    t1 = (p1[0] + u1[0] * tangent, p1[1] + u1[1] * tangent)
    t2 = (p1[0] + u2[0] * tangent, p1[1] + u2[1] * tangent)
    a1 = math.atan2(t1[1] - cy, t1[0] - cx)
    a2 = math.atan2(t2[1] - cy, t2[0] - cx)
    sweep = a2 - a1
    while sweep > math.pi:
        sweep -= 2 * math.pi
    while sweep < -math.pi:
        sweep += 2 * math.pi

    turn = math.pi - angle
    segments = max(3, int(math.floor(turn * 8 / math.pi)))

    points = [t1]
    for i in range(1, segments):
        a = a1 + sweep * i / segments
        points.append((cx + r * math.cos(a), cy + r * math.sin(a)))
    points.append(t2)
    return points


def fillet_polyline(points: Sequence[Vec2], min_bend_radius: float) -> List[Vec2]:
    """
    Round every sharp corner of a polyline into an arc.

    Corners within 0.1 rad of straight, zero-length segments and a zero
    radius leave the vertex as is. The first and last points are never moved.
    """
    if len(points) < 3 or min_bend_radius <= 0:
        return list(points)

    filleted = [points[0]]
    for i in range(1, len(points) - 1):
        filleted.extend(_arc_points(points[i - 1], points[i], points[i + 1], min_bend_radius))
    filleted.append(points[-1])
    return filleted


def spline_route(control_points: Sequence[Vec2], segments_per_curve: int = 10) -> List[Vec2]:
    """
    Catmull-Rom spline through every control point.

    Phantom points mirrored past each end keep the curve's end tangents
    along the first and last segments. Two or fewer points are returned
    unchanged.
    """
    if len(control_points) <= 2:
        return list(control_points)

    first, second = control_points[0], control_points[1]
    last, before_last = control_points[-1], control_points[-2]
    points = ([(2 * first[0] - second[0], 2 * first[1] - second[1])] +
              list(control_points) +
              [(2 * last[0] - before_last[0], 2 * last[1] - before_last[1])])

    result: List[Vec2] = []
    for i in range(1, len(points) - 2):
        p0, p1, p2, p3 = points[i - 1], points[i], points[i + 1], points[i + 2]
        for j in range(segments_per_curve):
            t = j / segments_per_curve
            t2 = t * t
            t3 = t2 * t
            result.append(tuple(
                0.5 * (2 * p1[k] +
                       (-p0[k] + p2[k]) * t +
                       (2 * p0[k] - 5 * p1[k] + 4 * p2[k] - p3[k]) * t2 +
                       (-p0[k] + 3 * p1[k] - 3 * p2[k] + p3[k]) * t3)
                for k in (0, 1)))

    result.append(control_points[-1])
    return result
