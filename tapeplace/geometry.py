"""
Planar geometry helpers shared by placement, routing and rule checking.

Coordinates are millimetres in a y-down board frame. Rotations passed to
these helpers are in degrees; the angle helpers return radians.
"""

import math
from typing import Optional, Sequence, Tuple

Vec2 = Tuple[float, float]
BBox = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)


def distance(p1: Vec2, p2: Vec2) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def rotate_point(point: Vec2, angle_deg: float) -> Vec2:
    """Rotate a point about the origin."""
    if not angle_deg:
        return (point[0], point[1])
    rad = math.radians(angle_deg)
    cos_r, sin_r = math.cos(rad), math.sin(rad)
    return (point[0] * cos_r - point[1] * sin_r,
            point[0] * sin_r + point[1] * cos_r)


def transform_point(point: Vec2, offset: Vec2, rotation_deg: float = 0.0) -> Vec2:
    """Rotate a local point, then translate it by offset."""
    rx, ry = rotate_point(point, rotation_deg)
    return (offset[0] + rx, offset[1] + ry)


def snap_value(value: float, grid: float) -> float:
    """Snap to the nearest grid line, halves rounding up."""
    if grid <= 0:
        return value
    return math.floor(value / grid + 0.5) * grid


def snap_point(point: Vec2, grid: float) -> Vec2:
    return (snap_value(point[0], grid), snap_value(point[1], grid))


def polyline_length(points: Sequence[Vec2]) -> float:
    """Sum of segment lengths."""
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def orientation(a: Vec2, b: Vec2, c: Vec2) -> float:
    """Signed area test: which side of line a->b the point c lies on."""
    return (c[0] - a[0]) * (b[1] - a[1]) - (b[0] - a[0]) * (c[1] - a[1])


def segments_intersect(p1: Vec2, p2: Vec2, q1: Vec2, q2: Vec2) -> bool:
    """
    Strict segment crossing test.

    Segments that merely touch (shared endpoint, T-junction, collinear
    overlap) do not count as intersecting.
    """
    d1 = orientation(q1, q2, p1)
    d2 = orientation(q1, q2, p2)
    d3 = orientation(p1, p2, q1)
    d4 = orientation(p1, p2, q2)

    return (((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and
            ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0)))


def point_in_polygon(point: Vec2, polygon: Sequence[Vec2]) -> bool:
    """Ray casting algorithm for point-in-polygon test.

    Casts a ray from the point to the right and counts edge crossings.
    Odd number of crossings = inside, even = outside. Polygons with fewer
    than 3 vertices contain nothing.
    """
    n = len(polygon)
    if n < 3:
        return False

    x, y = point
    inside = False
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def point_to_segment_distance(point: Vec2, a: Vec2, b: Vec2) -> float:
    """Shortest distance from a point to the segment a-b."""
    sx = b[0] - a[0]
    sy = b[1] - a[1]
    seg_len_sq = sx * sx + sy * sy

    if seg_len_sq < 1e-12:
        # Degenerate segment (point)
        return distance(point, a)

    t = ((point[0] - a[0]) * sx + (point[1] - a[1]) * sy) / seg_len_sq
    t = max(0.0, min(1.0, t))
    return distance(point, (a[0] + t * sx, a[1] + t * sy))


def point_to_polyline_distance(point: Vec2, polyline: Sequence[Vec2]) -> float:
    """Distance to the nearest segment of a polyline (inf when empty)."""
    if not polyline:
        return math.inf
    if len(polyline) == 1:
        return distance(point, polyline[0])
    return min(point_to_segment_distance(point, polyline[i], polyline[i + 1])
               for i in range(len(polyline) - 1))


def vertex_angle(p0: Vec2, p1: Vec2, p2: Vec2) -> Optional[float]:
    """
    Angle at p1 between the segments to p0 and p2, in radians.

    Pi means the path runs straight through p1. Returns None when either
    segment has zero length.
    """
    v1x, v1y = p0[0] - p1[0], p0[1] - p1[1]
    v2x, v2y = p2[0] - p1[0], p2[1] - p1[1]
    mag1 = math.hypot(v1x, v1y)
    mag2 = math.hypot(v2x, v2y)
    if mag1 < 1e-9 or mag2 < 1e-9:
        return None
    cos_a = (v1x * v2x + v1y * v2y) / (mag1 * mag2)
    return math.acos(max(-1.0, min(1.0, cos_a)))


def polygon_area(polygon: Sequence[Vec2]) -> float:
    """Area using the shoelace formula."""
    n = len(polygon)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += polygon[i][0] * polygon[j][1]
        area -= polygon[j][0] * polygon[i][1]

    return abs(area) / 2


def bounding_box(points: Sequence[Vec2]) -> Optional[BBox]:
    """Axis-aligned bounding box of a point set, None when empty."""
    if not points:
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def rect_polygon(min_x: float, min_y: float, max_x: float, max_y: float) -> Tuple[Vec2, ...]:
    """Counter-clockwise rectangle as a 4-vertex polygon."""
    return ((min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y))
