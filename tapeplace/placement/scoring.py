"""
Placement scoring.

Estimates wiring quality from straight pad-to-pad lines: total length,
crossings, board utilization and left/right balance, folded into one
0-100 score (higher is better).
"""

import math
from typing import Iterable, List, Sequence, Tuple

from ..board.abstraction import ArrangementMetrics, Board, ComponentLookup, Connection
from ..catalog import get_footprint
from ..geometry import Vec2, distance, segments_intersect
from .bounds import PlacedComponent

# Score weights
ROUTE_WEIGHT = 0.4
CROSSING_WEIGHT = 0.3
UTILIZATION_WEIGHT = 0.15
SYMMETRY_WEIGHT = 0.15


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def estimate_wires(placement: Sequence[PlacedComponent],
                   connections: Iterable[Connection]) -> List[Tuple[Vec2, Vec2]]:
    """
    Straight pad-to-pad segments for every resolvable connection.

    Pad offsets are added unrotated; the estimate only has to rank
    placements against each other.
    """
    lookup = ComponentLookup(placement)
    wires = []
    for conn in connections:
        from_comp = lookup.get(conn.from_ref)
        to_comp = lookup.get(conn.to_ref)
        if from_comp is None or to_comp is None:
            continue

        fp1 = get_footprint(from_comp.type)
        fp2 = get_footprint(to_comp.type)
        if fp1 is None or fp2 is None:
            continue
        if not (0 <= conn.from_ref.pad_index < fp1.pad_count and
                0 <= conn.to_ref.pad_index < fp2.pad_count):
            continue

        pad1 = fp1.pads[conn.from_ref.pad_index].pos
        pad2 = fp2.pads[conn.to_ref.pad_index].pos
        wires.append(((from_comp.x + pad1[0], from_comp.y + pad1[1]),
                      (to_comp.x + pad2[0], to_comp.y + pad2[1])))
    return wires


def calculate_metrics(placement: Sequence[PlacedComponent],
                      connections: Iterable[Connection],
                      board: Board) -> ArrangementMetrics:
    """Length is rounded to whole mm, ratios to two decimals."""
    wires = estimate_wires(placement, connections)
    total_length = sum(distance(a, b) for a, b in wires)

    crossings = 0
    for i in range(len(wires)):
        for j in range(i + 1, len(wires)):
            if segments_intersect(wires[i][0], wires[i][1], wires[j][0], wires[j][1]):
                crossings += 1

    min_x, min_y, max_x, max_y = board.get_bounding_box()
    width = max_x - min_x
    board_area = width * (max_y - min_y)
    component_area = sum(p.bounds.area for p in placement)
    utilization = min(1.0, component_area / board_area) if board_area > 0 else 0.0

    center_x = (min_x + max_x) / 2
    avg_deviation = (sum(abs(p.x - center_x) for p in placement) / len(placement)
                     if placement else 0.0)
    symmetry = max(0.0, 1 - avg_deviation / (width / 4)) if width > 0 else 0.0

    return ArrangementMetrics(
        total_route_length=float(round_half_up(total_length)),
        route_crossings=crossings,
        board_utilization=_round2(utilization),
        symmetry_score=_round2(symmetry),
    )


def score_metrics(metrics: ArrangementMetrics) -> int:
    """Weighted 0-100 score; NaN or infinite inputs count as 0."""
    length = _finite(metrics.total_route_length)
    crossings = _finite(metrics.route_crossings)
    utilization = _finite(metrics.board_utilization)
    symmetry = _finite(metrics.symmetry_score)

    route_score = max(0.0, 100 - length / 10)
    crossing_score = max(0.0, 100 - crossings * 20)
    utilization_score = utilization * 50
    symmetry_score = symmetry * 30

    score = round_half_up(route_score * ROUTE_WEIGHT +
                          crossing_score * CROSSING_WEIGHT +
                          utilization_score * UTILIZATION_WEIGHT +
                          symmetry_score * SYMMETRY_WEIGHT)
    return min(100, max(0, score))


def score_arrangement(placement: Sequence[PlacedComponent],
                      connections: Iterable[Connection],
                      board: Board) -> Tuple[int, ArrangementMetrics]:
    metrics = calculate_metrics(placement, connections, board)
    return score_metrics(metrics), metrics
