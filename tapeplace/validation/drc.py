"""
DRC (Design Rule Check) for tape boards

Geometric checks over a Project's routes, components and vias. Findings
are returned as data; nothing here raises for a failing design.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..board.abstraction import Component, Project, Route
from ..dfm.profiles import DRCRules
from ..geometry import Vec2, distance, point_in_polygon, point_to_polyline_distance, vertex_angle
from ..patterns import get_patterns

logger = logging.getLogger(__name__)

VIOLATION_TYPES = ("spacing", "wall", "bend", "pad", "overhang", "collision", "overlap")


@dataclass
class Violation:
    """A DRC violation."""
    type: str  # one of VIOLATION_TYPES
    message: str
    position: Vec2  # mm coordinates
    severity: str = "error"  # "error", "warning"
    items: List[str] = field(default_factory=list)  # Affected component/pad/net ids

    def to_dict(self):
        return {
            "type": self.type,
            "message": self.message,
            "position": [round(self.position[0], 3), round(self.position[1], 3)],
            "severity": self.severity,
            "items": list(self.items),
        }


def min_vertex_distance(route1: Route, route2: Route) -> float:
    """Closest approach between the two routes' vertices (not segments)."""
    best = math.inf
    for p1 in route1.polyline:
        for p2 in route2.polyline:
            best = min(best, distance(p1, p2))
    return best


def required_bend_radius(angle: float, tape_width: float) -> float:
    """Heuristic: the sharper the corner, the larger the radius the tape needs."""
    return tape_width * (1 + math.pi / (angle + 0.1))


def estimate_component_size(component: Component) -> float:
    """Pad spread plus a 4 mm margin, at least 5 mm across."""
    if not component.pads:
        return 5.0
    xs = [p.pos[0] for p in component.pads]
    ys = [p.pos[1] for p in component.pads]
    return max(max(xs) - min(xs), max(ys) - min(ys), 5.0) + 4


def _midpoint(a: Vec2, b: Vec2) -> Vec2:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def _route_name(route: Route) -> str:
    return route.connection_id or route.net


class DRCChecker:
    """Design rule checker for a tape project."""

    def __init__(self, project: Project, rules: Optional[DRCRules] = None):
        self.project = project
        self.rules = rules or project.rules
        self.violations: List[Violation] = []

    def run_checks(self) -> Tuple[bool, List[Violation]]:
        """
        Run all DRC checks.

        Returns:
            (passed, violations) - passed is True if no errors
        """
        self.violations = []

        self._check_min_spacing()
        self._check_wall_thickness()
        self._check_bend_radius()
        self._check_pad_clearance()
        self._check_overhangs()
        self._check_hole_collisions()
        self._check_via_overlap()
        self._check_unconnected_pads()
        self._check_power_connections()
        self._check_component_overlap()

        passed = not any(v.severity == "error" for v in self.violations)
        errors = sum(1 for v in self.violations if v.severity == "error")
        logger.info(f"DRC: {errors} errors, {len(self.violations) - errors} warnings")
        return (passed, self.violations)

    def _route_pairs(self):
        routes = self.project.routes
        for i in range(len(routes)):
            for j in range(i + 1, len(routes)):
                yield routes[i], routes[j]

    def _check_min_spacing(self):
        """Routes whose vertices come closer than min_spacing."""
        min_spacing = self.rules.min_spacing
        for route1, route2 in self._route_pairs():
            if not route1.polyline or not route2.polyline:
                continue
            dist = min_vertex_distance(route1, route2)
            if not self.rules.validate_spacing(dist):
                self.violations.append(Violation(
                    type="spacing",
                    message=f"Routes too close: {dist:.2f}mm (min: {min_spacing}mm)",
                    position=_midpoint(route1.polyline[0], route2.polyline[0]),
                    severity="error",
                    items=[_route_name(route1), _route_name(route2)],
                ))

    def _check_wall_thickness(self):
        """Printed wall left between two channels.

        The wall is the vertex distance minus both half widths.
        """
        min_wall = self.rules.min_wall
        for route1, route2 in self._route_pairs():
            if not route1.polyline or not route2.polyline:
                continue
            wall = min_vertex_distance(route1, route2) - (route1.width + route2.width) / 2
            if not self.rules.validate_wall(wall):
                self.violations.append(Violation(
                    type="wall",
                    message=f"Wall too thin: {wall:.2f}mm (min: {min_wall}mm)",
                    position=_midpoint(route1.polyline[0], route2.polyline[0]),
                    severity="error",
                    items=[_route_name(route1), _route_name(route2)],
                ))

    def _check_bend_radius(self):
        min_radius = self.rules.min_bend_radius
        for route in self.project.routes:
            points = route.polyline
            for i in range(1, len(points) - 1):
                angle = vertex_angle(points[i - 1], points[i], points[i + 1])
                if angle is None:
                    continue
                required = required_bend_radius(angle, route.width)
                if required > min_radius:
                    self.violations.append(Violation(
                        type="bend",
                        message=(f"Bend too sharp: requires {required:.2f}mm radius "
                                 f"(min: {min_radius}mm)"),
                        position=points[i],
                        severity="warning",
                        items=[_route_name(route)],
                    ))

    def _check_pad_clearance(self):
        """Routes passing too close to a pad.

        With ``exempt_route_endpoints`` set, a route is not checked against
        the pad it starts or ends on.
        """
        clearance = self.rules.min_pad_clearance
        exempt = self.rules.exempt_route_endpoints
        for component in self.project.components:
            for pad in component.pads:
                pad_pos = component.world_point(pad.pos)
                radius = pad.radius(1.0)

                for route in self.project.routes:
                    if not route.polyline:
                        continue
                    if exempt and any(distance(end, pad_pos) <= radius
                                      for end in (route.polyline[0], route.polyline[-1])):
                        continue

                    dist = point_to_polyline_distance(pad_pos, route.polyline)
                    if dist < clearance + radius:
                        self.violations.append(Violation(
                            type="pad",
                            message=(f"Route too close to pad {pad.id}: {dist:.2f}mm "
                                     f"(min: {clearance}mm)"),
                            position=pad_pos,
                            severity="error",
                            items=[pad.id, _route_name(route)],
                        ))

    def _check_overhangs(self):
        """Route points outside the board outline."""
        boundary = self.project.board.boundary
        if len(boundary) < 3:
            logger.warning("Board boundary has fewer than 3 points; skipping overhang check")
            return

        for route in self.project.routes:
            for point in route.polyline:
                if not point_in_polygon(point, boundary):
                    self.violations.append(Violation(
                        type="overhang",
                        message="Route extends beyond board boundary",
                        position=point,
                        severity="error",
                        items=[_route_name(route)],
                    ))

    def _check_hole_collisions(self):
        """Component holes and vias closer than their combined radii."""
        holes: List[Tuple[Vec2, float, str]] = []
        for component in self.project.components:
            for hole in component.holes:
                holes.append((component.world_point(hole.pos), hole.dia, component.id))
        for idx, via in enumerate(self.project.vias):
            holes.append((via.pos, via.dia, f"via_{idx}"))

        for i in range(len(holes)):
            for j in range(i + 1, len(holes)):
                pos1, dia1, ref1 = holes[i]
                pos2, dia2, ref2 = holes[j]
                dist = distance(pos1, pos2)
                min_dist = (dia1 + dia2) / 2
                if dist < min_dist:
                    self.violations.append(Violation(
                        type="collision",
                        message=f"Holes collide: {dist:.2f}mm apart (min: {min_dist:.2f}mm)",
                        position=pos1,
                        severity="error",
                        items=[ref1, ref2],
                    ))

    def _check_via_overlap(self):
        """Every via should sit under some tape."""
        for idx, via in enumerate(self.project.vias):
            covered = any(
                point_to_polyline_distance(via.pos, route.polyline) < route.width / 2
                for route in self.project.routes
            )
            if not covered:
                self.violations.append(Violation(
                    type="overlap",
                    message="Via not connected to any tape route",
                    position=via.pos,
                    severity="warning",
                    items=[f"via_{idx}"],
                ))

    def _check_unconnected_pads(self):
        patterns = get_patterns()
        for component in self.project.components:
            if patterns.is_mechanical(component.type):
                continue

            for pad_idx, pad in enumerate(component.pads):
                pad_pos = component.world_point(pad.pos)
                radius = pad.radius(1.5)
                connected = any(
                    point_to_polyline_distance(pad_pos, route.polyline) < radius + route.width / 2 + 1
                    for route in self.project.routes
                )
                if not connected:
                    self.violations.append(Violation(
                        type="pad",
                        message=(f"Unconnected pad on {component.type} (pad {pad_idx + 1}) "
                                 f"- may need a trace"),
                        position=pad_pos,
                        severity="warning",
                        items=[pad.id],
                    ))

    def _check_power_connections(self):
        """ICs need a power source, and a power source needs a route."""
        patterns = get_patterns()
        components = self.project.components
        power = [c for c in components if patterns.is_power_source(c.type)]
        ics = [c for c in components if patterns.is_ic(c.type)]

        if ics and not power:
            self.violations.append(Violation(
                type="pad",
                message=("ICs/MCUs detected but no power source (regulator/barrel connector) "
                         "- add power input"),
                position=ics[0].position,
                severity="warning",
                items=[c.id for c in ics],
            ))

        for comp in power:
            routed = any(
                point_to_polyline_distance(comp.world_point(pad.pos), route.polyline) < 3
                for pad in comp.pads
                for route in self.project.routes
            )
            if not routed:
                self.violations.append(Violation(
                    type="pad",
                    message=(f"Power component {comp.type} has no connections "
                             f"- route power to other components"),
                    position=comp.position,
                    severity="warning",
                    items=[comp.id],
                ))

    def _check_component_overlap(self):
        """Coarse centre-distance test between every pair of components."""
        components = self.project.components
        for i in range(len(components)):
            for j in range(i + 1, len(components)):
                c1, c2 = components[i], components[j]
                dist = distance(c1.position, c2.position)
                min_dist = (estimate_component_size(c1) + estimate_component_size(c2)) / 2 + 2
                if dist < min_dist:
                    self.violations.append(Violation(
                        type="collision",
                        message=f"Components overlap: {c1.type} and {c2.type} - move them apart",
                        position=_midpoint(c1.position, c2.position),
                        severity="error",
                        items=[c1.id, c2.id],
                    ))

    def get_summary(self) -> str:
        """Get summary of DRC results."""
        if not self.violations:
            return "DRC passed with no violations."

        errors = sum(1 for v in self.violations if v.severity == "error")
        warnings = sum(1 for v in self.violations if v.severity == "warning")

        lines = [
            f"DRC: {errors} errors, {warnings} warnings",
            "",
        ]

        for v in self.violations:
            prefix = "[ERROR]" if v.severity == "error" else "[WARN]"
            lines.append(f"{prefix} {v.type}: {v.message} at ({v.position[0]:.1f}, {v.position[1]:.1f})")

        return "\n".join(lines)


def run_drc_checks(project: Project, rules: Optional[DRCRules] = None) -> List[Violation]:
    """Run every check and return the violations in check order."""
    _, violations = DRCChecker(project, rules).run_checks()
    return violations
