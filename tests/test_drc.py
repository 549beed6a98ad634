"""
Tests for the design rule checker.

Tests cover:
- Route spacing and wall thickness
- Bend radius warnings
- Pad clearance (endpoint exemption off by default) and unconnected pads
- Board overhangs
- Hole / via collisions and via coverage
- Power source warnings and component overlap
- Summary formatting
"""

import logging
import math

import pytest

from tapeplace.board.abstraction import Board, Component, Hole, Pad, Project, Route, Via
from tapeplace.dfm.profiles import DRCRules, get_rules
from tapeplace.validation import (
    DRCChecker,
    estimate_component_size,
    required_bend_radius,
    run_drc_checks,
)


def _types(violations):
    return [v.type for v in violations]


def _messages(violations, prefix):
    return [v for v in violations if v.message.startswith(prefix)]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def routed_resistor(board, resistor_component) -> Project:
    """A resistor with a tape leaving its left pad downwards."""
    route = Route(net="R_LEFT", polyline=((45.0, 30.0), (45.0, 50.0)), width=1.0,
                  connection_id="r_left")
    return Project(name="Resistor", board=board, components=[resistor_component], routes=[route])


# =============================================================================
# Spacing and Walls
# =============================================================================

class TestSpacing:
    """Tests for route-to-route spacing and printed walls."""

    def test_parallel_routes_too_close(self, parallel_routes_project):
        """3 mm apart with a 5 mm minimum: one spacing error, one wall error."""
        passed, violations = DRCChecker(parallel_routes_project).run_checks()

        assert not passed
        assert _types(violations) == ["spacing", "wall"]

        spacing = violations[0]
        assert spacing.message == "Routes too close: 3.00mm (min: 5.0mm)"
        assert spacing.severity == "error"
        assert spacing.items == ["a", "b"]
        assert spacing.position == (10.0, 11.5)

    def test_wall_is_gap_minus_half_widths(self, parallel_routes_project):
        """Two 5 mm tapes with centres 3 mm apart leave a -2 mm wall."""
        violations = run_drc_checks(parallel_routes_project)
        wall = violations[1]
        assert wall.message == "Wall too thin: -2.00mm (min: 0.8mm)"

    def test_explicit_rules_override_project(self, parallel_routes_project):
        """The default 1 mm spacing passes; the wall still fails."""
        violations = run_drc_checks(parallel_routes_project, get_rules("default"))
        assert _types(violations) == ["wall"]

    def test_far_apart_routes_pass(self, board):
        project = Project(board=board, routes=[
            Route(net="A", polyline=((10, 10), (50, 10)), width=3.0),
            Route(net="B", polyline=((10, 40), (50, 40)), width=3.0),
        ])
        checker = DRCChecker(project)
        passed, violations = checker.run_checks()
        assert passed
        assert violations == []
        assert checker.get_summary() == "DRC passed with no violations."

    def test_limits_come_from_rule_validators(self, board, monkeypatch):
        """Exactly at the limits passes; the rules' validators decide."""
        rules = DRCRules(name="edge", min_spacing=3.0, min_wall=2.0)
        project = Project(board=board, rules=rules, routes=[
            Route(net="A", polyline=((10.0, 10.0), (50.0, 10.0)), width=1.0),
            Route(net="B", polyline=((10.0, 13.0), (50.0, 13.0)), width=1.0),
        ])
        assert run_drc_checks(project) == []

        monkeypatch.setattr(rules, "validate_spacing", lambda spacing: False)
        monkeypatch.setattr(rules, "validate_wall", lambda wall: False)
        assert _types(run_drc_checks(project)) == ["spacing", "wall"]


# =============================================================================
# Bends
# =============================================================================

class TestBendRadius:
    """Tests for the bend heuristic."""

    def test_sharper_needs_more(self):
        assert required_bend_radius(0.5, 5.0) > required_bend_radius(math.pi / 2, 5.0)
        assert abs(required_bend_radius(math.pi / 2, 5.0) - 14.40) < 0.01

    def test_right_angle_warns(self, board):
        route = Route(net="L", polyline=((10, 10), (30, 10), (30, 30)), width=1.0)
        violations = run_drc_checks(Project(board=board, routes=[route]))
        assert _types(violations) == ["bend"]
        assert violations[0].severity == "warning"
        assert violations[0].position == (30.0, 10.0)

    def test_thin_straight_run_ok(self, board):
        """A collinear vertex on 1 mm tape needs under 2 mm of radius."""
        route = Route(net="S", polyline=((10, 10), (20, 10), (30, 10)), width=1.0)
        assert run_drc_checks(Project(board=board, routes=[route])) == []


# =============================================================================
# Pads
# =============================================================================

class TestPads:
    """Tests for pad clearance and unconnected pads."""

    def test_route_ending_on_pad_is_checked(self, routed_resistor):
        """Every route counts against every pad, including the one it ends on."""
        violations = run_drc_checks(routed_resistor)
        close = _messages(violations, "Route too close")
        assert [v.items for v in close] == [["comp_0_resistor_th.0", "r_left"]]
        assert close[0].message == "Route too close to pad comp_0_resistor_th.0: 0.00mm (min: 0.5mm)"

    def test_endpoint_exemption_opt_in(self, routed_resistor):
        """With the exemption on, only the far pad is reported, as unconnected."""
        rules = DRCRules(exempt_route_endpoints=True)
        violations = run_drc_checks(routed_resistor, rules)
        assert _messages(violations, "Route too close") == []

        unconnected = _messages(violations, "Unconnected pad")
        assert len(unconnected) == 1
        assert unconnected[0].message == "Unconnected pad on resistor_th (pad 2) - may need a trace"
        assert unconnected[0].items == ["comp_0_resistor_th.1"]
        assert unconnected[0].severity == "warning"

    def test_pad_under_route_start(self, board):
        """A 2 mm pad with a tape starting on its centre is one clearance error."""
        pad_comp = Component(id="p", type="led_th", position=(50.0, 30.0),
                             pads=[Pad(id="p.0", pos=(0.0, 0.0), dia=2.0)])
        route = Route(net="P", polyline=((50.0, 30.0), (80.0, 30.0)), width=1.0)
        violations = run_drc_checks(Project(board=board, components=[pad_comp], routes=[route]))
        assert len(_messages(violations, "Route too close to pad p.0")) == 1

    def test_route_passing_pads(self, board, resistor_component):
        """A tape 1 mm from both pads, ending on neither, violates clearance twice."""
        route = Route(net="X", polyline=((40.0, 31.0), (60.0, 31.0)), width=1.0)
        project = Project(board=board, components=[resistor_component], routes=[route])

        close = _messages(run_drc_checks(project), "Route too close to pad")
        assert [v.items[0] for v in close] == ["comp_0_resistor_th.0", "comp_0_resistor_th.1"]
        assert all(v.severity == "error" for v in close)
        assert close[0].message == "Route too close to pad comp_0_resistor_th.0: 1.00mm (min: 0.5mm)"

    def test_magnets_not_reported(self, board):
        magnet = Component(id="m", type="magnet_3x1", position=(20.0, 20.0),
                           pads=[Pad(id="m.0", pos=(0.0, 0.0))])
        violations = run_drc_checks(Project(board=board, components=[magnet]))
        assert _messages(violations, "Unconnected pad") == []


# =============================================================================
# Overhangs
# =============================================================================

class TestOverhang:
    """Tests for routes leaving the board."""

    def test_point_outside_board(self, board):
        route = Route(net="O", polyline=((90.0, 30.0), (110.0, 30.0)), width=1.0)
        violations = run_drc_checks(Project(board=board, routes=[route]))
        assert _types(violations) == ["overhang"]
        assert violations[0].position == (110.0, 30.0)
        assert violations[0].message == "Route extends beyond board boundary"

    def test_no_outline_skips_check(self, caplog):
        route = Route(net="O", polyline=((90.0, 30.0), (110.0, 30.0)), width=1.0)
        with caplog.at_level(logging.WARNING):
            violations = run_drc_checks(Project(board=Board(), routes=[route]))
        assert violations == []
        assert "fewer than 3 points" in caplog.text


# =============================================================================
# Holes and Vias
# =============================================================================

class TestHolesAndVias:
    """Tests for hole collisions and via coverage."""

    def test_magnet_holes_collide(self, board):
        magnets = [
            Component(id="m1", type="magnet_6x2", position=(20.0, 20.0),
                      holes=[Hole(pos=(0.0, 0.0), dia=6.1)]),
            Component(id="m2", type="magnet_6x2", position=(25.0, 20.0),
                      holes=[Hole(pos=(0.0, 0.0), dia=6.1)]),
        ]
        violations = run_drc_checks(Project(board=board, components=magnets))

        holes = _messages(violations, "Holes collide")
        assert len(holes) == 1
        assert holes[0].type == "collision"
        assert holes[0].items == ["m1", "m2"]
        assert holes[0].message == "Holes collide: 5.00mm apart (min: 6.10mm)"

    def test_via_hits_hole(self, board):
        magnet = Component(id="m1", type="magnet_6x2", position=(20.0, 20.0),
                           holes=[Hole(pos=(0.0, 0.0), dia=6.1)])
        project = Project(board=board, components=[magnet], vias=[Via(pos=(20.0, 24.0))])
        holes = _messages(run_drc_checks(project), "Holes collide")
        assert holes[0].items == ["m1", "via_0"]

    def test_uncovered_via_warns(self, board):
        """Only the via off the tape is reported."""
        route = Route(net="A", polyline=((10, 10), (50, 10)), width=5.0)
        project = Project(board=board, routes=[route],
                          vias=[Via(pos=(30.0, 10.0)), Via(pos=(30.0, 40.0))])
        violations = run_drc_checks(project)
        assert _types(violations) == ["overlap"]
        assert violations[0].items == ["via_1"]
        assert violations[0].severity == "warning"


# =============================================================================
# Power and Component Overlap
# =============================================================================

class TestPowerAndOverlap:
    """Tests for the power heuristics and the coarse overlap check."""

    def test_ic_without_power_source(self, board):
        mcu = Component(id="u1", type="mcu_arduino_nano", position=(50.0, 30.0))
        violations = run_drc_checks(Project(board=board, components=[mcu]))
        missing = _messages(violations, "ICs/MCUs detected but no power source")
        assert len(missing) == 1
        assert missing[0].items == ["u1"]

    def test_unrouted_power_source(self, board):
        regulator = Component(id="reg", type="regulator_7805", position=(20.0, 20.0),
                              pads=[Pad(id="reg.0", pos=(0.0, 0.0), dia=1.7)])
        violations = run_drc_checks(Project(board=board, components=[regulator]))
        assert len(_messages(violations, "Power component regulator_7805 has no connections")) == 1

    def test_routed_power_source(self, board):
        """A tape within 3 mm of any pad counts as connected."""
        regulator = Component(id="reg", type="regulator_7805", position=(20.0, 20.0),
                              pads=[Pad(id="reg.0", pos=(0.0, 0.0), dia=1.7)])
        route = Route(net="VCC", polyline=((20.0, 22.0), (20.0, 50.0)), width=1.0)
        project = Project(board=board, components=[regulator], routes=[route])
        assert _messages(run_drc_checks(project), "Power component") == []

    def test_component_sizes(self, resistor_component):
        """Pad spread + 4, at least 5 + 4; 5 with no pads."""
        assert estimate_component_size(resistor_component) == 14.0
        assert estimate_component_size(Component(id="x", type="x")) == 5.0
        single = Component(id="p", type="x", pads=[Pad(id="p.0", pos=(0.0, 0.0))])
        assert estimate_component_size(single) == 9.0

    def test_overlapping_components(self, board):
        """Two resistors 5 mm apart, needing 16 mm."""
        resistors = [
            Component(id="r1", type="resistor_th", position=(50.0, 30.0),
                      pads=[Pad(id="r1.0", pos=(-5.0, 0.0), dia=1.2), Pad(id="r1.1", pos=(5.0, 0.0), dia=1.2)]),
            Component(id="r2", type="resistor_th", position=(55.0, 30.0),
                      pads=[Pad(id="r2.0", pos=(-5.0, 0.0), dia=1.2), Pad(id="r2.1", pos=(5.0, 0.0), dia=1.2)]),
        ]
        passed, violations = DRCChecker(Project(board=board, components=resistors)).run_checks()

        overlap = _messages(violations, "Components overlap")
        assert not passed
        assert len(overlap) == 1
        assert overlap[0].type == "collision"
        assert overlap[0].message == "Components overlap: resistor_th and resistor_th - move them apart"
        assert overlap[0].position == (52.5, 30.0)


# =============================================================================
# Summary
# =============================================================================

class TestSummary:
    """Tests for the text summary and dict export."""

    def test_summary_lines(self, parallel_routes_project):
        checker = DRCChecker(parallel_routes_project)
        checker.run_checks()
        lines = checker.get_summary().splitlines()

        assert lines[0] == "DRC: 2 errors, 0 warnings"
        assert lines[1] == ""
        assert lines[2] == "[ERROR] spacing: Routes too close: 3.00mm (min: 5.0mm) at (10.0, 11.5)"
        assert lines[3].startswith("[ERROR] wall:")

    def test_warning_prefix(self, board):
        route = Route(net="L", polyline=((10, 10), (30, 10), (30, 30)), width=1.0)
        checker = DRCChecker(Project(board=board, routes=[route]))
        passed, _ = checker.run_checks()
        assert passed
        assert "[WARN] bend:" in checker.get_summary()

    def test_violation_to_dict(self, parallel_routes_project):
        data = run_drc_checks(parallel_routes_project)[0].to_dict()
        assert data == {
            "type": "spacing",
            "message": "Routes too close: 3.00mm (min: 5.0mm)",
            "position": [10.0, 11.5],
            "severity": "error",
            "items": ["a", "b"],
        }

    def test_custom_rules_object(self, parallel_routes_project):
        loose = DRCRules(name="loose", min_spacing=0.5, min_wall=-3.0)
        assert run_drc_checks(parallel_routes_project, loose) == []
