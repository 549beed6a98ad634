"""
Tests for YAML project files.

Tests cover:
- Save / load round trip
- Board shorthand (width/height/shape) and explicit boundaries
- Rules given as a preset name or a mapping
- Error reporting for missing and malformed files
"""

import logging

import pytest
import yaml

from tapeplace.board.abstraction import (
    AssemblyComponent,
    BoardShape,
    Component,
    Hole,
    Net,
    Pad,
    Project,
    Route,
    Via,
)
from tapeplace.board.project_file import (
    PROJECT_FILE_VERSION,
    board_from_dict,
    load_project,
    project_from_dict,
    project_to_dict,
    rules_from_value,
    save_project,
)
from tapeplace.exceptions import ProjectFileError


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def full_project(board, connection) -> Project:
    """A project touching every section of the file format."""
    return Project(
        name="Full",
        board=board,
        assembly=[AssemblyComponent(type="pot_9mm", quantity=2, role="input")],
        connections=[connection("c1", "comp_0_pot_9mm", "comp_1_pot_9mm", net="VCC", is_power=True)],
        components=[
            Component(id="comp_0_pot_9mm", type="pot_9mm", position=(20.0, 20.0), rotation=90.0,
                      pads=[Pad(id="comp_0_pot_9mm.0", pos=(0.0, 0.0), dia=1.8)]),
            Component(id="m", type="magnet_3x1", position=(80.0, 50.0),
                      holes=[Hole(pos=(0.0, 0.0), dia=3.1)]),
        ],
        nets=[Net(name="VCC", nodes=["comp_0_pot_9mm.0", "comp_1_pot_9mm.0"])],
        routes=[Route(net="VCC", polyline=((20.0, 20.0), (40.0, 20.0)), width=3.0,
                      connection_id="c1")],
        vias=[Via(pos=(40.0, 20.0))],
    )


@pytest.fixture
def design_file(tmp_path):
    """Write a YAML design and return its path."""
    def write(text: str):
        path = tmp_path / "design.yaml"
        path.write_text(text)
        return path
    return write


# =============================================================================
# Round Trip
# =============================================================================

class TestRoundTrip:
    """Tests for save_project / load_project."""

    def test_save_and_load(self, tmp_path, full_project):
        path = save_project(full_project, tmp_path / "full.yaml")
        assert path.exists()
        assert load_project(path) == full_project

    def test_version_written(self, full_project):
        assert project_to_dict(full_project)["version"] == PROJECT_FILE_VERSION

    def test_connection_id_key(self, full_project):
        """Routes store their connection under 'connection'."""
        route = project_to_dict(full_project)["routes"][0]
        assert route["connection"] == "c1"

    def test_file_is_plain_yaml(self, tmp_path, full_project):
        path = save_project(full_project, tmp_path / "full.yaml")
        data = yaml.safe_load(path.read_text())
        assert data["name"] == "Full"
        assert data["board"]["boundary"][2] == [100.0, 60.0]


# =============================================================================
# Design Input
# =============================================================================

class TestDesignInput:
    """Tests for the hand-written design format."""

    def test_minimal_design(self, design_file):
        path = design_file(
            "name: Synth\n"
            "board: {width: 120, height: 80}\n"
            "assembly:\n"
            "  - type: mcu_arduino_nano\n"
            "  - {type: pot_9mm, quantity: 3}\n"
        )
        project = load_project(path)
        assert project.name == "Synth"
        assert project.board.width == 120.0
        assert project.board.height == 80.0
        assert [(a.type, a.quantity) for a in project.assembly] == [("mcu_arduino_nano", 1), ("pot_9mm", 3)]
        assert project.rules.name == "default"
        assert project.components == []

    def test_empty_file(self, design_file):
        """An empty document is an empty default project."""
        project = load_project(design_file(""))
        assert project.name == "Untitled Project"
        assert project.board.width == 100.0

    def test_newer_version_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            project = project_from_dict({"version": PROJECT_FILE_VERSION + 1, "name": "Future"})
        assert project.name == "Future"
        assert "newer than supported" in caplog.text


class TestBoardFromDict:
    """Tests for board shorthand parsing."""

    def test_rectangle_defaults(self):
        board = board_from_dict({})
        assert board.shape == BoardShape.RECTANGULAR
        assert board.get_bounding_box() == (0.0, 0.0, 100.0, 60.0)

    def test_circle(self):
        board = board_from_dict({"shape": "circular", "width": 80, "height": 80})
        assert board.shape == BoardShape.CIRCULAR
        assert len(board.boundary) == 32
        assert abs(board.width - 80.0) < 1e-9

    def test_explicit_boundary_wins(self):
        board = board_from_dict({"width": 500, "boundary": [[0, 0], [30, 0], [15, 20]]})
        assert board.boundary == [(0.0, 0.0), (30.0, 0.0), (15.0, 20.0)]

    def test_features(self):
        board = board_from_dict({"width": 50, "height": 50,
                                 "features": [{"pos": [5, 5], "dia": 3.2}]})
        assert board.features[0].dia == 3.2


class TestRulesFromValue:
    """Tests for the rules section."""

    def test_none_is_default(self):
        assert rules_from_value(None).name == "default"

    def test_preset_name(self):
        assert rules_from_value("wide_tape").min_spacing == 2.0

    def test_mapping_overrides_default(self):
        rules = rules_from_value({"min_spacing": 3})
        assert rules.min_spacing == 3.0
        assert rules.min_wall == 0.8

    def test_mapping_with_base(self):
        rules = rules_from_value({"base": "fine_nozzle", "min_wall": 0.7})
        assert rules.name == "fine_nozzle"
        assert rules.min_wall == 0.7
        assert rules.nozzle_width == 0.25

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            rules_from_value("laser_cut")


# =============================================================================
# Errors
# =============================================================================

class TestErrors:
    """Tests for ProjectFileError reporting."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectFileError, match="not found"):
            load_project(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, design_file):
        with pytest.raises(ProjectFileError, match="Invalid YAML"):
            load_project(design_file("board: [unclosed\n"))

    def test_top_level_not_mapping(self, design_file):
        with pytest.raises(ProjectFileError, match="mapping"):
            load_project(design_file("- just\n- a list\n"))

    def test_malformed_section(self):
        """A component without an id is reported, not raised as KeyError."""
        with pytest.raises(ProjectFileError, match="Malformed project data"):
            project_from_dict({"components": [{"type": "led_th"}]})

    def test_unknown_rules_name(self):
        with pytest.raises(ProjectFileError):
            project_from_dict({"rules": "laser_cut"})
