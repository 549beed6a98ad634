"""
Project File Handler

Reads and writes tape board projects as YAML. The same format serves as
the design input (board, assembly list, optional connections) and as the
layout output (placed components, routes, vias).

File Format (YAML):
```yaml
version: 1
name: Synth voice
board:
  shape: rectangular        # or give boundary: [[x, y], ...]
  width: 100
  height: 60
  thickness: 2.0
rules: default              # preset name or a mapping of rule values
assembly:
  - type: mcu_arduino_nano
  - type: pot_9mm
    quantity: 3
connections: []             # optional, inferred when empty
components: []              # filled in by `tapeplace place`
routes: []                  # filled in by `tapeplace route`
vias: []
```
"""

from pathlib import Path
from typing import Any, Dict, Union
import logging

import yaml

from ..dfm.profiles import DRCRules, get_rules
from ..exceptions import ProjectFileError
from .abstraction import (
    AssemblyComponent,
    Board,
    BoardShape,
    Component,
    Connection,
    Net,
    Project,
    Route,
    TapeSpec,
    Via,
    circular_board,
    rectangular_board,
)

logger = logging.getLogger(__name__)

# Project file version for format compatibility
PROJECT_FILE_VERSION = 1


def board_from_dict(data: Dict[str, Any]) -> Board:
    """Build a board from either an explicit boundary or a width/height shorthand."""
    if data.get("boundary"):
        return Board.from_dict(data)

    shape = BoardShape(data.get("shape", "rectangular"))
    width = float(data.get("width", 100.0))
    height = float(data.get("height", 60.0))
    thickness = float(data.get("thickness", 2.0))

    if shape == BoardShape.CIRCULAR:
        board = circular_board(width, height, thickness)
    else:
        board = rectangular_board(width, height, thickness)
    board.features = Board.from_dict({"features": data.get("features", [])}).features
    return board


def rules_from_value(value: Any) -> DRCRules:
    """Rules may be a preset name or a mapping (optionally naming a base preset)."""
    if value is None:
        return get_rules("default")
    if isinstance(value, str):
        return get_rules(value)
    merged = get_rules(value.get("base", "default")).to_dict()
    merged.update({k: v for k, v in value.items() if k != "base"})
    return DRCRules.from_dict(merged)


def project_to_dict(project: Project) -> Dict[str, Any]:
    """Convert a project to plain data for YAML output."""
    return {
        "version": PROJECT_FILE_VERSION,
        "name": project.name,
        "units": project.units,
        "tape": project.tape.to_dict(),
        "board": project.board.to_dict(),
        "rules": project.rules.to_dict(),
        "assembly": [a.to_dict() for a in project.assembly],
        "connections": [c.to_dict() for c in project.connections],
        "components": [c.to_dict() for c in project.components],
        "nets": [n.to_dict() for n in project.nets],
        "routes": [r.to_dict() for r in project.routes],
        "vias": [v.to_dict() for v in project.vias],
    }


def project_from_dict(data: Dict[str, Any]) -> Project:
    """Create a project from loaded YAML data.

    Raises:
        ProjectFileError: If a section has the wrong shape
    """
    if not isinstance(data, dict):
        raise ProjectFileError("Project file must contain a mapping at the top level")

    version = data.get("version", PROJECT_FILE_VERSION)
    if version > PROJECT_FILE_VERSION:
        logger.warning(f"Project file version {version} is newer than supported "
                       f"({PROJECT_FILE_VERSION}); loading anyway")

    try:
        return Project(
            name=str(data.get("name", "Untitled Project")),
            units=str(data.get("units", "mm")),
            tape=TapeSpec.from_dict(data.get("tape") or {}),
            board=board_from_dict(data.get("board") or {}),
            rules=rules_from_value(data.get("rules")),
            assembly=[AssemblyComponent.from_dict(a) for a in data.get("assembly") or []],
            connections=[Connection.from_dict(c) for c in data.get("connections") or []],
            components=[Component.from_dict(c) for c in data.get("components") or []],
            nets=[Net.from_dict(n) for n in data.get("nets") or []],
            routes=[Route.from_dict(r) for r in data.get("routes") or []],
            vias=[Via.from_dict(v) for v in data.get("vias") or []],
        )
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise ProjectFileError(
            f"Malformed project data: {e}",
            suggestions=["Compare the file against the format in tapeplace.board.project_file"],
        ) from e


def load_project(path: Union[str, Path]) -> Project:
    """
    Load a project or design file.

    Args:
        path: Path to a YAML project file

    Returns:
        Parsed Project

    Raises:
        ProjectFileError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ProjectFileError(f"Project file not found: {path}", context={"file": str(path)})

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProjectFileError(f"Invalid YAML in project file: {e}",
                               context={"file": str(path)}) from e

    project = project_from_dict(data or {})
    logger.info(f"Loaded project '{project.name}' from {path}: "
                f"{len(project.components)} components, {len(project.routes)} routes")
    return project


def save_project(project: Project, path: Union[str, Path]) -> Path:
    """Write a project to YAML and return the path written."""
    path = Path(path)
    with open(path, "w") as f:
        yaml.safe_dump(project_to_dict(project), f, default_flow_style=None, sort_keys=False)
    logger.info(f"Saved project '{project.name}' to {path}")
    return path
