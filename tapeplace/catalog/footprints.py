"""
Footprint Catalog

Static footprint geometry keyed by component type, loaded once from
``footprints.yaml``. Records are frozen and use tuples, so every lookup
returns the same immutable object.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

import yaml

from ..exceptions import CatalogError, UnknownComponentError
from ..geometry import Vec2
from ..patterns import get_patterns

logger = logging.getLogger(__name__)

FOOTPRINTS_FILE = Path(__file__).parent / "footprints.yaml"

# Pin pitch used by the dip generator
DIP_PITCH = 2.54


@dataclass(frozen=True)
class FootprintPad:
    """Copper contact in the footprint frame."""
    pos: Vec2
    dia: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


@dataclass(frozen=True)
class FootprintHole:
    pos: Vec2
    dia: float


@dataclass(frozen=True)
class Footprint:
    """Geometry of one component type."""
    type: str
    name: str
    pads: Tuple[FootprintPad, ...] = ()
    holes: Tuple[FootprintHole, ...] = ()
    outline: Optional[Tuple[Vec2, ...]] = None
    height: Optional[float] = None

    @property
    def pad_count(self) -> int:
        return len(self.pads)


_footprints: Optional[Dict[str, Footprint]] = None


def _vec(value: Any) -> Vec2:
    return (float(value[0]), float(value[1]))


def _dip_pads(gen: Dict[str, Any]) -> List[Tuple[Vec2, Dict[str, Any]]]:
    """Two columns: first half down x=0, second half down x=spacing."""
    pins = int(gen["pins"])
    half = pins // 2
    spacing = float(gen["spacing"])
    pads = []
    for i in range(pins):
        x = 0.0 if i < half else spacing
        pads.append(((x, (i % half) * DIP_PITCH), gen))
    return pads


def _row_pads(gen: Dict[str, Any]) -> List[Tuple[Vec2, Dict[str, Any]]]:
    """A single line of pads along x or y, starting at ``origin``."""
    pins = int(gen["pins"])
    pitch = float(gen.get("pitch", DIP_PITCH))
    axis = gen.get("axis", "x")
    if axis not in ("x", "y"):
        raise ValueError(f"row axis must be 'x' or 'y', got {axis!r}")
    ox, oy = _vec(gen.get("origin", (0, 0)))
    pads = []
    for i in range(pins):
        pos = (ox + i * pitch, oy) if axis == "x" else (ox, oy + i * pitch)
        pads.append((pos, gen))
    return pads


def _grid_pads(gen: Dict[str, Any]) -> List[Tuple[Vec2, Dict[str, Any]]]:
    """Row-major grid: pin i sits in column i % cols, row i // cols."""
    pins = int(gen["pins"])
    cols = int(gen["cols"])
    pitch = float(gen.get("pitch", DIP_PITCH))
    row_pitch = float(gen.get("row_pitch", pitch))
    return [(((i % cols) * pitch, (i // cols) * row_pitch), gen) for i in range(pins)]


def _parse_footprint(type_id: str, data: Dict[str, Any]) -> Footprint:
    """Build a Footprint from one YAML entry, expanding generators."""
    placed: List[Tuple[Vec2, Dict[str, Any]]] = []
    if "dip" in data:
        placed.extend(_dip_pads(data["dip"]))
    rows = data.get("row")
    for row in ([rows] if isinstance(rows, dict) else rows or []):
        placed.extend(_row_pads(row))
    if "grid" in data:
        placed.extend(_grid_pads(data["grid"]))

    pads: List[FootprintPad] = []
    holes: List[FootprintHole] = []

    for pos, gen in placed:
        pads.append(FootprintPad(pos=pos, dia=float(gen["pad"])))
        if gen.get("drill"):
            holes.append(FootprintHole(pos=pos, dia=float(gen["drill"])))

    for entry in data.get("pads") or []:
        pos = _vec(entry["pos"])
        pads.append(FootprintPad(
            pos=pos,
            dia=float(entry["dia"]) if "dia" in entry else None,
            width=float(entry["width"]) if "width" in entry else None,
            height=float(entry["height"]) if "height" in entry else None,
        ))
        if entry.get("drill"):
            holes.append(FootprintHole(pos=pos, dia=float(entry["drill"])))

    for entry in data.get("holes") or []:
        holes.append(FootprintHole(pos=_vec(entry["pos"]), dia=float(entry["dia"])))

    outline = data.get("outline")
    return Footprint(
        type=type_id,
        name=str(data.get("name", type_id)),
        pads=tuple(pads),
        holes=tuple(holes),
        outline=tuple(_vec(p) for p in outline) if outline else None,
        height=float(data["height"]) if "height" in data else None,
    )


def load_footprints(path: Optional[Path] = None) -> Dict[str, Footprint]:
    """
    Parse a footprint catalog file.

    Raises:
        CatalogError: If the file is not a mapping or an entry is malformed
    """
    path = Path(path) if path is not None else FOOTPRINTS_FILE
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise CatalogError("Footprint catalog must be a mapping of type -> footprint",
                           context={"file": str(path)})

    footprints = {}
    for type_id, data in raw.items():
        try:
            footprints[type_id] = _parse_footprint(type_id, data)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise CatalogError(f"Malformed footprint '{type_id}': {e}",
                               context={"file": str(path)}) from e

    logger.debug(f"Loaded {len(footprints)} footprints from {path}")
    return footprints


def _catalog() -> Dict[str, Footprint]:
    global _footprints
    if _footprints is None:
        _footprints = load_footprints()
    return _footprints


def get_footprint(component_type: str) -> Optional[Footprint]:
    """Footprint for a type, or None if the type is not in the catalog."""
    return _catalog().get(component_type)


def require_footprint(component_type: str) -> Footprint:
    """Like get_footprint, but raises UnknownComponentError."""
    footprint = _catalog().get(component_type)
    if footprint is None:
        raise UnknownComponentError(component_type, available=list_footprints())
    return footprint


def list_footprints() -> List[str]:
    """All known component types, sorted."""
    return sorted(_catalog())


def get_default_height(component_type: str) -> float:
    """Height above the board: the footprint's own value, else by keyword."""
    footprint = _catalog().get(component_type)
    if footprint is not None and footprint.height is not None:
        return footprint.height
    return get_patterns().height_for(component_type)
