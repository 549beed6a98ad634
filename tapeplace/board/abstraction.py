"""
Board Abstraction Layer

The data model shared by the placement, routing and rule-checking stages:
the board outline, component instances with their pads and holes, copper
tape routes, vias, connections and the project that bundles them.

Everything is a plain dataclass with ``to_dict``/``from_dict`` so a
project can round-trip through YAML (see ``project_file``).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import math

from ..dfm.profiles import DRCRules, DEFAULT_RULES
from ..geometry import (
    BBox,
    Vec2,
    bounding_box,
    point_in_polygon,
    polygon_area,
    polyline_length,
    transform_point,
)

# Bounding box used when a board has no boundary at all
DEFAULT_BOARD_BOX: BBox = (0.0, 0.0, 100.0, 100.0)


class BoardShape(Enum):
    """Board outline families."""
    RECTANGULAR = "rectangular"
    CIRCULAR = "circular"
    FREEFORM = "freeform"


class Layer(Enum):
    """Routing layers. Tape boards have a top and a bottom face only."""
    TOP = "top"
    BOTTOM = "bottom"


class ChannelProfile(Enum):
    """Cross section of the groove a tape route sits in."""
    U = "U"
    V = "V"
    FLAT = "flat"


def _vec(value: Any) -> Vec2:
    """Parse an [x, y] pair from loaded data."""
    return (float(value[0]), float(value[1]))


def _vec_out(point: Vec2) -> List[float]:
    return [round(point[0], 4), round(point[1], 4)]


@dataclass
class MountFeature:
    """Circular cut-out through the board (mounting hole, magnet pocket)."""
    pos: Vec2
    dia: float

    def to_dict(self) -> Dict[str, Any]:
        return {"pos": _vec_out(self.pos), "dia": self.dia}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MountFeature":
        return cls(pos=_vec(data["pos"]), dia=float(data["dia"]))


@dataclass
class Board:
    """
    Board outline and stock.

    The boundary is a closed polygon (the closing edge is implicit). The
    core treats the board as read-only.
    """
    shape: BoardShape = BoardShape.RECTANGULAR
    thickness: float = 2.0  # mm
    boundary: List[Vec2] = field(default_factory=list)
    features: List[MountFeature] = field(default_factory=list)

    def get_bounding_box(self) -> BBox:
        """Axis-aligned bounding box (min_x, min_y, max_x, max_y)."""
        box = bounding_box(self.boundary)
        return box if box is not None else DEFAULT_BOARD_BOX

    @property
    def width(self) -> float:
        min_x, _, max_x, _ = self.get_bounding_box()
        return max_x - min_x

    @property
    def height(self) -> float:
        _, min_y, _, max_y = self.get_bounding_box()
        return max_y - min_y

    @property
    def center(self) -> Vec2:
        min_x, min_y, max_x, max_y = self.get_bounding_box()
        return ((min_x + max_x) / 2, (min_y + max_y) / 2)

    @property
    def has_outline(self) -> bool:
        """True when the boundary is a real polygon."""
        return len(self.boundary) >= 3

    def contains_point(self, x: float, y: float) -> bool:
        """Ray-casting containment test against the boundary polygon."""
        return point_in_polygon((x, y), self.boundary)

    def area(self) -> float:
        """Outline area, 0 for degenerate boundaries."""
        return polygon_area(self.boundary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shape": self.shape.value,
            "thickness": self.thickness,
            "boundary": [_vec_out(p) for p in self.boundary],
            "features": [f.to_dict() for f in self.features],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        return cls(
            shape=BoardShape(data.get("shape", "rectangular")),
            thickness=float(data.get("thickness", 2.0)),
            boundary=[_vec(p) for p in data.get("boundary", [])],
            features=[MountFeature.from_dict(f) for f in data.get("features", [])],
        )


def rectangular_board(width: float = 100.0, height: float = 60.0,
                      thickness: float = 2.0) -> Board:
    """Rectangular board with its corner at the origin."""
    return Board(
        shape=BoardShape.RECTANGULAR,
        thickness=thickness,
        boundary=[(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)],
    )


def circular_board(width: float = 80.0, height: float = 80.0,
                   thickness: float = 2.0, segments: int = 32) -> Board:
    """Round board inscribed in a width x height box anchored at the origin."""
    radius = min(width, height) / 2
    boundary = []
    for i in range(segments):
        angle = 2 * math.pi * i / segments
        boundary.append((radius + radius * math.cos(angle),
                         radius + radius * math.sin(angle)))
    return Board(shape=BoardShape.CIRCULAR, thickness=thickness, boundary=boundary)


@dataclass
class Pad:
    """A pad in its component's local frame."""
    id: str
    pos: Vec2
    dia: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    def radius(self, default: float) -> float:
        """Contact radius: diameter, else width, else the given default."""
        return (self.dia or self.width or default) / 2

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "pos": _vec_out(self.pos)}
        if self.dia is not None:
            d["dia"] = self.dia
        if self.width is not None:
            d["width"] = self.width
        if self.height is not None:
            d["height"] = self.height
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pad":
        return cls(
            id=str(data["id"]),
            pos=_vec(data["pos"]),
            dia=data.get("dia"),
            width=data.get("width"),
            height=data.get("height"),
        )


@dataclass
class Hole:
    """A drilled/printed hole in its component's local frame."""
    pos: Vec2
    dia: float

    def to_dict(self) -> Dict[str, Any]:
        return {"pos": _vec_out(self.pos), "dia": self.dia}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Hole":
        return cls(pos=_vec(data["pos"]), dia=float(data["dia"]))


@dataclass
class Component:
    """A placed component instance.

    Pads and holes stay in the local footprint frame; ``world_point``
    applies rotation (degrees) and then the translation on demand.
    """
    id: str
    type: str
    position: Vec2 = (0.0, 0.0)
    rotation: float = 0.0  # degrees
    pads: List[Pad] = field(default_factory=list)
    holes: List[Hole] = field(default_factory=list)

    def world_point(self, local: Vec2) -> Vec2:
        return transform_point(local, self.position, self.rotation)

    def pad_position(self, pad_index: int) -> Vec2:
        """World position of a pad by index."""
        return self.world_point(self.pads[pad_index].pos)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": _vec_out(self.position),
            "rotation": round(self.rotation, 2),
            "pads": [p.to_dict() for p in self.pads],
            "holes": [h.to_dict() for h in self.holes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            position=_vec(data.get("position", (0.0, 0.0))),
            rotation=float(data.get("rotation", 0.0)),
            pads=[Pad.from_dict(p) for p in data.get("pads", [])],
            holes=[Hole.from_dict(h) for h in data.get("holes", [])],
        )


@dataclass
class Net:
    """Pads that must end up electrically joined."""
    name: str
    nodes: List[str] = field(default_factory=list)  # Pad ids

    def add_node(self, pad_id: str):
        if pad_id not in self.nodes:
            self.nodes.append(pad_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "nodes": list(self.nodes)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Net":
        return cls(name=str(data["name"]), nodes=[str(n) for n in data.get("nodes", [])])


@dataclass(frozen=True)
class Route:
    """One copper tape run realising a connection.

    Immutable: re-routing replaces the whole Route.
    """
    net: str
    polyline: Tuple[Vec2, ...]
    width: float = 5.0  # Tape width (mm)
    layer: Layer = Layer.TOP
    profile: ChannelProfile = ChannelProfile.U
    depth: float = 0.8  # Channel depth (mm)
    connection_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "polyline", tuple((float(x), float(y)) for x, y in self.polyline))

    @property
    def length(self) -> float:
        return polyline_length(self.polyline)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "net": self.net,
            "layer": self.layer.value,
            "polyline": [_vec_out(p) for p in self.polyline],
            "width": self.width,
            "profile": self.profile.value,
            "depth": self.depth,
        }
        if self.connection_id:
            d["connection"] = self.connection_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Route":
        return cls(
            net=str(data.get("net", "")),
            polyline=tuple(_vec(p) for p in data.get("polyline", [])),
            width=float(data.get("width", 5.0)),
            layer=Layer(data.get("layer", "top")),
            profile=ChannelProfile(data.get("profile", "U")),
            depth=float(data.get("depth", 0.8)),
            connection_id=data.get("connection"),
        )


@dataclass
class Via:
    """Through-board link between a top and a bottom route."""
    pos: Vec2
    dia: float = 3.0
    chamfer: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"pos": _vec_out(self.pos), "dia": self.dia, "chamfer": self.chamfer}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Via":
        return cls(
            pos=_vec(data["pos"]),
            dia=float(data.get("dia", 3.0)),
            chamfer=float(data.get("chamfer", 0.0)),
        )


@dataclass
class TapeSpec:
    """Copper tape stock available to the maker."""
    widths: List[float] = field(default_factory=lambda: [3.0, 5.0])
    thickness: float = 0.05
    min_bend_radius: float = 2.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "widths": list(self.widths),
            "thickness": self.thickness,
            "min_bend_radius": self.min_bend_radius,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TapeSpec":
        return cls(
            widths=[float(w) for w in data.get("widths", [3.0, 5.0])],
            thickness=float(data.get("thickness", 0.05)),
            min_bend_radius=float(data.get("min_bend_radius", 2.0)),
        )


@dataclass
class AssemblyComponent:
    """A requested component type and how many of it to place."""
    type: str
    quantity: int = 1
    role: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": self.type, "quantity": self.quantity}
        if self.role:
            d["role"] = self.role
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssemblyComponent":
        return cls(
            type=str(data["type"]),
            quantity=int(data.get("quantity", 1)),
            role=data.get("role"),
        )


@dataclass(frozen=True)
class PadRef:
    """Reference to one pad of one component.

    When ``component_id`` is set the reference survives any reordering of
    the component list; ``component_index`` is the position the reference
    was computed against.
    """
    component_index: int
    pad_index: int
    component_id: Optional[str] = None

    def key(self) -> str:
        owner = self.component_id if self.component_id is not None else f"#{self.component_index}"
        return f"{owner}:{self.pad_index}"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"component": self.component_index, "pad": self.pad_index}
        if self.component_id is not None:
            d["component_id"] = self.component_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PadRef":
        return cls(
            component_index=int(data.get("component", -1)),
            pad_index=int(data["pad"]),
            component_id=data.get("component_id"),
        )


@dataclass
class Connection:
    """A required electrical link between two pads."""
    id: str
    from_ref: PadRef
    to_ref: PadRef
    net_name: str = ""
    is_power: bool = False
    is_ground: bool = False
    auto_detected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "from": self.from_ref.to_dict(),
            "to": self.to_ref.to_dict(),
            "net": self.net_name,
        }
        if self.is_power:
            d["power"] = True
        if self.is_ground:
            d["ground"] = True
        if self.auto_detected:
            d["auto"] = True
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connection":
        return cls(
            id=str(data["id"]),
            from_ref=PadRef.from_dict(data["from"]),
            to_ref=PadRef.from_dict(data["to"]),
            net_name=str(data.get("net", "")),
            is_power=bool(data.get("power", False)),
            is_ground=bool(data.get("ground", False)),
            auto_detected=bool(data.get("auto", False)),
        )


class ComponentLookup:
    """Resolves PadRefs against one ordered list of components.

    Works for anything with an ``id`` attribute (placed components or
    Component instances). The id index is built on first use.
    """

    def __init__(self, items: Sequence[Any]):
        self.items = items
        self._by_id: Optional[Dict[str, int]] = None

    def _index(self) -> Dict[str, int]:
        if self._by_id is None:
            self._by_id = {item.id: i for i, item in enumerate(self.items)}
        return self._by_id

    def index_of(self, ref: PadRef) -> Optional[int]:
        """Position of the referenced component, None if it does not exist."""
        if ref.component_id is not None:
            return self._index().get(ref.component_id)
        if 0 <= ref.component_index < len(self.items):
            return ref.component_index
        return None

    def get(self, ref: PadRef) -> Optional[Any]:
        idx = self.index_of(ref)
        return None if idx is None else self.items[idx]

    def problem(self, ref: PadRef, pad_count: Optional[int] = None) -> Optional[str]:
        """Describe why a reference cannot be resolved, None if it can."""
        item = self.get(ref)
        if item is None:
            if ref.component_id is not None:
                return f"unknown component '{ref.component_id}'"
            return f"component index {ref.component_index} out of range (0..{len(self.items) - 1})"
        count = pad_count if pad_count is not None else len(getattr(item, "pads", []))
        if not 0 <= ref.pad_index < count:
            return f"pad {ref.pad_index} out of range on {item.id} ({count} pads)"
        return None


@dataclass
class ArrangementMetrics:
    """Estimated wiring quality of a placement."""
    total_route_length: float = 0.0
    route_crossings: int = 0
    board_utilization: float = 0.0  # 0..1
    symmetry_score: float = 0.0  # 0..1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_route_length": self.total_route_length,
            "route_crossings": self.route_crossings,
            "board_utilization": self.board_utilization,
            "symmetry_score": self.symmetry_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArrangementMetrics":
        return cls(
            total_route_length=float(data.get("total_route_length", 0.0)),
            route_crossings=int(data.get("route_crossings", 0)),
            board_utilization=float(data.get("board_utilization", 0.0)),
            symmetry_score=float(data.get("symmetry_score", 0.0)),
        )


@dataclass
class Arrangement:
    """One candidate layout: placed components, routes and a fitness score."""
    id: str
    name: str
    description: str = ""
    strategy: str = ""
    components: List[Component] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)
    score: int = 0  # 0..100
    metrics: ArrangementMetrics = field(default_factory=ArrangementMetrics)
    valid: bool = True  # False if overlaps could not be removed

    @property
    def lookup(self) -> ComponentLookup:
        """Id index over this arrangement's components."""
        cached = self.__dict__.get("_lookup")
        if cached is None or cached.items is not self.components:
            cached = ComponentLookup(self.components)
            self.__dict__["_lookup"] = cached
        return cached

    def get_component(self, component_id: str) -> Optional[Component]:
        idx = self.lookup.index_of(PadRef(-1, 0, component_id))
        return None if idx is None else self.components[idx]


@dataclass
class Project:
    """Everything the DRC engine needs, plus the inputs that produced it."""
    name: str = "Untitled Project"
    units: str = "mm"
    tape: TapeSpec = field(default_factory=TapeSpec)
    board: Board = field(default_factory=lambda: rectangular_board(100.0, 60.0))
    components: List[Component] = field(default_factory=list)
    nets: List[Net] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)
    vias: List[Via] = field(default_factory=list)
    rules: DRCRules = field(default_factory=lambda: DRCRules(**DEFAULT_RULES.to_dict()))

    # Design inputs kept alongside the layout
    assembly: List[AssemblyComponent] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)

    @classmethod
    def from_arrangement(cls, arrangement: Arrangement, board: Board,
                         connections: Iterable[Connection] = (),
                         name: Optional[str] = None) -> "Project":
        return cls(
            name=name or arrangement.name,
            board=board,
            components=list(arrangement.components),
            routes=list(arrangement.routes),
            connections=list(connections),
        )


def default_project() -> Project:
    """A fresh 100 x 60 mm project with default tape and rules."""
    return Project()
