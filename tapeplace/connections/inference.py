"""
Connection Inference

Proposes the obvious wiring for an assembly from catalog pin roles:
supply rails, ground rail, and control outputs (pots, encoders, sensors)
into a controller's analog inputs.

Components are addressed by their expanded index (assembly quantities
unrolled in order) and by a stable id, ``comp_{expandedIndex}_{type}``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import logging

from ..board.abstraction import (
    AssemblyComponent,
    ComponentLookup,
    Connection,
    Net,
    PadRef,
)
from ..catalog import get_footprint, get_pin_info, get_pinout
from ..exceptions import ConnectionValidationError
from ..patterns import get_patterns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpandedComponent:
    """One physical instance produced by unrolling an assembly entry."""
    id: str
    type: str
    source_index: int  # Position of the AssemblyComponent it came from
    instance_index: int  # 0..quantity-1 within that entry
    expanded_index: int


@dataclass
class DetectionResult:
    """Inferred connections plus bookkeeping about how they were found."""
    connections: List[Connection] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    components: List[ExpandedComponent] = field(default_factory=list)


def component_id(expanded_index: int, component_type: str) -> str:
    return f"comp_{expanded_index}_{component_type}"


def expand_components(assembly: Iterable[AssemblyComponent]) -> List[ExpandedComponent]:
    """Unroll quantities into individual instances with stable ids."""
    expanded: List[ExpandedComponent] = []
    for source_index, entry in enumerate(assembly):
        for instance in range(entry.quantity):
            idx = len(expanded)
            expanded.append(ExpandedComponent(
                id=component_id(idx, entry.type),
                type=entry.type,
                source_index=source_index,
                instance_index=instance,
                expanded_index=idx,
            ))
    return expanded


def generate_net_name(from_type: str, from_pad: int, to_type: str, to_pad: int,
                      is_power: bool = False, is_ground: bool = False) -> str:
    """
    Name a net after its endpoints.

    Power and ground nets are "VCC" and "GND". Otherwise the two pin names
    are joined ("Wiper_A0"); without pin data the type prefixes and 1-based
    pad numbers are used ("POT2_MCU19").
    """
    if is_power:
        return "VCC"
    if is_ground:
        return "GND"

    from_info = get_pin_info(from_type, from_pad)
    to_info = get_pin_info(to_type, to_pad)
    if from_info is not None and to_info is not None and from_info.name and to_info.name:
        return f"{from_info.name}_{to_info.name}"

    from_short = from_type.split("_")[0].upper()
    to_short = to_type.split("_")[0].upper()
    return f"{from_short}{from_pad + 1}_{to_short}{to_pad + 1}"


def infer_component_role(component_type: str) -> str:
    """Coarse role of a type: input, output, power, connector or signal."""
    patterns = get_patterns()
    for role, keywords in patterns.role_keywords.items():
        if patterns.matches_any(component_type, keywords):
            return role
    return "signal"


def _pad_key(lookup: ComponentLookup, ref: PadRef) -> Optional[Tuple[int, int]]:
    idx = lookup.index_of(ref)
    return None if idx is None else (idx, ref.pad_index)


def _ref(comp: ExpandedComponent, pad_index: int) -> PadRef:
    return PadRef(comp.expanded_index, pad_index, comp.id)


def infer_connections(assembly: Sequence[AssemblyComponent],
                      existing: Iterable[Connection] = ()) -> DetectionResult:
    """
    Infer power, ground and control-signal connections for an assembly.

    Args:
        assembly: Requested component types and quantities
        existing: Connections already defined; pads they use count as taken

    Returns:
        DetectionResult with only the new connections, ids auto_vcc_{i},
        auto_gnd_{i} and auto_sig_{n}
    """
    patterns = get_patterns()
    expanded = expand_components(assembly)
    lookup = ComponentLookup(expanded)

    stats: Dict[str, Any] = {"power": 0, "ground": 0, "signal": 0, "unknown_components": []}
    connections: List[Connection] = []

    connected: Set[Tuple[int, int]] = set()
    for conn in existing:
        for ref in (conn.from_ref, conn.to_ref):
            key = _pad_key(lookup, ref)
            if key is not None:
                connected.add(key)

    vcc_pins: List[Tuple[ExpandedComponent, int, float]] = []
    gnd_pins: List[Tuple[ExpandedComponent, int]] = []

    for comp in expanded:
        pinout = get_pinout(comp.type)
        if pinout is None:
            if comp.type not in stats["unknown_components"]:
                stats["unknown_components"].append(comp.type)
            continue
        for pin in pinout.pins:
            if pin.role == "vcc":
                vcc_pins.append((comp, pin.index, pin.voltage or patterns.default_supply_voltage))
            elif pin.role == "gnd":
                gnd_pins.append((comp, pin.index))

    # Supply rail: star from the first VCC pin to every other one at the same voltage
    for i in range(1, len(vcc_pins)):
        from_comp, from_pad, from_voltage = vcc_pins[0]
        to_comp, to_pad, to_voltage = vcc_pins[i]
        from_key = (from_comp.expanded_index, from_pad)
        to_key = (to_comp.expanded_index, to_pad)

        if from_key in connected and to_key in connected:
            continue
        if abs(from_voltage - to_voltage) > 1e-9:
            continue

        connections.append(Connection(
            id=f"auto_vcc_{i}",
            from_ref=_ref(from_comp, from_pad),
            to_ref=_ref(to_comp, to_pad),
            net_name=patterns.power_net_name(from_voltage),
            is_power=True,
            auto_detected=True,
        ))
        stats["power"] += 1
        connected.update((from_key, to_key))

    # Ground rail, same star shape
    for i in range(1, len(gnd_pins)):
        from_comp, from_pad = gnd_pins[0]
        to_comp, to_pad = gnd_pins[i]
        from_key = (from_comp.expanded_index, from_pad)
        to_key = (to_comp.expanded_index, to_pad)

        if from_key in connected and to_key in connected:
            continue

        connections.append(Connection(
            id=f"auto_gnd_{i}",
            from_ref=_ref(from_comp, from_pad),
            to_ref=_ref(to_comp, to_pad),
            net_name="GND",
            is_ground=True,
            auto_detected=True,
        ))
        stats["ground"] += 1
        connected.update((from_key, to_key))

    connections.extend(_infer_control_signals(expanded, connected, stats))

    logger.info(f"Inferred {len(connections)} connections "
                f"({stats['power']} power, {stats['ground']} ground, {stats['signal']} signal)")
    if stats["unknown_components"]:
        logger.warning(f"No pinout for: {', '.join(stats['unknown_components'])}")

    return DetectionResult(connections=connections, stats=stats, components=expanded)


def _infer_control_signals(expanded: List[ExpandedComponent],
                           connected: Set[Tuple[int, int]],
                           stats: Dict[str, Any]) -> List[Connection]:
    """Wire control outputs to the first controller's free analog inputs."""
    patterns = get_patterns()
    controller = next((c for c in expanded if patterns.is_controller(c.type)), None)
    if controller is None:
        return []
    controller_pinout = get_pinout(controller.type)
    if controller_pinout is None:
        return []

    analog_pins = [p for p in controller_pinout.pins
                   if p.role == "signal" and patterns.is_analog_pin(p.name)]

    connections: List[Connection] = []
    for comp in expanded:
        if comp is controller or not patterns.is_control_output(comp.type):
            continue
        pinout = get_pinout(comp.type)
        if pinout is None:
            continue

        for pin in pinout.pins:
            if pin.role != "output":
                continue
            out_key = (comp.expanded_index, pin.index)
            if out_key in connected:
                continue

            target = next((p for p in analog_pins
                           if (controller.expanded_index, p.index) not in connected), None)
            if target is None:
                logger.debug(f"No free analog input left for {comp.id} pin {pin.name}")
                return connections

            target_key = (controller.expanded_index, target.index)
            connections.append(Connection(
                id=f"auto_sig_{stats['signal'] + 1}",
                from_ref=_ref(comp, pin.index),
                to_ref=_ref(controller, target.index),
                net_name=generate_net_name(comp.type, pin.index, controller.type, target.index),
                auto_detected=True,
            ))
            stats["signal"] += 1
            connected.update((out_key, target_key))

    return connections


def _pad_count(item: Any) -> Optional[int]:
    """Known pad count of a component or expanded instance, None if unknown."""
    pads = getattr(item, "pads", None)
    if pads:
        return len(pads)
    footprint = get_footprint(item.type)
    if footprint is not None:
        return footprint.pad_count
    pinout = get_pinout(item.type)
    return len(pinout.pins) if pinout is not None else None


def validate_connections(connections: Iterable[Connection], components: Sequence[Any]):
    """
    Check that every connection resolves against the component list.

    Raises:
        ConnectionValidationError: Listing every unresolvable reference
    """
    lookup = ComponentLookup(components)
    problems: List[str] = []

    for conn in connections:
        for end, ref in (("from", conn.from_ref), ("to", conn.to_ref)):
            item = lookup.get(ref)
            if item is None:
                problems.append(f"{conn.id} {end}: {lookup.problem(ref)}")
                continue
            count = _pad_count(item)
            if count is not None:
                problem = lookup.problem(ref, count)
                if problem:
                    problems.append(f"{conn.id} {end}: {problem}")

    if problems:
        raise ConnectionValidationError(problems, context={"components": len(components)})


def build_nets(connections: Iterable[Connection], components: Sequence[Any]) -> List[Net]:
    """Group connected pad ids ("{component_id}.{pad}") by net name, first-seen order."""
    lookup = ComponentLookup(components)
    nets: Dict[str, Net] = {}

    for conn in connections:
        name = conn.net_name or f"net_{conn.id}"
        net = nets.setdefault(name, Net(name=name))
        for ref in (conn.from_ref, conn.to_ref):
            item = lookup.get(ref)
            if item is None:
                logger.warning(f"Connection {conn.id}: {lookup.problem(ref)}, pad left out of net {name}")
                continue
            net.add_node(f"{item.id}.{ref.pad_index}")

    return list(nets.values())
