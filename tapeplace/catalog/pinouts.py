"""
Pinout Catalog

Role-tagged pins per component type, loaded once from ``pinouts.yaml``.
Pinouts are independent of footprints: a type may have one without the
other, and pad counts are not guaranteed to agree.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging

import yaml

from ..exceptions import CatalogError
from .footprints import get_footprint

logger = logging.getLogger(__name__)

PINOUTS_FILE = Path(__file__).parent / "pinouts.yaml"

PIN_ROLES = ("vcc", "gnd", "signal", "data", "clock", "enable", "input", "output", "nc")

# Voltage assumed when a supply pin does not state one
DEFAULT_PIN_VOLTAGE = {"vcc": 5.0, "gnd": 0.0}


@dataclass(frozen=True)
class PinDescriptor:
    """One pin: its pad index, electrical role and silkscreen name."""
    index: int
    role: str
    name: str
    voltage: Optional[float] = None


@dataclass(frozen=True)
class Pinout:
    type: str
    pins: Tuple[PinDescriptor, ...]

    def pin(self, pad_index: int) -> Optional[PinDescriptor]:
        if 0 <= pad_index < len(self.pins):
            return self.pins[pad_index]
        return None


_pinouts: Optional[Dict[str, Pinout]] = None


def _parse_pinout(type_id: str, entries: List) -> Pinout:
    pins = []
    for index, entry in enumerate(entries):
        name, role = str(entry[0]), str(entry[1])
        if role not in PIN_ROLES:
            raise ValueError(f"pin {index} has unknown role '{role}'")
        voltage = float(entry[2]) if len(entry) > 2 else DEFAULT_PIN_VOLTAGE.get(role)
        pins.append(PinDescriptor(index=index, role=role, name=name, voltage=voltage))
    return Pinout(type=type_id, pins=tuple(pins))


def load_pinouts(path: Optional[Path] = None) -> Dict[str, Pinout]:
    """
    Parse a pinout catalog file.

    Raises:
        CatalogError: If the file is not a mapping or a pin entry is malformed
    """
    path = Path(path) if path is not None else PINOUTS_FILE
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise CatalogError("Pinout catalog must be a mapping of type -> pins",
                           context={"file": str(path)})

    pinouts = {}
    for type_id, entries in raw.items():
        try:
            pinouts[type_id] = _parse_pinout(type_id, entries)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise CatalogError(f"Malformed pinout '{type_id}': {e}",
                               context={"file": str(path)}) from e

    logger.debug(f"Loaded {len(pinouts)} pinouts from {path}")
    return pinouts


def _catalog() -> Dict[str, Pinout]:
    global _pinouts
    if _pinouts is None:
        _pinouts = load_pinouts()
    return _pinouts


def get_pinout(component_type: str) -> Optional[Pinout]:
    return _catalog().get(component_type)


def get_pin_info(component_type: str, pad_index: int) -> Optional[PinDescriptor]:
    """Pin descriptor for one pad, None for unknown types or indices."""
    pinout = _catalog().get(component_type)
    return pinout.pin(pad_index) if pinout else None


def is_power_pin(component_type: str, pad_index: int) -> bool:
    pin = get_pin_info(component_type, pad_index)
    return pin is not None and pin.role == "vcc"


def is_ground_pin(component_type: str, pad_index: int) -> bool:
    pin = get_pin_info(component_type, pad_index)
    return pin is not None and pin.role == "gnd"


def _pads_with_role(component_type: str, role: str) -> List[int]:
    pinout = _catalog().get(component_type)
    if not pinout:
        return []
    return [p.index for p in pinout.pins if p.role == role]


def get_vcc_pads(component_type: str) -> List[int]:
    return _pads_with_role(component_type, "vcc")


def get_gnd_pads(component_type: str) -> List[int]:
    return _pads_with_role(component_type, "gnd")


def get_pad_label(component_type: str, pad_index: int) -> str:
    """
    Human-readable pad label such as "VCC 5V" or "SIGNAL A0".

    Falls back to "P{n}" (1-based) when only the footprint knows the pad,
    and to "?{n}" when nothing does.
    """
    pin = get_pin_info(component_type, pad_index)
    if pin is not None:
        return f"{pin.role.upper()} {pin.name}"

    footprint = get_footprint(component_type)
    if footprint is not None and 0 <= pad_index < footprint.pad_count:
        return f"P{pad_index + 1}"
    return f"?{pad_index + 1}"
