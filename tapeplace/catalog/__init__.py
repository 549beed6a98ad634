"""Component catalog: footprint geometry and role-tagged pinouts."""

from .footprints import (
    Footprint,
    FootprintPad,
    FootprintHole,
    get_footprint,
    require_footprint,
    list_footprints,
    get_default_height,
    load_footprints,
)
from .pinouts import (
    PinDescriptor,
    Pinout,
    PIN_ROLES,
    get_pinout,
    get_pin_info,
    is_power_pin,
    is_ground_pin,
    get_vcc_pads,
    get_gnd_pads,
    get_pad_label,
    load_pinouts,
)

__all__ = [
    # Footprints
    "Footprint",
    "FootprintPad",
    "FootprintHole",
    "get_footprint",
    "require_footprint",
    "list_footprints",
    "get_default_height",
    "load_footprints",
    # Pinouts
    "PinDescriptor",
    "Pinout",
    "PIN_ROLES",
    "get_pinout",
    "get_pin_info",
    "is_power_pin",
    "is_ground_pin",
    "get_vcc_pads",
    "get_gnd_pads",
    "get_pad_label",
    "load_pinouts",
]
