"""
Shared test fixtures for tapeplace tests.

Provides reusable boards, assemblies, placed components and projects
for testing placement, routing and DRC.
"""

import pytest
from typing import List

from tapeplace.board.abstraction import (
    AssemblyComponent,
    Board,
    Component,
    Connection,
    Pad,
    PadRef,
    Project,
    Route,
    rectangular_board,
)
from tapeplace.dfm.profiles import DRCRules
from tapeplace.routing import RouterConfig


# =============================================================================
# Boards
# =============================================================================

@pytest.fixture
def board() -> Board:
    """The default 100 x 60 mm rectangular board."""
    return rectangular_board(100, 60)


@pytest.fixture
def small_board() -> Board:
    """A 40 x 30 mm board, tight for more than a couple of parts."""
    return rectangular_board(40, 30)


# =============================================================================
# Assemblies
# =============================================================================

@pytest.fixture
def synth_assembly() -> List[AssemblyComponent]:
    """A small synth voice: controller, two pots and an LED."""
    return [
        AssemblyComponent(type="mcu_arduino_nano"),
        AssemblyComponent(type="pot_9mm", quantity=2),
        AssemblyComponent(type="led_th"),
    ]


@pytest.fixture
def passive_assembly() -> List[AssemblyComponent]:
    """Passives only, no pinout-driven inference beyond the rails."""
    return [
        AssemblyComponent(type="resistor_th", quantity=2),
        AssemblyComponent(type="led_th"),
    ]


# =============================================================================
# Placed components
# =============================================================================

def make_pad_component(component_id: str, x: float, y: float,
                       component_type: str = "test_point") -> Component:
    """Single-pad component of an uncatalogued type at (x, y).

    Without a footprint outline its routing obstacle is the pad box +/- 2 mm.
    """
    return Component(
        id=component_id,
        type=component_type,
        position=(x, y),
        pads=[Pad(id=f"{component_id}.0", pos=(0.0, 0.0), dia=1.7)],
    )


def make_connection(conn_id: str, from_id: str, to_id: str,
                    net: str = "", is_power: bool = False) -> Connection:
    """Pad 0 to pad 0 connection between two components, bound by id."""
    return Connection(
        id=conn_id,
        from_ref=PadRef(-1, 0, from_id),
        to_ref=PadRef(-1, 0, to_id),
        net_name=net,
        is_power=is_power,
    )


@pytest.fixture
def resistor_component() -> Component:
    """A through-hole resistor at the board centre."""
    return Component(
        id="comp_0_resistor_th",
        type="resistor_th",
        position=(50.0, 30.0),
        pads=[
            Pad(id="comp_0_resistor_th.0", pos=(-5.0, 0.0), dia=1.2),
            Pad(id="comp_0_resistor_th.1", pos=(5.0, 0.0), dia=1.2),
        ],
    )


@pytest.fixture
def narrow_router_config() -> RouterConfig:
    """Thin tape and no spacing, so obstacle envelopes are easy to reason about."""
    return RouterConfig(route_width=1.0, route_spacing=0.0)


# =============================================================================
# Projects
# =============================================================================

@pytest.fixture
def empty_project(board) -> Project:
    """A project with a board and default rules only."""
    return Project(name="Empty", board=board)


@pytest.fixture
def parallel_routes_project(board) -> Project:
    """Two 5 mm tapes running 3 mm apart, nothing else."""
    return Project(
        name="Parallel",
        board=board,
        routes=[
            Route(net="A", polyline=((10.0, 10.0), (50.0, 10.0)), width=5.0, connection_id="a"),
            Route(net="B", polyline=((10.0, 13.0), (50.0, 13.0)), width=5.0, connection_id="b"),
        ],
        rules=DRCRules(name="strict", min_spacing=5.0),
    )


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def pad_component():
    """Factory for single-pad components (see make_pad_component)."""
    return make_pad_component


@pytest.fixture
def connection():
    """Factory for id-bound pad 0 connections (see make_connection)."""
    return make_connection
