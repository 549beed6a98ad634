"""
tapeplace - Layout engine for copper tape circuit boards

Places components on a printed board, routes copper tape channels between
their pads and checks the result against printer and tape design rules.
"""

__version__ = "0.1.0"
__author__ = "tapeplace Team"

from .board.abstraction import Board, Component, Arrangement, Project, rectangular_board
from .api import auto_assemble, place, route, check
from .dfm.profiles import DRCRules, get_rules

__all__ = [
    "Board",
    "Component",
    "Arrangement",
    "Project",
    "rectangular_board",
    "auto_assemble",
    "place",
    "route",
    "check",
    "DRCRules",
    "get_rules",
]
