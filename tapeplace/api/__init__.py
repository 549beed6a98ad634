"""
tapeplace Core API

High-level entry points over the placement, routing and DRC engines.

Modules:
- pipeline: place / route / check and the chained auto_assemble
"""

from .pipeline import AssemblyResult, place, route, check, auto_assemble

__all__ = [
    "AssemblyResult",
    "place",
    "route",
    "check",
    "auto_assemble",
]
