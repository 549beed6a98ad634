"""
tapeplace Core API: Pipeline

One function per stage plus ``auto_assemble`` which chains them:

    infer connections -> place (all strategies) -> route best -> DRC

Usage:
    from tapeplace.api import auto_assemble
    result = auto_assemble(rectangular_board(100, 60), assembly, seed=1)
    print(result.summary())
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..board.abstraction import (
    Arrangement,
    AssemblyComponent,
    Board,
    Connection,
    Project,
)
from ..cancellation import CancellationToken
from ..connections import build_nets, expand_components, infer_connections
from ..dfm.profiles import DRCRules
from ..placement import AnnealingConfig, PlacementConfig, bind_connections, generate_placements
from ..routing import RouterConfig, RoutingReport, route_arrangement
from ..validation import Violation, run_drc_checks

logger = logging.getLogger(__name__)


@dataclass
class AssemblyResult:
    """Everything produced by one auto_assemble run."""
    arrangements: List[Arrangement] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    detection_stats: Dict[str, Any] = field(default_factory=dict)
    project: Optional[Project] = None  # Best arrangement, routed
    routing: Optional[RoutingReport] = None
    violations: List[Violation] = field(default_factory=list)

    @property
    def best(self) -> Optional[Arrangement]:
        return self.arrangements[0] if self.arrangements else None

    @property
    def passed(self) -> bool:
        """True when routing ran and DRC reported no errors."""
        return self.project is not None and not any(
            v.severity == "error" for v in self.violations)

    def summary(self) -> str:
        if self.best is None:
            return "No arrangement produced (empty assembly?)"
        errors = sum(1 for v in self.violations if v.severity == "error")
        warnings = len(self.violations) - errors
        lines = [
            f"Best arrangement: {self.best.name} (score {self.best.score})",
            f"Connections: {len(self.connections)}",
        ]
        if self.routing is not None:
            lines.append(f"Routed: {self.routing.routed}/{self.routing.total}, "
                         f"{len(self.routing.unresolved_conflicts)} crossings left")
        lines.append(f"DRC: {errors} errors, {warnings} warnings")
        return "\n".join(lines)


def place(board: Board, assembly: Sequence[AssemblyComponent],
          connections: Optional[Sequence[Connection]] = None,
          seed: int = 0,
          strategies: Optional[Sequence[str]] = None,
          iterations: Optional[int] = None,
          token: Optional[CancellationToken] = None) -> List[Arrangement]:
    """
    Generate ranked arrangements for an assembly.

    When ``connections`` is None they are inferred from the catalog.
    """
    if connections is None:
        connections = infer_connections(assembly).connections

    annealing = AnnealingConfig()
    if iterations is not None:
        annealing.max_iterations = iterations

    return generate_placements(assembly, board, connections, seed=seed,
                               strategies=strategies, token=token,
                               placement_config=PlacementConfig(),
                               annealing_config=annealing)


def route(arrangement: Arrangement, connections: Sequence[Connection], board: Board,
          config: Optional[RouterConfig] = None,
          token: Optional[CancellationToken] = None) -> Arrangement:
    """Route an arrangement; returns a copy carrying the routes."""
    routed, _ = route_arrangement(arrangement, connections, board, config, token)
    return routed


def check(project: Project, rules: Optional[DRCRules] = None) -> List[Violation]:
    """Run DRC on a project (its own rules unless overridden)."""
    return run_drc_checks(project, rules)


def auto_assemble(board: Board, assembly: Sequence[AssemblyComponent],
                  seed: int = 0,
                  connections: Optional[Sequence[Connection]] = None,
                  iterations: Optional[int] = None,
                  router_config: Optional[RouterConfig] = None,
                  rules: Optional[DRCRules] = None,
                  name: str = "Auto assembly",
                  token: Optional[CancellationToken] = None) -> AssemblyResult:
    """
    Infer connections, place, route the best arrangement and check it.

    User-supplied connections are kept and inference only adds to them.
    """
    result = AssemblyResult()
    if not assembly:
        logger.warning("Empty assembly; nothing to place")
        return result

    existing = list(connections or [])
    detection = infer_connections(assembly, existing)
    expanded = expand_components(assembly)
    result.connections = bind_connections(existing, expanded) + detection.connections
    result.detection_stats = detection.stats

    result.arrangements = place(board, assembly, result.connections, seed=seed,
                                iterations=iterations, token=token)
    if not result.arrangements:
        logger.warning("No placeable components in assembly")
        return result

    routed, report = route_arrangement(result.best, result.connections, board,
                                       router_config, token)
    result.routing = report

    project = Project.from_arrangement(routed, board, result.connections, name=name)
    project.assembly = list(assembly)
    project.nets = build_nets(result.connections, routed.components)
    if rules is not None:
        project.rules = rules
    result.project = project

    result.violations = check(project)
    logger.info(f"Auto assembly: {result.best.name} routed with "
                f"{len(result.violations)} DRC findings")
    return result
