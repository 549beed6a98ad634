"""
Placement Engine

Runs every placement strategy over the same component set and turns each
result into a scored Arrangement:

    strategy -> legalize -> anneal -> score -> Components

Each strategy gets its own RNG seeded from ``f"{seed}:{strategy}"``, so a
given seed reproduces the same arrangements regardless of which
strategies run or in what order.
"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..board.abstraction import (
    Arrangement,
    AssemblyComponent,
    Board,
    Component,
    Connection,
    Hole,
    Pad,
    PadRef,
)
from ..cancellation import CancellationToken
from ..catalog import get_footprint
from ..connections import ExpandedComponent, expand_components
from .annealing import AnnealingConfig, PlacementAnnealer
from .bounds import PlacedComponent, find_overlaps
from .legalizer import PlacementLegalizer
from .scoring import score_arrangement
from .strategies import STRATEGIES, PlacementConfig, place_components

logger = logging.getLogger(__name__)

# strategy -> (label, description)
STRATEGY_LABELS: Dict[str, Tuple[str, str]] = {
    "grid": ("Grid", "Components arranged in rows and columns"),
    "compact": ("Compact", "Minimizes board space usage"),
    "symmetric": ("Symmetric", "Balanced layout around center axis"),
    "flow": ("Signal Flow", "Input -> Processing -> Output layout"),
    "radial": ("Radial", "Circular arrangement around center"),
}


def _expanded(components: Sequence) -> List[ExpandedComponent]:
    if components and isinstance(components[0], AssemblyComponent):
        return expand_components(components)
    return list(components)


def bind_connections(connections: Iterable[Connection],
                     expanded: Sequence[ExpandedComponent]) -> List[Connection]:
    """
    Give positional references the id of the component they point at.

    Strategies reorder components, so index-only references are pinned to
    ids up front. References that are already bound, or out of range, are
    left as they are.
    """
    def bind(ref: PadRef) -> PadRef:
        if ref.component_id is None and 0 <= ref.component_index < len(expanded):
            return PadRef(ref.component_index, ref.pad_index, expanded[ref.component_index].id)
        return ref

    bound = []
    for conn in connections:
        from_ref, to_ref = bind(conn.from_ref), bind(conn.to_ref)
        if from_ref is conn.from_ref and to_ref is conn.to_ref:
            bound.append(conn)
        else:
            bound.append(Connection(
                id=conn.id, from_ref=from_ref, to_ref=to_ref, net_name=conn.net_name,
                is_power=conn.is_power, is_ground=conn.is_ground,
                auto_detected=conn.auto_detected,
            ))
    return bound


def placed_to_components(placement: Sequence[PlacedComponent]) -> List[Component]:
    """Convert placement records to board Components with footprint pads and holes."""
    components = []
    for placed in placement:
        footprint = get_footprint(placed.type)
        pads: List[Pad] = []
        holes: List[Hole] = []
        if footprint is not None:
            pads = [Pad(id=f"{placed.id}.{j}", pos=pad.pos, dia=pad.dia,
                        width=pad.width, height=pad.height)
                    for j, pad in enumerate(footprint.pads)]
            holes = [Hole(pos=hole.pos, dia=hole.dia) for hole in footprint.holes]
        components.append(Component(
            id=placed.id,
            type=placed.type,
            position=(placed.x, placed.y),
            rotation=placed.rotation,
            pads=pads,
            holes=holes,
        ))
    return components


class PlacementEngine:
    """Generates one optimized Arrangement per placement strategy."""

    def __init__(self, board: Board,
                 placement_config: Optional[PlacementConfig] = None,
                 annealing_config: Optional[AnnealingConfig] = None):
        self.board = board
        self.placement_config = placement_config or PlacementConfig()
        self.annealing_config = annealing_config or AnnealingConfig()
        self.legalizer = PlacementLegalizer(board, self.placement_config)

    def build_arrangement(self, strategy: str, expanded: Sequence[ExpandedComponent],
                          connections: Sequence[Connection], seed: int = 0,
                          token: Optional[CancellationToken] = None) -> Arrangement:
        """Place, legalize, anneal and score one strategy."""
        raw = place_components(strategy, expanded, self.board, self.placement_config)
        legal, _ = self.legalizer.legalize(raw)

        annealer = PlacementAnnealer(self.board, connections,
                                     self.annealing_config, self.placement_config)
        rng = random.Random(f"{seed}:{strategy}")
        optimized = annealer.optimize(legal, rng=rng, token=token).placement

        # Back to assembly order so positional references stay meaningful
        order = {comp.id: i for i, comp in enumerate(expanded)}
        optimized = sorted(optimized, key=lambda p: order.get(p.id, len(order)))

        score, metrics = score_arrangement(optimized, connections, self.board)
        label, description = STRATEGY_LABELS[strategy]

        return Arrangement(
            id=f"arr_{strategy}",
            name=label,
            description=description,
            strategy=strategy,
            components=placed_to_components(optimized),
            routes=[],
            score=score,
            metrics=metrics,
            valid=not find_overlaps(optimized, self.placement_config.component_spacing),
        )

    def generate(self, components: Sequence, connections: Iterable[Connection] = (),
                 seed: int = 0, strategies: Optional[Sequence[str]] = None,
                 token: Optional[CancellationToken] = None) -> List[Arrangement]:
        """
        Generate arrangements for an assembly.

        Args:
            components: AssemblyComponents (expanded here) or ExpandedComponents
            connections: Required connections, used for scoring
            seed: Base seed for the per-strategy RNGs
            strategies: Subset of strategy names, default all five
            token: Optional cancellation; arrangements finished so far are kept

        Returns:
            Arrangements sorted by score, best first (stable for ties)
        """
        expanded = _expanded(components)
        if not expanded:
            return []

        bound = bind_connections(connections, expanded)
        arrangements: List[Arrangement] = []

        for strategy in strategies or STRATEGIES:
            if token is not None and token.cancelled:
                logger.warning(f"Placement cancelled; returning {len(arrangements)} arrangements")
                break
            arrangement = self.build_arrangement(strategy, expanded, bound, seed, token)
            logger.debug(f"{arrangement.name}: score {arrangement.score}, valid={arrangement.valid}")
            arrangements.append(arrangement)

        arrangements.sort(key=lambda a: -a.score)
        if arrangements:
            logger.info(f"Generated {len(arrangements)} placements for {len(expanded)} components "
                        f"(best: {arrangements[0].name}, score {arrangements[0].score})")
        return arrangements


def generate_placements(components: Sequence, board: Board,
                        connections: Iterable[Connection] = (),
                        seed: int = 0,
                        strategies: Optional[Sequence[str]] = None,
                        token: Optional[CancellationToken] = None,
                        placement_config: Optional[PlacementConfig] = None,
                        annealing_config: Optional[AnnealingConfig] = None) -> List[Arrangement]:
    """Convenience wrapper around PlacementEngine.generate."""
    engine = PlacementEngine(board, placement_config, annealing_config)
    return engine.generate(components, connections, seed=seed, strategies=strategies, token=token)
