"""
Simulated annealing placement optimizer.

Repeatedly nudges one random component, rejects moves that create an
overlap, and accepts the rest by the Metropolis rule on the placement
score. The working copy is mutated in place with an undo on rejection;
the caller's placement is never touched.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..board.abstraction import Board, Connection
from ..cancellation import CancellationToken
from .bounds import PlacedComponent, check_overlap, find_overlaps
from .legalizer import PlacementLegalizer
from .scoring import score_arrangement
from .strategies import PlacementConfig

logger = logging.getLogger(__name__)


@dataclass
class AnnealingConfig:
    """Configuration for simulated annealing."""
    max_iterations: int = 500
    initial_temperature: float = 100.0
    cooling_rate: float = 0.95  # Temperature multiplier per iteration
    max_move: float = 10.0  # mm - a move is uniform in [-max_move, max_move) per axis
    seed: Optional[int] = None  # Used when no RNG is passed in


@dataclass
class AnnealingResult:
    """Outcome of one optimization run."""
    placement: List[PlacedComponent] = field(default_factory=list)
    score: int = 0
    initial_score: int = 0
    iterations: int = 0
    accepted: int = 0
    rejected_overlaps: int = 0
    cancelled: bool = False
    valid: bool = True  # False only when no overlap-free state was ever reached

    @property
    def improved(self) -> bool:
        return self.score > self.initial_score


class PlacementAnnealer:
    """Simulated annealing over component positions (rotations are kept)."""

    def __init__(self, board: Board, connections: Sequence[Connection],
                 config: Optional[AnnealingConfig] = None,
                 placement_config: Optional[PlacementConfig] = None):
        self.board = board
        self.connections = list(connections)
        self.config = config or AnnealingConfig()
        self.placement_config = placement_config or PlacementConfig()
        self._bounds = PlacementLegalizer(board, self.placement_config)

    def _score(self, placement: List[PlacedComponent]) -> int:
        score, _ = score_arrangement(placement, self.connections, self.board)
        return score

    def _collides(self, placement: List[PlacedComponent], idx: int) -> bool:
        moved = placement[idx]
        spacing = self.placement_config.component_spacing
        return any(j != idx and check_overlap(moved, other, spacing)
                   for j, other in enumerate(placement))

    def optimize(self, placement: Sequence[PlacedComponent],
                 rng: Optional[random.Random] = None,
                 token: Optional[CancellationToken] = None) -> AnnealingResult:
        """
        Anneal a placement.

        Args:
            placement: Starting placement (not modified)
            rng: Random source; defaults to one seeded from the config
            token: Optional cancellation token, checked once per iteration

        Returns:
            AnnealingResult holding the best overlap-free placement seen.
            When nothing beats the start, that is a copy of the start. A
            start with overlaps is only reported if no move clears them,
            with ``valid`` False.
        """
        if not placement:
            return AnnealingResult()

        rng = rng or random.Random(self.config.seed)
        snap = self.placement_config.snap
        spacing = self.placement_config.component_spacing

        current = [p.copy() for p in placement]
        current_score = self._score(current)
        current_valid = not find_overlaps(current, spacing)
        best = [p.copy() for p in current]
        result = AnnealingResult(initial_score=current_score, score=current_score,
                                 valid=current_valid)

        temperature = self.config.initial_temperature
        span = 2 * self.config.max_move

        for _ in range(self.config.max_iterations):
            if token is not None and token.tick():
                result.cancelled = True
                logger.debug(f"Annealing cancelled after {result.iterations} iterations")
                break
            result.iterations += 1

            idx = rng.randrange(len(current))
            comp = current[idx]
            old_x, old_y = comp.x, comp.y

            new_x = snap(comp.x + (rng.random() - 0.5) * span)
            new_y = snap(comp.y + (rng.random() - 0.5) * span)
            lo_x, hi_x, lo_y, hi_y = self._bounds.clamp_range(comp)
            comp.x = max(lo_x, min(hi_x, new_x))
            comp.y = max(lo_y, min(hi_y, new_y))

            if self._collides(current, idx):
                comp.x, comp.y = old_x, old_y
                result.rejected_overlaps += 1
            else:
                new_score = self._score(current)
                delta = new_score - current_score
                if delta > 0 or (temperature > 0 and rng.random() < math.exp(delta / temperature)):
                    current_score = new_score
                    result.accepted += 1
                    if not current_valid:
                        # Moves never add overlaps, so once clear it stays clear
                        current_valid = not find_overlaps(current, spacing)
                    if current_valid and (not result.valid or current_score > result.score):
                        best = [p.copy() for p in current]
                        result.score = current_score
                        result.valid = True
                else:
                    comp.x, comp.y = old_x, old_y

            temperature *= self.config.cooling_rate

        result.placement = best
        logger.debug(f"Annealing: score {result.initial_score} -> {result.score} "
                     f"({result.accepted} accepted, {result.rejected_overlaps} overlap rejections)")
        return result


def optimize_placement(placement: Sequence[PlacedComponent],
                       connections: Sequence[Connection],
                       board: Board,
                       config: Optional[AnnealingConfig] = None,
                       rng: Optional[random.Random] = None,
                       token: Optional[CancellationToken] = None) -> List[PlacedComponent]:
    """Convenience wrapper returning only the optimized placement."""
    annealer = PlacementAnnealer(board, connections, config)
    return annealer.optimize(placement, rng=rng, token=token).placement
