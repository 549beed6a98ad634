"""Cooperative cancellation for the long-running loops (annealing, A*, generator)."""

import time
from typing import Optional


class CancellationToken:
    """
    Step and wall-clock budget shared by one run.

    Loops call ``tick()`` once per unit of work and stop when it returns
    True. ``cancel()`` trips the token immediately.
    """

    def __init__(self, max_steps: Optional[int] = None, deadline_s: Optional[float] = None):
        self.max_steps = max_steps
        self.deadline = time.monotonic() + deadline_s if deadline_s is not None else None
        self.steps = 0
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self.max_steps is not None and self.steps > self.max_steps:
            self._cancelled = True
        elif self.deadline is not None and time.monotonic() >= self.deadline:
            self._cancelled = True
        return self._cancelled

    def tick(self) -> bool:
        """Count one step; True when this step exceeds the budget."""
        self.steps += 1
        return self.cancelled
