"""
Viewport movement gate.

Decides whether a viewport change is large enough to justify re-fetching facilities.
The trigger is relative: the viewport center must move by at least `threshold` times
the previous viewport's diagonal, so the same setting behaves sensibly at every zoom.
"""

from __future__ import annotations

import logging
from typing import Callable

from watermap.core.debounce import TrailingDebounce
from watermap.core.geo import BoundingBox, diagonal_m, haversine_m

logger = logging.getLogger(__name__)


def has_moved_significantly(previous: BoundingBox, current: BoundingBox, threshold: float = 0.25) -> bool:
    """Return True iff the center moved >= `threshold` * diagonal of `previous`."""
    moved_m = haversine_m(previous.center, current.center)
    diagonal = diagonal_m(previous)
    if diagonal == 0:
        # Degenerate previous viewport: any movement counts.
        return moved_m > 0
    return moved_m >= threshold * diagonal


class MovementGate:
    """Debounced movement gate for one facility layer.

    `recorded` holds the bounds of the last fetch for the layer. It only changes when the
    gate fires (or the owner calls `record()` after an explicit fetch), never on ignored
    observations, so small drags cannot creep past the threshold unnoticed.
    """

    def __init__(
        self,
        on_significant: Callable[[BoundingBox], None],
        *,
        threshold: float = 0.25,
        debounce_seconds: float = 0.3,
    ):
        self._on_significant = on_significant
        self._threshold = float(threshold)
        self._recorded: BoundingBox | None = None
        self._debounce: TrailingDebounce[BoundingBox] = TrailingDebounce(debounce_seconds, self.evaluate)

    @property
    def recorded(self) -> BoundingBox | None:
        return self._recorded

    @property
    def pending(self) -> bool:
        return self._debounce.pending

    def record(self, bounds: BoundingBox) -> None:
        self._recorded = bounds

    def notify(self, bounds: BoundingBox) -> None:
        """Feed one viewport observation; evaluation happens after the debounce delay."""
        self._debounce.push(bounds)

    def evaluate(self, bounds: BoundingBox) -> bool:
        """Compare `bounds` against the recorded bounds and fire if significant."""
        previous = self._recorded
        if previous is not None and not has_moved_significantly(previous, bounds, self._threshold):
            logger.debug("Viewport change below threshold; skipping refetch.")
            return False
        self._recorded = bounds
        self._on_significant(bounds)
        return True

    def cancel(self) -> None:
        self._debounce.cancel()
