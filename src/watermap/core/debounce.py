"""
Trailing-edge debounce timer.

Viewport notifications arrive in bursts while the user drags the map. `TrailingDebounce`
keeps only the most recent value and invokes its callback once the stream has been
quiet for `delay_seconds`. Intermediate values are dropped, never queued.

The timer runs on the current asyncio event loop (`loop.call_later`), so `push()` must
be called from inside a running loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrailingDebounce(Generic[T]):
    """Cancelable trailing-edge debounce for a single callback."""

    def __init__(self, delay_seconds: float, callback: Callable[[T], None]):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self._delay_seconds = float(delay_seconds)
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._latest: T | None = None

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value: T) -> None:
        """Record `value` and restart the quiet-period timer."""
        self._latest = value
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay_seconds, self._fire)

    def cancel(self) -> None:
        """Drop the pending value (if any) without invoking the callback."""
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("Debounce cancelled with a pending value.")
        self._handle = None
        self._latest = None

    def _fire(self) -> None:
        value = self._latest
        self._handle = None
        self._latest = None
        self._callback(value)  # type: ignore[arg-type]
