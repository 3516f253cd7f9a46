"""
Viewport-driven facility synchronization.

`SyncCoordinator` owns one map session:
- the reference location (set by a successful location detection, never cleared),
- the current viewport,
- per-layer state (enabled flag, movement gate / last fetched bounds, displayed set).

Protocol per enabled layer:
1. `start()` detects the location once (falling back to the configured center) and
   runs one fetch cycle for the initial viewport.
2. Every debounced, significant viewport change runs another fetch cycle.

Fetch cycles publish exactly one event (`FacilitiesLoaded`, `AreaEmpty` or `FetchFailed`).
A failed fetch leaves the displayed set untouched. Nothing is retried automatically.

All methods must be called from the event loop that owns the session; no locking is
done because state is only touched from that loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Protocol

from watermap.config.settings import Settings
from watermap.core.geo import BoundingBox, GeoPoint
from watermap.core.result import Err, Ok, Result
from watermap.domain.errors import FetchError, LocationError
from watermap.domain.events import (
    AreaEmpty,
    FacilitiesLoaded,
    FetchFailed,
    LayerCleared,
    LocationFailed,
    LocationResolved,
    SyncEvent,
)
from watermap.domain.models import AnnotatedFacility, Facility, LocationOrigin
from watermap.features.movement import MovementGate
from watermap.ingestion.overpass_client import OverpassClient
from watermap.ingestion.queries import QueryTemplate, load_layer_query
from watermap.location.detector import LocationDetector
from watermap.location.providers import GeolocationProvider
from watermap.sync.cycle import CycleEvent, classify_outcome

logger = logging.getLogger(__name__)


class FacilityFetcher(Protocol):
    async def fetch_facilities(
        self, query: QueryTemplate, bounds: BoundingBox
    ) -> Result[list[Facility], FetchError]: ...


@dataclass
class LayerState:
    """Mutable per-layer session state."""

    name: str
    query: QueryTemplate
    gate: MovementGate
    enabled: bool = False
    generation: int = 0
    displayed: list[AnnotatedFacility] = field(default_factory=list)
    nearest: AnnotatedFacility | None = None
    last_error: FetchError | None = None

    @property
    def last_fetched_bounds(self) -> BoundingBox | None:
        return self.gate.recorded


class SyncCoordinator:
    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: FacilityFetcher,
        detector: LocationDetector,
        publish: Callable[[SyncEvent], None],
        queries: dict[str, QueryTemplate] | None = None,
        enabled_layers: list[str] | None = None,
    ):
        self._settings = settings
        self._fetcher = fetcher
        self._detector = detector
        self._publish = publish
        self._discard_stale = bool(settings.sync.discard_stale_responses)

        self._reference: GeoPoint | None = None
        self._origin: LocationOrigin | None = None
        self._viewport: BoundingBox | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        unknown = set(enabled_layers or []) - set(settings.layers)
        if unknown:
            raise KeyError(f"Unknown facility layer(s): {sorted(unknown)}")

        self._layers: dict[str, LayerState] = {}
        for name, cfg in settings.layers.items():
            query = (queries or {}).get(name) or load_layer_query(name, cfg)
            enabled = name in enabled_layers if enabled_layers is not None else cfg.enabled_by_default
            self._layers[name] = LayerState(
                name=name,
                query=query,
                gate=self._make_gate(name),
                enabled=bool(enabled),
            )

    def _make_gate(self, name: str) -> MovementGate:
        movement = self._settings.movement

        def on_significant(bounds: BoundingBox) -> None:
            self._spawn(self.fetch_cycle(name, bounds))

        return MovementGate(
            on_significant,
            threshold=movement.threshold,
            debounce_seconds=movement.debounce_seconds,
        )

    @property
    def reference(self) -> GeoPoint | None:
        return self._reference

    @property
    def origin(self) -> LocationOrigin | None:
        return self._origin

    @property
    def viewport(self) -> BoundingBox | None:
        return self._viewport

    @property
    def layers(self) -> dict[str, LayerState]:
        return dict(self._layers)

    def layer(self, name: str) -> LayerState:
        try:
            return self._layers[name]
        except KeyError:
            raise KeyError(f"Unknown facility layer '{name}'. Known: {sorted(self._layers)}") from None

    def _enabled_layers(self) -> list[LayerState]:
        return [s for s in self._layers.values() if s.enabled]

    def _fallback_center(self) -> GeoPoint:
        c = self._settings.map.default_center
        return GeoPoint(lat=c.lat, lon=c.lon)

    def _viewport_around(self, center: GeoPoint) -> BoundingBox:
        return BoundingBox.around(center, self._settings.map.initial_radius_m)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background fetch cycle failed unexpectedly.", exc_info=exc)

    def _cancel_pending(self) -> None:
        for state in self._layers.values():
            state.gate.cancel()

    async def _fetch_enabled(self, bounds: BoundingBox) -> None:
        await asyncio.gather(*(self.fetch_cycle(s.name, bounds) for s in self._enabled_layers()))

    async def start(self, viewport: BoundingBox | None = None) -> None:
        """Initialize the session: detect location (or fall back), then fetch."""
        outcome = await self._detector.detect_location()
        if isinstance(outcome, Ok):
            self._reference = outcome.value
            self._origin = LocationOrigin.USER
            center = outcome.value
        else:
            self._origin = LocationOrigin.FALLBACK
            center = self._fallback_center()
            logger.warning(
                "Falling back to default center lat=%.4f lon=%.4f (%s).",
                center.lat,
                center.lon,
                outcome.error.kind.value,
            )
        self._publish(LocationResolved(origin=self._origin, point=self._reference))

        self._viewport = viewport or self._viewport_around(center)
        self._cancel_pending()
        await self._fetch_enabled(self._viewport)

    async def relocate(self) -> Result[GeoPoint, LocationError]:
        """Explicit "locate me": on success re-center and fetch every enabled layer."""
        outcome = await self._detector.detect_location()
        if isinstance(outcome, Err):
            self._publish(LocationFailed(error=outcome.error))
            return outcome

        self._reference = outcome.value
        self._origin = LocationOrigin.USER
        self._publish(LocationResolved(origin=LocationOrigin.USER, point=outcome.value))

        self._viewport = self._viewport_around(outcome.value)
        # A debounced evaluation of an older viewport must not fire after re-centering.
        self._cancel_pending()
        await self._fetch_enabled(self._viewport)
        return outcome

    def on_viewport_change(self, bounds: BoundingBox) -> None:
        """Viewport source entry point (pan/zoom end); evaluation is debounced per layer."""
        self._viewport = bounds
        for state in self._enabled_layers():
            state.gate.notify(bounds)

    async def enable_layer(self, name: str) -> CycleEvent | None:
        state = self.layer(name)
        if state.enabled:
            return None
        state.enabled = True
        logger.info("Layer %s enabled.", name)
        if self._viewport is None:
            return None
        return await self.fetch_cycle(name, self._viewport)

    def disable_layer(self, name: str) -> None:
        state = self.layer(name)
        if not state.enabled:
            return
        state.enabled = False
        state.gate.cancel()
        # Invalidate any in-flight fetch; last fetched bounds are kept for re-enabling.
        state.generation += 1
        state.displayed = []
        state.nearest = None
        logger.info("Layer %s disabled.", name)
        self._publish(LayerCleared(layer=name))

    async def fetch_cycle(self, name: str, bounds: BoundingBox) -> CycleEvent | None:
        """Fetch, classify and publish one layer update; returns the published event."""
        state = self.layer(name)
        if not state.enabled:
            return None

        state.generation += 1
        generation = state.generation
        state.gate.record(bounds)

        outcome = await self._fetcher.fetch_facilities(state.query, bounds)

        if not state.enabled:
            logger.debug("Dropping %s response; layer was disabled mid-fetch.", name)
            return None
        if self._discard_stale and generation != state.generation:
            logger.debug("Dropping stale %s response (generation %s < %s).", name, generation, state.generation)
            return None

        event = classify_outcome(name, bounds, outcome, reference=self._reference)
        self._apply(state, event)
        self._publish(event)
        return event

    def _apply(self, state: LayerState, event: CycleEvent) -> None:
        if isinstance(event, FetchFailed):
            state.last_error = event.error
            logger.warning(
                "Failed to fetch %s facilities (%s): %s",
                state.name,
                event.error.kind.value,
                event.error.message,
            )
        elif isinstance(event, AreaEmpty):
            state.displayed = []
            state.nearest = None
            state.last_error = None
            logger.info("No %s facilities in bbox=%s", state.name, event.bounds.as_overpass())
        elif isinstance(event, FacilitiesLoaded):
            state.displayed = list(event.facilities)
            state.nearest = event.nearest
            state.last_error = None
            logger.info("Loaded %s %s facilities.", len(event.facilities), state.name)
        else:
            raise TypeError(f"Unexpected cycle event: {event!r}")

    async def wait_idle(self) -> None:
        """Wait for every fetch cycle spawned by the movement gates to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._cancel_pending()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def build_coordinator(
    settings: Settings,
    *,
    provider: GeolocationProvider | None,
    publish: Callable[[SyncEvent], None],
    enabled_layers: list[str] | None = None,
) -> SyncCoordinator:
    """Wire a coordinator with the live Overpass client and a detector for `provider`."""
    return SyncCoordinator(
        settings,
        fetcher=OverpassClient(settings),
        detector=LocationDetector.from_settings(settings, provider),
        publish=publish,
        enabled_layers=enabled_layers,
    )
