"""
Events published by the sync coordinator to the rendering layer.

`SyncEvent` is a closed union; renderers dispatch on the concrete type (see
`watermap.cli._render_event`) and treat anything else as a programming error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from watermap.core.geo import BoundingBox, GeoPoint
from watermap.domain.errors import FetchError, LocationError
from watermap.domain.models import AnnotatedFacility, LocationOrigin


@dataclass(frozen=True)
class LocationResolved:
    """Reference location origin for the session (published at init and on relocate)."""

    origin: LocationOrigin
    # None for the fallback origin: distances then use the viewport center.
    point: GeoPoint | None


@dataclass(frozen=True)
class LocationFailed:
    """An explicit relocate failed; the previous reference location is kept."""

    error: LocationError


@dataclass(frozen=True)
class FacilitiesLoaded:
    layer: str
    bounds: BoundingBox
    reference: GeoPoint
    facilities: list[AnnotatedFacility] = field(default_factory=list)
    nearest: AnnotatedFacility | None = None


@dataclass(frozen=True)
class AreaEmpty:
    layer: str
    bounds: BoundingBox


@dataclass(frozen=True)
class FetchFailed:
    layer: str
    bounds: BoundingBox
    error: FetchError


@dataclass(frozen=True)
class LayerCleared:
    layer: str


SyncEvent = Union[LocationResolved, LocationFailed, FacilitiesLoaded, AreaEmpty, FetchFailed, LayerCleared]
