"""
Distance annotation and nearest-facility selection.

Pure functions; the sync coordinator calls `annotate` once per successful fetch cycle.
"""

from __future__ import annotations

from typing import Sequence

from watermap.core.geo import GeoPoint, haversine_m
from watermap.domain.models import AnnotatedFacility, Facility


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters (haversine, Earth radius 6371 km)."""
    return haversine_m(a, b)


def nearest(reference: GeoPoint, points: Sequence[Facility]) -> Facility | None:
    """Return the facility closest to `reference` (first one wins on ties)."""
    best: Facility | None = None
    best_d = float("inf")
    for p in points:
        d = distance(reference, p.location.to_core())
        if d < best_d:
            best, best_d = p, d
    return best


def annotate(reference: GeoPoint, points: Sequence[Facility]) -> list[AnnotatedFacility]:
    """Attach `distance_m` to every facility and flag exactly one as nearest."""
    if not points:
        return []

    closest = nearest(reference, points)
    # Identity rather than id equality: malformed data may repeat an id.
    return [
        AnnotatedFacility(
            facility=p,
            distance_m=distance(reference, p.location.to_core()),
            is_nearest=p is closest,
        )
        for p in points
    ]


def nearest_annotated(items: Sequence[AnnotatedFacility]) -> AnnotatedFacility | None:
    return next((it for it in items if it.is_nearest), None)
