"""
Fetch-cycle outcome classification.

Turns one `FetchOutcome` into exactly one rendering event. Shared by the stateful
`SyncCoordinator` and the stateless HTTP API so both report the same three cases:
loaded (annotated + nearest), empty area, or typed error.
"""

from __future__ import annotations

from typing import Union

from watermap.core.geo import BoundingBox, GeoPoint
from watermap.core.result import Err, Result
from watermap.domain.errors import FetchError
from watermap.domain.events import AreaEmpty, FacilitiesLoaded, FetchFailed
from watermap.domain.models import Facility
from watermap.features.proximity import annotate, nearest_annotated

CycleEvent = Union[FacilitiesLoaded, AreaEmpty, FetchFailed]


def effective_reference(reference: GeoPoint | None, bounds: BoundingBox) -> GeoPoint:
    """The user's location when known, otherwise the viewport center."""
    return reference if reference is not None else bounds.center


def classify_outcome(
    layer: str,
    bounds: BoundingBox,
    outcome: Result[list[Facility], FetchError],
    *,
    reference: GeoPoint | None,
) -> CycleEvent:
    if isinstance(outcome, Err):
        return FetchFailed(layer=layer, bounds=bounds, error=outcome.error)

    facilities = outcome.value
    if not facilities:
        return AreaEmpty(layer=layer, bounds=bounds)

    ref = effective_reference(reference, bounds)
    annotated = annotate(ref, facilities)
    return FacilitiesLoaded(
        layer=layer,
        bounds=bounds,
        reference=ref,
        facilities=annotated,
        nearest=nearest_annotated(annotated),
    )
