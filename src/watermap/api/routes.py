"""
API routes.

Endpoints:
- GET `/api/layers`: configured facility layers.
- GET `/api/settings`: public map knobs for the web client (movement gate, timeouts).
- GET `/api/facilities`: one stateless fetch cycle for a bbox (annotated + nearest).
- GET `/api/navigation`: walking-directions deep link for a point.

Session state (reference location, last fetched bounds, debounce) lives in the client;
this API only answers single fetch cycles.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query, Request

from watermap.config.settings import get_settings
from watermap.core.geo import BoundingBox, GeoPoint as CoreGeoPoint
from watermap.domain.errors import FetchErrorKind
from watermap.domain.events import AreaEmpty, FacilitiesLoaded, FetchFailed
from watermap.features.navigation import Platform, detect_platform, navigation_uri
from watermap.features.notices import empty_area_notice, fetch_error_notice
from watermap.ingestion.overpass_client import OverpassClient
from watermap.ingestion.queries import QueryTemplate, load_layer_query
from watermap.sync.cycle import classify_outcome

router = APIRouter()

_STATUS_BY_FETCH_ERROR = {
    FetchErrorKind.NETWORK: 502,
    FetchErrorKind.PARSE: 502,
    FetchErrorKind.TIMEOUT: 504,
}


@lru_cache
def _client() -> OverpassClient:
    return OverpassClient(get_settings())


@lru_cache
def _query(layer: str) -> QueryTemplate:
    settings = get_settings()
    return load_layer_query(layer, settings.layers[layer])  # type: ignore[index]


@router.get("/api/layers")
def get_layers() -> dict:
    settings = get_settings()
    return {
        "layers": [
            {"name": name, "label": cfg.label, "enabled_by_default": cfg.enabled_by_default}
            for name, cfg in settings.layers.items()
        ]
    }


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Knobs the browser needs to run the movement gate and location detection itself."""
    settings = get_settings()
    return {
        "map": settings.map.model_dump(mode="json"),
        "movement": settings.movement.model_dump(mode="json"),
        "location": {
            "timeout_seconds": settings.location.timeout_seconds,
            "high_accuracy": settings.location.high_accuracy,
        },
    }


@router.get("/api/facilities")
async def get_facilities(
    layer: str = Query(...),
    south: float = Query(..., ge=-90, le=90),
    west: float = Query(..., ge=-180, le=180),
    north: float = Query(..., ge=-90, le=90),
    east: float = Query(..., ge=-180, le=180),
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
) -> dict:
    settings = get_settings()
    if layer not in settings.layers:
        raise HTTPException(status_code=404, detail=f"Unknown layer '{layer}'")
    if (lat is None) != (lon is None):
        raise HTTPException(status_code=422, detail="lat and lon must be given together")
    try:
        bounds = BoundingBox(south=south, west=west, north=north, east=east)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    reference = CoreGeoPoint(lat=lat, lon=lon) if lat is not None and lon is not None else None
    outcome = await _client().fetch_facilities(_query(layer), bounds)
    event = classify_outcome(layer, bounds, outcome, reference=reference)

    if isinstance(event, FetchFailed):
        raise HTTPException(
            status_code=_STATUS_BY_FETCH_ERROR[event.error.kind],
            detail={**event.error.as_dict(), "notice": fetch_error_notice(layer, event.error)},
        )
    if isinstance(event, AreaEmpty):
        return {
            "status": "empty",
            "layer": layer,
            "bbox": bounds.as_overpass(),
            "notice": empty_area_notice(layer),
            "facilities": [],
            "nearest": None,
        }
    if isinstance(event, FacilitiesLoaded):
        return {
            "status": "ok",
            "layer": layer,
            "bbox": bounds.as_overpass(),
            "reference": {
                "lat": event.reference.lat,
                "lon": event.reference.lon,
                "origin": "user" if reference is not None else "fallback",
            },
            "facilities": [f.model_dump(mode="json") for f in event.facilities],
            "nearest": event.nearest.model_dump(mode="json") if event.nearest else None,
        }
    raise TypeError(f"Unexpected cycle event: {event!r}")


@router.get("/api/navigation")
def get_navigation(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    label: str | None = None,
    platform: Platform | None = None,
) -> dict:
    resolved = platform or detect_platform(request.headers.get("user-agent"))
    return {"platform": resolved, "uri": navigation_uri(CoreGeoPoint(lat=lat, lon=lon), label, resolved)}
