"""
Overpass element -> `Facility` transformers.

Overpass returns OSM elements with free-form string tags. This module normalizes the
tags we care about into `WaterDetails` / `ToiletDetails`; everything else stays in
`Facility.tags` for renderers (popups, colours, etc.).
"""

from __future__ import annotations

from typing import Any, Callable

from watermap.domain.models import Facility, GeoPoint, ToiletDetails, WaterDetails, WaterSourceType


def _norm(value: str | None) -> str:
    return (value or "").strip().lower()


def is_drinkable(tags: dict[str, str]) -> bool:
    # amenity=drinking_water is drinkable unless explicitly tagged otherwise;
    # other sources are assumed drinkable unless marked "no".
    return _norm(tags.get("drinking_water")) != "no"


def water_source_type(tags: dict[str, str]) -> WaterSourceType:
    if tags.get("amenity") == "drinking_water":
        return "drinking_water"
    if tags.get("natural") == "spring":
        return "spring"
    if tags.get("man_made") == "water_well":
        return "water_well"
    if tags.get("man_made") == "water_tap":
        return "water_tap"
    if tags.get("waterway") == "water_point":
        return "water_point"
    return "unknown"


def _tri_state(value: str | None, allowed: tuple[str, ...] = ("yes", "no")) -> str:
    v = _norm(value)
    return v if v in allowed else "unknown"


def _unisex(value: str | None) -> bool | None:
    if not value:
        return None
    return _norm(value) == "yes"


def water_details(tags: dict[str, str]) -> WaterDetails:
    return WaterDetails(drinkable=is_drinkable(tags), source_type=water_source_type(tags))


def toilet_details(tags: dict[str, str]) -> ToiletDetails:
    return ToiletDetails(
        wheelchair=_tri_state(tags.get("wheelchair"), ("yes", "no", "limited")),  # type: ignore[arg-type]
        changing_table=_tri_state(tags.get("changing_table")),  # type: ignore[arg-type]
        fee=_tri_state(tags.get("fee")),  # type: ignore[arg-type]
        opening_hours=tags.get("opening_hours") or None,
        unisex=_unisex(tags.get("unisex")),
    )


def is_accessible(facility: Facility) -> bool:
    """Wheelchair=yes toilets only; `limited` does not count."""
    details = facility.details
    return isinstance(details, ToiletDetails) and details.wheelchair == "yes"


_DETAILS_BY_LAYER: dict[str, Callable[[dict[str, str]], WaterDetails | ToiletDetails]] = {
    "water": water_details,
    "toilet": toilet_details,
}


def element_coordinates(element: dict[str, Any]) -> tuple[float, float] | None:
    """Return (lat, lon) for a node, or the `center` of a way/relation (`out center`)."""
    if "lat" in element and "lon" in element:
        return float(element["lat"]), float(element["lon"])
    center = element.get("center")
    if isinstance(center, dict) and "lat" in center and "lon" in center:
        return float(center["lat"]), float(center["lon"])
    return None


def element_to_facility(element: dict[str, Any], layer: str) -> Facility | None:
    """Convert one Overpass element; returns None when it has no usable position."""
    coords = element_coordinates(element)
    if coords is None:
        return None
    lat, lon = coords
    raw_tags = element.get("tags") or {}
    tags = {str(k): str(v) for k, v in raw_tags.items()} if isinstance(raw_tags, dict) else {}
    return Facility(
        id=f"{element.get('type', 'node')}/{element['id']}",
        location=GeoPoint(lat=lat, lon=lon),
        tags=tags,
        details=_DETAILS_BY_LAYER[layer](tags),
    )
