"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- facilities parsed from Overpass (`Facility`, with layer-specific `details`)
- distance-annotated output handed to the rendering layer (`AnnotatedFacility`)

`details` is a tagged union on `kind` so consumers can branch exhaustively on
water vs. toilet payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from watermap.core.geo import GeoPoint as CoreGeoPoint

WaterSourceType = Literal["drinking_water", "spring", "water_well", "water_tap", "water_point", "unknown"]
WheelchairAccess = Literal["yes", "no", "limited", "unknown"]
TriState = Literal["yes", "no", "unknown"]


class LocationOrigin(str, Enum):
    USER = "user"
    FALLBACK = "fallback"


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lon=self.lon)


class WaterDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["water"] = "water"
    drinkable: bool = True
    source_type: WaterSourceType = "unknown"


class ToiletDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["toilet"] = "toilet"
    wheelchair: WheelchairAccess = "unknown"
    changing_table: TriState = "unknown"
    fee: TriState = "unknown"
    # None means "not tagged" (commonly treated as 24/7 by renderers).
    opening_hours: str | None = None
    unisex: bool | None = None


FacilityDetails = Annotated[Union[WaterDetails, ToiletDetails], Field(discriminator="kind")]


class Facility(BaseModel):
    """One point of interest returned by the facility query."""

    model_config = ConfigDict(frozen=True)

    id: str
    location: GeoPoint
    tags: dict[str, str] = Field(default_factory=dict)
    details: FacilityDetails

    @property
    def layer(self) -> str:
        return self.details.kind

    @property
    def name(self) -> str | None:
        return self.tags.get("name")


class AnnotatedFacility(BaseModel):
    """A facility plus its distance from the current reference location."""

    model_config = ConfigDict(frozen=True)

    facility: Facility
    distance_m: float = Field(..., ge=0)
    is_nearest: bool = False
